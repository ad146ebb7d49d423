"""The file allocation table: cluster chains, free space and a small sector cache.

Sectors of the table are read through a few cached buffers. Changes stay in
the cache until they are purged or the buffer is needed for another sector.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

from .fat_defs import (
    BUFFER_SECTORS,
    BUFFERS,
    DIR_ENTRY_SIZE,
    INVALID_CLUSTER,
    LAST_CLUSTER,
    SECTOR_SIZE,
    FatType,
)

__all__ = ["MediaError", "RamDisk", "FatVolume", "FatTable"]

_FSINFO_NEXT_FREE = 492


class MediaError(Exception):
    """A sector could not be read from or written to the medium."""


class _Media(Protocol):
    def read_sectors(self, sector: int, count: int = 1) -> bytes: ...


class RamDisk:
    """A block device held in memory, addressed in 512-byte sectors."""

    def __init__(self, sector_count: int, image: Optional[bytes] = None) -> None:
        if sector_count < 0:
            raise ValueError("sector count cannot be negative")
        self.sector_count = sector_count
        self.image = bytearray(sector_count * SECTOR_SIZE)
        if image is not None:
            if len(image) > len(self.image):
                raise ValueError("image is larger than the disk")
            self.image[: len(image)] = image

    def _check(self, sector: int, count: int) -> None:
        if sector < 0 or count < 0 or sector + count > self.sector_count:
            raise MediaError(
                f"sectors {sector}..{sector + count - 1} outside a disk of "
                f"{self.sector_count} sectors"
            )

    def read_sectors(self, sector: int, count: int = 1) -> bytes:
        """Return *count* sectors starting at *sector*."""
        self._check(sector, count)
        start = sector * SECTOR_SIZE
        return bytes(self.image[start : start + count * SECTOR_SIZE])

    def write_sectors(self, sector: int, data: bytes) -> None:
        """Write *data*, a whole number of sectors, starting at *sector*."""
        if len(data) % SECTOR_SIZE:
            raise ValueError(f"data must be a multiple of {SECTOR_SIZE} bytes")
        self._check(sector, len(data) // SECTOR_SIZE)
        start = sector * SECTOR_SIZE
        self.image[start : start + len(data)] = data


@dataclass
class FatVolume:
    """Geometry of a mounted or freshly formatted FAT volume."""

    media: _Media
    fat_type: FatType = FatType.FAT16
    sectors_per_cluster: int = 1
    reserved_sectors: int = 0
    num_of_fats: int = 2
    root_entry_count: int = 0
    fat_sectors: int = 0
    fat_begin_lba: int = 0
    cluster_begin_lba: int = 0
    lba_begin: int = 0
    rootdir_first_cluster: int = 0
    rootdir_first_sector: int = 0
    rootdir_sectors: int = 0
    fs_info_sector: int = 0
    next_free_cluster: int = LAST_CLUSTER

    @property
    def writable(self) -> bool:
        """Whether the medium accepts writes."""
        return callable(getattr(self.media, "write_sectors", None))

    def lba_of_cluster(self, cluster: int) -> int:
        """Return the first sector of data *cluster*."""
        first = self.cluster_begin_lba + (cluster - 2) * self.sectors_per_cluster
        if self.fat_type == FatType.FAT16:
            first += self.root_entry_count * DIR_ENTRY_SIZE // SECTOR_SIZE
        return first


@dataclass
class _FatBuffer:
    address: int = INVALID_CLUSTER
    dirty: bool = False
    data: bytearray = field(
        default_factory=lambda: bytearray(BUFFER_SECTORS * SECTOR_SIZE)
    )
    offset: int = 0

    def holds(self, sector: int) -> bool:
        return (
            self.address != INVALID_CLUSTER
            and self.address <= sector < self.address + BUFFER_SECTORS
        )

    def get(self, position: int, width: int) -> int:
        start = self.offset + position
        return int.from_bytes(self.data[start : start + width], "little")

    def set(self, position: int, width: int, value: int) -> None:
        start = self.offset + position
        mask = (1 << (8 * width)) - 1
        self.data[start : start + width] = (value & mask).to_bytes(width, "little")
        self.dirty = True


class FatTable:
    """Reads and changes the cluster chains of a :class:`FatVolume`."""

    def __init__(self, volume: FatVolume) -> None:
        self.volume = volume
        self._buffers: list[_FatBuffer] = []
        self.reset()

    def reset(self) -> None:
        """Drop every cached sector, unwritten changes included."""
        self._buffers = [_FatBuffer() for _ in range(BUFFERS)]

    # -- sector cache ---------------------------------------------------------

    def _writeback(self, buffer: _FatBuffer) -> None:
        if not buffer.dirty:
            return
        volume = self.volume
        if volume.writable:
            offset = buffer.address - volume.fat_begin_lba
            sectors = BUFFER_SECTORS
            if 0 <= offset < volume.fat_sectors:
                sectors = min(BUFFER_SECTORS, volume.fat_sectors - offset)
            volume.media.write_sectors(
                buffer.address, bytes(buffer.data[: sectors * SECTOR_SIZE])
            )
        buffer.dirty = False

    def _read_sector(self, sector: int) -> _FatBuffer:
        for buffer in self._buffers:
            if buffer.holds(sector):
                buffer.offset = (sector - buffer.address) * SECTOR_SIZE
                return buffer

        buffer = self._buffers.pop()
        self._buffers.insert(0, buffer)
        self._writeback(buffer)

        buffer.address = sector
        try:
            data = self.volume.media.read_sectors(sector, BUFFER_SECTORS)
        except MediaError:
            buffer.address = INVALID_CLUSTER
            raise
        buffer.data[:] = data
        buffer.offset = 0
        return buffer

    def purge(self) -> None:
        """Write every changed cached sector back to the medium."""
        for buffer in self._buffers:
            self._writeback(buffer)

    # -- entries --------------------------------------------------------------

    def _layout(self) -> tuple[int, int]:
        """Entries per sector and bytes per entry for this table type."""
        if self.volume.fat_type == FatType.FAT16:
            return SECTOR_SIZE // 2, 2
        return SECTOR_SIZE // 4, 4

    def _locate(self, cluster: int) -> tuple[int, int, int]:
        per_sector, width = self._layout()
        sector_offset = cluster // per_sector
        position = (cluster - sector_offset * per_sector) * width
        return sector_offset, position, width

    def _get_entry(self, cluster: int) -> int:
        sector_offset, position, width = self._locate(cluster)
        buffer = self._read_sector(self.volume.fat_begin_lba + sector_offset)
        value = buffer.get(position, width)
        return value if width == 2 else value & 0x0FFFFFFF

    def find_next_cluster(self, cluster: int) -> int:
        """Return the cluster after *cluster* in its chain, or ``LAST_CLUSTER``."""
        if cluster == 0:
            cluster = 2
        value = self._get_entry(cluster)
        if self.volume.fat_type == FatType.FAT16:
            if 0xFFF8 <= value <= 0xFFFF:
                return LAST_CLUSTER
        elif 0x0FFFFFF8 <= value <= 0x0FFFFFFF:
            return LAST_CLUSTER
        return value

    def set_fs_info_next_free_cluster(self, value: int) -> None:
        """Record the next-free-cluster hint in the FSInfo sector (FAT32 only)."""
        volume = self.volume
        if volume.fat_type == FatType.FAT16:
            return
        buffer = self._read_sector(volume.lba_begin + volume.fs_info_sector)
        buffer.set(_FSINFO_NEXT_FREE, 4, value)
        volume.next_free_cluster = value
        if volume.writable:
            volume.media.write_sectors(
                buffer.address, bytes(buffer.data[:SECTOR_SIZE])
            )
        buffer.address = INVALID_CLUSTER
        buffer.dirty = False

    def find_blank_cluster(self, start_cluster: int) -> Optional[int]:
        """Return the first free cluster from *start_cluster* on, or ``None``."""
        per_sector, _ = self._layout()
        current = start_cluster
        while current // per_sector < self.volume.fat_sectors:
            if self._get_entry(current) == 0:
                return current
            current += 1
        return None

    def set_cluster(self, cluster: int, next_cluster: int) -> None:
        """Link *cluster* to *next_cluster* in the cached table."""
        sector_offset, position, width = self._locate(cluster)
        buffer = self._read_sector(self.volume.fat_begin_lba + sector_offset)
        buffer.set(position, width, next_cluster)

    def free_cluster_chain(self, start_cluster: int) -> None:
        """Mark every cluster of the chain starting at *start_cluster* as free."""
        current = start_cluster
        while current not in (LAST_CLUSTER, 0):
            following = self.find_next_cluster(current)
            self.set_cluster(current, 0)
            current = following

    def add_cluster_to_chain(self, start_cluster: int, new_cluster: int) -> None:
        """Append *new_cluster* to the end of the chain starting at *start_cluster*.

        Raises :class:`ValueError` for an empty start or a chain that runs
        into a free cluster.
        """
        if start_cluster == LAST_CLUSTER:
            raise ValueError("chain has no start cluster")
        last = start_cluster
        current = start_cluster
        while current != LAST_CLUSTER:
            last = current
            current = self.find_next_cluster(current)
            if current == 0:
                raise ValueError(f"chain from cluster {start_cluster} is broken")
        self.set_cluster(last, new_cluster)
        self.set_cluster(new_cluster, LAST_CLUSTER)

    def count_free_clusters(self) -> int:
        """Count the free entries in every sector of the table."""
        _, width = self._layout()
        count = 0
        for index in range(self.volume.fat_sectors):
            buffer = self._read_sector(self.volume.fat_begin_lba + index)
            count += sum(
                1
                for position in range(0, SECTOR_SIZE, width)
                if buffer.get(position, width) == 0
            )
        return count
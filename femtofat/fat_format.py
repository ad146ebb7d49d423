"""Formatting of FAT16 and FAT32 volumes.

No partition table is written: the boot sector goes to sector 0 of the
medium and the volume fills the rest of it.
"""

from __future__ import annotations

import struct

from .fat_defs import INVALID_CLUSTER, SECTOR_SIZE, SFN_SIZE_FULL, FatType
from .fat_table import FatTable, FatVolume

__all__ = [
    "FormatError",
    "calc_cluster_size",
    "format_fat16",
    "format_fat32",
    "format_volume",
]

# (largest volume in sectors, sectors per cluster)
_CLUSTER_SIZES_FAT16 = (
    (32680, 2),  # 16MB - 1K
    (262144, 4),  # 128MB - 2K
    (524288, 8),  # 256MB - 4K
    (1048576, 16),  # 512MB - 8K
    (2097152, 32),  # 1GB - 16K
    (4194304, 64),  # 2GB - 32K
    (8388608, 128),  # 2GB - 64K, only supported by Windows XP onwards
)

_CLUSTER_SIZES_FAT32 = (
    (532480, 1),  # 260MB - 512b
    (16777216, 8),  # 8GB - 4K
    (33554432, 16),  # 16GB - 8K
    (67108864, 32),  # 32GB - 16K
    (0xFFFFFFFF, 64),  # >32GB - 32K
)

# Largest volume that is still formatted as FAT16.
_FAT16_LIMIT = 4194304

_JUMP_AND_OEM = b"\xEB\x3C\x90MSDOS5.0"
_VOLUME_ID = b"\x12\x34\x56\x78"
_SIGNATURE = b"\x55\xAA"
_MEDIA_FIXED_DISK = 0xF8
_BOOT_SIGNATURE = 0x29
_FAT32_BACKUP_BOOT_SECTOR = 6


class FormatError(Exception):
    """The volume cannot be formatted."""


def calc_cluster_size(sectors: int, is_fat32: bool) -> int:
    """Return the sectors per cluster suited to a volume of *sectors* sectors.

    Raises :class:`FormatError` when the volume is too large for the table type.
    """
    table = _CLUSTER_SIZES_FAT32 if is_fat32 else _CLUSTER_SIZES_FAT16
    for limit, per_cluster in table:
        if sectors <= limit:
            return per_cluster
    kind = "FAT32" if is_fat32 else "FAT16"
    raise FormatError(f"{sectors} sectors is too large for {kind}")


def _label(name: str | bytes) -> bytes:
    raw = name if isinstance(name, (bytes, bytearray)) else name.encode("latin-1")
    return bytes(raw[:SFN_SIZE_FULL]).ljust(SFN_SIZE_FULL, b" ")


def _check_media(volume: FatVolume) -> None:
    if not callable(getattr(volume.media, "read_sectors", None)) or not volume.writable:
        raise FormatError("the medium must support both reading and writing")


def _erase_sectors(volume: FatVolume, lba: int, count: int) -> None:
    zero = bytes(SECTOR_SIZE)
    for index in range(count):
        volume.media.write_sectors(lba + index, zero)


def _create_boot_sector(
    volume: FatVolume, boot_sector_lba: int, vol_sectors: int, name, is_fat32: bool
) -> None:
    sector = bytearray(SECTOR_SIZE)
    sector[0:11] = _JUMP_AND_OEM
    struct.pack_into("<H", sector, 11, SECTOR_SIZE)

    volume.sectors_per_cluster = calc_cluster_size(vol_sectors, is_fat32)
    sector[13] = volume.sectors_per_cluster

    volume.reserved_sectors = 32 if is_fat32 else 8
    struct.pack_into("<H", sector, 14, volume.reserved_sectors)

    volume.num_of_fats = 2
    sector[16] = volume.num_of_fats

    volume.root_entry_count = 0 if is_fat32 else 512
    struct.pack_into("<H", sector, 17, volume.root_entry_count)

    # Total sectors (16-bit) stays zero; the 32-bit count is used instead.
    sector[21] = _MEDIA_FIXED_DISK

    total_clusters = vol_sectors // volume.sectors_per_cluster + 1
    total_sectors = vol_sectors & 0xFFFFFFFF
    label = _label(name)

    if not is_fat32:
        volume.fat_sectors = total_clusters // (SECTOR_SIZE // 2) + 1
        struct.pack_into("<H", sector, 22, volume.fat_sectors & 0xFFFF)
        sector[28] = 0x20  # hidden sectors
        struct.pack_into("<I", sector, 32, total_sectors)
        sector[36] = 0x00  # drive number
        sector[38] = _BOOT_SIGNATURE
        sector[39:43] = _VOLUME_ID
        sector[43:54] = label
        sector[54:62] = b"FAT16   "
    else:
        volume.fat_sectors = total_clusters // (SECTOR_SIZE // 4) + 1
        sector[24] = 0x3F  # sectors per track
        sector[26] = 0xFF  # heads
        struct.pack_into("<I", sector, 32, total_sectors)
        struct.pack_into("<I", sector, 36, volume.fat_sectors & 0xFFFFFFFF)
        struct.pack_into("<I", sector, 44, volume.rootdir_first_cluster & 0xFFFFFFFF)
        struct.pack_into("<H", sector, 48, volume.fs_info_sector & 0xFFFF)
        sector[50] = _FAT32_BACKUP_BOOT_SECTOR
        sector[64] = 0x00  # drive number
        sector[66] = _BOOT_SIGNATURE
        sector[67:71] = _VOLUME_ID
        sector[71:82] = label
        sector[82:90] = b"FAT32   "

    sector[510:512] = _SIGNATURE
    volume.media.write_sectors(boot_sector_lba, bytes(sector))


def _create_fsinfo_sector(volume: FatVolume, sector_lba: int) -> None:
    sector = bytearray(SECTOR_SIZE)
    sector[0:4] = b"RRaA"
    sector[484:488] = b"rrAa"
    sector[488:492] = b"\xFF\xFF\xFF\xFF"  # free cluster count unknown
    sector[492:496] = b"\xFF\xFF\xFF\xFF"  # next free cluster unknown
    sector[510:512] = _SIGNATURE
    volume.media.write_sectors(sector_lba, bytes(sector))


def _erase_fat(volume: FatVolume, is_fat32: bool) -> None:
    first = bytearray(SECTOR_SIZE)
    if is_fat32:
        struct.pack_into("<III", first, 0, 0x0FFFFFF8, 0xFFFFFFFF, 0x0FFFFFFF)
    else:
        struct.pack_into("<HH", first, 0, 0xFFF8, 0xFFFF)
    volume.media.write_sectors(volume.fat_begin_lba, bytes(first))
    _erase_sectors(
        volume,
        volume.fat_begin_lba + 1,
        volume.fat_sectors * volume.num_of_fats - 1,
    )


def _prepare(volume: FatVolume) -> FatTable:
    volume.next_free_cluster = 0
    table = FatTable(volume)
    _check_media(volume)
    return table


def format_fat16(volume: FatVolume, volume_sectors: int, name) -> FatTable:
    """Format *volume* as FAT16 and return a fresh table for it."""
    table = _prepare(volume)
    volume.fat_type = FatType.FAT16
    volume.fs_info_sector = 0
    volume.rootdir_first_cluster = 0
    volume.lba_begin = 0

    _create_boot_sector(volume, volume.lba_begin, volume_sectors, name, False)

    volume.rootdir_first_sector = (
        volume.reserved_sectors + volume.num_of_fats * volume.fat_sectors
    )
    volume.rootdir_sectors = (
        volume.root_entry_count * 32 + SECTOR_SIZE - 1
    ) // SECTOR_SIZE
    volume.fat_begin_lba = volume.lba_begin + volume.reserved_sectors
    volume.cluster_begin_lba = (
        volume.fat_begin_lba + volume.num_of_fats * volume.fat_sectors
    )

    _erase_fat(volume, False)
    _erase_sectors(
        volume, volume.lba_begin + volume.rootdir_first_sector, volume.rootdir_sectors
    )
    return table


def format_fat32(volume: FatVolume, volume_sectors: int, name) -> FatTable:
    """Format *volume* as FAT32 and return a fresh table for it."""
    table = _prepare(volume)
    volume.fat_type = FatType.FAT32
    volume.fs_info_sector = 1
    volume.rootdir_first_cluster = 2
    volume.lba_begin = 0

    _create_boot_sector(volume, volume.lba_begin, volume_sectors, name, True)

    volume.fat_begin_lba = volume.lba_begin + volume.reserved_sectors
    volume.cluster_begin_lba = (
        volume.fat_begin_lba + volume.num_of_fats * volume.fat_sectors
    )

    _create_fsinfo_sector(volume, volume.fs_info_sector)
    _erase_fat(volume, True)
    _erase_sectors(
        volume,
        volume.lba_of_cluster(volume.rootdir_first_cluster),
        volume.sectors_per_cluster,
    )
    return table


def format_volume(volume: FatVolume, volume_sectors: int, name) -> FatTable:
    """Format *volume* as FAT16 up to 2GB, as FAT32 beyond."""
    if volume_sectors <= _FAT16_LIMIT:
        return format_fat16(volume, volume_sectors, name)
    return format_fat32(volume, volume_sectors, name)


# Kept for callers that compare cached addresses against it.
INVALID_ADDRESS = INVALID_CLUSTER
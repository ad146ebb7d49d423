import pytest

from femtofat.fat_defs import LAST_CLUSTER, SECTOR_SIZE, FatType
from femtofat.fat_format import (
    FormatError,
    calc_cluster_size,
    format_fat16,
    format_fat32,
    format_volume,
)
from femtofat.fat_table import FatVolume, MediaError, RamDisk


class SparseDisk:
    """A large disk that only stores sectors that were written."""

    def __init__(self):
        self.sectors = {}

    def read_sectors(self, sector, count=1):
        return b"".join(
            self.sectors.get(sector + i, bytes(SECTOR_SIZE)) for i in range(count)
        )

    def write_sectors(self, sector, data):
        for i in range(len(data) // SECTOR_SIZE):
            self.sectors[sector + i] = bytes(data[i * SECTOR_SIZE : (i + 1) * SECTOR_SIZE])


class ReadOnlyDisk:
    def read_sectors(self, sector, count=1):
        return bytes(SECTOR_SIZE * count)


def _fat16_volume(sectors=4096, fill=0xAA):
    disk = RamDisk(sectors, bytes([fill]) * (sectors * SECTOR_SIZE))
    volume = FatVolume(media=disk)
    table = format_fat16(volume, sectors, "TESTVOL")
    return disk, volume, table


def _fat32_volume(sectors=8192, fill=0xAA):
    disk = RamDisk(sectors, bytes([fill]) * (sectors * SECTOR_SIZE))
    volume = FatVolume(media=disk)
    table = format_fat32(volume, sectors, "TESTVOL")
    return disk, volume, table


@pytest.mark.parametrize(
    "sectors, is_fat32, expected",
    [
        (32680, False, 2),
        (32681, False, 4),
        (4194304, False, 64),
        (8388608, False, 128),
        (532480, True, 1),
        (532481, True, 8),
        (0xFFFFFFFF, True, 64),
    ],
)
def test_calc_cluster_size_follows_tables(sectors, is_fat32, expected):
    assert calc_cluster_size(sectors, is_fat32) == expected


def test_calc_cluster_size_too_large_for_fat16():
    with pytest.raises(FormatError):
        calc_cluster_size(8388609, False)


def test_fat16_boot_sector_fields():
    disk, volume, _ = _fat16_volume()
    boot = disk.read_sectors(0)
    assert boot[0:3] == b"\xEB\x3C\x90"
    assert boot[3:11] == b"MSDOS5.0"
    assert int.from_bytes(boot[11:13], "little") == 512
    assert boot[13] == volume.sectors_per_cluster
    assert boot[16] == 2
    assert int.from_bytes(boot[17:19], "little") == 512
    assert boot[21] == 0xF8
    assert int.from_bytes(boot[22:24], "little") == volume.fat_sectors
    assert int.from_bytes(boot[32:36], "little") == 4096
    assert boot[38] == 0x29
    assert boot[39:43] == b"\x12\x34\x56\x78"
    assert boot[43:54] == b"TESTVOL    "
    assert boot[54:62] == b"FAT16   "
    assert boot[510:512] == b"\x55\xAA"


def test_fat16_geometry_is_consistent():
    _, volume, _ = _fat16_volume()
    assert volume.fat_type == FatType.FAT16
    assert volume.reserved_sectors == 8
    assert volume.fat_begin_lba == volume.reserved_sectors
    assert volume.cluster_begin_lba == volume.fat_begin_lba + 2 * volume.fat_sectors
    assert volume.rootdir_first_sector == volume.cluster_begin_lba
    assert volume.rootdir_sectors == 32
    assert volume.next_free_cluster == 0


def test_fat16_root_directory_and_fat_erased():
    disk, volume, _ = _fat16_volume()
    start = volume.rootdir_first_sector
    assert disk.read_sectors(start, volume.rootdir_sectors) == bytes(
        volume.rootdir_sectors * SECTOR_SIZE
    )
    fat = disk.read_sectors(volume.fat_begin_lba)
    assert fat[0:4] == b"\xF8\xFF\xFF\xFF"
    assert fat[4:] == bytes(SECTOR_SIZE - 4)
    rest = disk.read_sectors(volume.fat_begin_lba + 1, 2 * volume.fat_sectors - 1)
    assert rest == bytes(len(rest))
    # Data area past the root directory is untouched.
    after = volume.rootdir_first_sector + volume.rootdir_sectors
    assert disk.read_sectors(after)[0] == 0xAA


def test_fat16_table_after_format():
    _, volume, table = _fat16_volume()
    assert table.count_free_clusters() == volume.fat_sectors * 256 - 2
    assert table.find_blank_cluster(2) == 2


def test_fat32_boot_sector_fields():
    disk, volume, _ = _fat32_volume()
    boot = disk.read_sectors(0)
    assert boot[0:11] == b"\xEB\x3C\x90MSDOS5.0"
    assert boot[13] == volume.sectors_per_cluster
    assert int.from_bytes(boot[14:16], "little") == 32
    assert int.from_bytes(boot[17:19], "little") == 0
    assert boot[24] == 0x3F
    assert boot[26] == 0xFF
    assert int.from_bytes(boot[32:36], "little") == 8192
    assert int.from_bytes(boot[36:40], "little") == volume.fat_sectors
    assert int.from_bytes(boot[44:48], "little") == 2
    assert int.from_bytes(boot[48:50], "little") == 1
    assert boot[50] == 6
    assert boot[66] == 0x29
    assert boot[67:71] == b"\x12\x34\x56\x78"
    assert boot[71:82] == b"TESTVOL    "
    assert boot[82:90] == b"FAT32   "
    assert boot[510:512] == b"\x55\xAA"


def test_fat32_fsinfo_sector():
    disk, _, _ = _fat32_volume()
    info = disk.read_sectors(1)
    assert info[0:4] == b"RRaA"
    assert info[484:488] == b"rrAa"
    assert info[488:496] == b"\xFF" * 8
    assert info[510:512] == b"\x55\xAA"
    assert info[4:484] == bytes(480)


def test_fat32_fat_and_root_cluster():
    disk, volume, table = _fat32_volume()
    fat = disk.read_sectors(volume.fat_begin_lba)
    assert fat[0:12] == b"\xF8\xFF\xFF\x0F\xFF\xFF\xFF\xFF\xFF\xFF\xFF\x0F"
    root = volume.lba_of_cluster(2)
    assert root == volume.cluster_begin_lba
    assert disk.read_sectors(root, volume.sectors_per_cluster) == bytes(
        volume.sectors_per_cluster * SECTOR_SIZE
    )
    assert table.find_next_cluster(2) == LAST_CLUSTER
    assert table.find_blank_cluster(2) == 3
    assert table.count_free_clusters() == volume.fat_sectors * 128 - 3


def test_long_label_is_truncated():
    disk = RamDisk(4096)
    volume = FatVolume(media=disk)
    format_fat16(volume, 4096, "AVERYLONGVOLUMENAME")
    assert disk.read_sectors(0)[43:54] == b"AVERYLONGVO"


def test_format_volume_picks_fat16_for_small_volume():
    disk = RamDisk(4096)
    volume = FatVolume(media=disk)
    format_volume(volume, 4096, "SMALL")
    assert volume.fat_type == FatType.FAT16
    assert disk.read_sectors(0)[54:62] == b"FAT16   "


def test_format_volume_picks_fat32_past_limit():
    disk = SparseDisk()
    volume = FatVolume(media=disk)
    format_volume(volume, 4194305, "BIG")
    assert volume.fat_type == FatType.FAT32
    assert disk.read_sectors(0)[82:90] == b"FAT32   "


def test_read_only_medium_rejected():
    volume = FatVolume(media=ReadOnlyDisk())
    with pytest.raises(FormatError):
        format_fat16(volume, 4096, "RO")


def test_disk_too_small_raises_media_error():
    volume = FatVolume(media=RamDisk(16))
    with pytest.raises(MediaError):
        format_fat16(volume, 4096, "SMALL")


def test_fat16_volume_too_large_rejected():
    volume = FatVolume(media=SparseDisk())
    with pytest.raises(FormatError):
        format_fat16(volume, 8388609, "HUGE")
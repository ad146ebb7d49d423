"""On-disk layout of FAT12/16/32 volumes: offsets, flags and directory entries."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum, IntFlag

__all__ = [
    "FatType",
    "FileAttr",
    "DirEntry",
    "SECTOR_SIZE",
    "DIR_ENTRY_SIZE",
    "SFN_SIZE_FULL",
    "SFN_SIZE_PARTIAL",
    "LAST_CLUSTER",
    "INVALID_CLUSTER",
    "FILE_HEADER_BLANK",
    "FILE_HEADER_DELETED",
]

# Configuration
IS_LITTLE_ENDIAN = True
MAX_LONG_FILENAME = 260
MAX_OPEN_FILES = 2
BUFFER_SECTORS = 1
BUFFERS = 1
INC_WRITE_SUPPORT = True
INC_LFN_SUPPORT = True
DIR_LIST_SUPPORT = True
INC_TIME_DATE_SUPPORT = False
INC_FORMAT_SUPPORT = False
SECTOR_SIZE = 512

# Boot sector
BS_JMPBOOT = 0
BS_OEMNAME = 3
BPB_BYTSPERSEC = 11
BPB_SECPERCLUS = 13
BPB_RSVDSECCNT = 14
BPB_NUMFATS = 16
BPB_ROOTENTCNT = 17
BPB_TOTSEC16 = 19
BPB_MEDIA = 21
BPB_FATSZ16 = 22
BPB_SECPERTRK = 24
BPB_NUMHEADS = 26
BPB_HIDDSEC = 28
BPB_TOTSEC32 = 32

# FAT12/16
BS_FAT_DRVNUM = 36
BS_FAT_BOOTSIG = 38
BS_FAT_VOLID = 39
BS_FAT_VOLLAB = 43
BS_FAT_FILSYSTYPE = 54

# FAT32
BPB_FAT32_FATSZ32 = 36
BPB_FAT32_EXTFLAGS = 40
BPB_FAT32_FSVER = 42
BPB_FAT32_ROOTCLUS = 44
BPB_FAT32_FSINFO = 48
BPB_FAT32_BKBOOTSEC = 50
BS_FAT32_DRVNUM = 64
BS_FAT32_BOOTSIG = 66
BS_FAT32_VOLID = 67
BS_FAT32_VOLLAB = 71
BS_FAT32_FILSYSTYPE = 82

# Partition table
SIGNATURE_POSITION = 510
SIGNATURE_VALUE = 0xAA55
PARTITION1_TYPECODE_LOCATION = 450
FAT32_TYPECODE1 = 0x0B
FAT32_TYPECODE2 = 0x0C
PARTITION1_LBA_BEGIN_LOCATION = 454
PARTITION1_SIZE_LOCATION = 458

DIR_ENTRY_SIZE = 32
SFN_SIZE_FULL = 11
SFN_SIZE_PARTIAL = 8

FILE_HEADER_BLANK = 0x00
FILE_HEADER_DELETED = 0xE5

# Time and date packing
TIME_HOURS_SHIFT = 11
TIME_HOURS_MASK = 0x1F
TIME_MINUTES_SHIFT = 5
TIME_MINUTES_MASK = 0x3F
TIME_SECONDS_SHIFT = 0
TIME_SECONDS_MASK = 0x1F
TIME_SECONDS_SCALE = 2
DATE_YEAR_SHIFT = 9
DATE_YEAR_MASK = 0x7F
DATE_MONTH_SHIFT = 5
DATE_MONTH_MASK = 0xF
DATE_DAY_SHIFT = 0
DATE_DAY_MASK = 0x1F
DATE_YEAR_OFFSET = 1980

LAST_CLUSTER = 0xFFFFFFFF
INVALID_CLUSTER = 0xFFFFFFFF


class FatType(IntEnum):
    """Kind of file allocation table."""

    FAT12 = 1
    FAT16 = 2
    FAT32 = 3


class FileAttr(IntFlag):
    """Attribute bits of a directory entry."""

    READ_ONLY = 0x01
    HIDDEN = 0x02
    SYSTEM = 0x04
    VOLUME_ID = 0x08
    DIRECTORY = 0x10
    ARCHIVE = 0x20
    SYSHID = HIDDEN | SYSTEM
    LFN_TEXT = READ_ONLY | HIDDEN | SYSTEM | VOLUME_ID


_ENTRY_FORMAT = struct.Struct("<11sBBBHHHHHHHI")


@dataclass
class DirEntry:
    """A 32-byte short-name directory entry."""

    name: bytes = b" " * SFN_SIZE_FULL
    attr: int = 0
    nt_res: int = 0
    crt_time_tenth: int = 0
    crt_time: int = 0
    crt_date: int = 0
    lst_acc_date: int = 0
    fst_clus_hi: int = 0
    wrt_time: int = 0
    wrt_date: int = 0
    fst_clus_lo: int = 0
    file_size: int = 0

    @classmethod
    def from_bytes(cls, data: bytes) -> "DirEntry":
        """Decode the first 32 bytes of *data*."""
        if len(data) < DIR_ENTRY_SIZE:
            raise ValueError(
                f"directory entry needs {DIR_ENTRY_SIZE} bytes, got {len(data)}"
            )
        return cls(*_ENTRY_FORMAT.unpack_from(bytes(data[:DIR_ENTRY_SIZE])))

    def to_bytes(self) -> bytes:
        """Encode the entry into its 32-byte on-disk form."""
        if len(self.name) != SFN_SIZE_FULL:
            raise ValueError(f"short name must be {SFN_SIZE_FULL} bytes")
        try:
            return _ENTRY_FORMAT.pack(
                bytes(self.name),
                self.attr,
                self.nt_res,
                self.crt_time_tenth,
                self.crt_time,
                self.crt_date,
                self.lst_acc_date,
                self.fst_clus_hi,
                self.wrt_time,
                self.wrt_date,
                self.fst_clus_lo,
                self.file_size,
            )
        except struct.error as exc:
            raise ValueError(str(exc)) from exc

    def start_cluster(self) -> int:
        """Return the first cluster, joined from its high and low halves."""
        return (self.fst_clus_hi << 16) | self.fst_clus_lo
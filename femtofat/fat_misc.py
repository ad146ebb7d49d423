"""Long and short file name handling, directory entry tests and FAT time stamps."""

from __future__ import annotations

from typing import Union

from .fat_defs import (
    DATE_DAY_MASK,
    DATE_DAY_SHIFT,
    DATE_MONTH_MASK,
    DATE_MONTH_SHIFT,
    DATE_YEAR_MASK,
    DATE_YEAR_OFFSET,
    DATE_YEAR_SHIFT,
    DIR_ENTRY_SIZE,
    FILE_HEADER_BLANK,
    FILE_HEADER_DELETED,
    SECTOR_SIZE,
    SFN_SIZE_FULL,
    SFN_SIZE_PARTIAL,
    TIME_HOURS_MASK,
    TIME_HOURS_SHIFT,
    TIME_MINUTES_MASK,
    TIME_MINUTES_SHIFT,
    TIME_SECONDS_MASK,
    TIME_SECONDS_SCALE,
    TIME_SECONDS_SHIFT,
    DirEntry,
    FileAttr,
)

__all__ = [
    "MAX_LONGFILENAME_ENTRIES",
    "MAX_LFN_ENTRY_LENGTH",
    "LfnCache",
    "entry_lfn_text",
    "entry_lfn_invalid",
    "entry_lfn_exists",
    "entry_sfn_only",
    "entry_is_dir",
    "entry_is_file",
    "lfn_entries_required",
    "filename_to_lfn",
    "sfn_create_entry",
    "lfn_create_sfn",
    "lfn_generate_tail",
    "sfn_checksum",
    "from_fat_time",
    "from_fat_date",
    "to_fat_time",
    "to_fat_date",
    "format_sector",
]

MAX_LONGFILENAME_ENTRIES = 20
MAX_LFN_ENTRY_LENGTH = 13

# Offsets within an LFN entry of the low byte of each of its 13 characters.
_LFN_CHAR_OFFSETS = (1, 3, 5, 7, 9, 0x0E, 0x10, 0x12, 0x14, 0x16, 0x18, 0x1C, 0x1E)

_LFN_ATTR = int(FileAttr.LFN_TEXT)
_VOLUME_ID = int(FileAttr.VOLUME_ID)
_SYSHID = int(FileAttr.SYSHID)
_TYPE_DIR = int(FileAttr.DIRECTORY)
_TYPE_FILE = int(FileAttr.ARCHIVE)

_DEFAULT_DATE = 0x0020  # 1 January 1980 is not encodable; this is what is written.

NameLike = Union[str, bytes, bytearray]


def _to_bytes(text: NameLike) -> bytes:
    if isinstance(text, (bytes, bytearray)):
        return bytes(text)
    return text.encode("latin-1")


def _ascii_upper(ch: str) -> str:
    return chr(ord(ch) - 32) if "a" <= ch <= "z" else ch


class LfnCache:
    """Collects the pieces of a long file name as its entries are read."""

    def __init__(self) -> None:
        # One extra byte past the table acts as the terminator of a full name.
        self._table = bytearray(MAX_LONGFILENAME_ENTRIES * MAX_LFN_ENTRY_LENGTH + 1)
        self.no_of_strings = 0

    def reset(self, wipe: bool = False) -> None:
        """Forget the collected name; with *wipe*, also clear the stored text."""
        self.no_of_strings = 0
        if wipe:
            self._table[: MAX_LONGFILENAME_ENTRIES * MAX_LFN_ENTRY_LENGTH] = bytes(
                MAX_LONGFILENAME_ENTRIES * MAX_LFN_ENTRY_LENGTH
            )

    def add_entry(self, entry_bytes: bytes) -> None:
        """Store the text of one 32-byte LFN directory entry.

        Entries whose sequence number is 0 or beyond the cache size are ignored.
        """
        index = entry_bytes[0] & 0x1F
        if index > MAX_LONGFILENAME_ENTRIES or index == 0:
            return
        if self.no_of_strings == 0:
            self.no_of_strings = index
        base = (index - 1) * MAX_LFN_ENTRY_LENGTH
        chunk = bytes(entry_bytes[offset] for offset in _LFN_CHAR_OFFSETS)
        self._table[base : base + MAX_LFN_ENTRY_LENGTH] = chunk.replace(b"\xff", b" ")

    def name(self) -> str:
        """Return the collected long file name."""
        if self.no_of_strings:
            end = self.no_of_strings * MAX_LFN_ENTRY_LENGTH
        else:
            end = 0
        self._table[end] = 0
        raw = bytes(self._table)
        return raw[: raw.index(0)].decode("latin-1")


def entry_lfn_text(entry: DirEntry) -> bool:
    """Tell whether *entry* holds a piece of a long file name."""
    return (entry.attr & _LFN_ATTR) == _LFN_ATTR


def entry_lfn_invalid(entry: DirEntry) -> bool:
    """Tell whether *entry* is a short entry that ends any long name before it."""
    first = entry.name[0]
    return (
        first == FILE_HEADER_BLANK
        or first == FILE_HEADER_DELETED
        or entry.attr == _VOLUME_ID
        or bool(entry.attr & _SYSHID)
    )


def entry_sfn_only(entry: DirEntry) -> bool:
    """Tell whether *entry* is a live short-name entry."""
    first = entry.name[0]
    return (
        entry.attr != _LFN_ATTR
        and first != FILE_HEADER_BLANK
        and first != FILE_HEADER_DELETED
        and entry.attr != _VOLUME_ID
        and not entry.attr & _SYSHID
    )


def entry_lfn_exists(cache: LfnCache, entry: DirEntry) -> bool:
    """Tell whether *entry* is a live short entry with a long name collected before it."""
    return entry_sfn_only(entry) and bool(cache.no_of_strings)


def entry_is_dir(entry: DirEntry) -> bool:
    """Tell whether *entry* is a directory."""
    return bool(entry.attr & _TYPE_DIR)


def entry_is_file(entry: DirEntry) -> bool:
    """Tell whether *entry* is a file."""
    return bool(entry.attr & _TYPE_FILE)


def lfn_entries_required(filename: str) -> int:
    """Return the number of 13-character LFN entries needed for *filename*."""
    length = len(filename)
    return (length + MAX_LFN_ENTRY_LENGTH - 1) // MAX_LFN_ENTRY_LENGTH


def filename_to_lfn(filename: NameLike, entry_index: int, sfn_checksum: int) -> bytes:
    """Build the 32-byte LFN entry number *entry_index* (from 0) of *filename*."""
    name = _to_bytes(filename)
    length = len(name)
    required = lfn_entries_required(name)
    start = entry_index * MAX_LFN_ENTRY_LENGTH

    buffer = bytearray(DIR_ENTRY_SIZE)
    sequence = entry_index + 1
    if required - 1 == entry_index:
        sequence |= 0x40
    buffer[0] = sequence & 0xFF
    buffer[11] = _LFN_ATTR
    buffer[13] = sfn_checksum & 0xFF

    for i, offset in enumerate(_LFN_CHAR_OFFSETS):
        position = start + i
        if position < length:
            buffer[offset] = name[position]
        elif position == length:
            buffer[offset] = 0x00
        else:
            buffer[offset] = 0xFF
            buffer[offset + 1] = 0xFF
    return bytes(buffer)


def sfn_create_entry(
    short_name: NameLike, size: int, start_cluster: int, is_dir: bool = False
) -> DirEntry:
    """Create the short-name directory entry of a new file or directory."""
    name = _to_bytes(short_name)
    if len(name) < SFN_SIZE_FULL:
        raise ValueError(f"short name must have {SFN_SIZE_FULL} characters")
    return DirEntry(
        name=name[:SFN_SIZE_FULL],
        attr=_TYPE_DIR if is_dir else _TYPE_FILE,
        nt_res=0,
        crt_time_tenth=0,
        crt_time=0,
        crt_date=_DEFAULT_DATE,
        lst_acc_date=_DEFAULT_DATE,
        fst_clus_hi=(start_cluster >> 16) & 0xFFFF,
        wrt_time=0,
        wrt_date=_DEFAULT_DATE,
        fst_clus_lo=start_cluster & 0xFFFF,
        file_size=size & 0xFFFFFFFF,
    )


def lfn_create_sfn(filename: str) -> str:
    """Make the space-padded, upper-case 8.3 name for *filename*.

    Raises :class:`ValueError` for names that start with a dot.
    """
    if filename.startswith("."):
        raise ValueError(f"a short name cannot start with a dot: {filename!r}")

    stem = filename
    ext = "   "
    dot = filename.rfind(".")
    if dot != -1:
        ext = filename[dot + 1 : dot + 4].ljust(3)
        stem = filename[:dot]

    base: list[str] = []
    for ch in stem:
        if ch not in " .":
            base.append(_ascii_upper(ch))
        if len(base) == SFN_SIZE_PARTIAL:
            break

    return "".join(base).ljust(SFN_SIZE_PARTIAL) + "".join(_ascii_upper(c) for c in ext)


def lfn_generate_tail(sfn: str, tail_num: int) -> str:
    """Put a ``~N`` tail into the base part of the 8.3 name *sfn*.

    Raises :class:`ValueError` when *tail_num* is outside 0..99999.
    """
    if tail_num < 0 or tail_num > 99999:
        raise ValueError(f"tail number out of range: {tail_num}")
    tail = f"~{tail_num}"
    base = sfn[:SFN_SIZE_FULL]
    cut = SFN_SIZE_PARTIAL - len(tail)
    return base[:cut] + tail + base[SFN_SIZE_PARTIAL:]


def sfn_checksum(short_name: NameLike) -> int:
    """Return the checksum of an 11-character short name, stored in its LFN entries."""
    name = _to_bytes(short_name)
    if len(name) < SFN_SIZE_FULL:
        raise ValueError(f"short name must have {SFN_SIZE_FULL} characters")
    checksum = 0
    for byte in name[:SFN_SIZE_FULL]:
        checksum = ((0x80 if checksum & 1 else 0) + (checksum >> 1) + byte) & 0xFF
    return checksum


def from_fat_time(fat_time: int) -> tuple[int, int, int]:
    """Unpack a FAT time into hours, minutes and seconds."""
    hours = (fat_time >> TIME_HOURS_SHIFT) & TIME_HOURS_MASK
    minutes = (fat_time >> TIME_MINUTES_SHIFT) & TIME_MINUTES_MASK
    seconds = ((fat_time >> TIME_SECONDS_SHIFT) & TIME_SECONDS_MASK) * TIME_SECONDS_SCALE
    return hours, minutes, seconds


def from_fat_date(fat_date: int) -> tuple[int, int, int]:
    """Unpack a FAT date into day, month and year."""
    day = (fat_date >> DATE_DAY_SHIFT) & DATE_DAY_MASK
    month = (fat_date >> DATE_MONTH_SHIFT) & DATE_MONTH_MASK
    year = ((fat_date >> DATE_YEAR_SHIFT) & DATE_YEAR_MASK) + DATE_YEAR_OFFSET
    return day, month, year


def _trunc_div(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient


def to_fat_time(hours: int, minutes: int, seconds: int) -> int:
    """Pack hours, minutes and seconds into a FAT time (2-second resolution)."""
    seconds = _trunc_div(seconds, TIME_SECONDS_SCALE)
    fat_time = (hours & TIME_HOURS_MASK) << TIME_HOURS_SHIFT
    fat_time |= (minutes & TIME_MINUTES_MASK) << TIME_MINUTES_SHIFT
    fat_time |= (seconds & TIME_SECONDS_MASK) << TIME_SECONDS_SHIFT
    return fat_time & 0xFFFF


def to_fat_date(day: int, month: int, year: int) -> int:
    """Pack day, month and year into a FAT date; years from 1980 are made relative."""
    if year >= DATE_YEAR_OFFSET:
        year -= DATE_YEAR_OFFSET
    fat_date = (day & DATE_DAY_MASK) << DATE_DAY_SHIFT
    fat_date |= (month & DATE_MONTH_MASK) << DATE_MONTH_SHIFT
    fat_date |= (year & DATE_YEAR_MASK) << DATE_YEAR_SHIFT
    return fat_date & 0xFFFF


def format_sector(sector: int, data: bytes) -> str:
    """Render a sector as a hex and text dump, 16 bytes to a line."""
    if len(data) < SECTOR_SIZE:
        raise ValueError(f"sector needs {SECTOR_SIZE} bytes, got {len(data)}")
    lines = [f"Sector {sector}:\n"]
    for start in range(0, SECTOR_SIZE, 16):
        row = bytes(data[start : start + 16])
        groups = "".join(row[g : g + 4].hex() + " " for g in range(0, 16, 4))
        text = "".join(chr(b) if 31 < b < 127 else "." for b in row)
        lines.append(f"  {start:04d}: {groups}   {text}\n")
    return "".join(lines)
import pytest

from femtofat.fat_defs import DirEntry
from femtofat.fat_misc import (
    MAX_LFN_ENTRY_LENGTH,
    LfnCache,
    entry_is_dir,
    entry_is_file,
    entry_lfn_exists,
    entry_lfn_invalid,
    entry_lfn_text,
    entry_sfn_only,
    filename_to_lfn,
    format_sector,
    from_fat_date,
    from_fat_time,
    lfn_create_sfn,
    lfn_entries_required,
    lfn_generate_tail,
    sfn_checksum,
    sfn_create_entry,
    to_fat_date,
    to_fat_time,
)


def _fill_cache(name, checksum=0):
    cache = LfnCache()
    count = lfn_entries_required(name)
    for index in reversed(range(count)):
        cache.add_entry(filename_to_lfn(name, index, checksum))
    return cache


@pytest.mark.parametrize(
    "name",
    ["a.txt", "exactly13char", "a fairly long file name.text", "x" * 40],
)
def test_lfn_round_trip(name):
    assert _fill_cache(name).name() == name


def test_cache_reset_forgets_name():
    cache = _fill_cache("some long name.dat")
    cache.reset(True)
    assert cache.name() == ""
    assert cache.no_of_strings == 0


def test_cache_ignores_bad_sequence_numbers():
    cache = LfnCache()
    entry = bytearray(filename_to_lfn("abc", 0, 0))
    entry[0] = 0
    cache.add_entry(bytes(entry))
    entry[0] = 21
    cache.add_entry(bytes(entry))
    assert cache.no_of_strings == 0
    assert cache.name() == ""


def test_lfn_entries_required():
    assert lfn_entries_required("") == 0
    assert lfn_entries_required("a" * MAX_LFN_ENTRY_LENGTH) == 1
    assert lfn_entries_required("a" * (MAX_LFN_ENTRY_LENGTH + 1)) == 2


def test_filename_to_lfn_layout():
    data = filename_to_lfn("ab", 0, 0x5A)
    assert len(data) == 32
    assert data[0] == 0x40 | 1
    assert data[11] == 0x0F
    assert data[13] == 0x5A
    assert data[1] == ord("a") and data[3] == ord("b")
    assert data[5] == 0x00
    assert data[7] == 0xFF and data[8] == 0xFF
    assert data[0x1E] == 0xFF and data[0x1F] == 0xFF


def test_filename_to_lfn_non_last_entry_has_no_last_flag():
    data = filename_to_lfn("z" * 20, 0, 0)
    assert data[0] == 1
    last = filename_to_lfn("z" * 20, 1, 0)
    assert last[0] == 0x40 | 2


def test_entry_classification():
    sfn = DirEntry(name=b"README  TXT", attr=0x20)
    lfn = DirEntry(name=b"A          ", attr=0x0F)
    deleted = DirEntry(name=b"\xe5EADME  TXT", attr=0x20)
    volume = DirEntry(name=b"VOLUME     ", attr=0x08)
    hidden = DirEntry(name=b"HIDDEN     ", attr=0x02)
    folder = DirEntry(name=b"FOLDER     ", attr=0x10)

    assert entry_lfn_text(lfn) and not entry_lfn_text(sfn)
    assert entry_sfn_only(sfn) and entry_sfn_only(folder)
    assert not any(entry_sfn_only(e) for e in (lfn, deleted, volume, hidden))
    assert all(entry_lfn_invalid(e) for e in (deleted, volume, hidden))
    assert not entry_lfn_invalid(sfn)
    assert entry_is_dir(folder) and not entry_is_dir(sfn)
    assert entry_is_file(sfn) and not entry_is_file(folder)


def test_entry_lfn_exists_needs_collected_name():
    sfn = DirEntry(name=b"README  TXT", attr=0x20)
    assert not entry_lfn_exists(LfnCache(), sfn)
    assert entry_lfn_exists(_fill_cache("readme.txt"), sfn)


def test_sfn_create_entry():
    entry = sfn_create_entry("HELLO   TXT", 1234, 0x12345678, False)
    assert entry.name == b"HELLO   TXT"
    assert entry.attr == 0x20
    assert entry.start_cluster() == 0x12345678
    assert entry.file_size == 1234
    assert entry.crt_date == 0x20 and entry.wrt_date == 0x20
    assert DirEntry.from_bytes(entry.to_bytes()) == entry
    assert sfn_create_entry("DIR        ", 0, 5, True).attr == 0x10


def test_sfn_create_entry_short_name_rejected():
    with pytest.raises(ValueError):
        sfn_create_entry("SHORT", 0, 0, False)


def test_lfn_create_sfn():
    assert lfn_create_sfn("readme.txt") == "README  TXT"
    long = lfn_create_sfn("a very long name.c")
    assert len(long) == 11
    assert long == long.upper()
    assert " " not in long[:8]


def test_lfn_create_sfn_leading_dot():
    with pytest.raises(ValueError):
        lfn_create_sfn(".hidden")


def test_lfn_generate_tail():
    sfn = lfn_create_sfn("document.txt")
    tailed = lfn_generate_tail(sfn, 1)
    assert tailed == sfn[:6] + "~1" + sfn[8:]
    assert len(lfn_generate_tail(sfn, 99999)) == 11
    with pytest.raises(ValueError):
        lfn_generate_tail(sfn, 100000)


def test_sfn_checksum_invariants():
    name = "FILENAMETXT"
    value = sfn_checksum(name)
    assert 0 <= value <= 255
    assert sfn_checksum(name.encode()) == value
    bumped = name[:-1] + chr(ord(name[-1]) + 1)
    assert sfn_checksum(bumped) == (value + 1) % 256


def test_time_round_trip():
    assert from_fat_time(to_fat_time(13, 45, 30)) == (13, 45, 30)
    assert from_fat_time(to_fat_time(23, 59, 59)) == (23, 59, 58)


def test_date_round_trip():
    assert from_fat_date(to_fat_date(17, 6, 2021)) == (17, 6, 2021)
    assert from_fat_date(0) == (0, 0, 1980)


def test_format_sector():
    data = bytearray(512)
    data[0:4] = b"ABCD"
    text = format_sector(7, bytes(data))
    lines = text.splitlines()
    assert lines[0] == "Sector 7:"
    assert len(lines) == 1 + 512 // 16
    assert lines[1].startswith("  0000: 41424344 ")
    assert lines[1].endswith("ABCD............")


def test_format_sector_short_data():
    with pytest.raises(ValueError):
        format_sector(0, b"\x00" * 10)
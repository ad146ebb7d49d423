# femtofat

Pure-Python helpers for FAT16/FAT32 volumes and small 32-bit ELF
executables. The package needs only the standard library.

## Modules

- `femtofat.fat_string` provides path and file-name helpers for `/dir/file` and
  `C:\dir\file` paths: `total_path_levels`, `get_substring`, `split_path`,
  `extension_position`, `trimmed_length`, `compare_names` (case-insensitive,
  ignores spaces before the extension), `ends_with_slash`, `sfn_display_name`,
  `get_extension` and `create_path_string`. Inputs that make no sense raise
  `ValueError`.
- `femtofat.fat_defs` holds on-disk offsets and constants (`SECTOR_SIZE`,
  `LAST_CLUSTER`, …), along with `FatType`, the `FileAttr` flags and `DirEntry`.
  `DirEntry` is the 32-byte short-name directory entry and offers
  `DirEntry.from_bytes`, `to_bytes` and `start_cluster`.
- `femtofat.fat_misc` covers long file names and time stamps:
  - `LfnCache` collects long names from LFN entries through `reset`,
    `add_entry` and `name`.
  - Entry tests: `entry_lfn_text`, `entry_lfn_invalid`, `entry_lfn_exists`,
    `entry_sfn_only`, `entry_is_dir`, `entry_is_file`.
  - LFN and 8.3 name building: `lfn_entries_required`, `filename_to_lfn`,
    `sfn_create_entry`, `lfn_create_sfn`, `lfn_generate_tail`,
    `sfn_checksum`.
  - FAT time and date packing: `to_fat_time`, `to_fat_date`,
    `from_fat_time`, `from_fat_date`.
  - `format_sector` gives a hex and text dump of a sector.
- `femtofat.fat_table` covers the file allocation table:
  - `RamDisk` is an in-memory block device.
  - `FatVolume` holds the volume geometry and provides `lba_of_cluster`.
  - `FatTable` follows, links, allocates and frees cluster chains through
    `find_next_cluster`, `set_cluster`, `find_blank_cluster`,
    `add_cluster_to_chain`, `free_cluster_chain`, `count_free_clusters` and
    `set_fs_info_next_free_cluster`.
  - Changes to the table stay in a sector cache until you call `purge`.
    `reset` drops the cache.
- `femtofat.fat_format` provides `format_volume` (FAT16 up to 4194304 sectors,
  FAT32 beyond), `format_fat16`, `format_fat32` and `calc_cluster_size`. Each
  format function fills in the `FatVolume` geometry and returns a `FatTable`.
  It writes the boot sector to sector 0 with no partition table.
- `femtofat.elf` provides `stat_elf` and `load_elf`, which read the section
  headers of a 32-bit little-endian ELF file:
  - Both report the first program-data address and the highest address used,
    as an `ElfInfo`.
  - `load_elf` also copies program data into a writable buffer and zeroes
    the zero-filled sections.
- `femtofat.keys` provides `Key` (escape, arrows, backspace, enter) and
  `poll_key`. `poll_key` reads a UART data register through a callable and
  joins escape sequences into one code.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

```python
from femtofat.fat_string import split_path, compare_names, total_path_levels

split_path("/dev/etc/file.zip")                  # ("/dev/etc", "file.zip")
total_path_levels("C:\\folder\\file.zip")        # 1
compare_names("C:\\file  .ext", "C:\\file.ext")  # True
```

Formatting an in-memory disk and allocating a cluster:

```python
from femtofat.fat_defs import LAST_CLUSTER
from femtofat.fat_format import format_volume
from femtofat.fat_table import FatVolume, RamDisk

disk = RamDisk(8192)
volume = FatVolume(disk)
table = format_volume(volume, 8192, "MYDISK")   # FAT16

free = table.find_blank_cluster(2)               # None when the table is full
table.set_cluster(free, LAST_CLUSTER)
table.purge()                                    # write the change to the disk
print(table.count_free_clusters())
```

Loading an ELF file:

```python
from femtofat.elf import load_elf, stat_elf

info = stat_elf("program.elf")
memory = bytearray(info.max_address)
load_elf("program.elf", memory)
```

## Errors

- `ElfError` is raised when a file cannot be loaded. Its subclasses are
  `ElfHeaderSizeMismatch` and `ElfReadError`. `ElfError` itself is raised when
  a section does not fit the buffer. Opening a missing file raises the usual
  `FileNotFoundError`.
- `MediaError` is raised by `RamDisk` for sectors outside the disk.
- `FormatError` is raised for a medium that cannot be both read and written,
  and for a volume too large for its table type.
- `ValueError` is raised for bad names, paths and broken cluster chains.

## What it does not do

- It cannot mount an existing volume. A `FatVolume` gets its geometry from
  formatting or from values you set yourself, not from reading a boot sector.
- It has no file or directory layer. There is no opening, reading or writing
  of files and no directory listing.
- It has no command-line program, and it does not talk to real hardware such
  as SD cards or serial ports.
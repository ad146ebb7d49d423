"""FAT16/FAT32 formatting and allocation-table helpers, file-name utilities, a minimal ELF32 loader and UART key decoding."""

__version__ = "0.1.0"

__all__ = ["elf", "fat_defs", "fat_format", "fat_misc", "fat_string", "fat_table", "keys"]
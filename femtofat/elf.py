"""A small loader for 32-bit little-endian ELF executables.

Only the section headers are used: every section that occupies memory
counts towards the highest address, program data is copied into memory,
and zero-filled sections are cleared.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from os import PathLike
from typing import BinaryIO, Union

__all__ = [
    "ElfInfo",
    "ElfError",
    "ElfHeaderSizeMismatch",
    "ElfReadError",
    "stat_elf",
    "load_elf",
]

_HEADER = struct.Struct("<16sHHIIIIIHHHHHH")
_SECTION = struct.Struct("<10I")

_SHT_PROGBITS = 1
_SHT_NOBITS = 8
_SHT_INIT_ARRAY = 14
_SHT_FINI_ARRAY = 15
_LOADED_TYPES = frozenset({_SHT_PROGBITS, _SHT_INIT_ARRAY, _SHT_FINI_ARRAY})

_SHF_ALLOC = 1 << 1

PathType = Union[str, "PathLike[str]"]


class ElfError(Exception):
    """The file is not an executable this loader understands."""


class ElfHeaderSizeMismatch(ElfError):
    """The header or section header size does not match ELF32."""


class ElfReadError(ElfError):
    """The file ended before all the data it describes."""


@dataclass(frozen=True)
class ElfInfo:
    """Addresses found in an executable."""

    text_address: int = 0
    max_address: int = 0


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise ElfReadError(f"expected {size} bytes, got {len(data)}")
    return data


def _parse(path: PathType, memory) -> ElfInfo:
    view = None if memory is None else memoryview(memory).cast("B")
    text_address = 0
    max_address = 0

    with open(path, "rb") as stream:
        header = _HEADER.unpack(_read_exact(stream, _HEADER.size))
        shoff, ehsize, shentsize, shnum = header[6], header[8], header[11], header[12]

        if ehsize != _HEADER.size:
            raise ElfHeaderSizeMismatch(f"ELF header size {ehsize}")
        if shentsize != _SECTION.size:
            raise ElfHeaderSizeMismatch(f"section header size {shentsize}")

        for index in range(shnum):
            stream.seek(shoff + index * _SECTION.size)
            fields = _SECTION.unpack(_read_exact(stream, _SECTION.size))
            sh_type, sh_flags, sh_addr, sh_offset, sh_size = fields[1:6]

            if not sh_flags & _SHF_ALLOC:
                continue

            if sh_type == _SHT_PROGBITS and text_address == 0:
                text_address = sh_addr

            max_address = max(max_address, (sh_addr + sh_size) & 0xFFFFFFFF)

            if view is None:
                continue
            if sh_type in _LOADED_TYPES or sh_type == _SHT_NOBITS:
                if sh_addr + sh_size > len(view):
                    raise ElfError(
                        f"section at {sh_addr:#x} of {sh_size} bytes "
                        f"does not fit in {len(view)} bytes of memory"
                    )
            if sh_type in _LOADED_TYPES:
                stream.seek(sh_offset)
                view[sh_addr : sh_addr + sh_size] = _read_exact(stream, sh_size)
            elif sh_type == _SHT_NOBITS:
                view[sh_addr : sh_addr + sh_size] = bytes(sh_size)

    return ElfInfo(text_address=text_address, max_address=max_address)


def stat_elf(path: PathType) -> ElfInfo:
    """Inspect the executable at *path* without loading it."""
    return _parse(path, None)


def load_elf(path: PathType, memory) -> ElfInfo:
    """Load the executable at *path* into *memory*, a writable buffer indexed by address."""
    return _parse(path, memory)
"""Path and file name helpers for FAT volumes.

Paths come in two forms: ``/dir/sub/file.ext`` and ``C:\\dir\\file.ext``.
Functions that cannot make sense of their input raise :class:`ValueError`.
"""

from __future__ import annotations

__all__ = [
    "total_path_levels",
    "get_substring",
    "split_path",
    "extension_position",
    "trimmed_length",
    "compare_names",
    "ends_with_slash",
    "sfn_display_name",
    "get_extension",
    "create_path_string",
]


def _ascii_lower(text: str) -> str:
    """Lower-case only the ASCII letters A-Z, leaving everything else alone."""
    return "".join(chr(ord(ch) + 32) if "A" <= ch <= "Z" else ch for ch in text)


def _split_root(path: str) -> tuple[str, str]:
    """Return the separator of *path* and the part that follows its root."""
    if path.startswith("/"):
        return "/", path[1:]
    if path[1:2] == ":" or path[2:3] == "\\":
        return "\\", path[3:]
    raise ValueError(f"unrecognised path format: {path!r}")


def total_path_levels(path: str) -> int:
    """Count the directory levels above the file named by *path*.

    ``C:\\folder\\file.zip`` has one level, ``C:\\file.zip`` none. A bare
    root such as ``C:\\`` gives -1, since it names no file at all.
    """
    if path is None:
        raise ValueError("no path given")
    separator, rest = _split_root(path)
    if not rest:
        return -1
    segments = rest.count(separator)
    if not rest.endswith(separator):
        segments += 1
    return segments - 1


def get_substring(path: str, level: int, max_len: int | None = None) -> str:
    """Return the folder or file name found at *level* of *path*.

    *max_len* is the size of the destination including its terminator, so at
    most ``max_len - 1`` characters are returned. Raises :class:`ValueError`
    when nothing is found at that level.
    """
    if path is None or (max_len is not None and max_len <= 0):
        raise ValueError("invalid path or length")
    separator, rest = _split_root(path)
    limit = None if max_len is None else max_len - 1

    found: list[str] = []
    current = 0
    for ch in rest:
        if ch == separator:
            current += 1
        elif current == level and (limit is None or len(found) < limit):
            found.append(ch)

    if not found:
        raise ValueError(f"no component at level {level} in {path!r}")
    return "".join(found)


def split_path(full_path: str) -> tuple[str, str]:
    """Split *full_path* into its directory part and its file name.

    A file in the root directory gets an empty directory part.
    """
    levels = total_path_levels(full_path)
    if levels == -1:
        raise ValueError(f"path names no file: {full_path!r}")
    filename = get_substring(full_path, levels)
    if levels == 0:
        return "", filename
    cut = len(full_path) - len(filename)
    return full_path[: cut - 1], filename


def extension_position(name: str) -> int:
    """Return the index of the last dot in *name*, or -1 if there is none."""
    return name.rfind(".")


def trimmed_length(name: str, length: int) -> int:
    """Return the length of the first *length* characters without trailing spaces."""
    return len(name[:length].rstrip(" "))


def compare_names(name_a: str, name_b: str) -> bool:
    """Tell whether two file names match, ignoring case and spaces before the extension."""
    ext_a = extension_position(name_a)
    ext_b = extension_position(name_b)

    if (ext_a == -1) != (ext_b == -1):
        return False

    if ext_a != -1:
        suffix_a = name_a[ext_a + 1 :]
        suffix_b = name_b[ext_b + 1 :]
        if len(suffix_a) != len(suffix_b):
            return False
        if _ascii_lower(suffix_a) != _ascii_lower(suffix_b):
            return False
        len_a, len_b = ext_a, ext_b
    else:
        len_a, len_b = len(name_a), len(name_b)

    len_a = trimmed_length(name_a, len_a)
    len_b = trimmed_length(name_b, len_b)
    if len_a != len_b:
        return False
    return _ascii_lower(name_a[:len_a]) == _ascii_lower(name_b[:len_b])


def ends_with_slash(path: str | None) -> bool:
    """Tell whether *path* ends with a forward or backward slash."""
    return bool(path) and path[-1] in "\\/"


def sfn_display_name(name: str) -> str:
    """Turn a space-padded 8.3 name into a compact lower-case display name."""
    shown: list[str] = []
    for ch in name:
        if len(shown) > 11:
            break
        if ch == " ":
            continue
        shown.append(_ascii_lower(ch))
    return "".join(shown)


def get_extension(filename: str, max_len: int | None = None) -> str:
    """Return the lower-case extension of *filename*.

    At most ``max_len - 1`` characters are returned. Raises
    :class:`ValueError` when the name has no extension.
    """
    position = extension_position(filename)
    if position <= 0 or max_len == 0:
        raise ValueError(f"no extension in {filename!r}")
    suffix = filename[position + 1 :]
    if max_len is not None:
        suffix = suffix[: max(max_len - 1, 0)]
    return _ascii_lower(suffix)


def create_path_string(path: str, filename: str, max_len: int | None = None) -> str:
    """Join *path* and *filename* with the separator style used by *path*.

    *max_len* is the size of the destination including its terminator.
    """
    if path is None or filename is None or (max_len is not None and max_len <= 0):
        raise ValueError("invalid path, file name or length")

    head = path if max_len is None else path[: max(max_len - 2, 0)]
    separator = "\\" if "\\" in head else "/"
    copied = len(head)
    if not head or head[-1] not in "\\/":
        head += separator

    if max_len is None:
        tail = filename
    else:
        tail = filename[: max(max_len - 1 - copied, 0)]
    return head + tail
"""
fat_rootdir.py — scan the fixed-size root directory of a FAT12/FAT16 image.

The root directory is assumed to sit right after the FAT copies, with exactly
one reserved (boot) sector in front of them, which is the floppy layout this
tool targets. Slots are read one at a time; scanning stops at the first slot
whose leading 16-bit word is below 0x10.
"""
from __future__ import annotations
import io
import struct
from typing import Callable, Dict, Iterator

from fat_datetime import SECONDS_SCALE, decode_datetime
from fat_records import DIR_ENTRY_SIZE, Attr, DirEntry, DiskInfo, parse_dir_entry, read_exact

END_MARKER_MASK = 0xFFF0
SKIP_MASK = Attr.READ_ONLY | Attr.HIDDEN | Attr.SYSTEM | Attr.VOLUME_LABEL

# ------------------------- Directory test policies -------------------------

DirectoryTest = Callable[[int], bool]


def literal_is_directory(attributes: int) -> bool:
    # OR-ing in SUBDIR never yields zero, so every entry lists as a file.
    return (attributes | Attr.SUBDIR) == 0


def subdir_bit_is_directory(attributes: int) -> bool:
    return (attributes & Attr.SUBDIR) != 0


DIRECTORY_TESTS: Dict[str, DirectoryTest] = {
    "literal": literal_is_directory,
    "subdir-bit": subdir_bit_is_directory,
}
DEFAULT_DIRECTORY_TEST = "literal"

# ------------------------- Scanner -------------------------

def root_dir_offset(info: DiskInfo) -> int:
    return info.bytes_per_sector * (info.fats * info.sectors_per_fat + 1)


def is_end_marker(slot: bytes) -> bool:
    return struct.unpack_from("<H", slot, 0)[0] & END_MARKER_MASK == 0


def iter_root_dir(info: DiskInfo, f: io.BufferedIOBase) -> Iterator[DirEntry]:
    """Yield the displayable entries of the root directory, in slot order.

    Volume labels, hidden, system and read-only entries are skipped. I/O
    errors (including a short read on a truncated image) propagate as-is.
    """
    f.seek(root_dir_offset(info))
    for _ in range(info.root_dir_entries):
        slot = read_exact(f, DIR_ENTRY_SIZE)
        if is_end_marker(slot):
            return
        entry = parse_dir_entry(slot)
        if entry.attributes & SKIP_MASK:
            continue
        yield entry


def format_entry(entry: DirEntry, is_directory: DirectoryTest = literal_is_directory,
                 seconds_scale: int = SECONDS_SCALE) -> str:
    is_dir = is_directory(entry.attributes)
    name = entry.name if is_dir else f"{entry.name}.{entry.ext}"
    created = decode_datetime(entry.create_date, entry.create_time, seconds_scale)
    return f"{'d' if is_dir else 'f'} {entry.file_size} {name} {created}"


def list_root_dir(info: DiskInfo, f: io.BufferedIOBase,
                  is_directory: DirectoryTest = literal_is_directory,
                  seconds_scale: int = SECONDS_SCALE) -> Iterator[str]:
    for entry in iter_root_dir(info, f):
        yield format_entry(entry, is_directory, seconds_scale)

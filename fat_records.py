"""
fat_records.py — on-disk record decoding for FAT12/FAT16 images.

Two fixed-layout records are decoded here:
- the boot sector / BIOS Parameter Block (first 512 bytes of the image) -> DiskInfo
- a 32-byte directory slot -> DirEntry

Each record is described by one layout table of (field, offset, struct format)
rows and decoded by the same extraction routine, so every offset lives in
exactly one place. All multi-byte fields are little-endian.
"""
from __future__ import annotations
import io
import struct
from dataclasses import dataclass
from enum import IntFlag
from typing import Dict, List, Tuple

BOOT_SECTOR_SIZE = 512
DIR_ENTRY_SIZE = 32

# ------------------------- Errors -------------------------

class FatError(Exception):
    """Base class for everything this package raises on bad image data."""


class FormatError(FatError, ValueError):
    """A buffer is too short or a structure holds values that cannot be used."""


class InvalidTimestamp(FatError, ValueError):
    """A packed date/time pair does not name a real calendar moment."""

# ------------------------- Low-level I/O helpers -------------------------

def read_at(f: io.BufferedIOBase, offset: int, size: int) -> bytes:
    f.seek(offset)
    data = f.read(size)
    if len(data) != size:
        raise IOError("Short read")
    return data


def read_exact(f: io.BufferedIOBase, size: int) -> bytes:
    data = f.read(size)
    if len(data) != size:
        raise IOError("Short read")
    return data

# ------------------------- Field layouts -------------------------

Layout = List[Tuple[str, int, str]]

BOOT_SECTOR_LAYOUT: Layout = [
    ("os_name",             3,  "8s"),
    ("bytes_per_sector",    11, "H"),
    ("sectors_per_cluster", 13, "B"),
    ("reserved_sectors",    14, "H"),
    ("fats",                16, "B"),
    ("root_dir_entries",    17, "H"),
    ("total_sectors",       19, "H"),
    ("sectors_per_fat",     22, "H"),
    ("sectors_per_track",   24, "H"),
    ("heads",               26, "H"),
    ("total_sectors_32",    32, "I"),   # used when total_sectors is 0
    ("boot_signature",      38, "B"),
    ("volume_id",           39, "I"),
    ("volume_label",        43, "11s"),
    # Standard 8-byte type tag; it ends at 62, right where boot code begins.
    ("fs_type",             54, "8s"),
]

DIR_ENTRY_LAYOUT: Layout = [
    ("file_name",        0,  "8s"),
    ("file_ext",         8,  "3s"),
    ("attributes",       11, "B"),
    ("reserved",         12, "H"),
    ("create_time",      14, "H"),
    ("create_date",      16, "H"),
    ("last_access_date", 18, "H"),
    ("last_write_time",  22, "H"),
    ("last_write_date",  24, "H"),
    ("flc",              26, "H"),
    ("file_size",        28, "I"),
]


def layout_extent(layout: Layout) -> int:
    """Number of bytes a buffer must hold for every field of ``layout``."""
    return max(off + struct.calcsize("<" + fmt) for _, off, fmt in layout)


def extract_fields(layout: Layout, buf: bytes, what: str) -> Dict[str, object]:
    need = layout_extent(layout)
    if len(buf) < need:
        raise FormatError(f"{what}: need {need} bytes, got {len(buf)}")
    return {name: struct.unpack_from("<" + fmt, buf, off)[0] for name, off, fmt in layout}

# ------------------------- Boot sector -------------------------

@dataclass(frozen=True)
class DiskInfo:
    os_name: bytes
    bytes_per_sector: int
    sectors_per_cluster: int
    reserved_sectors: int
    fats: int
    root_dir_entries: int
    total_sectors: int
    sectors_per_fat: int
    sectors_per_track: int
    heads: int
    total_sectors_32: int
    boot_signature: int
    volume_id: int
    volume_label: bytes
    fs_type: bytes

    @property
    def sector_count(self) -> int:
        return self.total_sectors if self.total_sectors else self.total_sectors_32

    @property
    def root_dir_sectors(self) -> int:
        if not self.bytes_per_sector:
            return 0
        return (self.root_dir_entries * DIR_ENTRY_SIZE + self.bytes_per_sector - 1) // self.bytes_per_sector

    @property
    def cluster_count(self) -> int:
        if not self.sectors_per_cluster:
            return 0
        meta = self.reserved_sectors + self.fats * self.sectors_per_fat + self.root_dir_sectors
        return max(self.sector_count - meta, 0) // self.sectors_per_cluster

    @property
    def fat_bits(self) -> int:
        return 12 if self.cluster_count < 4085 else 16


def parse_boot_sector(buf: bytes) -> DiskInfo:
    return DiskInfo(**extract_fields(BOOT_SECTOR_LAYOUT, buf, "boot sector"))


def read_disk_info(f: io.BufferedIOBase) -> DiskInfo:
    return parse_boot_sector(read_at(f, 0, BOOT_SECTOR_SIZE))

# ------------------------- Directory entries -------------------------

class Attr(IntFlag):
    READ_ONLY = 0x01
    HIDDEN = 0x02
    SYSTEM = 0x04
    VOLUME_LABEL = 0x08
    SUBDIR = 0x10
    ARCHIVE = 0x20


@dataclass(frozen=True)
class DirEntry:
    file_name: bytes
    file_ext: bytes
    attributes: int
    reserved: int
    create_time: int
    create_date: int
    last_access_date: int
    last_write_time: int
    last_write_date: int
    flc: int
    file_size: int

    @property
    def attrs(self) -> Attr:
        # Bits 6 and 7 have no name; keep only the known ones.
        return Attr(self.attributes & 0x3F)

    @property
    def name(self) -> str:
        return self.file_name.decode("ascii", errors="replace").strip()

    @property
    def ext(self) -> str:
        return self.file_ext.decode("ascii", errors="replace").strip()


def parse_dir_entry(buf: bytes) -> DirEntry:
    if len(buf) != DIR_ENTRY_SIZE:
        raise FormatError(f"directory entry: need exactly {DIR_ENTRY_SIZE} bytes, got {len(buf)}")
    return DirEntry(**extract_fields(DIR_ENTRY_LAYOUT, buf, "directory entry"))

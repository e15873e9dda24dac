"""
fat_chain.py — follow cluster chains through the first FAT copy.

Nothing in the listing path uses this; it is the hook for anything that later
wants a file's clusters. Entries are read from the image on demand, one per
step, so iterating a short chain never loads the whole table.
"""
from __future__ import annotations
import io
import struct
from typing import Iterator, Optional

from fat_records import DiskInfo, FormatError, read_at

FIRST_DATA_CLUSTER = 2

FREE = 0x000
EOC12 = 0xFF8
BAD12 = 0xFF7
EOC16 = 0xFFF8
BAD16 = 0xFFF7


class FatChain:
    """Clusters of the chain starting at ``start``.

    Iterable any number of times; every iteration re-reads the table from the
    start cluster.
    """

    def __init__(self, f: io.BufferedIOBase, info: DiskInfo, start: int) -> None:
        if info.fat_bits not in (12, 16):
            raise FormatError(f"Unsupported FAT width: {info.fat_bits}")
        self.f = f
        self.info = info
        self.start = start
        self.fat_offset = info.reserved_sectors * info.bytes_per_sector
        self.fat_size = info.sectors_per_fat * info.bytes_per_sector
        self.max_cluster = info.cluster_count + FIRST_DATA_CLUSTER - 1

    def entry(self, n: int) -> int:
        if self.info.fat_bits == 12:
            rel = n + (n >> 1)
            if rel + 2 > self.fat_size:
                raise FormatError(f"Cluster {n} lies outside the FAT")
            raw = struct.unpack("<H", read_at(self.f, self.fat_offset + rel, 2))[0]
            return raw >> 4 if n & 1 else raw & 0x0FFF
        rel = n * 2
        if rel + 2 > self.fat_size:
            raise FormatError(f"Cluster {n} lies outside the FAT")
        return struct.unpack("<H", read_at(self.f, self.fat_offset + rel, 2))[0]

    def next_cluster(self, n: int) -> Optional[int]:
        v = self.entry(n)
        eoc, bad = (EOC12, BAD12) if self.info.fat_bits == 12 else (EOC16, BAD16)
        if v >= eoc: return None
        if v == bad: raise FormatError(f"Cluster {n} links to a BAD cluster marker")
        if v == FREE: return None
        if v < FIRST_DATA_CLUSTER or v > self.max_cluster:
            raise FormatError(f"Cluster {n} links to out-of-range cluster {v}")
        return v

    def __iter__(self) -> Iterator[int]:
        if self.start < FIRST_DATA_CLUSTER:
            return
        seen = set()
        n: Optional[int] = self.start
        while n is not None:
            if n in seen:
                raise FormatError("FAT loop detected")
            seen.add(n)
            yield n
            n = self.next_cluster(n)

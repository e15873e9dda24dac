"""
Synthetic FAT12/FAT16 images for the test suite.

Defaults describe a 1.44 MB floppy: 512-byte sectors, 1 reserved sector,
2 FATs of 9 sectors, 224 root entries, 2880 sectors.
"""
import io
import struct

import pytest

FLOPPY_144 = {
    "oem": b"MSDOS5.0",
    "bytes_per_sec": 512,
    "sec_per_clus": 1,
    "rsvd_secs": 1,
    "fats": 2,
    "root_entries": 224,
    "total_secs": 2880,
    "media": 0xF0,
    "fat_sz_secs": 9,
    "sec_per_trk": 18,
    "num_heads": 2,
    "total_secs_32": 0,
    "boot_sig": 0x29,
    "volume_id": 0x1234ABCD,
    "volume_label": b"NO NAME    ",
    "fs_type": b"FAT12   ",
}


def pack_boot_sector(**overrides) -> bytearray:
    lay = dict(FLOPPY_144, **overrides)
    bs = bytearray(512)
    bs[0:3] = b"\xEB\x3C\x90"
    bs[3:11] = lay["oem"]
    struct.pack_into("<H", bs, 11, lay["bytes_per_sec"])
    struct.pack_into("<B", bs, 13, lay["sec_per_clus"])
    struct.pack_into("<H", bs, 14, lay["rsvd_secs"])
    struct.pack_into("<B", bs, 16, lay["fats"])
    struct.pack_into("<H", bs, 17, lay["root_entries"])
    struct.pack_into("<H", bs, 19, lay["total_secs"])
    struct.pack_into("<B", bs, 21, lay["media"])
    struct.pack_into("<H", bs, 22, lay["fat_sz_secs"])
    struct.pack_into("<H", bs, 24, lay["sec_per_trk"])
    struct.pack_into("<H", bs, 26, lay["num_heads"])
    struct.pack_into("<I", bs, 32, lay["total_secs_32"])
    struct.pack_into("<B", bs, 36, 0x00)  # Drive number
    struct.pack_into("<B", bs, 38, lay["boot_sig"])
    struct.pack_into("<I", bs, 39, lay["volume_id"])
    bs[43:54] = lay["volume_label"]
    bs[54:62] = lay["fs_type"]
    bs[510:512] = b"\x55\xAA"
    return bs


def pack_dir_entry(name=b"README", ext=b"TXT", attr=0x20, reserved=0,
                   ctime=0x0000, cdate=0x0021, adate=0x0021,
                   wtime=0x0000, wdate=0x0021, flc=0, size=0) -> bytes:
    e = bytearray(32)
    e[0:8] = name.ljust(8)
    e[8:11] = ext.ljust(3)
    struct.pack_into("<BH", e, 11, attr, reserved)
    struct.pack_into("<HHH", e, 14, ctime, cdate, adate)
    struct.pack_into("<HHHI", e, 22, wtime, wdate, flc, size)
    return bytes(e)


def set_fat12_entry(fat: bytearray, n: int, value: int) -> None:
    rel = n + (n >> 1)
    if n & 1:
        fat[rel] = (fat[rel] & 0x0F) | ((value << 4) & 0xF0)
        fat[rel + 1] = (value >> 4) & 0xFF
    else:
        fat[rel] = value & 0xFF
        fat[rel + 1] = (fat[rel + 1] & 0xF0) | ((value >> 8) & 0x0F)


def build_image(entries=(), boot=None) -> bytearray:
    """Boot sector, zeroed FATs, then the root directory holding ``entries``."""
    boot = boot if boot is not None else pack_boot_sector()
    bps = struct.unpack_from("<H", boot, 11)[0]
    fats = boot[16]
    root_entries = struct.unpack_from("<H", boot, 17)[0]
    fat_sz = struct.unpack_from("<H", boot, 22)[0]
    root_off = bps * (fats * fat_sz + 1)
    img = bytearray(root_off + root_entries * 32)
    img[0:len(boot)] = boot
    for i, e in enumerate(entries):
        img[root_off + i * 32: root_off + (i + 1) * 32] = e
    return img


class CountingReader(io.BytesIO):
    """BytesIO that remembers the offset of every read."""

    def __init__(self, data: bytes) -> None:
        super().__init__(data)
        self.reads = []

    def read(self, size=-1):
        self.reads.append(self.tell())
        return super().read(size)


@pytest.fixture
def floppy_boot():
    return pack_boot_sector()


@pytest.fixture
def image_file(tmp_path):
    def write(data: bytes, name: str = "floppy.img"):
        path = tmp_path / name
        path.write_bytes(bytes(data))
        return str(path)
    return write

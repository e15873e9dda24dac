#!/usr/bin/env python3
"""
fatls.py — read-only inspector for FAT12/FAT16 disk images (floppy style, no MBR).

Nothing is ever written to the image.

Usage examples
--------------
Show the OEM name and sector size:
    python fatls.py info /path/to/floppy.img

Dump every boot sector field plus derived geometry:
    python fatls.py info /path/to/floppy.img --verbose

List the root directory:
    python fatls.py list /path/to/floppy.img

Treat entries with the SUBDIR bit as directories, and use two-second units:
    python fatls.py list /path/to/floppy.img --dir-test subdir-bit --fat-seconds

Output lines of ``list`` look like ``f 1234 README.TXT 1995-07-14 10:22:06``.
Any command other than ``info`` or ``list`` does nothing.

Exit status: 0 ok, 1 I/O error, 2 usage, 3 bad image format, 4 bad timestamp.
"""
from __future__ import annotations
import argparse
import sys
from dataclasses import fields
from typing import List, Optional

from fat_datetime import FAT_SECONDS_SCALE, SECONDS_SCALE
from fat_records import DiskInfo, FormatError, InvalidTimestamp, read_disk_info
from fat_rootdir import DEFAULT_DIRECTORY_TEST, DIRECTORY_TESTS, list_root_dir, root_dir_offset

EXIT_OK = 0
EXIT_IO = 1
EXIT_USAGE = 2
EXIT_FORMAT = 3
EXIT_TIMESTAMP = 4

COMMANDS = ("info", "list")

# ------------------------- Output -------------------------

def tag_text(raw: bytes) -> str:
    return raw.decode("ascii", errors="replace")


def print_info(info: DiskInfo, verbose: bool = False) -> None:
    print(tag_text(info.os_name))
    print(f"0x{info.bytes_per_sector:X}")
    if not verbose:
        return
    for fld in fields(info):
        value = getattr(info, fld.name)
        if isinstance(value, bytes):
            shown = repr(tag_text(value))
        elif fld.name == "volume_id":
            shown = f"0x{value:08X}"
        else:
            shown = str(value)
        print(f"  {fld.name:<20} {shown}")
    print(f"  {'sector_count':<20} {info.sector_count}")
    print(f"  {'cluster_count':<20} {info.cluster_count}")
    print(f"  {'fat_type':<20} FAT{info.fat_bits}")
    print(f"  {'root_dir_offset':<20} {root_dir_offset(info)}")

# ------------------------- CLI / Orchestration -------------------------

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="fatls", description="Read-only FAT12/FAT16 image inspector")
    ap.add_argument("command", help="info or list (anything else is a no-op)")
    ap.add_argument("image", help="Path to a raw FAT12/FAT16 image")
    ap.add_argument("--verbose", action="store_true", help="info: print every boot sector field")
    ap.add_argument("--dir-test", choices=sorted(DIRECTORY_TESTS), default=DEFAULT_DIRECTORY_TEST,
                    help="list: how an entry is recognised as a directory (default: %(default)s)")
    ap.add_argument("--fat-seconds", action="store_true",
                    help="list: read the seconds field in two-second units")
    return ap


def run(args: argparse.Namespace) -> int:
    if args.command not in COMMANDS:
        return EXIT_OK

    with open(args.image, "rb") as f:
        info = read_disk_info(f)
        if args.command == "info":
            print_info(info, verbose=args.verbose)
            return EXIT_OK

        is_directory = DIRECTORY_TESTS[args.dir_test]
        seconds_scale = FAT_SECONDS_SCALE if args.fat_seconds else SECONDS_SCALE
        for line in list_root_dir(info, f, is_directory, seconds_scale):
            print(line)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except InvalidTimestamp as e:
        print(f"error: invalid timestamp: {e}", file=sys.stderr)
        return EXIT_TIMESTAMP
    except FormatError as e:
        print(f"error: bad image format: {e}", file=sys.stderr)
        return EXIT_FORMAT
    except OSError as e:
        print(f"error: {args.image}: {e}", file=sys.stderr)
        return EXIT_IO


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)

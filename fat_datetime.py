"""Packed FAT date/time decoding."""
from __future__ import annotations
from datetime import datetime

from fat_records import InvalidTimestamp

FAT_EPOCH_YEAR = 1980

# Multiplier applied to the 5-bit seconds field. 1 keeps the raw value as
# stored; FAT_SECONDS_SCALE is the on-disk two-second unit.
SECONDS_SCALE = 1
FAT_SECONDS_SCALE = 2


def decode_datetime(packed_date: int, packed_time: int, seconds_scale: int = SECONDS_SCALE) -> datetime:
    year = (packed_date >> 9) + FAT_EPOCH_YEAR
    month = (packed_date & 0x01E0) >> 5
    day = packed_date & 0x001F
    hour = packed_time >> 11
    minute = (packed_time & 0x07E0) >> 5
    second = (packed_time & 0x001F) * seconds_scale
    try:
        return datetime(year, month, day, hour, minute, second)
    except ValueError as e:
        raise InvalidTimestamp(
            f"date 0x{packed_date:04X} time 0x{packed_time:04X}: {e}"
        ) from e

"""Text parsing helpers for py2fah."""

from .fah_time import (
    INVALID_TIME,
    UNKNOWN_TIME,
    FAHDuration,
    FAHTime,
    parse_fah_duration,
    parse_fah_time,
)

__all__ = [
    'INVALID_TIME',
    'UNKNOWN_TIME',
    'FAHDuration',
    'FAHTime',
    'parse_fah_duration',
    'parse_fah_time',
]

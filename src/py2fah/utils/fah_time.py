"""
Parsers for the duration and timestamp text used by the FAH client.

Durations arrive in a human readable form such as "1 day 2 hours" or
"3 mins 20 secs", and may be the sentinel "unknowntime". Timestamps are
RFC 3339 strings, or "<invalid>" when the client has none.
"""

import re
from datetime import datetime, timedelta

UNKNOWN_TIME_TEXT = "unknowntime"
INVALID_TIME_TEXT = "<invalid>"

# Longer spellings first so "days" is not read as "day" + "s"
_UNIT_ABBREVIATIONS = [
    (" ", ""),
    ("days", "d"),
    ("day", "d"),
    ("hours", "h"),
    ("hour", "h"),
    ("mins", "m"),
    ("min", "m"),
    ("secs", "s"),
    ("sec", "s"),
]
_UNIT_PATTERN = re.compile("|".join(re.escape(old) for old, _ in _UNIT_ABBREVIATIONS))
_UNIT_TABLE = dict(_UNIT_ABBREVIATIONS)

_DAYS = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|h|m|s)")

# fromisoformat() before Python 3.11 only takes 3 or 6 fractional digits
_FRACTION = re.compile(r"\.(\d+)")

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


class FAHDuration(timedelta):
    """
    A timedelta that can also represent the client's "unknowntime".

    The unknown value is a one microsecond negative duration, checked with
    is_unknown_time().
    """

    def is_unknown_time(self) -> bool:
        return self == UNKNOWN_TIME

    def __str__(self) -> str:
        if self.is_unknown_time():
            return UNKNOWN_TIME_TEXT
        return super().__str__()

    def __repr__(self) -> str:
        if self.is_unknown_time():
            return "FAHDuration(unknowntime)"
        return f"FAHDuration({super().__str__()})"


UNKNOWN_TIME = FAHDuration(microseconds=-1)


def shorten_units(text: str) -> str:
    """Remove spaces and abbreviate unit words ("1 day 2 hours" -> "1d2h")."""
    return _UNIT_PATTERN.sub(lambda m: _UNIT_TABLE[m.group(0)], text)


def _parse_components(text: str) -> float:
    """Parse a sequence such as "2h30m10.5s" into seconds."""
    if text == "0":
        return 0.0

    position = 0
    seconds = 0.0
    for match in _COMPONENT.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        raise ValueError(f"Invalid duration: {text!r}")
    return seconds


def parse_fah_duration(text: str) -> FAHDuration:
    """
    Parse a FAH duration string.

    Args:
        text: Text such as "1 day 1 sec", "1.5 days", "4 hours 3 mins"
              or "unknowntime"

    Returns:
        FAHDuration (UNKNOWN_TIME for "unknowntime")

    Raises:
        ValueError: If the text is not a duration

    Example:
        >>> parse_fah_duration("1 day 1 sec")
        FAHDuration(1 day, 0:00:01)
    """
    shortened = shorten_units(text)
    if shortened == UNKNOWN_TIME_TEXT:
        return UNKNOWN_TIME

    days = 0.0
    d_index = shortened.find("d")
    if d_index > -1:
        day_text = shortened[:d_index]
        if not _DAYS.fullmatch(day_text):
            raise ValueError(f"Invalid day count in duration: {text!r}")
        days = float(day_text)

        rest = shortened[d_index + 1:]
        if rest == "":
            return FAHDuration(days=days)
    else:
        rest = shortened

    return FAHDuration(days=days, seconds=_parse_components(rest))


class FAHTime(datetime):
    """
    A datetime that can also represent the client's "<invalid>" time.

    The invalid value is datetime.min without a timezone, checked with
    is_invalid().
    """

    def is_invalid(self) -> bool:
        return self.tzinfo is None and self == datetime.min

    def __str__(self) -> str:
        if self.is_invalid():
            return INVALID_TIME_TEXT
        return super().__str__()


INVALID_TIME = FAHTime(1, 1, 1)


def parse_fah_time(text: str) -> FAHTime:
    """
    Parse a FAH timestamp.

    Args:
        text: RFC 3339 text ("2020-05-01T12:30:00Z") or "<invalid>"

    Returns:
        FAHTime (INVALID_TIME for "<invalid>")

    Raises:
        ValueError: If the text is not a timestamp
    """
    if text == INVALID_TIME_TEXT:
        return INVALID_TIME

    if not isinstance(text, str) or "T" not in text.upper():
        raise ValueError(f"Invalid RFC 3339 time: {text!r}")

    normalized = text[:-1] + "+00:00" if text[-1] in "Zz" else text
    normalized = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), normalized, count=1)
    parsed = datetime.fromisoformat(normalized.replace("t", "T"))
    return FAHTime(
        parsed.year, parsed.month, parsed.day,
        parsed.hour, parsed.minute, parsed.second, parsed.microsecond,
        tzinfo=parsed.tzinfo
    )

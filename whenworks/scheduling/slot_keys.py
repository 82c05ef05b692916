"""Slot key codec.

A slot key identifies one 30-minute cell of an event grid as
``YYYY-MM-DDTHH:MM``. Both halves are fixed width, so sorting keys as
plain strings sorts them chronologically. The same text is stored in the
database and sent to the browser grid, so the format must never change.

The end of the last slot of a day is written ``24:00`` on the same date
rather than rolling over to the next date's key space.
"""

import re
from collections.abc import Iterable, Iterator
from datetime import date

from whenworks.scheduling.errors import InvalidTimeError, MalformedKeyError

SLOT_MINUTES = 30
END_OF_DAY = (24, 0)

KEY_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})T(\d{2}):(\d{2})$")
TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")

SlotKey = str


def _check_time(hour: int, minute: int) -> None:
    if not 0 <= hour <= 23:
        raise InvalidTimeError(f"hour must be between 0 and 23, got {hour}")
    if minute not in (0, 30):
        raise InvalidTimeError(f"minute must be 0 or 30, got {minute}")


def format_time(hour: int, minute: int) -> str:
    """Render ``HH:MM``. ``(24, 0)`` renders as ``24:00`` (end of day)."""
    if (hour, minute) != END_OF_DAY:
        _check_time(hour, minute)
    return f"{hour:02d}:{minute:02d}"


def parse_time(text: str) -> tuple[int, int]:
    """Parse an ``HH:MM`` slot start time on the half-hour grid."""
    match = TIME_RE.match(text)
    if not match:
        raise InvalidTimeError(f"invalid time format: {text!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    _check_time(hour, minute)
    return hour, minute


def encode(day: date, hour: int, minute: int) -> SlotKey:
    _check_time(hour, minute)
    return f"{day.isoformat()}T{hour:02d}:{minute:02d}"


def decode(key: str) -> tuple[date, int, int]:
    """Split a slot key into ``(date, hour, minute)``.

    Raises:
        MalformedKeyError: the text is not shaped like a slot key, or the
            date part is not a real calendar date.
        InvalidTimeError: the time is well formed but off the grid.
    """
    if not isinstance(key, str):
        raise MalformedKeyError(f"slot key must be a string, got {type(key).__name__}")
    match = KEY_RE.match(key)
    if not match:
        raise MalformedKeyError(f"invalid slot key: {key!r}")
    try:
        day = date.fromisoformat(match.group(1))
    except ValueError as e:
        raise MalformedKeyError(f"invalid slot key date: {key!r}") from e
    hour, minute = int(match.group(2)), int(match.group(3))
    _check_time(hour, minute)
    return day, hour, minute


def split_key(key: SlotKey) -> tuple[str, str]:
    """Return the ``(date, time)`` text halves of an already valid key."""
    day, _, time = key.partition("T")
    return day, time


def end_of_slot(hour: int, minute: int) -> tuple[int, int]:
    """Start of the slot following ``hour:minute``.

    ``(9, 0) -> (9, 30)``, ``(9, 30) -> (10, 0)``, ``(23, 30) -> (24, 0)``.
    """
    _check_time(hour, minute)
    if minute == 0:
        return hour, 30
    return hour + 1, 0


def slot_end_time(time: str) -> str:
    """``end_of_slot`` over ``HH:MM`` text."""
    return format_time(*end_of_slot(*parse_time(time)))


def minutes_of(time: str) -> int:
    """Minutes since midnight for ``HH:MM`` text, accepting ``24:00``."""
    hour, minute = time.split(":")
    return int(hour) * 60 + int(minute)


def grid_times(start_time: str, end_time: str) -> list[str]:
    """Slot start times from ``start_time`` (inclusive) to ``end_time`` (exclusive)."""
    start = minutes_of(start_time)
    end = minutes_of(end_time)
    return [
        f"{m // 60:02d}:{m % 60:02d}" for m in range(start, end, SLOT_MINUTES)
    ]


def grid_keys(dates: Iterable[str], start_time: str, end_time: str) -> Iterator[SlotKey]:
    """Every slot key of an event grid, date-major."""
    times = grid_times(start_time, end_time)
    for day in dates:
        for time in times:
            yield f"{day}T{time}"

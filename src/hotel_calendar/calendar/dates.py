"""Date normalization for heterogeneous record timestamps.

Records reach the calendar with dates in several shapes: native ``datetime``
objects, server-timestamp wrappers exposing ``seconds`` since the epoch,
ISO-ish strings, bare epoch-millisecond numbers, or nothing usable at all.
This module is the only place those shapes are interpreted.

Raw values are first classified into a closed set of variants, then
normalized with an exhaustive match.  Anything that cannot be read as a
valid instant normalizes to ``None`` (unparseable); callers drop the record
rather than substitute a default date.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, tzinfo

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NativeTimestamp:
    """A ``datetime`` or ``date`` handed over as-is."""

    value: datetime | date


@dataclass(frozen=True, slots=True)
class EpochSecondsWrapper:
    """Server-timestamp object carrying ``seconds`` since the epoch."""

    seconds: float


@dataclass(frozen=True, slots=True)
class DateString:
    """Free-form date or date-time text."""

    text: str


@dataclass(frozen=True, slots=True)
class EpochMillis:
    """Bare number interpreted as milliseconds since the epoch."""

    millis: float


@dataclass(frozen=True, slots=True)
class AbsentDate:
    """Missing, empty or structurally invalid input."""


RawDateInput = NativeTimestamp | EpochSecondsWrapper | DateString | EpochMillis | AbsentDate

_ABSENT = AbsentDate()

_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _seconds_field(value: object) -> object:
    if isinstance(value, Mapping):
        return value.get("seconds")
    return getattr(value, "seconds", None)


def classify(value: object) -> RawDateInput:
    """Map an arbitrary value onto exactly one raw-date variant."""
    if isinstance(value, datetime | date):
        return NativeTimestamp(value)
    if value is None:
        return _ABSENT
    if isinstance(value, str):
        text = value.strip()
        return DateString(text) if text else _ABSENT
    if _is_number(value):
        return EpochMillis(float(value)) if math.isfinite(value) else _ABSENT
    seconds = _seconds_field(value)
    if _is_number(seconds) and math.isfinite(seconds):
        return EpochSecondsWrapper(float(seconds))
    return _ABSENT


def _localize(value: datetime, tz: tzinfo) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def _from_epoch(seconds: float, tz: tzinfo) -> datetime | None:
    try:
        return datetime.fromtimestamp(seconds, tz=UTC).astimezone(tz)
    except (OverflowError, OSError, ValueError):
        return None


def _parse_generic(text: str) -> datetime | None:
    # dateutil fills missing fields from its default; two distinct defaults
    # expose any year, month or day the text did not supply.
    first = date_parser.parse(text, default=_FILL_DEFAULTS[0])
    second = date_parser.parse(text, default=_FILL_DEFAULTS[1])
    if first.date() != second.date():
        return None
    return first


def _parse_text(text: str, tz: tzinfo) -> datetime | None:
    candidate = f"{text[:-1]}+00:00" if text.endswith(("Z", "z")) else text
    try:
        return _localize(datetime.fromisoformat(candidate), tz)
    except ValueError:
        pass
    try:
        parsed = _parse_generic(text)
    except (ValueError, OverflowError) as exc:
        logger.debug("Unparseable date string %r: %s", text, exc)
        return None
    if parsed is None:
        logger.debug("Date string %r has no complete calendar date", text)
        return None
    return _localize(parsed, tz)


def normalize(value: object, tz: tzinfo = UTC) -> datetime | None:
    """Return a timezone-aware timestamp in *tz*, or ``None`` if unparseable.

    Naive inputs are read as wall-clock time in *tz*; a plain ``date`` means
    midnight of that day.
    """
    match classify(value):
        case NativeTimestamp(value=datetime() as moment):
            return _localize(moment, tz)
        case NativeTimestamp(value=day):
            return datetime.combine(day, time.min, tzinfo=tz)
        case EpochSecondsWrapper(seconds=seconds):
            return _from_epoch(seconds, tz)
        case EpochMillis(millis=millis):
            return _from_epoch(millis / 1000, tz)
        case DateString(text=text):
            return _parse_text(text, tz)
        case AbsentDate():
            return None


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999999)


def midday(day: date, tz: tzinfo) -> datetime:
    """Noon of *day* in *tz*, used for span membership tests."""
    return datetime.combine(day, time(12, 0), tzinfo=tz)

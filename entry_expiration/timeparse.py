from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import datetime, timedelta

from .errors import InvalidArgument


EMPTY_MESSAGE = 'Expired time is empty. Please give an expired time. Ex : "6months", "1year", "90days".'
UNREADABLE_MESSAGE = 'Expired time is not readable. Use a valid format like "6months", "1year", "90days".'

CUTOFF_FORMAT = "%Y-%m-%d %H:%M:%S"

# unit -> (field, multiplier)
_UNITS: dict[str, tuple[str, int]] = {
    "sec": ("seconds", 1),
    "secs": ("seconds", 1),
    "second": ("seconds", 1),
    "seconds": ("seconds", 1),
    "min": ("seconds", 60),
    "mins": ("seconds", 60),
    "minute": ("seconds", 60),
    "minutes": ("seconds", 60),
    "hour": ("seconds", 3600),
    "hours": ("seconds", 3600),
    "day": ("days", 1),
    "days": ("days", 1),
    "week": ("days", 7),
    "weeks": ("days", 7),
    "fortnight": ("days", 14),
    "fortnights": ("days", 14),
    "month": ("months", 1),
    "months": ("months", 1),
    "year": ("months", 12),
    "years": ("months", 12),
}

_TERM_RE = re.compile(r"\s*\+?([0-9]+)\s*([a-z]+)\s*", re.IGNORECASE)


@dataclass(frozen=True)
class Duration:
    """A relative span: calendar months plus an exact number of days/seconds."""

    months: int = 0
    days: int = 0
    seconds: int = 0


def parse_duration(expression: str) -> Duration:
    """Parse expressions like ``6months``, ``90days`` or ``1year 6months``.

    Raises InvalidArgument when the expression is empty or unreadable.
    """

    text = str(expression or "").strip()
    if not text:
        raise InvalidArgument(EMPTY_MESSAGE)

    totals = {"months": 0, "days": 0, "seconds": 0}
    pos = 0
    while pos < len(text):
        m = _TERM_RE.match(text, pos)
        if not m:
            raise InvalidArgument(UNREADABLE_MESSAGE)
        unit = _UNITS.get(m.group(2).lower())
        if unit is None:
            raise InvalidArgument(UNREADABLE_MESSAGE)
        field, multiplier = unit
        try:
            amount = int(m.group(1))
        except ValueError as e:
            # Digit runs past the interpreter's int conversion limit.
            raise InvalidArgument(UNREADABLE_MESSAGE) from e
        totals[field] += amount * multiplier
        pos = m.end()

    return Duration(**totals)


def _shift_months(moment: datetime, months: int) -> datetime:
    total = moment.year * 12 + (moment.month - 1) - months
    year, month0 = divmod(total, 12)
    month = month0 + 1
    last_day = calendar.monthrange(year, month)[1]
    # replace() raises ValueError when the year leaves datetime's range.
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def resolve_cutoff(expression: str, now: datetime | None = None) -> datetime:
    """Return ``now`` minus the duration in ``expression``, truncated to seconds."""

    duration = parse_duration(expression)
    base = (now or datetime.now()).replace(microsecond=0)
    try:
        shifted = _shift_months(base, duration.months)
        return shifted - timedelta(days=duration.days, seconds=duration.seconds)
    except (ValueError, OverflowError) as e:
        raise InvalidArgument(UNREADABLE_MESSAGE) from e


def format_cutoff(cutoff: datetime) -> str:
    return cutoff.strftime(CUTOFF_FORMAT)

from datetime import date, datetime, timedelta
from typing import Iterator, Optional

from flow.domain import DAY, MONTH, WEEK, YEAR, OneTime, Recurring, Transaction


def calendar_date(d: date) -> date:
    """Strip the time-of-day from a datetime; plain dates pass through."""
    if isinstance(d, datetime):
        return d.date()
    return d


def _valid_interval(interval) -> bool:
    return isinstance(interval, int) and not isinstance(interval, bool) and interval >= 1


def is_applicable(t: Transaction, d: date) -> bool:
    """Return True when transaction ``t`` occurs on calendar day ``d``.

    Total over well-formed inputs: an unknown recurrence variant or unit, or
    a non-positive interval, makes the transaction never applicable.
    Dates before the anchor are evaluated symmetrically.
    """
    if not isinstance(t.base_date, date):
        return False
    base = calendar_date(t.base_date)
    day = calendar_date(d)
    rec = t.recurrence

    if isinstance(rec, OneTime):
        return (base.year, base.month, base.day) == (day.year, day.month, day.day)

    if not isinstance(rec, Recurring) or not _valid_interval(rec.interval):
        return False

    if rec.unit == DAY:
        return (day - base).days % rec.interval == 0
    if rec.unit == WEEK:
        return (day - base).days % (rec.interval * 7) == 0
    if rec.unit == MONTH:
        # no end-of-month rollover: an anchor on the 31st skips shorter months
        months = (day.year - base.year) * 12 + day.month - base.month
        return months % rec.interval == 0 and day.day == base.day
    if rec.unit == YEAR:
        return (
            day.month == base.month
            and day.day == base.day
            and (day.year - base.year) % rec.interval == 0
        )
    return False


def occurrences(t: Transaction, start: date, end: date) -> Iterator[date]:
    day = calendar_date(start)
    last = calendar_date(end)
    while day <= last:
        if is_applicable(t, day):
            yield day
        day += timedelta(days=1)


def next_occurrence(t: Transaction, on_or_after: date, limit_days: int = 366 * 4) -> Optional[date]:
    """First occurrence on or after ``on_or_after`` within ``limit_days``.

    Returns None when nothing falls inside the window, e.g. a Feb 29 anchor
    searched from a date more than ``limit_days`` before the next leap day.
    """
    start = calendar_date(on_or_after)
    end = start + timedelta(days=max(0, limit_days))
    return next(occurrences(t, start, end), None)

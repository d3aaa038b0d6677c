from datetime import date, timedelta
from functools import lru_cache
from typing import Any, Dict, Iterable, Iterator, Sequence

import pandas as pd
import structlog

from flow.domain import CashflowPoint, Transaction
from flow.recurrence import calendar_date, is_applicable

log = structlog.get_logger(__name__)

ONE_DAY = timedelta(days=1)


def iter_cashflow(transactions: Sequence[Transaction], end_date: date) -> Iterator[CashflowPoint]:
    """Yield one cumulative-balance point per day from the earliest anchor
    through ``end_date`` inclusive.

    Nothing is yielded for an empty transaction list or when ``end_date``
    precedes the earliest anchor. A transaction without a usable base date
    neither sets the start nor contributes.
    """
    anchors = [calendar_date(t.base_date) for t in transactions if isinstance(t.base_date, date)]
    if not anchors:
        return
    day = min(anchors)
    last = calendar_date(end_date)

    balance = 0
    while day <= last:
        balance += sum(t.amount for t in transactions if is_applicable(t, day))
        yield CashflowPoint(date=day, amount=balance)
        day += ONE_DAY


def project(transactions: Iterable[Transaction], end_date: date) -> tuple[CashflowPoint, ...]:
    trans = tuple(transactions)
    points = tuple(iter_cashflow(trans, end_date))
    log.debug("projection.complete", transactions=len(trans), days=len(points), end_date=str(end_date))
    return points


@lru_cache(maxsize=32)
def project_cached(transactions: tuple[Transaction, ...], end_date: date) -> tuple[CashflowPoint, ...]:
    return project(transactions, end_date)


def cashflow_frame(points: Iterable[CashflowPoint]) -> pd.DataFrame:
    rows = [{"date": p.date, "balance": p.amount} for p in points]
    df = pd.DataFrame(rows, columns=["date", "balance"])
    df["date"] = pd.to_datetime(df["date"])
    return df


def summarize(points: Sequence[CashflowPoint]) -> Dict[str, Any]:
    if not points:
        return {
            "start": None,
            "end": None,
            "days": 0,
            "final_balance": 0,
            "lowest_balance": None,
            "lowest_date": None,
        }
    lowest = min(points, key=lambda p: p.amount)
    return {
        "start": points[0].date,
        "end": points[-1].date,
        "days": len(points),
        "final_balance": points[-1].amount,
        "lowest_balance": lowest.amount,
        "lowest_date": lowest.date,
    }


def default_end_date(today: date, years: int = 1) -> date:
    """Same calendar day ``years`` later; Feb 29 falls back to Feb 28."""
    today = calendar_date(today)
    try:
        return today.replace(year=today.year + years)
    except ValueError:
        return today.replace(year=today.year + years, day=28)

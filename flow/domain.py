from dataclasses import dataclass, field
from datetime import date
from typing import Union

DAY = "DAY"
WEEK = "WEEK"
MONTH = "MONTH"
YEAR = "YEAR"

UNITS = (DAY, WEEK, MONTH, YEAR)


@dataclass(frozen=True)
class OneTime:
    pass


@dataclass(frozen=True)
class Recurring:
    interval: int    # >= 1
    unit: str        # one of UNITS


# A recurrence variant the codec could not read; never applicable.
# `raw` keeps the stored recurrence as JSON text so it is written back unchanged.
@dataclass(frozen=True)
class UnknownRecurrence:
    raw_type: str = ""
    raw: str = field(default="", compare=False)


Recurrence = Union[OneTime, Recurring, UnknownRecurrence]


@dataclass(frozen=True)
class Transaction:
    id: str
    name: str
    amount: float        # + inflow, - outflow
    base_date: date      # anchor occurrence
    recurrence: Recurrence = OneTime()


@dataclass(frozen=True)
class CashflowPoint:
    date: date
    amount: float        # cumulative balance at end of day

import math
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Callable, Generic, Mapping, TypeVar

from flow.domain import UNITS, OneTime, Recurring, Transaction
from flow.recurrence import calendar_date
from flow.transforms import new_transaction, parse_base_date

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')

EARLIEST_DATE = date(1900, 1, 1)


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return Left(self._error)

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def find_transaction(trans: tuple[Transaction, ...], tid: str) -> Maybe[Transaction]:
    for t in trans:
        if t.id == tid:
            return Some(t)
    return Nothing()


def _error(code: str, field: str, message: str) -> Left:
    return Left({"error": code, "field": field, "message": message})


def _check_name(form: dict) -> Either[dict, dict]:
    name = str(form.get("name") or "").strip()
    if not name:
        return _error("name_required", "name", "Transaction name must not be empty")
    return Right({**form, "name": name})


def _check_amount(form: dict) -> Either[dict, dict]:
    raw = form.get("amount")
    try:
        amount = float(raw)
    except (TypeError, ValueError):
        return _error("amount_not_number", "amount", f"Amount must be a number, got {raw!r}")
    if not math.isfinite(amount):
        return _error("amount_not_number", "amount", f"Amount must be a finite number, got {raw!r}")
    if amount == 0:
        return _error("amount_zero", "amount", "Amount must not be zero")
    return Right({**form, "amount": amount})


def _check_date(form: dict) -> Either[dict, dict]:
    raw = form.get("base_date")
    try:
        base = raw if isinstance(raw, date) else parse_base_date(str(raw))
    except ValueError:
        return _error("invalid_date", "base_date", f"Date of transaction is not a valid date: {raw!r}")
    if calendar_date(base) < EARLIEST_DATE:
        return _error("invalid_date", "base_date", f"Date of transaction must not be before {EARLIEST_DATE}")
    return Right({**form, "base_date": base})


def _check_recurrence(form: dict) -> Either[dict, dict]:
    kind = form.get("recurrence", "ONE_TIME")
    if kind == "ONE_TIME":
        return Right({**form, "recurrence": OneTime()})
    if kind != "RECURRING":
        return _error("invalid_recurrence", "recurrence", f"Unknown recurrence {kind!r}")

    raw_interval = form.get("interval")
    try:
        interval = int(raw_interval)
    except (TypeError, ValueError, OverflowError):
        return _error("invalid_interval", "interval", f"Interval must be a whole number, got {raw_interval!r}")
    if interval < 1 or (isinstance(raw_interval, float) and raw_interval != interval):
        return _error("invalid_interval", "interval", "Interval must be a positive whole number")

    unit = str(form.get("unit") or "").upper()
    if unit not in UNITS:
        return _error("invalid_unit", "unit", f"Unit must be one of {', '.join(UNITS)}")
    return Right({**form, "recurrence": Recurring(interval=interval, unit=unit)})


def validate_transaction_input(form: Mapping[str, Any]) -> Either[dict, Transaction]:
    """Check a raw form submission and build a Transaction with a fresh id.

    Stops at the first failing field; the Left payload carries ``error``,
    ``field`` and ``message``.
    """
    return (
        Right(dict(form))
        .bind(_check_name)
        .bind(_check_amount)
        .bind(_check_date)
        .bind(_check_recurrence)
        .bind(lambda f: Right(new_transaction(f["name"], f["amount"], f["base_date"], f["recurrence"])))
    )

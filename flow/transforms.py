import json
import math
import os
import tempfile
from datetime import date, datetime
from functools import reduce
from pathlib import Path
from typing import Any, Dict, Iterable, Tuple, Union
from uuid import uuid4

import structlog

from flow.domain import DAY, MONTH, UNITS, WEEK, YEAR, OneTime, Recurrence, Recurring, Transaction, UnknownRecurrence

log = structlog.get_logger(__name__)

# older records carried a single `interval` enum instead of a tagged recurrence
LEGACY_INTERVALS: Dict[str, Recurrence] = {
    "ONCE": OneTime(),
    "DAILY": Recurring(interval=1, unit=DAY),
    "WEEKLY": Recurring(interval=1, unit=WEEK),
    "MONTHLY": Recurring(interval=1, unit=MONTH),
    "YEARLY": Recurring(interval=1, unit=YEAR),
}


def parse_base_date(value: str) -> date:
    """Calendar date of an ISO-8601 date or date-time string.

    The time part and any offset are dropped, so ``2024-01-31T23:00:00.000Z``
    is Jan 31.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return date.fromisoformat(text[:10])


def new_transaction(name: str, amount: float, base_date: date, recurrence: Recurrence = OneTime()) -> Transaction:
    if isinstance(base_date, datetime):
        base_date = base_date.date()
    return Transaction(id=uuid4().hex, name=name, amount=amount, base_date=base_date, recurrence=recurrence)


def recurrence_to_record(rec: Recurrence) -> Dict[str, Any]:
    if isinstance(rec, Recurring):
        return {"type": "RECURRING", "interval": rec.interval, "unit": rec.unit}
    if isinstance(rec, UnknownRecurrence):
        if rec.raw:
            return json.loads(rec.raw)
        return {"type": rec.raw_type}
    return {"type": "ONE_TIME"}


def _unknown(record: Dict[str, Any], kind: str, raw: Any) -> UnknownRecurrence:
    log.warning("record.unknown_recurrence", raw_type=kind, name=record.get("name"))
    text = json.dumps(raw, sort_keys=True) if isinstance(raw, dict) else ""
    return UnknownRecurrence(raw_type=kind, raw=text)


def recurrence_from_record(record: Dict[str, Any]) -> Recurrence:
    if "recurrence" not in record and "interval" in record:
        legacy = str(record["interval"]).upper()
        if legacy in LEGACY_INTERVALS:
            return LEGACY_INTERVALS[legacy]
        return _unknown(record, legacy, None)

    raw = record.get("recurrence") or {"type": "ONE_TIME"}
    kind = str(raw.get("type", "")) if isinstance(raw, dict) else str(raw)
    if kind == "ONE_TIME":
        return OneTime()
    if kind == "RECURRING" and isinstance(raw, dict):
        unit = str(raw.get("unit", "")).upper()
        interval = raw.get("interval")
        if unit in UNITS and isinstance(interval, int) and not isinstance(interval, bool) and interval >= 1:
            return Recurring(interval=interval, unit=unit)
    return _unknown(record, kind, raw)


def transaction_to_record(t: Transaction) -> Dict[str, Any]:
    return {
        "id": t.id,
        "name": t.name,
        "amount": t.amount,
        "baseDate": datetime(t.base_date.year, t.base_date.month, t.base_date.day).isoformat(),
        "recurrence": recurrence_to_record(t.recurrence),
    }


def transaction_from_record(record: Dict[str, Any]) -> Transaction:
    if not isinstance(record, dict):
        raise ValueError(f"Transaction record must be an object, got {type(record).__name__}")
    for key in ("name", "amount", "baseDate"):
        if key not in record:
            raise ValueError(f"Transaction record is missing {key!r}")
    amount = record["amount"]
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount):
        raise ValueError(f"Invalid amount {amount!r}")
    try:
        base = parse_base_date(str(record["baseDate"]))
    except ValueError as e:
        raise ValueError(f"Invalid baseDate {record['baseDate']!r}") from e
    return Transaction(
        id=str(record.get("id") or uuid4().hex),
        name=str(record["name"]),
        amount=amount,
        base_date=base,
        recurrence=recurrence_from_record(record),
    )


def load_transactions(path: Union[str, Path]) -> Tuple[Transaction, ...]:
    """Read the stored list; records that cannot be read are skipped.

    An unreadable file (corrupt JSON, or not a list) loads as empty.
    """
    path = Path(path)
    if not path.exists():
        return ()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        log.error("store.corrupt", path=str(path), reason=str(e))
        return ()
    if not isinstance(data, list):
        log.warning("store.not_a_list", path=str(path), found=type(data).__name__)
        return ()

    loaded = []
    for record in data:
        try:
            loaded.append(transaction_from_record(record))
        except ValueError as e:
            log.warning("record.skipped", reason=str(e))
    return tuple(loaded)


def save_transactions(path: Union[str, Path], trans: Iterable[Transaction]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    records = [transaction_to_record(t) for t in trans]

    # write next to the target and swap, so a failed dump leaves the old file intact
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2)
        os.replace(tmp, path)
    except Exception:
        os.unlink(tmp)
        raise


def add_transaction(
    trans: Tuple[Transaction, ...], t: Transaction
) -> Tuple[Transaction, ...]:
    return trans + (t,)


def update_transaction(
    trans: Tuple[Transaction, ...], updated: Transaction
) -> Tuple[Transaction, ...]:
    return tuple(updated if t.id == updated.id else t for t in trans)


def delete_transaction(
    trans: Tuple[Transaction, ...], tid: str
) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda t: t.id != tid, trans))


def total_amount(trans: Iterable[Transaction]) -> float:
    return reduce(lambda acc, t: acc + t.amount, trans, 0)

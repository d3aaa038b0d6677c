from datetime import date
from typing import Any, Callable, Dict, Optional, Sequence

import structlog

from flow.domain import MONTH, UNITS, CashflowPoint, Recurring, Transaction, UnknownRecurrence
from flow.projection import project, summarize
from flow.recurrence import calendar_date

log = structlog.get_logger(__name__)


class ForecastService:
    """Facade that projects a cash flow and runs injected checks over it.

    validators: functions taking (transactions, end_date) -> Sequence[str]
    calculators: functions taking (points, transactions, acc) -> dict (partial results)
    """

    def __init__(self, validators: Sequence[Callable[..., Sequence[str]]], calculators: Sequence[Callable[..., Dict[str, Any]]]):
        self.validators = validators
        self.calculators = calculators

    def forecast(self, transactions: Sequence[Transaction], end_date: date) -> Dict[str, Any]:
        """Run validators, project, then run calculators; returns the report with intermediate steps."""
        trans = tuple(transactions)
        report = {
            "end_date": end_date,
            "validation": [],
            "steps": [],
            "points": (),
            "result": {}
        }

        for v in self.validators:
            try:
                msgs = v(trans, end_date)
            except Exception as e:
                log.exception("forecast.validator_failed", validator=getattr(v, "__name__", str(v)))
                msgs = [f"validator_error: {e}"]
            report["validation"].append({"validator": getattr(v, "__name__", str(v)), "messages": list(msgs)})

        points = project(trans, end_date)
        report["points"] = points

        acc = {}
        for calc in self.calculators:
            name = getattr(calc, "__name__", str(calc))
            try:
                try:
                    out = calc(points, trans, acc)
                except TypeError:
                    # calculators that ignore acc
                    out = calc(points, trans)
            except Exception as e:
                log.exception("forecast.calculator_failed", calculator=name)
                out = {"calculator_error": str(e)}
            report["steps"].append({"calculator": name, "output": out})
            if isinstance(out, dict) and "calculator_error" not in out:
                acc.update(out)

        report["result"] = acc
        return report


def validator_has_transactions(trans, end_date):
    return [] if trans else ["No transactions recorded"]


def validator_horizon(trans, end_date):
    if not trans:
        return []
    start = min(calendar_date(t.base_date) for t in trans)
    if calendar_date(end_date) < start:
        return [f"Forecast end date {end_date} is before the earliest transaction on {start}"]
    return []


def validator_recurrences(trans, end_date):
    msgs = []
    for t in trans:
        rec = t.recurrence
        if isinstance(rec, UnknownRecurrence):
            msgs.append(f"{t.name}: unknown recurrence {rec.raw_type!r} is ignored")
        elif isinstance(rec, Recurring) and (rec.unit not in UNITS or rec.interval < 1):
            msgs.append(f"{t.name}: invalid recurrence every {rec.interval} {rec.unit} is ignored")
        elif isinstance(rec, Recurring) and rec.unit == MONTH and calendar_date(t.base_date).day > 28:
            msgs.append(f"{t.name}: monthly on day {calendar_date(t.base_date).day} skips shorter months")
    return msgs


def calc_summary(points: Sequence[CashflowPoint], trans, acc=None):
    return summarize(points)


def calc_first_negative(points: Sequence[CashflowPoint], trans, acc=None):
    first: Optional[date] = next((p.date for p in points if p.amount < 0), None)
    return {"first_negative_date": first}


def calc_flows(points: Sequence[CashflowPoint], trans, acc=None):
    # per-day net change; inflows and outflows on the same day offset
    inflow = 0
    outflow = 0
    previous = 0
    for p in points:
        delta = p.amount - previous
        previous = p.amount
        if delta > 0:
            inflow += delta
        elif delta < 0:
            outflow += delta
    return {"total_inflow": inflow, "total_outflow": outflow}


def default_forecast_service() -> ForecastService:
    return ForecastService(
        validators=[validator_has_transactions, validator_horizon, validator_recurrences],
        calculators=[calc_summary, calc_first_negative, calc_flows],
    )

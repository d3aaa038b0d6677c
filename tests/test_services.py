from datetime import date

from flow.domain import Transaction, OneTime, Recurring, UnknownRecurrence
from flow.services import ForecastService, default_forecast_service


def sample():
    return (
        Transaction("t1", "Salary", 1000, date(2024, 1, 5), Recurring(1, "MONTH")),
        Transaction("t2", "Rent", -1500, date(2024, 1, 1), Recurring(1, "MONTH")),
    )


def test_default_service_report_shape():
    rpt = default_forecast_service().forecast(sample(), date(2024, 2, 10))
    assert rpt["end_date"] == date(2024, 2, 10)
    assert len(rpt["points"]) == 41
    assert [v["validator"] for v in rpt["validation"]] == [
        "validator_has_transactions", "validator_horizon", "validator_recurrences",
    ]
    assert all(v["messages"] == [] for v in rpt["validation"])
    result = rpt["result"]
    assert result["final_balance"] == -1000
    assert result["lowest_balance"] == -2000
    assert result["lowest_date"] == date(2024, 2, 1)
    assert result["first_negative_date"] == date(2024, 1, 1)
    assert result["total_inflow"] == 2000
    assert result["total_outflow"] == -3000


def test_default_service_flags_problems():
    trans = (
        Transaction("t1", "Broken", 10, date(2024, 1, 1), UnknownRecurrence("HOURLY")),
        Transaction("t2", "Card", -50, date(2024, 1, 31), Recurring(1, "MONTH")),
    )
    rpt = default_forecast_service().forecast(trans, date(2023, 12, 1))
    messages = [m for v in rpt["validation"] for m in v["messages"]]
    assert any("before the earliest transaction" in m for m in messages)
    assert any("unknown recurrence" in m for m in messages)
    assert any("skips shorter months" in m for m in messages)
    assert rpt["points"] == ()


def test_default_service_empty():
    rpt = default_forecast_service().forecast((), date(2024, 1, 1))
    assert rpt["validation"][0]["messages"] == ["No transactions recorded"]
    assert rpt["result"]["days"] == 0
    assert rpt["result"]["first_negative_date"] is None


def test_calculators_share_accumulator():
    def c_days(points, trans, acc=None):
        return {"days": len(points)}

    def c_double(points, trans, acc):
        return {"double": acc["days"] * 2}

    svc = ForecastService(validators=[], calculators=[c_days, c_double])
    trans = (Transaction("t1", "Bonus", 5, date(2024, 1, 1), OneTime()),)
    rpt = svc.forecast(trans, date(2024, 1, 3))
    assert rpt["result"] == {"days": 3, "double": 6}
    assert rpt["steps"][1] == {"calculator": "c_double", "output": {"double": 6}}


def test_calculator_without_accumulator():
    def c_count(points, trans):
        return {"count": len(trans)}

    svc = ForecastService(validators=[], calculators=[c_count])
    rpt = svc.forecast(sample(), date(2024, 1, 10))
    assert rpt["result"]["count"] == 2


def test_failures_are_recorded_not_raised():
    def bad_validator(trans, end_date):
        raise RuntimeError("oops")

    def bad_calc(points, trans, acc=None):
        raise KeyError("missing")

    def c_ok(points, trans, acc=None):
        return {"x": 1}

    svc = ForecastService(validators=[bad_validator], calculators=[bad_calc, c_ok])
    rpt = svc.forecast(sample(), date(2024, 1, 10))
    assert "validator_error" in rpt["validation"][0]["messages"][0]
    assert "calculator_error" in rpt["steps"][0]["output"]
    assert rpt["result"] == {"x": 1}

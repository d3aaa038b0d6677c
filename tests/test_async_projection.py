import asyncio
from datetime import date

import pytest

from flow.async_projection import project_many
from flow.domain import Transaction, OneTime, Recurring
from flow.projection import project


def scenarios():
    base = (
        Transaction("t1", "Salary", 3000, date(2024, 1, 25), Recurring(1, "MONTH")),
        Transaction("t2", "Rent", -1200, date(2024, 1, 1), Recurring(1, "MONTH")),
    )
    with_car = base + (Transaction("t3", "Car", -15000, date(2024, 6, 1), OneTime()),)
    return {
        "base": (base, date(2024, 12, 31)),
        "car": (with_car, date(2024, 12, 31)),
        "empty": ((), date(2024, 12, 31)),
    }


@pytest.mark.asyncio
async def test_project_many_matches_sequential():
    sc = scenarios()
    res = await project_many(sc)
    assert set(res) == {"base", "car", "empty"}
    for name, (trans, end) in sc.items():
        assert res[name] == project(trans, end)


@pytest.mark.asyncio
async def test_project_many_scenarios_are_independent():
    res = await project_many(scenarios())
    assert res["car"][-1].amount - res["base"][-1].amount == -15000
    assert res["empty"] == ()


def test_project_many_with_asyncio_run():
    res = asyncio.run(project_many({"one": ((Transaction("t1", "x", 1, date(2024, 1, 1)),), date(2024, 1, 2))}))
    assert [p.amount for p in res["one"]] == [1, 1]

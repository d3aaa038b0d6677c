import asyncio
from datetime import date
from typing import Dict, Mapping, Sequence, Tuple

from flow.domain import CashflowPoint, Transaction
from flow.projection import project


async def project_many(
    scenarios: Mapping[str, Tuple[Sequence[Transaction], date]]
) -> Dict[str, Tuple[CashflowPoint, ...]]:
    """Project several independent scenarios concurrently.

    scenarios: mapping name -> (transactions, end_date)
    Returns mapping name -> projected points, one entry per scenario.
    """
    async def one(name: str, trans: Sequence[Transaction], end_date: date) -> tuple[str, Tuple[CashflowPoint, ...]]:
        points = project(tuple(trans), end_date)
        await asyncio.sleep(0)  # cooperate
        return name, points

    results = await asyncio.gather(*(one(n, t, e) for n, (t, e) in scenarios.items()))
    return {k: v for k, v in results}

"""Input → output bridge — percentile-banded input stage as cash-flow series.

For each semantic label the year-by-year operating cash flow is taken from
the banded net cash flow when the input stage produced one, else from
revenue − total cost at the same label (only when both exist with equal
length).  The negative initial investment is prepended as year 0.
"""

from __future__ import annotations

from lep_simulator.models.results import LABELS, BridgeData, CashflowSummary


def bridge_input_to_output(cashflow_summary: CashflowSummary, initial_investment: float) -> BridgeData:
    """Build ``BridgeData`` from an input-stage ``CashflowSummary``.

    ``initial_investment`` is the year-0 flow; pass it negative
    (``FinancingSettings.initial_investment``).
    """
    net = cashflow_summary.net_cash_flow
    revenue = cashflow_summary.revenue
    cost = cashflow_summary.total_cost

    series: dict[str, list[float]] = {}
    for label in LABELS:
        if net is not None:
            operating = list(net.get(label))
        elif revenue is not None and cost is not None and revenue.years == cost.years:
            operating = [r - c for r, c in zip(revenue.get(label), cost.get(label))]
        else:
            continue
        series[label] = [initial_investment] + operating

    return BridgeData(
        initial_investment=initial_investment,
        series=series,
        revenue=revenue,
        cost=cost,
    )

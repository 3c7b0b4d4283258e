"""Percentile aggregation — trial results → labelled percentile records.

Raw percentiles come out of ``percentiles_of`` keyed by level (``P10``,
``P50`` …).  ``build_label_map`` maps those keys onto the five semantic labels
(``Pextreme_lower`` … ``Pextreme_upper``) so every consumer reads the same
field names whatever levels were configured.

``summarize_trials`` is the one reducer every module uses.
``format_input_results`` / ``format_output_results`` reshape a whole stage's
run into the records the bridge and API consume.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, TypeVar

from lep_simulator.config.simulation import PercentileSpec
from lep_simulator.engine.percentiles import percentiles_of
from lep_simulator.models.results import (
    LABELS,
    CashflowSummary,
    ModuleResult,
    ModuleSummary,
    OutputSummary,
    PercentileBand,
    PercentileSeries,
)

if TYPE_CHECKING:
    from lep_simulator.engine.orchestrator import SimulationRunResult

V = TypeVar("V")


# ═══════════════════════════════════════════════════════════════════════════
# Relabeling
# ═══════════════════════════════════════════════════════════════════════════

def build_label_map(spec: PercentileSpec) -> dict[str, str]:
    """``{"P<level>": "P<label>"}`` for the five configured levels."""
    return {f"P{level}": f"P{label}" for label, level in spec.labelled().items()}


def relabel(values: Mapping[str, V], label_map: Mapping[str, str]) -> dict[str, V]:
    """Rename keys found in ``label_map``; other keys pass through unchanged."""
    return {label_map.get(key, key): value for key, value in values.items()}


def _finite(values: Iterable[float]) -> list[float]:
    return [v for v in values if v is not None and math.isfinite(v)]


# ═══════════════════════════════════════════════════════════════════════════
# Bands & series
# ═══════════════════════════════════════════════════════════════════════════

def percentile_band(values: Sequence[float], spec: PercentileSpec) -> PercentileBand:
    """Five labelled nearest-rank percentiles of ``values``."""
    raw = percentiles_of(values, spec.levels())
    return PercentileBand.model_validate(relabel(raw, build_label_map(spec)))


def percentile_series(rows: Sequence[Sequence[float]], spec: PercentileSpec) -> PercentileSeries:
    """Per-year percentile bands from per-trial rows (one row per trial).

    Year ``y`` is banded over the trials whose row reaches ``y``.  Non-finite
    entries are skipped.
    """
    label_map = build_label_map(spec)
    years = max((len(row) for row in rows), default=0)
    columns: dict[str, list[float]] = {f"P{label}": [] for label in LABELS}
    for y in range(years):
        column = _finite(row[y] for row in rows if len(row) > y)
        band = relabel(percentiles_of(column, spec.levels()), label_map)
        for key, values in columns.items():
            values.append(band[key])
    return PercentileSeries.model_validate(columns)


# ═══════════════════════════════════════════════════════════════════════════
# Shared module reducer
# ═══════════════════════════════════════════════════════════════════════════

def summarize_trials(
    module: str,
    results: Sequence[ModuleResult],
    spec: PercentileSpec,
    annual_fields: Iterable[str] | None = None,
    metric_fields: Iterable[str] | None = None,
) -> ModuleSummary:
    """Reduce one module's successful trial results to a ``ModuleSummary``.

    Fields default to every key seen in the results.  A metric absent from a
    trial (undefined for it) is left out of that metric's band; a metric no
    trial defined is left out of the summary.
    """
    if annual_fields is None:
        seen: dict[str, None] = {}
        for r in results:
            for record in r.annual_data:
                seen.update(dict.fromkeys(record))
        annual_fields = list(seen)
    if metric_fields is None:
        seen = {}
        for r in results:
            seen.update(dict.fromkeys(r.metrics))
        metric_fields = list(seen)

    annual: dict[str, PercentileSeries] = {}
    for name in annual_fields:
        rows = [[rec.get(name, math.nan) for rec in r.annual_data] for r in results]
        annual[name] = percentile_series(rows, spec)

    metrics: dict[str, PercentileBand] = {}
    for name in metric_fields:
        values = _finite(r.metrics.get(name) for r in results)
        if values:
            metrics[name] = percentile_band(values, spec)

    return ModuleSummary(module=module, trials=len(results), annual=annual, metrics=metrics)


# ═══════════════════════════════════════════════════════════════════════════
# Stage formatters
# ═══════════════════════════════════════════════════════════════════════════

def _summary(run: SimulationRunResult, name: str) -> ModuleSummary | None:
    summary = run.summary.get(name)
    return summary if isinstance(summary, ModuleSummary) else None


def format_input_results(run: SimulationRunResult) -> CashflowSummary:
    """Input-stage run (Cost, Revenue, Risk) → ``CashflowSummary``.

    Missing or failed modules leave their fields ``None``.
    """
    cost = _summary(run, "cost")
    revenue = _summary(run, "revenue")
    risk = _summary(run, "risk")

    out = CashflowSummary()
    if cost is not None:
        out.total_cost = cost.annual.get("total_cost")
        out.base_om = cost.annual.get("base_om")
        out.failure_risk = cost.annual.get("failure_cost")
        out.major_repairs = cost.annual.get("major_repairs")
        out.contingency = cost.annual.get("contingency")
        out.total_cost_lifetime = cost.metrics.get("total_cost")
    if revenue is not None:
        out.revenue = revenue.annual.get("revenue")
        out.net_cash_flow = revenue.annual.get("net_cash_flow")
        out.total_revenue = revenue.metrics.get("total_revenue")
    if risk is not None:
        out.risk_payouts = risk.annual.get("insurance_payout")

    for series in (out.net_cash_flow, out.revenue, out.total_cost):
        if series is not None:
            out.years = series.years
            break
    return out


def format_output_results(run: SimulationRunResult) -> OutputSummary:
    """Output-stage run (Financing, NPV, IRR, Payback) → ``OutputSummary``."""
    out = OutputSummary()
    if (irr := _summary(run, "irr")) is not None:
        out.irr = irr.metrics.get("irr")
    if (npv := _summary(run, "npv")) is not None:
        out.npv = npv.metrics.get("npv")
    if (payback := _summary(run, "payback")) is not None:
        out.payback_period = payback.metrics.get("payback_period")
    if (financing := _summary(run, "financing")) is not None:
        out.min_dscr = financing.metrics.get("min_dscr")
        out.probability_dscr_below_1 = financing.extras.get("probability_dscr_below_1")
    return out

"""Result types — the contract between engine, modules, bridge and API.

Per-trial outputs (``ModuleResult``) are immutable dataclasses: the engine
creates tens of thousands of them per run.  Everything that leaves a run
(percentile bands, module summaries, stage summaries, run metadata) is a
pydantic model so it serializes straight to JSON.

Percentile records always carry exactly five values, one per semantic label
(``Pextreme_lower`` … ``Pextreme_upper``), whatever levels were configured.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


LABELS: tuple[str, ...] = (
    "extreme_lower",
    "lower_bound",
    "primary",
    "upper_bound",
    "extreme_upper",
)
"""Semantic percentile labels, lowest to highest."""


# ═══════════════════════════════════════════════════════════════════════════
# Per-trial results
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ModuleResult:
    """Immutable output of one module for one trial."""

    annual_data: tuple[dict[str, float], ...] = ()
    """One record per project year (index 0 = year 1)."""

    metrics: dict[str, float] = field(default_factory=dict)
    """Scalar per-trial metrics.  A metric that is undefined for the trial
    (e.g. IRR without a sign change) is simply absent."""

    cash_flows: tuple[float, ...] = ()
    """Optional year-0-first cash-flow series for downstream modules."""


# ═══════════════════════════════════════════════════════════════════════════
# Percentile records
# ═══════════════════════════════════════════════════════════════════════════

class PercentileBand(BaseModel):
    """Five scalar percentile values under their semantic labels."""

    model_config = ConfigDict(populate_by_name=True)

    extreme_lower: float = Field(alias="Pextreme_lower")
    lower_bound: float = Field(alias="Plower_bound")
    primary: float = Field(alias="Pprimary")
    upper_bound: float = Field(alias="Pupper_bound")
    extreme_upper: float = Field(alias="Pextreme_upper")

    def get(self, label: str) -> float:
        return getattr(self, label)


class PercentileSeries(BaseModel):
    """Five per-year percentile series under their semantic labels."""

    model_config = ConfigDict(populate_by_name=True)

    extreme_lower: list[float] = Field(alias="Pextreme_lower")
    lower_bound: list[float] = Field(alias="Plower_bound")
    primary: list[float] = Field(alias="Pprimary")
    upper_bound: list[float] = Field(alias="Pupper_bound")
    extreme_upper: list[float] = Field(alias="Pextreme_upper")

    def get(self, label: str) -> list[float]:
        return getattr(self, label)

    @property
    def years(self) -> int:
        return len(self.primary)


# ═══════════════════════════════════════════════════════════════════════════
# Module & run summaries
# ═══════════════════════════════════════════════════════════════════════════

class ModuleSummary(BaseModel):
    """One module's trial results reduced to percentile bands."""

    module: str
    trials: int = Field(description="Trials that produced a result")
    failed_trials: int = Field(default=0, description="Trials that produced an error marker")
    annual: dict[str, PercentileSeries] = Field(default_factory=dict)
    metrics: dict[str, PercentileBand] = Field(default_factory=dict)
    extras: dict[str, float] = Field(
        default_factory=dict,
        description="Scalar statistics that are not percentiles (probabilities, counts)",
    )


class RunMetadata(BaseModel):
    """Provenance of one engine run."""

    iterations: int
    seed: int | None
    percentiles: dict[str, int] = Field(description="Semantic label → percentile level")
    modules: list[str]
    failed_trials: dict[str, int] = Field(default_factory=dict)
    elapsed_seconds: float = 0.0


# ═══════════════════════════════════════════════════════════════════════════
# Two-stage pipeline records
# ═══════════════════════════════════════════════════════════════════════════

class CashflowSummary(BaseModel):
    """Input-stage outputs (Cost, Revenue, Risk) as per-year percentile series.

    ``net_cash_flow`` is banded from per-trial ``revenue − total cost`` and is
    therefore not the difference of the revenue and cost bands.
    """

    years: int = 0
    revenue: PercentileSeries | None = None
    total_cost: PercentileSeries | None = None
    base_om: PercentileSeries | None = None
    failure_risk: PercentileSeries | None = None
    major_repairs: PercentileSeries | None = None
    contingency: PercentileSeries | None = None
    net_cash_flow: PercentileSeries | None = None
    risk_payouts: PercentileSeries | None = None
    total_revenue: PercentileBand | None = None
    total_cost_lifetime: PercentileBand | None = None


class BridgeData(BaseModel):
    """Input-stage percentiles reshaped as output-stage cash-flow series.

    ``series[label]`` is ``[initial_investment, cf_year1, …, cf_yearN]``.
    """

    initial_investment: float
    series: dict[str, list[float]] = Field(default_factory=dict)
    revenue: PercentileSeries | None = None
    cost: PercentileSeries | None = None

    def series_for(self, label: str) -> list[float] | None:
        return self.series.get(label)


class OutputSummary(BaseModel):
    """Output-stage headline figures (Financing, NPV, IRR, Payback)."""

    irr: PercentileBand | None = Field(default=None, description="IRR (%) over trials with a defined IRR")
    npv: PercentileBand | None = None
    payback_period: PercentileBand | None = Field(default=None, description="Years")
    min_dscr: PercentileBand | None = None
    probability_dscr_below_1: float | None = None

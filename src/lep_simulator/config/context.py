"""Simulation context — the read-only input bundle for one run.

``build_context`` is the assembly point: it takes the section models, the
contract-derived override and the sparse ``{amount, years}`` adjustments a user
enters, and expands the adjustments into one entry per project year.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from lep_simulator.config.contracts import Adjustment, AnnualAdjustment, OEMContractOverride
from lep_simulator.config.cost import CostSettings
from lep_simulator.config.financing import FinancingSettings
from lep_simulator.config.project import CurrencySettings, ProjectSettings
from lep_simulator.config.revenue import RevenueSettings
from lep_simulator.config.risk import RiskSettings
from lep_simulator.config.simulation import SimulationSettings
from lep_simulator.models.results import BridgeData


class SimulationContext(BaseModel):
    """Complete input bundle for one simulation run.  Never mutated by a run."""

    model_config = ConfigDict(frozen=True)

    project: ProjectSettings = Field(default_factory=ProjectSettings)
    currency: CurrencySettings = Field(default_factory=CurrencySettings)
    financing: FinancingSettings = Field(default_factory=FinancingSettings)
    cost: CostSettings = Field(default_factory=CostSettings)
    revenue: RevenueSettings = Field(default_factory=RevenueSettings)
    risk: RiskSettings = Field(default_factory=RiskSettings)
    oem_contract: OEMContractOverride | None = Field(default=None)
    annual_adjustments: list[AnnualAdjustment] = Field(default_factory=list)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    bridge: BridgeData | None = Field(
        default=None,
        description="Bridged input-stage percentiles; set only for the output stage.",
    )

    def adjustment_for(self, year: int) -> AnnualAdjustment:
        """Manual adjustments for ``year`` (zeros when none were entered)."""
        for adj in self.annual_adjustments:
            if adj.year == year:
                return adj
        return AnnualAdjustment(year=year)


def expand_adjustments(
    life: int,
    cost_adjustments: Iterable[Adjustment] = (),
    revenue_adjustments: Iterable[Adjustment] = (),
) -> list[AnnualAdjustment]:
    """Spread sparse adjustments over ``1..life``.  Years outside the life are dropped."""
    om = [0.0] * life
    rev = [0.0] * life
    for adj in cost_adjustments:
        for year in adj.years:
            if 1 <= year <= life:
                om[year - 1] += adj.amount
    for adj in revenue_adjustments:
        for year in adj.years:
            if 1 <= year <= life:
                rev[year - 1] += adj.amount
    return [
        AnnualAdjustment(year=y + 1, additional_om=om[y], additional_revenue=rev[y])
        for y in range(life)
    ]


def build_context(
    project: ProjectSettings | None = None,
    currency: CurrencySettings | None = None,
    financing: FinancingSettings | None = None,
    cost: CostSettings | None = None,
    revenue: RevenueSettings | None = None,
    risk: RiskSettings | None = None,
    simulation: SimulationSettings | None = None,
    oem_contract: OEMContractOverride | None = None,
    cost_adjustments: Iterable[Adjustment] = (),
    revenue_adjustments: Iterable[Adjustment] = (),
) -> SimulationContext:
    """Assemble a ``SimulationContext``; missing sections take their defaults."""
    project = project or ProjectSettings()
    return SimulationContext(
        project=project,
        currency=currency or CurrencySettings(),
        financing=financing or FinancingSettings(),
        cost=cost or CostSettings(),
        revenue=revenue or RevenueSettings(),
        risk=risk or RiskSettings(),
        oem_contract=oem_contract,
        annual_adjustments=expand_adjustments(project.life, cost_adjustments, revenue_adjustments),
        simulation=simulation or SimulationSettings(),
    )

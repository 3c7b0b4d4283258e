"""Cost module — annual O&M cost per trial.

Each project year:
  base O&M   = contract fee while the year is covered
               (× turbine count when the fee is per turbine)
             = annual_base_om × (1 + r)^(year − term_end)   afterwards,
               r drawn fresh each year from the escalation distribution
  failure    = failure_event_cost with probability failure_event_probability %
  repairs    = Σ scheduled major repairs (Bernoulli when probability < 1)
  total      = base O&M + failure + repairs + contingency + manual adjustment

The year's failure flag is recorded (``failure_event``) so Revenue can apply
downtime for the same event.

Escalation distributions (rate in %, mean = ``escalation_rate``):
  normal      σ = 25% of mean
  lognormal   underlying N(ln mean, 0.2); fixed when mean ≤ 0
  triangular  mean ± 50%, mode = mean
  uniform     mean ± 50%
  fixed       mean
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from lep_simulator.config.context import SimulationContext
from lep_simulator.config.cost import CostSettings
from lep_simulator.config.contracts import OEMContractOverride
from lep_simulator.engine.distributions import Sampler, create_sampler
from lep_simulator.engine.errors import UnsupportedDistributionError
from lep_simulator.engine.state import IterationState
from lep_simulator.engine.validation import ValidationResult, check_kind
from lep_simulator.models.results import ModuleResult
from lep_simulator.modules.base import SimulationModule

ESCALATION_KINDS = frozenset({"normal", "lognormal", "triangular", "uniform", "fixed"})


@dataclass(frozen=True)
class CostInputs:
    cost: CostSettings
    project_life: int
    num_wtgs: int
    contract: OEMContractOverride | None
    additional_om: tuple[float, ...]


def escalation_sampler(cost: CostSettings, rng: np.random.Generator) -> Sampler:
    """Sampler of the annual escalation rate as a fraction."""
    kind = cost.escalation_distribution.lower()
    rate = cost.escalation_rate

    if kind == "normal":
        params = {"mean": rate, "std": rate * 0.25}
    elif kind == "lognormal":
        if rate <= 0:
            return lambda: 0.0
        params = {"mean": math.log(rate), "sigma": 0.2}
    elif kind == "triangular":
        params = {"min": rate * 0.5, "mode": rate, "max": rate * 1.5}
    elif kind == "uniform":
        params = {"min": rate * 0.5, "max": rate * 1.5}
    elif kind == "fixed":
        params = {"value": rate}
    else:
        raise UnsupportedDistributionError(cost.escalation_distribution, "cost.escalation_distribution")

    draw = create_sampler(kind, params, rng)
    return lambda: draw() / 100


class CostModule(SimulationModule):
    """Annual O&M cost with OEM contract period, failures and repairs."""

    name = "cost"
    description = "Annual O&M cost: contract fee or escalated base O&M, failures, repairs, contingency"

    def prepare_input_data(self, context: SimulationContext) -> CostInputs:
        life = context.project.life
        return CostInputs(
            cost=context.cost,
            project_life=life,
            num_wtgs=context.project.num_wtgs,
            contract=context.oem_contract,
            additional_om=tuple(context.adjustment_for(y).additional_om for y in range(1, life + 1)),
        )

    def validate_inputs(self, context: SimulationContext) -> ValidationResult:
        return ValidationResult.from_errors(
            check_kind(context.cost.escalation_distribution, ESCALATION_KINDS, "cost.escalation_distribution")
        )

    def _contract_fee(self, inputs: CostInputs, year: int) -> float | None:
        """Fee for ``year`` if a contract covers it, else None."""
        contract = inputs.contract
        if contract is not None:
            if year not in contract.years:
                return None
            return contract.fixed_fee * inputs.num_wtgs if contract.is_per_turbine else contract.fixed_fee
        if year <= inputs.cost.oem_term:
            return inputs.cost.fixed_om_fee
        return None

    def process_iteration(
        self,
        inputs: CostInputs,
        state: IterationState,
        iteration: int,
        rng: np.random.Generator,
    ) -> ModuleResult:
        cost = inputs.cost
        escalation = escalation_sampler(cost, rng)
        term_end = inputs.contract.end_year if inputs.contract is not None else cost.oem_term
        failure_probability = cost.failure_event_probability / 100

        annual: list[dict[str, float]] = []
        for year in range(1, inputs.project_life + 1):
            fee = self._contract_fee(inputs, year)
            if fee is not None:
                base_om = fee
            else:
                base_om = cost.annual_base_om * (1 + escalation()) ** (year - term_end)

            failed = rng.random() < failure_probability
            failure_cost = cost.failure_event_cost if failed else 0.0

            repairs = 0.0
            for repair in cost.major_repairs:
                if repair.year != year:
                    continue
                if repair.probability >= 1.0 or rng.random() < repair.probability:
                    repairs += repair.cost

            adjustment = inputs.additional_om[year - 1]
            total = base_om + failure_cost + repairs + cost.contingency_cost + adjustment
            annual.append({
                "base_om": base_om,
                "failure_cost": failure_cost,
                "failure_event": 1.0 if failed else 0.0,
                "major_repairs": repairs,
                "contingency": cost.contingency_cost,
                "manual_adjustment": adjustment,
                "total_cost": total,
            })

        total_cost = sum(rec["total_cost"] for rec in annual)
        return ModuleResult(
            annual_data=tuple(annual),
            metrics={
                "total_cost": total_cost,
                "average_annual_cost": total_cost / inputs.project_life,
            },
        )

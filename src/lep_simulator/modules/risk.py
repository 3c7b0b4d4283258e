"""Risk module — insurance cover and reserve-fund drawdown per trial.

Insurance (when enabled), each year:
  premium  = insurance_premium
  payout   = max(0, failure cost − deductible)     against the same trial's Cost
  ratio    = payout / failure cost                  (0 without a failure)

Reserve fund: whenever the year's net operating cash flow is negative the
deficit is drawn from the remaining reserve.  Net operating cash flow is
Financing's cash flow before debt when present, else Revenue − Cost.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from lep_simulator.config.context import SimulationContext
from lep_simulator.config.risk import RiskSettings
from lep_simulator.engine.state import IterationState
from lep_simulator.models.results import ModuleResult
from lep_simulator.modules.base import SimulationModule


@dataclass(frozen=True)
class RiskInputs:
    risk: RiskSettings
    project_life: int


def _net_operating_cash_flow(state: IterationState, year: int) -> float | None:
    financing = state.get("financing")
    if financing is not None:
        return financing.annual_data[year - 1].get("cash_flow_before_debt")
    revenue = state.get("revenue")
    cost = state.get("cost")
    if revenue is None or cost is None:
        return None
    return revenue.annual_data[year - 1]["revenue"] - cost.annual_data[year - 1]["total_cost"]


class RiskModule(SimulationModule):
    """Insurance payouts against failure costs, plus reserve drawdown."""

    name = "risk"
    description = "Insurance premiums and payouts against failure events; reserve fund drawdown"

    def prepare_input_data(self, context: SimulationContext) -> RiskInputs:
        return RiskInputs(risk=context.risk, project_life=context.project.life)

    def process_iteration(
        self,
        inputs: RiskInputs,
        state: IterationState,
        iteration: int,
        rng: np.random.Generator,
    ) -> ModuleResult:
        risk = inputs.risk
        cost = state.get("cost")

        annual: list[dict[str, float]] = []
        total_premiums = 0.0
        total_mitigated = 0.0
        for year in range(1, inputs.project_life + 1):
            failure_cost = cost.annual_data[year - 1]["failure_cost"] if cost is not None else 0.0
            if risk.insurance_enabled:
                premium = risk.insurance_premium
                payout = max(0.0, failure_cost - risk.insurance_deductible) if failure_cost > 0 else 0.0
            else:
                premium = payout = 0.0
            total_premiums += premium
            total_mitigated += payout
            annual.append({
                "insurance_premium": premium,
                "original_failure_cost": failure_cost,
                "insurance_payout": payout,
                "net_failure_cost": failure_cost - payout,
                "mitigation_ratio": payout / failure_cost if failure_cost > 0 else 0.0,
            })

        metrics = {
            "total_insurance_premiums": total_premiums,
            "total_risk_mitigated": total_mitigated,
            "net_risk_mitigation_value": total_mitigated - total_premiums,
            "risk_mitigation_roi": total_mitigated / total_premiums if total_premiums > 0 else 0.0,
        }

        if risk.reserve_funds > 0:
            remaining = risk.reserve_funds
            used_total = 0.0
            for year, record in enumerate(annual, start=1):
                net = _net_operating_cash_flow(state, year)
                used = min(-net, remaining) if net is not None and net < 0 else 0.0
                remaining -= used
                used_total += used
                record["reserve_used"] = used
                record["reserve_remaining"] = remaining
            metrics.update({
                "initial_reserve_funds": risk.reserve_funds,
                "total_reserve_used": used_total,
                "remaining_reserve": remaining,
                "reserve_utilization_rate": used_total / risk.reserve_funds,
            })

        return ModuleResult(annual_data=tuple(annual), metrics=metrics)

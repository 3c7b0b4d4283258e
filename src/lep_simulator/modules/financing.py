"""Financing module — debt service, DSCR and equity cash flows per trial.

Operating cash flow before debt (CFBD) comes from the same trial's Revenue −
Cost when both ran, else from the bridged input-stage series.  With neither,
only the capital structure and debt service are reported.

  DSCR_t      = CFBD_t / debt_service_t            (∞ when no debt service)
  cash flows  = [−(CAPEX + DEVEX)] + [CFBD_t − debt_service_t]
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from lep_simulator.config.context import SimulationContext
from lep_simulator.config.financing import FinancingSettings
from lep_simulator.config.simulation import PercentileSpec
from lep_simulator.engine.formatting import summarize_trials
from lep_simulator.engine.state import IterationState
from lep_simulator.finance.dscr import (
    CapitalStructure,
    build_debt_service,
    compute_dscr,
    size_capital_structure,
)
from lep_simulator.models.results import ModuleResult, ModuleSummary
from lep_simulator.modules.base import SimulationModule


@dataclass(frozen=True)
class FinancingInputs:
    financing: FinancingSettings
    project_life: int
    structure: CapitalStructure
    debt_service: tuple[float, ...]
    bridged_cfbd: tuple[float, ...] | None


class FinancingModule(SimulationModule):
    """Capital structure, level debt service and DSCR."""

    name = "financing"
    description = "Debt sizing, level debt service, DSCR and equity cash flows"

    def prepare_input_data(self, context: SimulationContext) -> FinancingInputs:
        financing = context.financing
        life = context.project.life
        structure = size_capital_structure(financing)

        bridged = None
        if context.bridge is not None:
            series = context.bridge.series_for(context.simulation.bridge_label)
            if series:
                bridged = tuple(series[1:])

        return FinancingInputs(
            financing=financing,
            project_life=life,
            structure=structure,
            debt_service=tuple(build_debt_service(
                structure.debt, structure.interest_rate, financing.loan_duration, life,
            )),
            bridged_cfbd=bridged,
        )

    def _cash_flow_before_debt(self, inputs: FinancingInputs, state: IterationState) -> list[float] | None:
        revenue = state.get("revenue")
        cost = state.get("cost")
        if revenue is not None and cost is not None:
            return [
                rev["revenue"] - c["total_cost"]
                for rev, c in zip(revenue.annual_data, cost.annual_data)
            ]
        if inputs.bridged_cfbd is not None:
            return list(inputs.bridged_cfbd)
        return None

    def process_iteration(
        self,
        inputs: FinancingInputs,
        state: IterationState,
        iteration: int,
        rng: np.random.Generator,
    ) -> ModuleResult:
        structure = inputs.structure
        metrics = {
            "equity": structure.equity,
            "debt_amount": structure.debt,
            "annual_debt_service": inputs.debt_service[0] if inputs.debt_service else 0.0,
        }

        cfbd = self._cash_flow_before_debt(inputs, state)
        if cfbd is None:
            annual = tuple({"debt_service": ds} for ds in inputs.debt_service)
            return ModuleResult(annual_data=annual, metrics=metrics)

        debt_service = inputs.debt_service[:len(cfbd)]
        stats = compute_dscr(cfbd, debt_service, inputs.financing.minimum_dscr)

        annual = tuple(
            {
                "debt_service": ds,
                "cash_flow_before_debt": cf,
                "dscr": dscr,
                "net_cash_flow": cf - ds,
            }
            for cf, ds, dscr in zip(cfbd, debt_service, stats.annual)
        )
        if stats.min_dscr is not None:
            metrics["min_dscr"] = stats.min_dscr
            metrics["avg_dscr"] = stats.avg_dscr
            metrics["dscr_below_1"] = 1.0 if stats.below_one else 0.0
            metrics["covenant_breaches"] = float(stats.covenant_breaches)

        cash_flows = (inputs.financing.initial_investment,) + tuple(rec["net_cash_flow"] for rec in annual)
        return ModuleResult(annual_data=annual, metrics=metrics, cash_flows=cash_flows)

    def format_results(
        self,
        trial_results: Sequence[ModuleResult],
        percentile_spec: PercentileSpec,
    ) -> ModuleSummary:
        summary = summarize_trials(self.name, trial_results, percentile_spec)
        flags = [r.metrics["dscr_below_1"] for r in trial_results if "dscr_below_1" in r.metrics]
        summary.metrics.pop("dscr_below_1", None)
        if flags:
            summary.extras["probability_dscr_below_1"] = sum(flags) / len(flags)
            breaches = [r.metrics["covenant_breaches"] for r in trial_results if "covenant_breaches" in r.metrics]
            summary.extras["probability_covenant_breach"] = sum(1 for b in breaches if b > 0) / len(breaches)
        return summary

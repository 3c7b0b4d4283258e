"""IRR module — internal rate of return of each trial's cash-flow series.

Reported in percent.  Trials whose series has no IRR in (−100%, 100%]
carry no ``irr`` metric and are left out of the band.
"""

from __future__ import annotations

import numpy as np

from lep_simulator.config.context import SimulationContext
from lep_simulator.engine.state import IterationState
from lep_simulator.finance.dcf import compute_irr
from lep_simulator.models.results import ModuleResult
from lep_simulator.modules.base import SimulationModule
from lep_simulator.modules.cash_flows import CashFlowSource, cash_flow_source, resolve_cash_flows


class IRRModule(SimulationModule):
    name = "irr"
    description = "Internal rate of return (%) via Newton-Raphson with bisection fallback"

    def prepare_input_data(self, context: SimulationContext) -> CashFlowSource:
        return cash_flow_source(context)

    def process_iteration(
        self,
        inputs: CashFlowSource,
        state: IterationState,
        iteration: int,
        rng: np.random.Generator,
    ) -> ModuleResult:
        flows = resolve_cash_flows(inputs, state, rng)
        irr = compute_irr(flows)
        metrics = {} if irr is None else {"irr": irr * 100}
        return ModuleResult(metrics=metrics, cash_flows=tuple(flows))

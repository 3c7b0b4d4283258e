"""NPV module — net present value of each trial's cash-flow series."""

from __future__ import annotations

import numpy as np

from lep_simulator.config.context import SimulationContext
from lep_simulator.engine.state import IterationState
from lep_simulator.finance.dcf import compute_npv
from lep_simulator.models.results import ModuleResult
from lep_simulator.modules.base import SimulationModule
from lep_simulator.modules.cash_flows import CashFlowSource, cash_flow_source, resolve_cash_flows


class NPVModule(SimulationModule):
    name = "npv"
    description = "Net present value at the configured discount rate (year 0 undiscounted)"

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
        return ModuleResult(
            metrics={"npv": compute_npv(flows, inputs.discount_rate)},
            cash_flows=tuple(flows),
        )

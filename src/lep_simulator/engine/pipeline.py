"""Two-stage pipeline — operations first, then financial evaluation.

  Stage 1  Cost → Revenue → Risk over N trials
           → ``format_input_results`` → ``bridge_input_to_output``
  Stage 2  Financing → NPV → IRR → Payback over N trials, every trial valued
           against the same bridged series (``simulation.bridge_label``)

Stage 2 draws random numbers only in its fallback cash-flow sampling, which
the bridge normally makes unnecessary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lep_simulator.config.context import SimulationContext
from lep_simulator.engine.bridge import bridge_input_to_output
from lep_simulator.engine.formatting import format_input_results, format_output_results
from lep_simulator.engine.orchestrator import SimulationEngine, SimulationRunResult
from lep_simulator.models.results import BridgeData, CashflowSummary, OutputSummary
from lep_simulator.modules import (
    CostModule,
    FinancingModule,
    IRRModule,
    NPVModule,
    PaybackModule,
    RevenueModule,
    RiskModule,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class InputStageResult:
    run: SimulationRunResult
    cashflow: CashflowSummary
    bridge: BridgeData


@dataclass(frozen=True)
class OutputStageResult:
    run: SimulationRunResult
    summary: OutputSummary


@dataclass(frozen=True)
class TwoStageResult:
    """Both stages' runs plus the records passed between and out of them."""

    input_run: SimulationRunResult
    cashflow: CashflowSummary
    bridge: BridgeData
    output_run: SimulationRunResult
    output: OutputSummary


def input_stage_engine(context: SimulationContext) -> SimulationEngine:
    engine = SimulationEngine.from_context(context)
    engine.register_module(CostModule())
    engine.register_module(RevenueModule())
    engine.register_module(RiskModule())
    return engine


def output_stage_engine(context: SimulationContext) -> SimulationEngine:
    engine = SimulationEngine.from_context(context)
    engine.register_module(FinancingModule())
    engine.register_module(NPVModule())
    engine.register_module(IRRModule())
    engine.register_module(PaybackModule())
    return engine


def run_input_stage(context: SimulationContext) -> InputStageResult:
    """Stage 1 only: operational distributions and the bridge built from them."""
    run = input_stage_engine(context).run(context)
    cashflow = format_input_results(run)
    bridge = bridge_input_to_output(cashflow, context.financing.initial_investment)
    return InputStageResult(run=run, cashflow=cashflow, bridge=bridge)


def run_output_stage(context: SimulationContext, bridge: BridgeData | None = None) -> OutputStageResult:
    """Stage 2 only, against ``bridge`` (or ``context.bridge`` when omitted)."""
    if bridge is not None:
        context = context.model_copy(update={"bridge": bridge})
    run = output_stage_engine(context).run(context)
    return OutputStageResult(run=run, summary=format_output_results(run))


def run_two_stage(context: SimulationContext) -> TwoStageResult:
    """Run both stages end to end."""
    stage1 = run_input_stage(context)
    LOGGER.info("Input stage bridged %d label series", len(stage1.bridge.series))
    stage2 = run_output_stage(context, stage1.bridge)
    return TwoStageResult(
        input_run=stage1.run,
        cashflow=stage1.cashflow,
        bridge=stage1.bridge,
        output_run=stage2.run,
        output=stage2.summary,
    )

"""Cash-flow series resolution shared by the NPV, IRR and Payback modules.

Order of preference for one trial:
  1. the bridged input-stage series for the configured percentile label
  2. the same trial's Financing cash flows
  3. a sampled fallback series (declining operating flows with ±20% noise)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from lep_simulator.config.context import SimulationContext
from lep_simulator.engine.state import IterationState


@dataclass(frozen=True)
class CashFlowSource:
    """Per-run inputs for resolving a trial's cash-flow series."""

    project_life: int
    capex: float
    discount_rate: float
    bridged: tuple[float, ...] | None = None


def cash_flow_source(context: SimulationContext) -> CashFlowSource:
    bridged = None
    if context.bridge is not None:
        series = context.bridge.series_for(context.simulation.bridge_label)
        if series:
            bridged = tuple(series)
    return CashFlowSource(
        project_life=context.project.life,
        capex=context.financing.capex,
        discount_rate=context.financing.discount_rate,
        bridged=bridged,
    )


def fallback_cash_flows(capex: float, project_life: int, rng: np.random.Generator) -> list[float]:
    """``[−capex] + [(0.2·capex − y·0.05·capex) × U(0.8, 1.2)]`` for y = 0 … life−1."""
    initial = -capex
    flows = [initial]
    for year in range(project_life):
        base = -initial * 0.2 + year * initial * 0.05
        flows.append(base * rng.uniform(0.8, 1.2))
    return flows


def resolve_cash_flows(
    source: CashFlowSource,
    state: IterationState,
    rng: np.random.Generator,
) -> list[float]:
    if source.bridged is not None:
        return list(source.bridged)
    financing = state.get("financing")
    if financing is not None and financing.cash_flows:
        return list(financing.cash_flows)
    return fallback_cash_flows(source.capex, source.project_life, rng)

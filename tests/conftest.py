"""Shared test fixtures — small, fast contexts and a seeded generator."""

from __future__ import annotations

import numpy as np
import pytest

from lep_simulator.config import (
    CostSettings,
    ElectricityPriceSettings,
    EnergyProductionSettings,
    FinancingSettings,
    ProjectSettings,
    RevenueSettings,
    RiskSettings,
    SimulationContext,
    SimulationSettings,
    build_context,
)
from lep_simulator.engine.state import IterationState


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(12345)


@pytest.fixture
def empty_state() -> IterationState:
    return IterationState(iteration=0)


@pytest.fixture
def small_context() -> SimulationContext:
    """Five-year project, 200 trials — enough for shape checks, fast to run."""
    return build_context(
        project=ProjectSettings(life=5, num_wtgs=10),
        financing=FinancingSettings(capex=1_000_000, devex=100_000, loan_duration=4),
        cost=CostSettings(
            annual_base_om=100_000,
            escalation_rate=3.0,
            oem_term=2,
            fixed_om_fee=80_000,
            failure_event_probability=20.0,
            failure_event_cost=50_000,
        ),
        revenue=RevenueSettings(
            energy_production=EnergyProductionSettings(distribution="normal", mean=10_000),
            electricity_price=ElectricityPriceSettings(type="variable", value=60.0, distribution="normal"),
            revenue_degradation_rate=1.0,
        ),
        risk=RiskSettings(insurance_enabled=True, insurance_premium=5_000, insurance_deductible=1_000),
        simulation=SimulationSettings(iterations=200, seed=7),
    )


@pytest.fixture
def deterministic_context() -> SimulationContext:
    """Everything fixed: no failures, fixed energy and price, no degradation."""
    return build_context(
        project=ProjectSettings(life=3, num_wtgs=20),
        cost=CostSettings(
            annual_base_om=1_000_000,
            escalation_rate=0.0,
            escalation_distribution="fixed",
            oem_term=0,
            failure_event_probability=0.0,
            contingency_cost=0.0,
        ),
        revenue=RevenueSettings(
            energy_production=EnergyProductionSettings(distribution="fixed", mean=1_000),
            electricity_price=ElectricityPriceSettings(type="fixed", value=50.0),
            revenue_degradation_rate=0.0,
        ),
        simulation=SimulationSettings(iterations=10, seed=1),
    )

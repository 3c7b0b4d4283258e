"""Configuration models — every input a simulation run reads."""

from lep_simulator.config.project import CurrencySettings, ProjectSettings
from lep_simulator.config.financing import FinancingSettings
from lep_simulator.config.cost import CostSettings, MajorRepairEvent
from lep_simulator.config.revenue import (
    DowntimeSettings,
    ElectricityPriceSettings,
    EnergyProductionSettings,
    RevenueSettings,
)
from lep_simulator.config.risk import RiskSettings
from lep_simulator.config.contracts import Adjustment, AnnualAdjustment, OEMContractOverride
from lep_simulator.config.distribution import DistributionConfig, YearValue
from lep_simulator.config.simulation import PercentileSpec, SimulationSettings
from lep_simulator.config.context import SimulationContext, build_context, expand_adjustments

__all__ = [
    "ProjectSettings",
    "CurrencySettings",
    "FinancingSettings",
    "CostSettings",
    "MajorRepairEvent",
    "EnergyProductionSettings",
    "ElectricityPriceSettings",
    "DowntimeSettings",
    "RevenueSettings",
    "RiskSettings",
    "Adjustment",
    "AnnualAdjustment",
    "OEMContractOverride",
    "DistributionConfig",
    "YearValue",
    "PercentileSpec",
    "SimulationSettings",
    "SimulationContext",
    "build_context",
    "expand_adjustments",
]

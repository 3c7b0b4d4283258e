"""Domain modules — the calculators the engine chains per trial."""

from lep_simulator.modules.base import SimulationModule
from lep_simulator.modules.cost import CostModule
from lep_simulator.modules.revenue import RevenueModule
from lep_simulator.modules.risk import RiskModule
from lep_simulator.modules.financing import FinancingModule
from lep_simulator.modules.npv import NPVModule
from lep_simulator.modules.irr import IRRModule
from lep_simulator.modules.payback import PaybackModule

__all__ = [
    "SimulationModule",
    "CostModule",
    "RevenueModule",
    "RiskModule",
    "FinancingModule",
    "NPVModule",
    "IRRModule",
    "PaybackModule",
]

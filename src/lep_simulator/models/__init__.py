"""Result models — simulation output contracts."""

from lep_simulator.models.results import (
    LABELS,
    BridgeData,
    CashflowSummary,
    ModuleResult,
    ModuleSummary,
    OutputSummary,
    PercentileBand,
    PercentileSeries,
    RunMetadata,
)

__all__ = [
    "LABELS",
    "BridgeData",
    "CashflowSummary",
    "ModuleResult",
    "ModuleSummary",
    "OutputSummary",
    "PercentileBand",
    "PercentileSeries",
    "RunMetadata",
]

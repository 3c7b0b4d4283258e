"""Engine — sampling, per-trial orchestration, percentile reduction.

The two-stage pipeline lives in ``lep_simulator.engine.pipeline``; it is not
re-exported here because it imports the domain modules, which import this
package.
"""

from lep_simulator.engine.errors import (
    ConfigurationError,
    EngineStateError,
    ModuleErrorMarker,
    SimulationError,
    SummaryError,
    UnsupportedDistributionError,
)
from lep_simulator.engine.distributions import SUPPORTED_KINDS, create_sampler, sampler_from_config
from lep_simulator.engine.percentiles import describe, percentiles_of
from lep_simulator.engine.state import IterationState
from lep_simulator.engine.validation import ValidationResult, validate_context
from lep_simulator.engine.formatting import (
    build_label_map,
    format_input_results,
    format_output_results,
    percentile_band,
    percentile_series,
    relabel,
    summarize_trials,
)
from lep_simulator.engine.bridge import bridge_input_to_output
from lep_simulator.engine.orchestrator import EngineState, SimulationEngine, SimulationRunResult

__all__ = [
    "SimulationError",
    "ConfigurationError",
    "UnsupportedDistributionError",
    "EngineStateError",
    "ModuleErrorMarker",
    "SummaryError",
    "SUPPORTED_KINDS",
    "create_sampler",
    "sampler_from_config",
    "percentiles_of",
    "describe",
    "IterationState",
    "ValidationResult",
    "validate_context",
    "build_label_map",
    "relabel",
    "percentile_band",
    "percentile_series",
    "summarize_trials",
    "format_input_results",
    "format_output_results",
    "bridge_input_to_output",
    "EngineState",
    "SimulationEngine",
    "SimulationRunResult",
]

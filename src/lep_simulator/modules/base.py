"""Module contract — what the engine requires of every domain calculator.

A module is a stateless calculator the engine drives in three phases:

  1. ``prepare_input_data(context)``  once per run, before any trial
  2. ``process_iteration(inputs, state, iteration, rng)``  once per trial
  3. ``format_results(trial_results, percentile_spec)``  once per run

``state`` holds the same trial's results from modules registered earlier;
``rng`` is the run's generator and the only source of randomness a module
may use.  ``validate_inputs`` runs before phase 1 and reports every problem
it finds rather than raising.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import numpy as np

from lep_simulator.config.context import SimulationContext
from lep_simulator.config.simulation import PercentileSpec
from lep_simulator.engine.formatting import summarize_trials
from lep_simulator.engine.state import IterationState
from lep_simulator.engine.validation import ValidationResult
from lep_simulator.models.results import ModuleResult, ModuleSummary


class SimulationModule(ABC):
    """Base class of the closed set of domain modules."""

    name: str = ""
    version: str = "1.0.0"
    description: str = ""

    @abstractmethod
    def prepare_input_data(self, context: SimulationContext) -> Any:
        """Extract the immutable inputs this module reads on every trial."""

    @abstractmethod
    def process_iteration(
        self,
        inputs: Any,
        state: IterationState,
        iteration: int,
        rng: np.random.Generator,
    ) -> ModuleResult:
        """Compute this module's result for one trial."""

    def format_results(
        self,
        trial_results: Sequence[ModuleResult],
        percentile_spec: PercentileSpec,
    ) -> ModuleSummary:
        """Reduce successful trial results to percentile bands."""
        return summarize_trials(self.name, trial_results, percentile_spec)

    def validate_inputs(self, context: SimulationContext) -> ValidationResult:
        return ValidationResult()

    def metadata(self) -> dict[str, str]:
        return {"name": self.name, "version": self.version, "description": self.description}

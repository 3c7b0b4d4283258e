"""Per-trial accumulator threaded through the module chain.

A fresh ``IterationState`` is created for every trial.  Modules never mutate
it; the engine folds each module's output in with ``with_result`` and passes
the new state to the next module, so a module sees exactly the results of the
modules registered before it in the same trial.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from lep_simulator.engine.errors import ModuleErrorMarker
from lep_simulator.models.results import ModuleResult

Outcome = Union[ModuleResult, ModuleErrorMarker]


@dataclass(frozen=True)
class IterationState:
    """Immutable snapshot of one trial's results so far."""

    iteration: int
    results: dict[str, Outcome] = field(default_factory=dict)

    def with_result(self, name: str, outcome: Outcome) -> "IterationState":
        """Return a new state with ``outcome`` recorded under ``name``."""
        results = dict(self.results)
        results[name] = outcome
        return IterationState(iteration=self.iteration, results=results)

    def get(self, name: str) -> ModuleResult | None:
        """Successful result of ``name`` in this trial, or None (absent or failed)."""
        outcome = self.results.get(name)
        if isinstance(outcome, ModuleResult):
            return outcome
        return None

    def error(self, name: str) -> ModuleErrorMarker | None:
        outcome = self.results.get(name)
        if isinstance(outcome, ModuleErrorMarker):
            return outcome
        return None

"""Monte-Carlo orchestrator — runs registered modules over N trials.

Lifecycle of one ``run(context)``:

  IDLE → VALIDATING   context validator + every module's ``validate_inputs``;
                      any error aborts with ``ConfigurationError``
       → RUNNING      one seeded generator for the whole run; per trial a
                      fresh ``IterationState`` is folded through the modules
                      in registration order
       → FORMATTING   each module reduces its successful trials
       → IDLE         (→ FAILED on any raised error)

A module that throws inside a trial leaves a ``ModuleErrorMarker`` for that
trial and the run continues; its later modules see no result for it.  A
module whose ``prepare_input_data`` throws gets a marker in every trial, and
so does one that returns anything other than a ``ModuleResult``.  An
``UnsupportedDistributionError`` is a configuration problem, not a trial
outcome, and aborts the run.

Entry point: ``SimulationEngine(...).run(context)``
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

import numpy as np

from lep_simulator.config.context import SimulationContext
from lep_simulator.config.simulation import PercentileSpec
from lep_simulator.engine.errors import (
    ConfigurationError,
    EngineStateError,
    ModuleErrorMarker,
    SummaryError,
    UnsupportedDistributionError,
)
from lep_simulator.engine.state import IterationState
from lep_simulator.engine.validation import ValidationResult, validate_context
from lep_simulator.models.results import ModuleResult, ModuleSummary, RunMetadata

if TYPE_CHECKING:
    from lep_simulator.modules.base import SimulationModule

LOGGER = logging.getLogger(__name__)

Validator = Callable[[SimulationContext], ValidationResult]


class EngineState(enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    RUNNING = "running"
    FORMATTING = "formatting"
    FAILED = "failed"


@dataclass(frozen=True)
class SimulationRunResult:
    """Everything one run produced.

    ``iterations`` holds each trial's final state in trial order: every
    module's result, or its error marker when it failed in that trial.
    """

    iterations: tuple[IterationState, ...] = ()
    summary: dict[str, Union[ModuleSummary, SummaryError]] = field(default_factory=dict)
    metadata: RunMetadata | None = None

    def module(self, name: str) -> ModuleSummary | None:
        """Summary of ``name`` if it formatted successfully."""
        summary = self.summary.get(name)
        return summary if isinstance(summary, ModuleSummary) else None

    def trial_results(self, name: str) -> list[ModuleResult]:
        """Successful per-trial results of ``name``, in trial order."""
        return [r for r in (s.get(name) for s in self.iterations) if r is not None]


# ═══════════════════════════════════════════════════════════════════════════
# Engine
# ═══════════════════════════════════════════════════════════════════════════

class SimulationEngine:
    """Drives registered modules through ``iterations`` seeded trials.

    Parameters
    ----------
    iterations : int
        Number of trials per run (≥ 1).
    seed : int | None
        Seed for the run's generator.  Two runs with the same seed, modules
        and context produce identical summaries.  None = non-deterministic.
    percentiles : PercentileSpec | None
        Levels reported by every module (defaults 10/25/50/75/90).
    validator : callable | None
        Context-level structural validator (defaults to ``validate_context``).
    """

    def __init__(
        self,
        iterations: int = 10_000,
        seed: int | None = 42,
        percentiles: PercentileSpec | None = None,
        validator: Validator | None = None,
    ) -> None:
        if iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {iterations}")
        self.iterations = iterations
        self.seed = seed
        self.percentiles = percentiles or PercentileSpec()
        self._validator = validator or validate_context
        self._modules: dict[str, SimulationModule] = {}
        self._state = EngineState.IDLE

    @classmethod
    def from_context(cls, context: SimulationContext, **kwargs) -> "SimulationEngine":
        """Engine configured from ``context.simulation``."""
        sim = context.simulation
        return cls(iterations=sim.iterations, seed=sim.seed, percentiles=sim.percentiles, **kwargs)

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def modules(self) -> list[str]:
        return list(self._modules)

    def register_module(self, module: SimulationModule) -> "SimulationEngine":
        """Add ``module`` to the chain.  A module with the same name is replaced."""
        if self._state is not EngineState.IDLE:
            raise EngineStateError(f"cannot register modules while engine is {self._state.value}")
        if not getattr(module, "name", None):
            raise ValueError("module must have a non-empty name")
        self._modules[module.name] = module
        return self

    # ── Run ─────────────────────────────────────────────────────────────────

    def run(self, context: SimulationContext) -> SimulationRunResult:
        if self._state not in (EngineState.IDLE, EngineState.FAILED):
            raise EngineStateError(f"engine is already {self._state.value}")

        started = time.perf_counter()
        LOGGER.info(
            "Starting run: %d iterations, seed=%s, modules=%s",
            self.iterations, self.seed, self.modules,
        )
        with self._lifecycle() as rng:
            self._state = EngineState.VALIDATING
            self._validate(context)

            self._state = EngineState.RUNNING
            states, trial_results, failures = self._run_trials(context, rng)

            self._state = EngineState.FORMATTING
            summary = self._format(trial_results, failures)

        elapsed = time.perf_counter() - started
        LOGGER.info("Finished run in %.2fs (failed trials: %s)", elapsed, failures)
        return SimulationRunResult(
            iterations=tuple(states),
            summary=summary,
            metadata=RunMetadata(
                iterations=self.iterations,
                seed=self.seed,
                percentiles=self.percentiles.labelled(),
                modules=self.modules,
                failed_trials=failures,
                elapsed_seconds=elapsed,
            ),
        )

    @contextmanager
    def _lifecycle(self) -> Iterator[np.random.Generator]:
        """Own a fresh generator for one run; leave the engine IDLE or FAILED."""
        rng = np.random.default_rng(self.seed)
        try:
            yield rng
        except BaseException:
            self._state = EngineState.FAILED
            raise
        else:
            self._state = EngineState.IDLE

    def reset(self) -> None:
        """Return a FAILED engine to IDLE so modules can be registered again."""
        if self._state is EngineState.FAILED:
            self._state = EngineState.IDLE

    def _validate(self, context: SimulationContext) -> None:
        result = self._validator(context)
        for module in self._modules.values():
            result = result.merge(module.validate_inputs(context))
        if not result.is_valid:
            LOGGER.error("Configuration invalid: %s", result.errors)
            raise ConfigurationError(result.errors)

    def _run_trials(
        self,
        context: SimulationContext,
        rng: np.random.Generator,
    ) -> tuple[list[IterationState], dict[str, list[ModuleResult]], dict[str, int]]:
        prepared: dict[str, object] = {}
        unprepared: dict[str, ModuleErrorMarker] = {}
        for name, module in self._modules.items():
            try:
                prepared[name] = module.prepare_input_data(context)
            except UnsupportedDistributionError:
                raise
            except Exception as exc:
                LOGGER.warning("Module %s failed to prepare its inputs", name, exc_info=exc)
                unprepared[name] = ModuleErrorMarker.from_exception(name, exc)

        states: list[IterationState] = []
        results: dict[str, list[ModuleResult]] = {name: [] for name in self._modules}
        failures: dict[str, int] = {name: 0 for name in self._modules}

        for iteration in range(self.iterations):
            state = IterationState(iteration=iteration)
            for name, module in self._modules.items():
                if name in unprepared:
                    state = state.with_result(name, unprepared[name])
                    failures[name] += 1
                    continue
                try:
                    outcome = module.process_iteration(prepared[name], state, iteration, rng)
                except UnsupportedDistributionError:
                    raise
                except Exception as exc:
                    LOGGER.warning("Module %s failed in trial %d", name, iteration, exc_info=exc)
                    outcome = ModuleErrorMarker.from_exception(name, exc)
                else:
                    if not isinstance(outcome, ModuleResult):
                        LOGGER.warning(
                            "Module %s returned %s instead of a ModuleResult in trial %d",
                            name, type(outcome).__name__, iteration,
                        )
                        outcome = ModuleErrorMarker(
                            module=name,
                            error_type="InvalidResult",
                            message=f"expected ModuleResult, got {type(outcome).__name__}",
                        )
                state = state.with_result(name, outcome)
                if isinstance(outcome, ModuleErrorMarker):
                    failures[name] += 1
                else:
                    results[name].append(outcome)
            states.append(state)

        return states, results, failures

    def _format(
        self,
        trial_results: dict[str, list[ModuleResult]],
        failures: dict[str, int],
    ) -> dict[str, Union[ModuleSummary, SummaryError]]:
        summary: dict[str, Union[ModuleSummary, SummaryError]] = {}
        for name, module in self._modules.items():
            try:
                formatted = module.format_results(trial_results[name], self.percentiles)
            except Exception as exc:
                LOGGER.error("Formatting failed for module %s", name, exc_info=exc)
                summary[name] = SummaryError.from_exception(name, exc)
                continue
            formatted.failed_trials = failures[name]
            summary[name] = formatted
        return summary

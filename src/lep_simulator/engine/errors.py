"""Engine errors and the error markers that stand in for failed results.

Raised errors abort a run.  Recovered failures are data: a module that throws
inside one trial leaves a ``ModuleErrorMarker`` in that trial's state, and a
reducer that throws leaves a ``SummaryError`` in the run summary.
"""

from __future__ import annotations

from dataclasses import dataclass


class SimulationError(Exception):
    """Base class for every error the engine raises."""


class ConfigurationError(SimulationError):
    """The context failed validation.  Carries every problem found, not just the first."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("invalid simulation configuration: " + "; ".join(self.errors))


class UnsupportedDistributionError(SimulationError):
    """A sampler was requested for a distribution kind that is not implemented."""

    def __init__(self, kind: str, where: str | None = None) -> None:
        self.kind = kind
        self.where = where
        location = f" for {where}" if where else ""
        super().__init__(f"unsupported distribution '{kind}'{location}")


class EngineStateError(SimulationError):
    """An engine operation was called in a state that does not allow it."""


@dataclass(frozen=True)
class ModuleErrorMarker:
    """Placeholder for a module result that failed in one trial."""

    module: str
    error_type: str
    message: str

    @classmethod
    def from_exception(cls, module: str, exc: BaseException) -> "ModuleErrorMarker":
        return cls(module=module, error_type=type(exc).__name__, message=str(exc))


@dataclass(frozen=True)
class SummaryError:
    """Placeholder for a module summary whose reducer failed."""

    module: str
    error_type: str
    message: str

    @classmethod
    def from_exception(cls, module: str, exc: BaseException) -> "SummaryError":
        return cls(module=module, error_type=type(exc).__name__, message=str(exc))

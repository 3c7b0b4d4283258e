"""Structural validation of a simulation context.

Range checks on individual fields live on the pydantic models and fail at
construction time.  What remains here are the cross-field checks a single
field cannot express: series lengths, year ranges, label names.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lep_simulator.config.context import SimulationContext
from lep_simulator.models.results import LABELS


@dataclass
class ValidationResult:
    """Outcome of a validation pass.  ``errors`` holds every problem found."""

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors))

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult.from_errors(self.errors + other.errors)


def check_kind(kind: str, allowed: set[str] | frozenset[str], where: str) -> list[str]:
    """Errors for a module-level distribution choice outside ``allowed``."""
    if kind.lower() in allowed:
        return []
    return [f"unsupported distribution '{kind}' for {where}"]


def validate_context(context: SimulationContext) -> ValidationResult:
    """Cross-field structural checks on ``context``."""
    errors: list[str] = []
    life = context.project.life

    # --- Adjustments: one entry per project year, or none at all ---
    adjustments = context.annual_adjustments
    if adjustments:
        years = [a.year for a in adjustments]
        if len(years) != life:
            errors.append(
                f"annual_adjustments has {len(years)} entries, expected one per year of project life {life}"
            )
        if len(years) != len(set(years)):
            errors.append("annual_adjustments contains duplicate years")
        out_of_range = sorted(y for y in years if y > life)
        if out_of_range:
            errors.append(f"annual_adjustments has years beyond project life {life}: {out_of_range}")

    # --- Contract override ---
    if context.oem_contract is not None:
        bad = sorted(y for y in context.oem_contract.years if y < 1 or y > life)
        if bad:
            errors.append(f"oem_contract covers years outside 1..{life}: {bad}")

    # --- Major repairs ---
    late = sorted(r.year for r in context.cost.major_repairs if r.year > life)
    if late:
        errors.append(f"major_repairs scheduled beyond project life {life}: {late}")

    # --- Output-stage inputs ---
    label = context.simulation.bridge_label
    if label not in LABELS:
        errors.append(f"simulation.bridge_label must be one of {list(LABELS)}, got '{label}'")

    if context.bridge is not None:
        for name, series in context.bridge.series.items():
            if name not in LABELS:
                errors.append(f"bridge series has unknown label '{name}'")
            elif len(series) != life + 1:
                errors.append(
                    f"bridge series '{name}' has {len(series)} values, "
                    f"expected {life + 1} (year 0 plus {life} years)"
                )

    return ValidationResult.from_errors(errors)

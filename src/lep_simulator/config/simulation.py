"""Simulation-level settings — trial count, seed, percentile levels."""

from pydantic import BaseModel, Field, model_validator


class PercentileSpec(BaseModel):
    """The five percentile levels reported for every distribution.

    Levels are integers in 1–99 and must be strictly increasing from
    ``extreme_lower`` to ``extreme_upper``.
    """

    extreme_lower: int = Field(default=10, ge=1, le=99)
    lower_bound: int = Field(default=25, ge=1, le=99)
    primary: int = Field(default=50, ge=1, le=99)
    upper_bound: int = Field(default=75, ge=1, le=99)
    extreme_upper: int = Field(default=90, ge=1, le=99)

    @model_validator(mode="after")
    def _check_order(self) -> "PercentileSpec":
        levels = self.levels()
        if any(a >= b for a, b in zip(levels, levels[1:])):
            raise ValueError(
                f"percentile levels must be strictly increasing, got {levels}"
            )
        return self

    def levels(self) -> list[int]:
        return [
            self.extreme_lower,
            self.lower_bound,
            self.primary,
            self.upper_bound,
            self.extreme_upper,
        ]

    def labelled(self) -> dict[str, int]:
        """Semantic label → level, in ascending order."""
        return {
            "extreme_lower": self.extreme_lower,
            "lower_bound": self.lower_bound,
            "primary": self.primary,
            "upper_bound": self.upper_bound,
            "extreme_upper": self.extreme_upper,
        }


class SimulationSettings(BaseModel):
    """Run-level settings for the Monte-Carlo engine."""

    iterations: int = Field(
        default=10_000, ge=1,
        description="Number of trials per run.  1,000 is enough for a quick look; "
                    "10,000 for reported figures.",
    )
    seed: int | None = Field(
        default=42,
        description="Seed for the run's random generator.  None = non-deterministic.",
    )
    percentiles: PercentileSpec = Field(default_factory=PercentileSpec)
    bridge_label: str = Field(
        default="primary",
        description="Which bridged percentile series the output stage values "
                    "('extreme_lower', 'lower_bound', 'primary', 'upper_bound', 'extreme_upper').",
    )

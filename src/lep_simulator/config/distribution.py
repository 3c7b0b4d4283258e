"""Distribution configuration — a sampler kind plus its parameters."""

from pydantic import BaseModel, Field


class YearValue(BaseModel):
    """One point of a per-year parameter series."""

    year: int = Field(ge=1)
    value: float


class DistributionConfig(BaseModel):
    """A distribution request as it arrives from scenario settings.

    ``type`` is deliberately a free string: unknown kinds are rejected by the
    sampler factory (``UnsupportedDistributionError``), not by the schema.
    A parameter may be a scalar or a per-year series
    (``[{"year": 3, "value": 0.04}, ...]``) resolved against the sampled year.
    """

    type: str = Field(default="fixed", description="Sampler kind, e.g. 'normal', 'weibull', 'kaimal', 'gbm'")
    parameters: dict[str, float | list[YearValue]] = Field(
        default_factory=dict,
        description="Kind-specific parameters.  Missing ones take sampler defaults.",
    )

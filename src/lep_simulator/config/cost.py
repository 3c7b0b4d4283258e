"""O&M cost terms — base O&M, OEM contract period, failures, repairs."""

from pydantic import BaseModel, Field


class MajorRepairEvent(BaseModel):
    """A scheduled or probabilistic major overhaul in one project year."""

    year: int = Field(ge=1, description="Project year (1-based)")
    cost: float = Field(ge=0, description="Cost if the event happens")
    probability: float = Field(
        default=1.0, ge=0, le=1.0,
        description="Chance the event happens (1.0 = deterministic)",
    )


class CostSettings(BaseModel):
    """Annual operating-cost inputs.

    While the project is inside the OEM term the fixed O&M fee is paid.
    Afterwards ``annual_base_om`` escalates at a sampled rate compounded from
    the end of the term.
    """

    annual_base_om: float = Field(default=5_000_000.0, ge=0, description="Post-warranty base O&M per year")
    escalation_rate: float = Field(default=2.0, ge=0, description="Mean O&M escalation (%/yr)")
    escalation_distribution: str = Field(
        default="normal",
        description="Shape of the sampled escalation rate: 'normal' (σ = 25% of mean), "
                    "'lognormal', 'triangular' / 'uniform' (±50%), or 'fixed'.",
    )
    oem_term: int = Field(default=5, ge=0, description="Years covered by the OEM fixed fee")
    fixed_om_fee: float = Field(default=4_000_000.0, ge=0, description="Annual fixed fee inside the OEM term")
    failure_event_probability: float = Field(
        default=5.0, ge=0, le=100,
        description="Chance of a major component failure in any year (%)",
    )
    failure_event_cost: float = Field(default=200_000.0, ge=0, description="Cost of one failure event")
    contingency_cost: float = Field(default=0.0, ge=0, description="Flat annual contingency")
    major_repairs: list[MajorRepairEvent] = Field(default_factory=list)

"""Contract-derived overrides and per-year manual adjustments.

Both are products of the context builder: contract lookups and adjustment
expansion happen before a run starts.
"""

from pydantic import BaseModel, Field


class OEMContractOverride(BaseModel):
    """The OEM service contract in force, reduced to what the cost model needs."""

    contract_id: str | None = Field(default=None)
    years: list[int] = Field(default_factory=list, description="Project years covered (1-based)")
    fixed_fee: float = Field(default=0.0, ge=0, description="Annual fee while covered")
    is_per_turbine: bool = Field(default=False, description="Fee is per turbine, not per farm")

    @property
    def end_year(self) -> int:
        return max(self.years) if self.years else 0


class AnnualAdjustment(BaseModel):
    """Manual adjustments for one project year."""

    year: int = Field(ge=1)
    additional_om: float = Field(default=0.0)
    additional_revenue: float = Field(default=0.0)


class Adjustment(BaseModel):
    """A sparse adjustment as entered by a user: one amount over several years."""

    amount: float
    years: list[int] = Field(default_factory=list)

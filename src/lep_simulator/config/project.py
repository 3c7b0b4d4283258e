"""Project & currency settings — the wind farm being evaluated."""

from pydantic import BaseModel, Field


class ProjectSettings(BaseModel):
    """Physical and calendar description of the project."""

    name: str = Field(default="Wind Farm Project", description="Human label")
    life: int = Field(default=20, ge=1, le=100, description="Project life (years)")
    num_wtgs: int = Field(default=20, ge=1, description="Number of wind turbine generators")
    mw_per_wtg: float = Field(default=3.5, gt=0, description="Rated capacity per turbine (MW)")
    capacity_factor: float = Field(
        default=35.0, ge=0, le=100,
        description="Net capacity factor (%), informational for context builders",
    )

    @property
    def total_mw(self) -> float:
        return self.num_wtgs * self.mw_per_wtg


class CurrencySettings(BaseModel):
    """Reporting currencies.  All monetary inputs are in ``local``."""

    local: str = Field(default="USD", description="Currency all cash flows are stated in")
    foreign: str = Field(default="EUR", description="Secondary currency for OEM contracts")
    exchange_rate: float = Field(default=1.0, gt=0, description="Units of local per unit of foreign")

"""Risk mitigation — insurance and reserve funds."""

from pydantic import BaseModel, Field


class RiskSettings(BaseModel):
    """Insurance cover against failure events plus a cash reserve."""

    insurance_enabled: bool = Field(default=False)
    insurance_premium: float = Field(default=50_000.0, ge=0, description="Annual premium")
    insurance_deductible: float = Field(default=10_000.0, ge=0, description="Deductible per claim")
    reserve_funds: float = Field(
        default=0.0, ge=0,
        description="Reserve drawn down whenever net operating cash flow is negative",
    )

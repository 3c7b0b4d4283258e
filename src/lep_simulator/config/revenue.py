"""Revenue terms — energy yield, electricity price, downtime."""

from typing import Literal

from pydantic import BaseModel, Field


class EnergyProductionSettings(BaseModel):
    """Annual energy yield (MWh) before degradation."""

    distribution: str = Field(default="normal", description="'normal', 'triangular', 'uniform' or 'fixed'")
    mean: float = Field(default=1_000.0, ge=0)
    std: float | None = Field(default=None, ge=0, description="None = 10% of mean")
    min: float | None = Field(default=None, ge=0, description="None = 80% of mean")
    max: float | None = Field(default=None, ge=0, description="None = 120% of mean")


class ElectricityPriceSettings(BaseModel):
    """Price per MWh.  ``type='fixed'`` ignores the distribution."""

    type: Literal["fixed", "variable"] = Field(default="fixed")
    value: float = Field(default=50.0, ge=0, description="Base price per MWh")
    distribution: str = Field(
        default="normal",
        description="'normal' (±10%), 'lognormal', 'triangular' / 'uniform' (±30%) or 'gbm'",
    )
    drift: float = Field(default=0.02, description="GBM annual drift")
    volatility: float = Field(default=0.1, ge=0, description="GBM annual volatility")


class DowntimeSettings(BaseModel):
    """Hours of lost production per failure event."""

    distribution: str = Field(default="weibull", description="'weibull', 'lognormal', 'exponential' or 'fixed'")
    scale: float = Field(default=24.0, gt=0, description="Characteristic downtime (hours)")
    shape: float = Field(default=1.5, gt=0)


class RevenueSettings(BaseModel):
    """Annual revenue inputs."""

    energy_production: EnergyProductionSettings = Field(default_factory=EnergyProductionSettings)
    electricity_price: ElectricityPriceSettings = Field(default_factory=ElectricityPriceSettings)
    revenue_degradation_rate: float = Field(
        default=0.5, ge=0, le=100,
        description="Geometric annual loss of energy yield (%)",
    )
    downtime_per_event: DowntimeSettings = Field(default_factory=DowntimeSettings)

    # --- Wind variability ---
    wind_variability_method: Literal["default", "kaimal"] = Field(
        default="default",
        description="'kaimal' scales yield by (v / v_mean)³ with v drawn from the "
                    "turbulence-corrected Kaimal sampler.",
    )
    mean_wind_speed: float = Field(default=10.0, gt=0, description="Hub-height mean wind speed (m/s)")
    turbulence_intensity: float = Field(default=10.0, ge=0, le=100, description="Turbulence intensity (%)")
    surface_roughness: float = Field(default=0.03, gt=0, description="Roughness length (m)")
    kaimal_scale: float = Field(default=8.1, gt=0, description="Kaimal integral length scale")
    hub_height: float = Field(default=100.0, gt=0, description="Hub height (m)")

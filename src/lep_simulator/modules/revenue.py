"""Revenue module — annual net revenue per trial.

Each project year:
  energy   = E × (1 − degradation/100)^(year − 1)      E ~ energy distribution
           × (v / v_mean)³                              when Kaimal variability is on
  price    = fixed, or drawn from the price distribution
  gross    = energy × price
  loss     = gross × downtime_hours / 8760              in a failure year
  revenue  = gross − loss + manual adjustment

A failure year is the year Cost flagged in the same trial.  Without a Cost
result the year is drawn independently with Cost's failure probability.
When Cost ran, the year's ``net_cash_flow`` (revenue − total cost) is
recorded as well.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from lep_simulator.config.context import SimulationContext
from lep_simulator.config.revenue import RevenueSettings
from lep_simulator.engine.distributions import Sampler, create_sampler
from lep_simulator.engine.errors import UnsupportedDistributionError
from lep_simulator.engine.state import IterationState
from lep_simulator.engine.validation import ValidationResult, check_kind
from lep_simulator.models.results import ModuleResult
from lep_simulator.modules.base import SimulationModule

HOURS_PER_YEAR = 8760

ENERGY_KINDS = frozenset({"normal", "triangular", "uniform", "fixed"})
PRICE_KINDS = frozenset({"normal", "lognormal", "triangular", "uniform", "gbm", "fixed"})
DOWNTIME_KINDS = frozenset({"weibull", "lognormal", "exponential", "fixed"})


@dataclass(frozen=True)
class RevenueInputs:
    revenue: RevenueSettings
    project_life: int
    failure_probability: float
    """Cost's failure probability as a fraction, for trials without a Cost result."""
    additional_revenue: tuple[float, ...]


# ═══════════════════════════════════════════════════════════════════════════
# Samplers
# ═══════════════════════════════════════════════════════════════════════════

def energy_sampler(revenue: RevenueSettings, rng: np.random.Generator) -> Sampler:
    energy = revenue.energy_production
    kind = energy.distribution.lower()
    mean = energy.mean
    low = energy.min if energy.min is not None else mean * 0.8
    high = energy.max if energy.max is not None else mean * 1.2

    if kind == "normal":
        std = energy.std if energy.std is not None else mean * 0.1
        return create_sampler("normal", {"mean": mean, "std": std}, rng)
    if kind == "triangular":
        return create_sampler("triangular", {"min": low, "mode": mean, "max": high}, rng)
    if kind == "uniform":
        return create_sampler("uniform", {"min": low, "max": high}, rng)
    if kind == "fixed":
        return lambda: mean
    raise UnsupportedDistributionError(energy.distribution, "revenue.energy_production.distribution")


def price_sampler(revenue: RevenueSettings, rng: np.random.Generator, year: int) -> Sampler:
    price = revenue.electricity_price
    base = price.value
    if price.type == "fixed":
        return lambda: base

    kind = price.distribution.lower()
    if kind == "normal":
        return create_sampler("normal", {"mean": base, "std": base * 0.1}, rng)
    if kind == "lognormal":
        if base <= 0:
            return lambda: base
        return create_sampler("lognormal", {"mean": math.log(base), "sigma": 0.1}, rng)
    if kind == "triangular":
        return create_sampler("triangular", {"min": base * 0.7, "mode": base, "max": base * 1.3}, rng)
    if kind == "uniform":
        return create_sampler("uniform", {"min": base * 0.7, "max": base * 1.3}, rng)
    if kind == "gbm":
        params = {"value": base, "drift": price.drift, "volatility": price.volatility}
        return create_sampler("gbm", params, rng, year=year)
    if kind == "fixed":
        return lambda: base
    raise UnsupportedDistributionError(price.distribution, "revenue.electricity_price.distribution")


def downtime_sampler(revenue: RevenueSettings, rng: np.random.Generator) -> Sampler:
    downtime = revenue.downtime_per_event
    kind = downtime.distribution.lower()
    if kind == "weibull":
        return create_sampler("weibull", {"scale": downtime.scale, "shape": downtime.shape}, rng)
    if kind == "lognormal":
        return create_sampler("lognormal", {"mean": math.log(downtime.scale), "sigma": downtime.shape}, rng)
    if kind == "exponential":
        return create_sampler("exponential", {"lambda": 1 / downtime.scale}, rng)
    if kind == "fixed":
        return lambda: downtime.scale
    raise UnsupportedDistributionError(downtime.distribution, "revenue.downtime_per_event.distribution")


def wind_sampler(revenue: RevenueSettings, rng: np.random.Generator) -> Sampler:
    params = {
        "mean_wind_speed": revenue.mean_wind_speed,
        "turbulence_intensity": revenue.turbulence_intensity / 100,
        "roughness_length": revenue.surface_roughness,
        "scale": revenue.kaimal_scale,
        "hub_height": revenue.hub_height,
    }
    return create_sampler("kaimal", params, rng)


# ═══════════════════════════════════════════════════════════════════════════
# Module
# ═══════════════════════════════════════════════════════════════════════════

class RevenueModule(SimulationModule):
    """Energy yield × price, less downtime losses, plus manual adjustments."""

    name = "revenue"
    description = "Annual revenue: degraded energy yield × electricity price, less failure downtime"

    def prepare_input_data(self, context: SimulationContext) -> RevenueInputs:
        life = context.project.life
        return RevenueInputs(
            revenue=context.revenue,
            project_life=life,
            failure_probability=context.cost.failure_event_probability / 100,
            additional_revenue=tuple(context.adjustment_for(y).additional_revenue for y in range(1, life + 1)),
        )

    def validate_inputs(self, context: SimulationContext) -> ValidationResult:
        revenue = context.revenue
        errors = check_kind(
            revenue.energy_production.distribution, ENERGY_KINDS,
            "revenue.energy_production.distribution",
        )
        if revenue.electricity_price.type == "variable":
            errors += check_kind(
                revenue.electricity_price.distribution, PRICE_KINDS,
                "revenue.electricity_price.distribution",
            )
        errors += check_kind(
            revenue.downtime_per_event.distribution, DOWNTIME_KINDS,
            "revenue.downtime_per_event.distribution",
        )
        return ValidationResult.from_errors(errors)

    def process_iteration(
        self,
        inputs: RevenueInputs,
        state: IterationState,
        iteration: int,
        rng: np.random.Generator,
    ) -> ModuleResult:
        revenue = inputs.revenue
        energy_draw = energy_sampler(revenue, rng)
        downtime_draw = downtime_sampler(revenue, rng)
        wind_draw = wind_sampler(revenue, rng) if revenue.wind_variability_method == "kaimal" else None
        degradation = revenue.revenue_degradation_rate / 100

        cost = state.get("cost")

        annual: list[dict[str, float]] = []
        for year in range(1, inputs.project_life + 1):
            energy = energy_draw() * (1 - degradation) ** (year - 1)
            if wind_draw is not None:
                energy *= (wind_draw() / revenue.mean_wind_speed) ** 3

            price = price_sampler(revenue, rng, year)()
            gross = energy * price

            if cost is not None:
                failed = cost.annual_data[year - 1].get("failure_event", 0.0) > 0
            else:
                failed = rng.random() < inputs.failure_probability

            downtime_hours = downtime_draw() if failed else 0.0
            loss = gross * downtime_hours / HOURS_PER_YEAR

            adjustment = inputs.additional_revenue[year - 1]
            net = gross - loss + adjustment
            record = {
                "energy_production": energy,
                "electricity_price": price,
                "gross_revenue": gross,
                "downtime_hours": downtime_hours,
                "revenue_loss": loss,
                "manual_adjustment": adjustment,
                "revenue": net,
            }
            if cost is not None:
                record["net_cash_flow"] = net - cost.annual_data[year - 1]["total_cost"]
            annual.append(record)

        total = sum(rec["revenue"] for rec in annual)
        return ModuleResult(
            annual_data=tuple(annual),
            metrics={
                "total_revenue": total,
                "average_annual_revenue": total / inputs.project_life,
            },
        )

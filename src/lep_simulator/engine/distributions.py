"""Distribution sampling layer — one factory for every random input.

``create_sampler(kind, parameters, rng, year)`` returns a zero-argument
callable that draws from the requested distribution using the caller's
generator.  The engine owns the generator and hands it to every module, so a
run is reproducible from its seed alone.

Supported kinds (names are case-insensitive) and parameter defaults:

    normal       mean=0, std=1
    lognormal    mean=0, sigma=0.5            (parameters of the underlying normal)
    triangular   min=0, mode=(min+max)/2, max=1
    uniform      min=0, max=1
    weibull      scale=1, shape=2
    exponential  lambda=1
    poisson      lambda=1
    fixed        value=0
    kaimal       mean_wind_speed=10, turbulence_intensity=0.1,
                 roughness_length=0.03, scale=8.1, hub_height=100
    gbm          value=100, drift=0.05, volatility=0.2, time_step=1

Kaimal (turbulence-corrected wind speed):
    σ   = mean × TI
    u*  = mean × 0.4 / ln(hub_height / roughness_length)
    f   = exp(U(−5, 0))                  — frequency draw
    n   = f × scale / u*
    S   = 4n / (1 + 6n)^(5/3)            — Kaimal spectral density
    v   = max(0, N(mean, σ)) + A × √S × σ,  A ~ Box–Muller normal

Geometric Brownian motion, one step from year ``year``:
    v₀  = value × exp(drift × (year − 1) × Δt)     (year > 1)
    v   = v₀ × exp((drift − vol²/2)Δt + vol √Δt Z)

Parameters are defaulted, not range-checked: numpy raises on values it cannot
sample from (e.g. a negative std), and that error surfaces as a failed trial.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from typing import Any

import numpy as np

from lep_simulator.config.distribution import DistributionConfig
from lep_simulator.engine.errors import UnsupportedDistributionError

Sampler = Callable[[], float]

SUPPORTED_KINDS: frozenset[str] = frozenset({
    "normal",
    "lognormal",
    "triangular",
    "uniform",
    "weibull",
    "exponential",
    "poisson",
    "fixed",
    "kaimal",
    "gbm",
})

_VON_KARMAN = 0.4


def is_supported(kind: str) -> bool:
    return kind.lower() in SUPPORTED_KINDS


# ═══════════════════════════════════════════════════════════════════════════
# Parameter resolution
# ═══════════════════════════════════════════════════════════════════════════

def resolve_parameter(
    parameters: Mapping[str, Any],
    name: str,
    default: float,
    year: int = 1,
) -> float:
    """Scalar value of ``name`` for ``year``.

    A parameter may be a number or a per-year series of ``{year, value}``
    points (dicts or ``YearValue`` models).  A series without a point for
    ``year`` resolves to ``default``, as does a missing parameter.
    """
    value = parameters.get(name)
    if value is None:
        return default
    if isinstance(value, (list, tuple)):
        for point in value:
            if isinstance(point, Mapping):
                point_year, point_value = point.get("year"), point.get("value")
            else:
                point_year, point_value = point.year, point.value
            if point_year == year:
                return float(point_value)
        return default
    return float(value)


# ═══════════════════════════════════════════════════════════════════════════
# Factory
# ═══════════════════════════════════════════════════════════════════════════

def create_sampler(
    kind: str,
    parameters: Mapping[str, Any] | None,
    rng: np.random.Generator,
    year: int = 1,
) -> Sampler:
    """Build a sampler for ``kind`` with ``parameters`` resolved at ``year``.

    Raises
    ------
    UnsupportedDistributionError
        ``kind`` is not one of ``SUPPORTED_KINDS``.
    """
    key = kind.lower() if isinstance(kind, str) else kind
    builder = _BUILDERS.get(key)
    if builder is None:
        raise UnsupportedDistributionError(str(kind))
    params = parameters or {}

    def p(name: str, default: float) -> float:
        return resolve_parameter(params, name, default, year)

    return builder(p, rng, year)


def sampler_from_config(
    config: DistributionConfig,
    rng: np.random.Generator,
    year: int = 1,
) -> Sampler:
    return create_sampler(config.type, config.parameters, rng, year)


# ── Builders ────────────────────────────────────────────────────────────────

def _normal(p, rng, year):
    mean, std = p("mean", 0.0), p("std", 1.0)
    return lambda: float(rng.normal(mean, std))


def _lognormal(p, rng, year):
    mean, sigma = p("mean", 0.0), p("sigma", 0.5)
    return lambda: float(rng.lognormal(mean, sigma))


def _triangular(p, rng, year):
    low, high = p("min", 0.0), p("max", 1.0)
    mode = p("mode", (low + high) / 2)
    if low == high:
        return lambda: low
    return lambda: float(rng.triangular(low, mode, high))


def _uniform(p, rng, year):
    low, high = p("min", 0.0), p("max", 1.0)
    return lambda: float(rng.uniform(low, high))


def _weibull(p, rng, year):
    scale, shape = p("scale", 1.0), p("shape", 2.0)
    return lambda: float(scale * rng.weibull(shape))


def _exponential(p, rng, year):
    lam = p("lambda", 1.0)
    return lambda: float(rng.exponential(1.0 / lam))


def _poisson(p, rng, year):
    lam = p("lambda", 1.0)
    return lambda: float(rng.poisson(lam))


def _fixed(p, rng, year):
    value = p("value", 0.0)
    return lambda: value


def _kaimal(p, rng, year):
    mean = p("mean_wind_speed", 10.0)
    ti = p("turbulence_intensity", 0.1)
    roughness = p("roughness_length", 0.03)
    scale = p("scale", 8.1)
    hub_height = p("hub_height", 100.0)

    sigma = mean * ti
    friction_velocity = mean * _VON_KARMAN / math.log(hub_height / roughness)

    def draw() -> float:
        base = max(0.0, float(rng.normal(mean, sigma)))
        frequency = math.exp(rng.uniform(-5.0, 0.0))
        n = frequency * scale / friction_velocity
        spectral_density = 4 * n / (1 + 6 * n) ** (5 / 3)
        # Box–Muller; 1 − U keeps the log argument in (0, 1]
        u1 = 1.0 - rng.random()
        u2 = rng.random()
        amplitude = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return base + amplitude * math.sqrt(spectral_density) * sigma

    return draw


def _gbm(p, rng, year):
    value = p("value", 100.0)
    drift = p("drift", 0.05)
    volatility = p("volatility", 0.2)
    dt = p("time_step", 1.0)

    start = value * math.exp(drift * (year - 1) * dt) if year > 1 else value
    step_drift = (drift - volatility ** 2 / 2) * dt
    step_vol = volatility * math.sqrt(dt)

    return lambda: start * math.exp(step_drift + step_vol * float(rng.standard_normal()))


_BUILDERS = {
    "normal": _normal,
    "lognormal": _lognormal,
    "triangular": _triangular,
    "uniform": _uniform,
    "weibull": _weibull,
    "exponential": _exponential,
    "poisson": _poisson,
    "fixed": _fixed,
    "kaimal": _kaimal,
    "gbm": _gbm,
}

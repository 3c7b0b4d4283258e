"""DCF math — NPV, IRR, payback period on annual cash flows.

Cash-flow series are year-0-first: index 0 is the initial investment
(normally negative), index t the net cash flow of project year t.

Key formulas:
  NPV     = Σ CF_t / (1 + r)^t,  t = 0 … N    (year 0 undiscounted)
  IRR     = r where NPV(r) = 0   (Newton-Raphson, bisection fallback)
  Payback = (t − 1) + |cum_{t−1}| / CF_t  for the first year t where the
            cumulative cash flow turns non-negative
"""

from __future__ import annotations

from collections.abc import Sequence

# (1 + r)^t stays a normal float for t <= 100 at this rate
BISECT_LOW = -0.99


def compute_npv(cash_flows: Sequence[float], annual_rate: float) -> float:
    """Net Present Value with the first flow at t = 0.

    Parameters
    ----------
    cash_flows : Sequence[float]
        Year-0-first annual cash flows.
    annual_rate : float
        Discount rate as a fraction (0.08 for 8%).
    """
    if not cash_flows:
        return 0.0
    return sum(cf / (1 + annual_rate) ** t for t, cf in enumerate(cash_flows))


def _npv_derivative(cash_flows: Sequence[float], rate: float) -> float:
    return sum(-t * cf / (1 + rate) ** (t + 1) for t, cf in enumerate(cash_flows) if t > 0)


def _newton(cash_flows: Sequence[float], guess: float, max_iter: int, tol: float) -> float | None:
    rate = guess
    for _ in range(max_iter):
        try:
            npv = compute_npv(cash_flows, rate)
            slope = _npv_derivative(cash_flows, rate)
        except (ZeroDivisionError, OverflowError):
            return None
        if abs(npv) < tol:
            return rate
        if slope == 0:
            return None
        step = npv / slope
        rate -= step
        if rate <= -1.0:
            return None
        if abs(step) < tol:
            return rate
    return None


def _bisect(cash_flows: Sequence[float], low: float, high: float, max_iter: int, tol: float) -> float | None:
    npv_low = compute_npv(cash_flows, low)
    npv_high = compute_npv(cash_flows, high)
    if npv_high == 0:
        return high
    if npv_low * npv_high > 0:
        return None

    for _ in range(max_iter):
        mid = (low + high) / 2
        npv_mid = compute_npv(cash_flows, mid)
        if abs(npv_mid) < tol or high - low < tol:
            return mid
        if npv_low * npv_mid < 0:
            high = mid
        else:
            low, npv_low = mid, npv_mid
    return (low + high) / 2


def compute_irr(
    cash_flows: Sequence[float],
    guess: float = 0.1,
    max_iter: int = 200,
    tol: float = 1e-7,
) -> float | None:
    """Internal Rate of Return as a fraction, or None when undefined.

    Newton-Raphson from ``guess``; if it stalls or leaves (−100%, 100%],
    bisection over (−99%, 100%] takes over.

    Returns None if:
      - fewer than two flows, or all flows share a sign
      - no root lies in (−99%, 100%]
      - discounting under- or overflows along the way
    """
    if not cash_flows or len(cash_flows) < 2:
        return None

    # Quick check: need at least one sign change
    has_positive = any(cf > 0 for cf in cash_flows)
    has_negative = any(cf < 0 for cf in cash_flows)
    if not (has_positive and has_negative):
        return None

    rate = _newton(cash_flows, guess, max_iter, tol)
    if rate is not None and -1.0 < rate <= 1.0:
        return rate
    try:
        return _bisect(cash_flows, BISECT_LOW, 1.0, max_iter, tol)
    except (ZeroDivisionError, OverflowError):
        return None


def compute_payback_period(cash_flows: Sequence[float], project_life: int | None = None) -> float:
    """Fractional payback period in years.

    Returns 0.0 when the first flow is already non-negative, and
    ``project_life`` (default: number of operating years in the series)
    when the cumulative cash flow never crosses zero.
    """
    if not cash_flows or cash_flows[0] >= 0:
        return 0.0

    cumulative = cash_flows[0]
    for year in range(1, len(cash_flows)):
        previous = cumulative
        cumulative += cash_flows[year]
        if previous < 0 <= cumulative:
            return (year - 1) + abs(previous) / cash_flows[year]

    return float(project_life if project_life is not None else len(cash_flows) - 1)

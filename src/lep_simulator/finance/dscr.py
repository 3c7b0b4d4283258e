"""Debt sizing, level debt service & DSCR.

Models the debt side of the capital structure:
  - balance sheet:   equity = CAPEX / (1 + D/E)   (unless given)
                     debt   = equity × D/E
  - project finance: debt   = CAPEX × debt/CAPEX ratio

Key formulas:
  payment = P × r / (1 − (1 + r)^−n)      (P / n when r = 0)
  DSCR_t  = CFBD_t / debt_service_t       (∞ when no debt service)
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from lep_simulator.config.financing import FinancingSettings


@dataclass(frozen=True)
class CapitalStructure:
    """How the CAPEX is funded."""

    equity: float
    debt: float
    interest_rate: float
    """Annual loan rate as a fraction."""


@dataclass(frozen=True)
class DSCRStats:
    """Per-year DSCR plus the lender-facing aggregates."""

    annual: tuple[float, ...]
    min_dscr: float | None
    """Minimum over finite years; None when every year is debt-free."""
    avg_dscr: float | None
    below_one: bool
    covenant_breaches: int


def size_capital_structure(financing: FinancingSettings) -> CapitalStructure:
    """Split CAPEX into equity and debt for the configured model."""
    capex = financing.capex
    if financing.model == "project_finance":
        debt = capex * financing.debt_to_capex_ratio
        return CapitalStructure(
            equity=capex - debt,
            debt=debt,
            interest_rate=financing.interest_rate_pf / 100,
        )

    ratio = financing.debt_to_equity_ratio
    if financing.equity_investment is not None:
        equity = financing.equity_investment
    else:
        equity = capex / (1 + ratio)
    return CapitalStructure(
        equity=equity,
        debt=equity * ratio,
        interest_rate=financing.interest_rate_bs / 100,
    )


def level_payment(principal: float, annual_rate: float, years: int) -> float:
    """Fixed annual payment that retires ``principal`` over ``years``."""
    if principal <= 0 or years <= 0:
        return 0.0
    if annual_rate == 0:
        return principal / years
    return principal * annual_rate / (1 - (1 + annual_rate) ** -years)


def build_debt_service(principal: float, annual_rate: float, loan_duration: int, project_life: int) -> list[float]:
    """Debt service for years 1 … project_life: the level payment, then 0."""
    payment = level_payment(principal, annual_rate, loan_duration)
    return [payment if year <= loan_duration else 0.0 for year in range(1, project_life + 1)]


def compute_dscr(
    cash_flow_before_debt: Sequence[float],
    debt_service: Sequence[float],
    minimum_dscr: float,
) -> DSCRStats:
    """DSCR per year and its aggregates.

    Years without debt service have DSCR = ∞ and are excluded from the
    minimum, the average and the covenant count.
    """
    annual: list[float] = []
    for cfbd, ds in zip(cash_flow_before_debt, debt_service):
        annual.append(cfbd / ds if ds > 0 else math.inf)

    finite = [d for d in annual if math.isfinite(d)]
    if not finite:
        return DSCRStats(tuple(annual), None, None, False, 0)

    min_dscr = min(finite)
    return DSCRStats(
        annual=tuple(annual),
        min_dscr=min_dscr,
        avg_dscr=sum(finite) / len(finite),
        below_one=min_dscr < 1.0,
        covenant_breaches=sum(1 for d in finite if d < minimum_dscr),
    )

"""Financing terms — capital structure, debt and valuation inputs."""

from typing import Literal

from pydantic import BaseModel, Field


class FinancingSettings(BaseModel):
    """Debt structure and discounting assumptions.

    Two capital-structure models are supported:

    - ``balance_sheet``: equity = capex / (1 + D/E) unless given explicitly,
      debt = equity × D/E.  Priced at ``interest_rate_bs``.
    - ``project_finance``: debt = capex × ``debt_to_capex_ratio``.
      Priced at ``interest_rate_pf``.

    Debt is repaid with a level annual payment over ``loan_duration`` years.
    """

    capex: float = Field(default=50_000_000.0, ge=0, description="Construction CAPEX")
    devex: float = Field(default=10_000_000.0, ge=0, description="Development expenditure")
    model: Literal["balance_sheet", "project_finance"] = Field(
        default="balance_sheet",
        description="Capital-structure model: 'balance_sheet' (debt/equity ratio) "
                    "or 'project_finance' (debt/CAPEX ratio).",
    )
    debt_to_equity_ratio: float = Field(default=1.5, ge=0, description="D/E for balance-sheet financing")
    debt_to_capex_ratio: float = Field(
        default=0.7, ge=0, le=1.0,
        description="Share of CAPEX funded by debt for project finance (0–1)",
    )
    equity_investment: float | None = Field(
        default=None, ge=0,
        description="Explicit equity for balance-sheet financing. "
                    "None = derive from CAPEX and D/E.",
    )
    interest_rate_bs: float = Field(default=5.0, ge=0, le=50, description="Balance-sheet loan rate (%)")
    interest_rate_pf: float = Field(default=6.0, ge=0, le=50, description="Project-finance loan rate (%)")
    loan_duration: int = Field(default=15, ge=1, le=100, description="Loan repayment period (years)")
    discount_rate: float = Field(
        default=0.08, ge=0, le=1.0,
        description="Annual discount rate for NPV as a fraction (0.08 = 8%)",
    )
    minimum_dscr: float = Field(
        default=1.3, ge=0,
        description="Lender covenant.  Years below this DSCR are counted as breaches.",
    )

    @property
    def initial_investment(self) -> float:
        """Negative year-0 cash flow: −(CAPEX + DEVEX)."""
        return -(self.capex + self.devex)

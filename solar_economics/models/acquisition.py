"""Acquisition cashflow simulator: cash purchase, term loan and capital lease.

Projects 25 years of cumulative net cashflow for the three ways a client
can acquire a solar+storage system and finds the payback year of each.

Incentive timing differs by track:

* Cash: pays gross cost less the solar incentive and half of the battery
  incentive up front; the other battery half and the tax shield arrive in
  year 1, the federal credit in year 2.
* Loan: pays only the down payment; the full battery incentive and the
  tax shield arrive in year 1, the federal credit in year 2.
* Lease: starts with half of both utility incentives as a credit; the
  other half of the solar incentive and the tax shield arrive in year 1,
  the federal credit in year 2.

Savings accrue to every track every year regardless of financing.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from solar_economics.models.project import CashflowRow, ProjectFinancials

logger = logging.getLogger(__name__)

HORIZON_YEARS = 25

DEFAULT_LOAN_TERM_YEARS = 10
DEFAULT_LOAN_INTEREST_RATE = 7.0      # % per year
DEFAULT_LOAN_DOWN_PAYMENT_PCT = 30.0  # % of gross cost
DEFAULT_LEASE_TERM_YEARS = 15
DEFAULT_LEASE_IMPLICIT_RATE = 8.5     # % per year

# Share of the battery incentive the cash buyer can count on at signing.
CASH_UPFRONT_BATTERY_SHARE = 0.5
# Share of each utility incentive credited to a lease at setup.
LEASE_UPFRONT_INCENTIVE_SHARE = 0.5

# Terms shown on the financing comparison cards.
COMPARISON_LOAN_RATE = 5.0
COMPARISON_LOAN_TERM_YEARS = 10
COMPARISON_LEASE_RATE = 7.0
COMPARISON_LEASE_TERM_YEARS = 15


@dataclass
class AcquisitionInputs:
    """Inputs to the acquisition cashflow simulation.

    Rates and the down payment are percentages (7.0 means 7%).

    Attributes:
        gross_cost: Installed turnkey price ($). Falls back to net_cost when 0.
        net_cost: Net capital cost ($).
        annual_savings: Savings credited to every track each year ($).
        utility_solar_incentive: Utility PV incentive ($).
        utility_battery_incentive: Utility storage incentive ($).
        federal_credit: Federal investment tax credit ($).
        tax_shield: Depreciation tax shield ($).
        loan_term_years: Loan amortization term.
        loan_interest_rate: Annual loan rate (%).
        loan_down_payment_pct: Down payment as % of gross cost.
        lease_term_years: Lease amortization term.
        lease_implicit_rate: Annual implicit lease rate (%).
        cashflows: Pre-computed cumulative rows for the cash track, if any.
    """

    gross_cost: float = 0.0
    net_cost: float = 0.0
    annual_savings: float = 0.0
    utility_solar_incentive: float = 0.0
    utility_battery_incentive: float = 0.0
    federal_credit: float = 0.0
    tax_shield: float = 0.0
    loan_term_years: int = DEFAULT_LOAN_TERM_YEARS
    loan_interest_rate: float = DEFAULT_LOAN_INTEREST_RATE
    loan_down_payment_pct: float = DEFAULT_LOAN_DOWN_PAYMENT_PCT
    lease_term_years: int = DEFAULT_LEASE_TERM_YEARS
    lease_implicit_rate: float = DEFAULT_LEASE_IMPLICIT_RATE
    cashflows: List[CashflowRow] = field(default_factory=list)

    @property
    def effective_gross_cost(self) -> float:
        """Gross cost, or net cost when no gross figure is available."""
        return self.gross_cost or self.net_cost or 0.0

    @classmethod
    def from_financials(cls, financials: ProjectFinancials, **terms) -> "AcquisitionInputs":
        """Map a site's simulation record to simulator inputs.

        Year-1 savings are preferred over the steady-state figure. Keyword
        arguments override the default financing terms.
        """
        return cls(
            gross_cost=financials.capex_gross,
            net_cost=financials.capex_net,
            annual_savings=financials.savings_year1 or financials.annual_savings,
            utility_solar_incentive=financials.incentives_utility_solar,
            utility_battery_incentive=financials.incentives_utility_battery,
            federal_credit=financials.incentives_federal,
            tax_shield=financials.tax_shield,
            cashflows=list(financials.cashflows),
            **terms,
        )


@dataclass
class CumulativeCashflowPoint:
    """Cumulative net cashflow of each track at the end of a year."""

    year: int
    cash: float
    loan: float
    lease: float

    def to_dict(self) -> dict:
        return {"year": self.year, "cash": self.cash, "loan": self.loan, "lease": self.lease}


@dataclass
class AcquisitionCashflowResult:
    """Simulation output: yearly series (0..25) and payback year per track."""

    series: List[CumulativeCashflowPoint]
    cash_payback_year: Optional[int]
    loan_payback_year: Optional[int]
    lease_payback_year: Optional[int]
    annual_loan_payment: float = 0.0
    annual_lease_payment: float = 0.0

    def to_dict(self) -> dict:
        return {
            "series": [p.to_dict() for p in self.series],
            "cash_payback_year": self.cash_payback_year,
            "loan_payback_year": self.loan_payback_year,
            "lease_payback_year": self.lease_payback_year,
        }


@dataclass
class FinancingOption:
    """One card of the financing comparison."""

    name: str
    investment: float
    rate_pct: Optional[float]
    term_years: Optional[int]
    monthly_payment: float
    annual_payment: float
    savings_year1: float
    net_year1: float


def amortized_payment(principal: float, annual_rate_pct: float, term_years: float) -> float:
    r"""Monthly payment on a fully amortizing loan.

    Formula:
        PMT = \frac{P \cdot r \cdot (1+r)^{n}}{(1+r)^{n} - 1}

    where r is the monthly rate and n the number of monthly payments.
    A zero rate falls back to straight-line P / n. At least one payment
    is assumed so a zero term does not divide by zero.

    Args:
        principal: Amount financed ($).
        annual_rate_pct: Annual interest rate in percent.
        term_years: Amortization term in years.

    Returns:
        Monthly payment ($).
    """
    r = annual_rate_pct / 100 / 12
    n = max(1, int(round(term_years * 12)))
    if r == 0:
        return principal / n
    growth = (1 + r) ** n
    return principal * r * growth / (growth - 1)


def _round_currency(value: float) -> int:
    """Round half up to a whole currency unit."""
    return int(math.floor(value + 0.5))


class SimplifiedCashAdvance:
    """Cash track: add each year's savings, plus incentive receipts in years 1 and 2."""

    def __init__(self, annual_savings: float, year1_returns: float, year2_returns: float):
        self.annual_savings = annual_savings
        self.year1_returns = year1_returns
        self.year2_returns = year2_returns

    def advance(self, year: int, cumulative: float) -> float:
        cumulative += self.annual_savings
        if year == 1:
            cumulative += self.year1_returns
        elif year == 2:
            cumulative += self.year2_returns
        return cumulative


class PrecomputedCashAdvance:
    """Cash track: take cumulative values verbatim from a detailed simulation.

    Rows already include degradation, inflation and incentive timing, so
    nothing is added on top. Years without a row fall back to adding the
    year's savings.
    """

    def __init__(self, rows: List[CashflowRow], annual_savings: float):
        self.rows: Dict[int, float] = {row.year: row.cumulative for row in rows}
        self.annual_savings = annual_savings

    def advance(self, year: int, cumulative: float) -> float:
        if year in self.rows:
            return self.rows[year]
        return cumulative + self.annual_savings


def _select_cash_strategy(inputs: AcquisitionInputs, year1_returns: float, year2_returns: float):
    if inputs.cashflows:
        return PrecomputedCashAdvance(inputs.cashflows, inputs.annual_savings)
    return SimplifiedCashAdvance(inputs.annual_savings, year1_returns, year2_returns)


def simulate_acquisition(inputs: AcquisitionInputs) -> AcquisitionCashflowResult:
    """Project 25 years of cumulative cashflow for cash, loan and lease.

    Year 0 holds each track's starting position and is never evaluated
    for payback. Payback is the first year whose unrounded cumulative
    value is >= 0; series values are rounded to whole currency units.

    Args:
        inputs: AcquisitionInputs for one site.

    Returns:
        AcquisitionCashflowResult with 26 series points and payback years
        (None when a track does not pay back within the horizon).
    """
    gross = inputs.effective_gross_cost
    solar = inputs.utility_solar_incentive
    battery = inputs.utility_battery_incentive
    savings = inputs.annual_savings

    # Loan: down payment now, remainder amortized.
    down_payment = gross * inputs.loan_down_payment_pct / 100
    annual_loan_payment = amortized_payment(
        gross - down_payment, inputs.loan_interest_rate, inputs.loan_term_years) * 12

    # Lease: full gross cost amortized at the implicit rate.
    annual_lease_payment = amortized_payment(
        gross, inputs.lease_implicit_rate, inputs.lease_term_years) * 12

    cash_year1 = battery * (1 - CASH_UPFRONT_BATTERY_SHARE) + inputs.tax_shield
    loan_year1 = battery + inputs.tax_shield
    lease_year1 = solar * (1 - LEASE_UPFRONT_INCENTIVE_SHARE) + inputs.tax_shield
    year2_returns = inputs.federal_credit

    cash_strategy = _select_cash_strategy(inputs, cash_year1, year2_returns)

    cash = -(gross - solar - battery * CASH_UPFRONT_BATTERY_SHARE)
    loan = -down_payment
    lease = (solar + battery) * LEASE_UPFRONT_INCENTIVE_SHARE

    series = [CumulativeCashflowPoint(0, _round_currency(cash), _round_currency(loan), _round_currency(lease))]
    payback = {"cash": None, "loan": None, "lease": None}

    for year in range(1, HORIZON_YEARS + 1):
        cash = cash_strategy.advance(year, cash)

        loan += savings
        lease += savings
        if year <= inputs.loan_term_years:
            loan -= annual_loan_payment
        if year <= inputs.lease_term_years:
            lease -= annual_lease_payment

        if year == 1:
            loan += loan_year1
            lease += lease_year1
        elif year == 2:
            loan += year2_returns
            lease += year2_returns

        series.append(CumulativeCashflowPoint(
            year, _round_currency(cash), _round_currency(loan), _round_currency(lease)))

        for track, value in (("cash", cash), ("loan", loan), ("lease", lease)):
            if payback[track] is None and value >= 0:
                payback[track] = year

    logger.debug("Acquisition payback: cash=%s loan=%s lease=%s (%s cash rows)",
                 payback["cash"], payback["loan"], payback["lease"],
                 "pre-computed" if inputs.cashflows else "simplified")

    return AcquisitionCashflowResult(
        series=series,
        cash_payback_year=payback["cash"],
        loan_payback_year=payback["loan"],
        lease_payback_year=payback["lease"],
        annual_loan_payment=annual_loan_payment,
        annual_lease_payment=annual_lease_payment,
    )


def summarize_financing_options(
    capex_net: float,
    savings_year1: float,
    loan_rate_pct: float = COMPARISON_LOAN_RATE,
    loan_term_years: int = COMPARISON_LOAN_TERM_YEARS,
    lease_rate_pct: float = COMPARISON_LEASE_RATE,
    lease_term_years: int = COMPARISON_LEASE_TERM_YEARS,
) -> List[FinancingOption]:
    """Side-by-side cash, loan and lease figures on the net capital cost.

    Loan and lease amortize the full net cost; year-1 net is year-1
    savings minus the annual payment.
    """
    options = [FinancingOption(
        name="Cash",
        investment=capex_net,
        rate_pct=None,
        term_years=None,
        monthly_payment=0.0,
        annual_payment=0.0,
        savings_year1=savings_year1,
        net_year1=savings_year1,
    )]
    for name, rate, term in (("Loan", loan_rate_pct, loan_term_years),
                             ("Lease", lease_rate_pct, lease_term_years)):
        monthly = amortized_payment(capex_net, rate, term)
        options.append(FinancingOption(
            name=name,
            investment=0.0,
            rate_pct=rate,
            term_years=term,
            monthly_payment=monthly,
            annual_payment=monthly * 12,
            savings_year1=savings_year1,
            net_year1=savings_year1 - monthly * 12,
        ))
    return options

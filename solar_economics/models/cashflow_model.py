"""Detailed financing cashflow model: cash purchase, lease and PPA.

Year-by-year model with panel degradation, grid-rate inflation, escalating
O&M and the capital cost allowance (CCA) tax deduction. Its cash-scenario
rows are the pre-computed cumulative values the acquisition simulator
takes verbatim, and its NPV and IRR are the figures a site simulation
carries into the portfolio roll-up.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import numpy_financial as npf

from solar_economics.models.incentives import (
    FEDERAL_ITC_RATE,
    UTILITY_INCENTIVE_PER_KW,
    cap_utility_solar_incentive,
    federal_investment_tax_credit,
)
from solar_economics.models.project import CashflowRow

HORIZON_YEARS = 25

# Effective CCA benefit as a share of net investment, for provider and
# foregone-incentive estimates.
EFFECTIVE_CCA_SHIELD = 0.26


@dataclass
class CashflowInputs:
    """Assumptions for the detailed financing model.

    Attributes:
        system_size_kw: PV system size (kW DC).
        annual_production_kwh: Year-1 production (kWh).
        cost_per_watt: Installed cost ($/W).
        utility_incentive_per_kw: Utility PV incentive ($/kW).
        itc_rate: Federal investment tax credit rate.
        grid_rate_y1: Client's year-1 electricity rate ($/kWh).
        grid_inflation: Annual grid-rate inflation.
        competitor_inflation: Annual escalation of the PPA provider's rate.
        degradation: Annual production degradation.
        om_rate: O&M as a share of gross capex.
        om_escalation: Annual O&M escalation.
        cca_rate: Capital cost allowance rate (half-year rule in year 1).
        tax_rate: Corporate income tax rate.
        lease_term: Lease term (years).
        lease_premium: Lease premium over the cash cost.
        ppa_term: PPA contract term (years).
        ppa_discount: PPA discount versus the grid rate.
        ppa_om_rate: Post-PPA O&M as a share of the solar value.
        discount_rate: Discount rate for the cash-scenario NPV.
        provider_project_cost: Provider's own installed cost, if known ($).
    """

    system_size_kw: float = 100.0
    annual_production_kwh: float = 115_000.0
    cost_per_watt: float = 2.15
    utility_incentive_per_kw: float = UTILITY_INCENTIVE_PER_KW
    itc_rate: float = FEDERAL_ITC_RATE
    grid_rate_y1: float = 0.07
    grid_inflation: float = 0.048
    competitor_inflation: float = 0.03
    degradation: float = 0.005
    om_rate: float = 0.01
    om_escalation: float = 0.025
    cca_rate: float = 0.50
    tax_rate: float = 0.265
    lease_term: int = 7
    lease_premium: float = 0.15
    ppa_term: int = 16
    ppa_discount: float = 0.40
    ppa_om_rate: float = 0.07
    discount_rate: float = 0.07
    provider_project_cost: Optional[float] = None

    def __post_init__(self):
        if self.lease_term < 1:
            raise ValueError(f"lease_term must be >= 1, got {self.lease_term}")
        if not 0 <= self.degradation < 1:
            raise ValueError(f"degradation must be 0-1, got {self.degradation}")


@dataclass
class YearlyCashflow:
    """One year of a financing scenario."""

    year: int
    production: float
    grid_rate: float
    grid_savings: float
    om_cost: float
    net_cashflow: float
    cumulative: float
    cca_benefit: float = 0.0
    lease_payment: float = 0.0
    ppa_payment: float = 0.0


@dataclass
class FinancingScenario:
    """Yearly cashflows and summary of one financing scenario."""

    name: str
    name_fr: str
    investment: float
    yearly_cashflows: List[YearlyCashflow] = field(default_factory=list)
    total_savings: float = 0.0
    avg_annual_savings: float = 0.0
    payback_year: Optional[int] = None
    ownership_year: int = 1


@dataclass
class ProviderEconomics:
    """How a third-party owner's investment is reduced by incentives."""

    gross_cost: float
    utility_incentive: float
    itc: float
    cca_shield: float
    total_incentives: float
    actual_investment: float


@dataclass
class CashflowModel:
    """Complete output of the detailed financing model."""

    inputs: CashflowInputs
    gross_capex: float
    utility_incentive: float
    net_after_utility: float
    itc: float
    net_client_investment: float
    cash: FinancingScenario
    lease: FinancingScenario
    ppa: FinancingScenario
    provider_economics: ProviderEconomics
    foregone_incentives: float
    npv: float = 0.0
    irr: Optional[float] = None

    def cash_rows(self) -> List[CashflowRow]:
        """Cash-scenario rows in the form the acquisition simulator takes."""
        return [
            CashflowRow(year=cf.year, cumulative=cf.cumulative, net_cashflow=cf.net_cashflow)
            for cf in self.cash.yearly_cashflows
        ]


def calculate_npv(cash_flows: List[float], discount_rate: float) -> float:
    r"""Net present value of a cash flow series starting at year 0.

    Formula:
        NPV = \sum_{t=0}^{N} \frac{CF_t}{(1+r)^t}
    """
    pv = 0.0
    for t, cf in enumerate(cash_flows):
        pv += cf / (1 + discount_rate) ** t
    return pv


def calculate_irr(cash_flows: List[float]) -> Optional[float]:
    """Internal rate of return, or None if no real solution exists."""
    result = npf.irr(cash_flows)
    if np.isnan(result) or np.isinf(result):
        return None
    return float(result)


def _find_payback_year(cashflows: List[YearlyCashflow], threshold: float = 0.0) -> Optional[int]:
    for cf in cashflows:
        if cf.cumulative >= threshold:
            return cf.year
    return None


def build_cashflow_model(inputs: CashflowInputs) -> CashflowModel:
    """Build cash, lease and PPA scenarios over 25 years.

    Args:
        inputs: CashflowInputs with system, rate and financing assumptions.

    Returns:
        CashflowModel with the three scenarios, provider economics and the
        cash scenario's NPV and IRR.
    """
    gross_capex = inputs.system_size_kw * 1000 * inputs.cost_per_watt
    utility_incentive = cap_utility_solar_incentive(
        inputs.system_size_kw, gross_capex, per_kw=inputs.utility_incentive_per_kw)
    net_after_utility = gross_capex - utility_incentive
    itc = federal_investment_tax_credit(net_after_utility, inputs.itc_rate)
    net_investment = net_after_utility - itc

    cash_rows: List[YearlyCashflow] = []
    lease_rows: List[YearlyCashflow] = []
    ppa_rows: List[YearlyCashflow] = []

    cash_cumulative = -net_investment
    lease_cumulative = 0.0
    ppa_cumulative = 0.0

    ucc = net_investment  # undepreciated capital cost
    lease_payment = net_investment / inputs.lease_term * (1 + inputs.lease_premium)

    for year in range(1, HORIZON_YEARS + 1):
        production = inputs.annual_production_kwh * (1 - inputs.degradation) ** (year - 1)
        grid_rate = inputs.grid_rate_y1 * (1 + inputs.grid_inflation) ** (year - 1)
        grid_savings = production * grid_rate
        om_cost = gross_capex * inputs.om_rate * (1 + inputs.om_escalation) ** (year - 1)

        # Cash: CCA with the half-year rule in year 1
        cca_effective = inputs.cca_rate * 0.5 if year == 1 else inputs.cca_rate
        cca_deduction = ucc * cca_effective
        cca_benefit = cca_deduction * inputs.tax_rate
        ucc -= cca_deduction

        cash_net = grid_savings - om_cost + cca_benefit
        cash_cumulative += cash_net
        cash_rows.append(YearlyCashflow(
            year=year, production=production, grid_rate=grid_rate,
            grid_savings=grid_savings, om_cost=om_cost, cca_benefit=cca_benefit,
            net_cashflow=cash_net, cumulative=cash_cumulative,
        ))

        # Lease
        payment = lease_payment if year <= inputs.lease_term else 0.0
        lease_net = grid_savings - om_cost - payment
        lease_cumulative += lease_net
        lease_rows.append(YearlyCashflow(
            year=year, production=production, grid_rate=grid_rate,
            grid_savings=grid_savings, om_cost=om_cost, lease_payment=payment,
            net_cashflow=lease_net, cumulative=lease_cumulative,
        ))

        # PPA: discounted provider rate during the term, then own with O&M
        if year <= inputs.ppa_term:
            provider_rate = (inputs.grid_rate_y1
                             * (1 + inputs.competitor_inflation) ** (year - 1)
                             * (1 - inputs.ppa_discount))
            ppa_payment = production * provider_rate
            ppa_net = grid_savings - ppa_payment
        else:
            solar_value = production * grid_rate
            ppa_payment = solar_value * inputs.ppa_om_rate
            ppa_net = solar_value - ppa_payment
        ppa_cumulative += ppa_net
        ppa_rows.append(YearlyCashflow(
            year=year, production=production, grid_rate=grid_rate,
            grid_savings=grid_savings, om_cost=om_cost, ppa_payment=ppa_payment,
            net_cashflow=ppa_net, cumulative=ppa_cumulative,
        ))

    # Provider economics, subject to the same 1 MW eligibility
    provider_cost = inputs.provider_project_cost or gross_capex
    provider_incentive = cap_utility_solar_incentive(
        inputs.system_size_kw, provider_cost, per_kw=inputs.utility_incentive_per_kw)
    provider_net_after_utility = provider_cost - provider_incentive
    provider_itc = federal_investment_tax_credit(provider_net_after_utility, inputs.itc_rate)
    provider_cca = (provider_net_after_utility - provider_itc) * EFFECTIVE_CCA_SHIELD
    provider_total = provider_incentive + provider_itc + provider_cca
    provider = ProviderEconomics(
        gross_cost=provider_cost,
        utility_incentive=provider_incentive,
        itc=provider_itc,
        cca_shield=provider_cca,
        total_incentives=provider_total,
        actual_investment=max(0.0, provider_cost - provider_total),
    )

    foregone = utility_incentive + itc + net_investment * EFFECTIVE_CCA_SHIELD

    cash_flows = [-net_investment] + [cf.net_cashflow for cf in cash_rows]

    return CashflowModel(
        inputs=inputs,
        gross_capex=gross_capex,
        utility_incentive=utility_incentive,
        net_after_utility=net_after_utility,
        itc=itc,
        net_client_investment=net_investment,
        cash=FinancingScenario(
            name="Cash",
            name_fr="Comptant",
            investment=net_investment,
            yearly_cashflows=cash_rows,
            total_savings=cash_cumulative,
            avg_annual_savings=(cash_cumulative + net_investment) / HORIZON_YEARS,
            payback_year=_find_payback_year(cash_rows),
            ownership_year=1,
        ),
        lease=FinancingScenario(
            name="Lease",
            name_fr="Crédit-bail",
            investment=0.0,
            yearly_cashflows=lease_rows,
            total_savings=lease_cumulative,
            avg_annual_savings=lease_cumulative / HORIZON_YEARS,
            payback_year=_find_payback_year(lease_rows),
            ownership_year=inputs.lease_term + 1,
        ),
        ppa=FinancingScenario(
            name="PPA",
            name_fr="PPA",
            investment=0.0,
            yearly_cashflows=ppa_rows,
            total_savings=ppa_cumulative,
            avg_annual_savings=ppa_cumulative / HORIZON_YEARS,
            payback_year=_find_payback_year(ppa_rows, threshold=foregone),
            ownership_year=inputs.ppa_term + 1,
        ),
        provider_economics=provider,
        foregone_incentives=foregone,
        npv=calculate_npv(cash_flows, inputs.discount_rate),
        irr=calculate_irr(cash_flows),
    )

"""Incentive waterfall: gross installed cost down to net investment.

Deductions are applied in a fixed order:

1. Gross cost (turnkey installed price)
2. - Utility incentive (solar + battery portions, each already capped)
3. - Federal investment tax credit
4. - Depreciation tax shield (present value of accelerated CCA)
5. = Net investment

The net figure is never floored. A negative net investment means the
incentive inputs are inconsistent and is reported, not hidden.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from solar_economics.models.project import ProjectFinancials

logger = logging.getLogger(__name__)

# Utility self-generation program: $/kW of PV, limited to the first 1 MW
# and to 40% of the installed cost.
UTILITY_INCENTIVE_PER_KW = 1000.0
UTILITY_INCENTIVE_MAX_KW = 1000.0
UTILITY_INCENTIVE_MAX_SHARE = 0.40

FEDERAL_ITC_RATE = 0.30


@dataclass
class IncentiveWaterfall:
    """Ordered incentive deductions from gross cost.

    Attributes:
        gross_cost: Fully installed turnkey price ($).
        utility_solar: Utility incentive on the PV portion ($).
        utility_battery: Utility incentive on the storage portion ($).
        federal_credit: Federal investment tax credit ($).
        tax_shield: Depreciation tax shield ($).
    """

    gross_cost: float = 0.0
    utility_solar: float = 0.0
    utility_battery: float = 0.0
    federal_credit: float = 0.0
    tax_shield: float = 0.0

    @property
    def utility_incentive(self) -> float:
        return self.utility_solar + self.utility_battery

    @property
    def total_incentives(self) -> float:
        return self.utility_incentive + self.federal_credit + self.tax_shield

    @property
    def net_investment(self) -> float:
        return self.gross_cost - self.utility_incentive - self.federal_credit - self.tax_shield

    def steps(self) -> List[Tuple[str, float, float]]:
        """Waterfall rows as (label, amount, running total), in deduction order."""
        rows = [("Gross cost", self.gross_cost, self.gross_cost)]
        running = self.gross_cost
        for label, amount in (
            ("Utility incentive", self.utility_incentive),
            ("Federal ITC", self.federal_credit),
            ("Tax shield", self.tax_shield),
        ):
            running -= amount
            rows.append((label, -amount, running))
        rows.append(("Net investment", running, running))
        return rows


def calculate_net_investment(
    gross_cost: float,
    utility_solar: float = 0.0,
    utility_battery: float = 0.0,
    federal_credit: float = 0.0,
    tax_shield: float = 0.0,
) -> float:
    """Apply the incentive waterfall and return the net investment ($).

    Returns a negative value unchanged (and logs it) when incentives
    exceed the gross cost.
    """
    waterfall = IncentiveWaterfall(
        gross_cost=gross_cost,
        utility_solar=utility_solar,
        utility_battery=utility_battery,
        federal_credit=federal_credit,
        tax_shield=tax_shield,
    )
    net = waterfall.net_investment
    if net < 0:
        logger.warning("Incentives (%.2f) exceed gross cost (%.2f): net investment %.2f",
                       waterfall.total_incentives, gross_cost, net)
    return net


def waterfall_from_financials(financials: ProjectFinancials) -> IncentiveWaterfall:
    """Build the waterfall for a site's simulation record."""
    return IncentiveWaterfall(
        gross_cost=financials.capex_gross,
        utility_solar=financials.incentives_utility_solar,
        utility_battery=financials.incentives_utility_battery,
        federal_credit=financials.incentives_federal,
        tax_shield=financials.tax_shield,
    )


def cap_utility_solar_incentive(
    pv_size_kw: float,
    gross_cost: float,
    per_kw: float = UTILITY_INCENTIVE_PER_KW,
    max_eligible_kw: float = UTILITY_INCENTIVE_MAX_KW,
    max_share_of_capex: float = UTILITY_INCENTIVE_MAX_SHARE,
) -> float:
    """Utility PV incentive: $/kW on eligible capacity, capped at a share of cost.

    Formula:
        min(min(kW, max_kW) * per_kW, gross * max_share)
    """
    eligible_kw = min(max(pv_size_kw, 0.0), max_eligible_kw)
    return min(eligible_kw * per_kw, max(gross_cost, 0.0) * max_share_of_capex)


def federal_investment_tax_credit(net_after_utility: float, itc_rate: float = FEDERAL_ITC_RATE) -> float:
    """Federal ITC on the cost remaining after the utility incentive."""
    return net_after_utility * itc_rate

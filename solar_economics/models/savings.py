"""Savings estimator: bill reduction from on-site solar production."""

from dataclasses import dataclass
from typing import Optional

from solar_economics.data.rate_schedules import RateTable
from solar_economics.models.tariffs import compute_billing_cost


@dataclass
class AnnualSavingsEstimate:
    """Savings from solar at a given tariff.

    Attributes:
        annual_savings: Bill reduction over a year ($).
        monthly_savings_avg: Bill reduction for an average month ($).
        savings_percent: Monthly reduction as a percent of the bill without solar.
        effective_value_per_kwh: annual_savings / annual production ($/kWh).
    """

    annual_savings: float
    monthly_savings_avg: float
    savings_percent: float
    effective_value_per_kwh: float


def estimate_annual_savings(
    annual_production_kwh: float,
    rate_code,
    annual_consumption_kwh: float,
    peak_demand_kw: Optional[float] = None,
    schedules: Optional[RateTable] = None,
) -> AnnualSavingsEstimate:
    """Estimate annual savings from solar production under net metering.

    Works on monthly averages (annual / 12) to match the billing period.
    Production offsets consumption directly and never drives billed
    consumption below zero; surplus export value is not counted here.
    Peak demand is billed the same with and without solar.

    Args:
        annual_production_kwh: Solar production over a year (kWh).
        rate_code: Tariff class of the building.
        annual_consumption_kwh: Building consumption over a year (kWh).
        peak_demand_kw: Monthly peak demand (kW), if known.
        schedules: Rate table to use. Defaults to the packaged schedules.

    Returns:
        AnnualSavingsEstimate.

    Raises:
        UnknownRateCodeError: If rate_code does not resolve.
    """
    monthly_consumption = annual_consumption_kwh / 12
    monthly_solar = annual_production_kwh / 12

    cost_without = compute_billing_cost(monthly_consumption, rate_code, peak_demand_kw, schedules)
    net_consumption = max(monthly_consumption - monthly_solar, 0.0)
    cost_with = compute_billing_cost(net_consumption, rate_code, peak_demand_kw, schedules)

    monthly_savings = cost_without.total_cost - cost_with.total_cost
    annual_savings = monthly_savings * 12

    savings_percent = (
        monthly_savings / cost_without.total_cost * 100 if cost_without.total_cost > 0 else 0.0
    )
    effective_value = annual_savings / annual_production_kwh if annual_production_kwh > 0 else 0.0

    return AnnualSavingsEstimate(
        annual_savings=annual_savings,
        monthly_savings_avg=monthly_savings,
        savings_percent=savings_percent,
        effective_value_per_kwh=effective_value,
    )

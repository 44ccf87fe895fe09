"""Tariff engine: billing cost under block energy rates and demand charges.

Encodes how a monthly electricity bill is built from a rate schedule:
a fixed charge, energy billed through ordered kWh blocks, and a demand
charge on peak kW above a billable floor. Schedules are read-only
reference data (see solar_economics.data.rate_schedules).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from solar_economics.data.rate_schedules import RateTable, default_rate_schedules
from solar_economics.models.project import RateCode, RateSchedule, UnknownRateCodeError

# Reference monthly consumption used for rate projections (commercial baseline).
REFERENCE_MONTHLY_KWH = 10_000

# Demand thresholds (kW) for auto-classification.
LARGE_POWER_MIN_KW = 5000
MEDIUM_POWER_MIN_KW = 100
SMALL_POWER_ABOVE_KW = 50

# Monthly consumption thresholds (kWh) used when demand is unknown.
LARGE_POWER_ABOVE_KWH = 500_000
MEDIUM_POWER_ABOVE_KWH = 50_000
SMALL_POWER_ABOVE_KWH = 3_000


@dataclass
class BillingResult:
    """Cost of one billing period.

    Attributes:
        fixed_cost: Monthly fixed charge ($).
        energy_cost: Block energy charge ($).
        demand_cost: Demand charge ($).
        total_cost: Sum of the three components ($).
        effective_rate: total_cost / consumption ($/kWh), 0 for zero consumption.
    """

    fixed_cost: float
    energy_cost: float
    demand_cost: float
    total_cost: float
    effective_rate: float


@dataclass
class FutureRateProjection:
    """Escalated first-block rate (¢/kWh) and reference monthly cost ($)."""

    rate: float
    cost: float
    escalation: float


@dataclass
class AnnualCostBreakdown:
    """Twelve monthly bills on average consumption and their annual total."""

    rate_code: RateCode
    monthly: List[BillingResult] = field(default_factory=list)
    annual_total: float = 0.0
    average_rate: float = 0.0


def get_rate_schedule(rate_code, schedules: Optional[RateTable] = None) -> RateSchedule:
    """Resolve a rate code to its schedule.

    Raises:
        UnknownRateCodeError: If the code is not a tariff class, or the
            table has no schedule for it.
    """
    code = RateCode.parse(rate_code)
    table = schedules if schedules is not None else default_rate_schedules()
    try:
        return table[code]
    except KeyError:
        raise UnknownRateCodeError(rate_code) from None


def calculate_energy_cost(consumption_kwh: float, schedule: RateSchedule) -> float:
    """Bill consumption through the schedule's energy blocks, in order.

    Each block takes min(remaining, block size) kWh at its ¢/kWh rate;
    the unbounded last block absorbs whatever is left.

    Example:
        Blocks [<=1000 kWh @ 10¢, unbounded @ 7¢] at 1500 kWh:
        1000 * 0.10 + 500 * 0.07 = 135.00
    """
    cost = 0.0
    remaining = consumption_kwh
    for block in schedule.energy_blocks:
        if remaining <= 0:
            break
        block_kwh = remaining if block.up_to_kwh is None else min(remaining, block.up_to_kwh)
        cost += block_kwh * block.rate_cents_per_kwh / 100
        remaining -= block_kwh
    return cost


def calculate_demand_cost(peak_demand_kw: Optional[float], schedule: RateSchedule) -> float:
    """Demand charge on peak kW above the schedule's billable floor."""
    charge = schedule.demand_charge
    if charge is None or not peak_demand_kw:
        return 0.0
    return max(peak_demand_kw - charge.minimum_kw, 0.0) * charge.rate_per_kw


def compute_billing_cost(
    consumption_kwh: float,
    rate_code,
    peak_demand_kw: Optional[float] = None,
    schedules: Optional[RateTable] = None,
) -> BillingResult:
    """Compute the monthly bill for a consumption and optional peak demand.

    Args:
        consumption_kwh: Energy consumed in the billing period (kWh).
        rate_code: RateCode or its string code.
        peak_demand_kw: Peak demand in the period (kW), if known.
        schedules: Rate table to use. Defaults to the packaged schedules.

    Returns:
        BillingResult with fixed, energy, demand and total cost.

    Raises:
        UnknownRateCodeError: If rate_code does not resolve.
    """
    schedule = get_rate_schedule(rate_code, schedules)

    fixed_cost = schedule.fixed_charge
    energy_cost = calculate_energy_cost(consumption_kwh, schedule)
    demand_cost = calculate_demand_cost(peak_demand_kw, schedule)

    total_cost = fixed_cost + energy_cost + demand_cost
    effective_rate = total_cost / consumption_kwh if consumption_kwh > 0 else 0.0

    return BillingResult(
        fixed_cost=fixed_cost,
        energy_cost=energy_cost,
        demand_cost=demand_cost,
        total_cost=total_cost,
        effective_rate=effective_rate,
    )


def detect_rate_code(monthly_consumption_kwh: float, peak_demand_kw: Optional[float] = None) -> RateCode:
    """Guess the most likely tariff class for a customer.

    Classifies on peak demand when it is known, otherwise on monthly
    consumption. Advisory only: a rate chosen by the user always wins.
    """
    if peak_demand_kw:
        if peak_demand_kw >= LARGE_POWER_MIN_KW:
            return RateCode.DP
        if peak_demand_kw >= MEDIUM_POWER_MIN_KW:
            return RateCode.G
        if peak_demand_kw > SMALL_POWER_ABOVE_KW:
            return RateCode.M
        return RateCode.D

    if monthly_consumption_kwh > LARGE_POWER_ABOVE_KWH:
        return RateCode.DP
    if monthly_consumption_kwh > MEDIUM_POWER_ABOVE_KWH:
        return RateCode.G
    if monthly_consumption_kwh > SMALL_POWER_ABOVE_KWH:
        return RateCode.M
    return RateCode.D


def project_future_rate(
    rate_code,
    years_ahead: float,
    schedules: Optional[RateTable] = None,
) -> FutureRateProjection:
    r"""Project the first-block rate and a reference bill forward in time.

    Formula:
        X_{t} = X_{0} \cdot (1 + e)^{t}

    applied to the first-block energy rate and to the bill at
    REFERENCE_MONTHLY_KWH (no demand). For display and sensitivity only.
    """
    schedule = get_rate_schedule(rate_code, schedules)
    escalation = schedule.annual_escalation
    factor = (1 + escalation) ** years_ahead

    current = compute_billing_cost(REFERENCE_MONTHLY_KWH, schedule.code, schedules=schedules)
    return FutureRateProjection(
        rate=schedule.first_block_rate * factor,
        cost=current.total_cost * factor,
        escalation=escalation,
    )


def calculate_annual_cost(
    rate_code,
    annual_consumption_kwh: float,
    peak_demand_kw: Optional[float] = None,
    schedules: Optional[RateTable] = None,
) -> AnnualCostBreakdown:
    """Bill twelve average months and total them."""
    code = get_rate_schedule(rate_code, schedules).code
    monthly_kwh = annual_consumption_kwh / 12

    breakdown = AnnualCostBreakdown(rate_code=code)
    for _ in range(12):
        bill = compute_billing_cost(monthly_kwh, code, peak_demand_kw, schedules)
        breakdown.monthly.append(bill)
        breakdown.annual_total += bill.total_cost

    if annual_consumption_kwh > 0:
        breakdown.average_rate = breakdown.annual_total / annual_consumption_kwh
    return breakdown


def list_rate_schedules(schedules: Optional[RateTable] = None) -> List[Dict]:
    """Summaries of every schedule, for selection lists."""
    table = schedules if schedules is not None else default_rate_schedules()
    return [
        {
            "code": schedule.code.value,
            "name": schedule.name,
            "name_fr": schedule.name_fr,
            "description": schedule.description,
            "description_fr": schedule.description_fr,
            "typical_load_kw": {"min": schedule.typical_load_kw[0], "max": schedule.typical_load_kw[1]},
        }
        for schedule in table.values()
    ]

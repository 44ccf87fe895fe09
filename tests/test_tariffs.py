"""Unit tests for the tariff engine.

Bills are checked against hand-computed values from the packaged
Hydro-Québec schedules and from small custom rate tables.
"""

import pytest

from solar_economics.models.project import (
    DemandCharge,
    EnergyBlock,
    RateCode,
    RateSchedule,
    UnknownRateCodeError,
)
from solar_economics.models.tariffs import (
    calculate_annual_cost,
    calculate_demand_cost,
    calculate_energy_cost,
    compute_billing_cost,
    detect_rate_code,
    get_rate_schedule,
    list_rate_schedules,
    project_future_rate,
)


def _two_block_table():
    """M-class table with no fixed charge: 1000 kWh @ 10¢, then 7¢."""
    schedule = RateSchedule(
        code=RateCode.M,
        name="Test two-block",
        fixed_charge=0.0,
        energy_blocks=(EnergyBlock(1000, 10.0), EnergyBlock(None, 7.0)),
    )
    return {RateCode.M: schedule}


# ---- Energy blocks ----

class TestEnergyBlocks:
    def test_block_boundary_crossing(self):
        """1500 kWh = 1000 * 0.10 + 500 * 0.07 = 135.00."""
        result = compute_billing_cost(1500, "M", schedules=_two_block_table())
        assert abs(result.energy_cost - 135.0) < 1e-9
        assert abs(result.total_cost - 135.0) < 1e-9

    def test_exactly_at_block_limit(self):
        """1000 kWh stays entirely in the first block."""
        schedule = _two_block_table()[RateCode.M]
        assert abs(calculate_energy_cost(1000, schedule) - 100.0) < 1e-9

    def test_single_unbounded_block(self):
        """DP bills every kWh at 3.68¢: 100,000 kWh = 3680.00."""
        schedule = get_rate_schedule("DP")
        assert abs(calculate_energy_cost(100_000, schedule) - 3680.0) < 1e-6

    def test_domestic_bill(self):
        """D at 1500 kWh: 14.48 + 1200*0.0759 + 300*0.1140 = 139.76."""
        result = compute_billing_cost(1500, RateCode.D)
        assert abs(result.fixed_cost - 14.48) < 1e-9
        assert abs(result.energy_cost - 125.28) < 1e-6
        assert result.demand_cost == 0.0
        assert abs(result.total_cost - 139.76) < 1e-6

    @pytest.mark.parametrize("code", ["D", "M", "G", "DP"])
    def test_cost_non_decreasing_in_consumption(self, code):
        """More kWh never costs less, for every packaged schedule."""
        costs = [compute_billing_cost(kwh, code, 200).total_cost
                 for kwh in (0, 500, 1200, 1201, 15_060, 50_000, 210_000, 1_000_000)]
        assert costs == sorted(costs)


# ---- Demand charges ----

class TestDemandCharge:
    def test_small_power_bill_with_demand(self):
        """M at 20,000 kWh, 80 kW:
        14.48 + 15060*0.0759 + 4940*0.0591 + 80*18.89 = 2960.688."""
        result = compute_billing_cost(20_000, "M", 80)
        assert abs(result.demand_cost - 1511.2) < 1e-6
        assert abs(result.total_cost - 2960.688) < 1e-6

    def test_demand_below_floor_is_free(self):
        """G bills nothing under the 100 kW floor."""
        schedule = get_rate_schedule("G")
        assert calculate_demand_cost(80, schedule) == 0.0
        assert calculate_demand_cost(100, schedule) == 0.0

    def test_demand_above_floor(self):
        """G at 150 kW: (150 - 100) * 17.39 = 869.50."""
        schedule = get_rate_schedule("G")
        assert abs(calculate_demand_cost(150, schedule) - 869.5) < 1e-9

    def test_no_demand_charge_on_domestic(self):
        """D has no demand charge whatever the peak."""
        result = compute_billing_cost(1000, "D", 40)
        assert result.demand_cost == 0.0

    @pytest.mark.parametrize("code", ["D", "M", "G", "DP"])
    def test_cost_non_decreasing_in_peak(self, code):
        costs = [compute_billing_cost(50_000, code, peak).total_cost
                 for peak in (None, 10, 50, 100, 150, 5000, 6000)]
        assert costs == sorted(costs)

    def test_negative_consumption_has_no_energy_cost(self):
        assert compute_billing_cost(-100, "D").energy_cost == 0.0

    def test_missing_peak_means_no_demand_cost(self):
        result = compute_billing_cost(20_000, "M")
        assert result.demand_cost == 0.0


# ---- Edge cases ----

class TestBillingEdgeCases:
    def test_zero_consumption(self):
        """Zero kWh: only the fixed charge, effective rate 0."""
        result = compute_billing_cost(0, "D")
        assert abs(result.total_cost - 14.48) < 1e-9
        assert result.effective_rate == 0.0

    def test_effective_rate(self):
        """D at 1500 kWh: 139.76 / 1500 = 0.093173 $/kWh."""
        result = compute_billing_cost(1500, "D")
        assert abs(result.effective_rate - 139.76 / 1500) < 1e-9

    def test_lowercase_code_accepted(self):
        assert compute_billing_cost(1500, "d").total_cost == compute_billing_cost(1500, "D").total_cost

    def test_unknown_code_raises(self):
        with pytest.raises(UnknownRateCodeError) as exc_info:
            compute_billing_cost(1000, "X")
        assert exc_info.value.code == "X"

    def test_code_missing_from_table_raises(self):
        """A valid code absent from a custom table still fails loudly."""
        with pytest.raises(UnknownRateCodeError):
            compute_billing_cost(1000, "G", schedules=_two_block_table())


# ---- Rate detection ----

class TestDetectRateCode:
    @pytest.mark.parametrize("peak, expected", [
        (6000, RateCode.DP),
        (5000, RateCode.DP),
        (4999, RateCode.G),
        (100, RateCode.G),
        (99, RateCode.M),
        (51, RateCode.M),
        (50, RateCode.D),
        (10, RateCode.D),
    ])
    def test_by_peak_demand(self, peak, expected):
        assert detect_rate_code(1_000_000, peak) == expected

    @pytest.mark.parametrize("monthly_kwh, expected", [
        (600_000, RateCode.DP),
        (500_000, RateCode.G),
        (60_000, RateCode.G),
        (50_000, RateCode.M),
        (3001, RateCode.M),
        (3000, RateCode.D),
        (0, RateCode.D),
    ])
    def test_by_consumption(self, monthly_kwh, expected):
        assert detect_rate_code(monthly_kwh) == expected


# ---- Projections and summaries ----

class TestProjections:
    def test_no_escalation_at_year_zero(self):
        """D reference bill at 10,000 kWh: 14.48 + 91.08 + 8800*0.114 = 1108.76."""
        projection = project_future_rate("D", 0)
        assert abs(projection.rate - 7.59) < 1e-9
        assert abs(projection.cost - 1108.76) < 1e-6
        assert projection.escalation == 0.03

    def test_compound_escalation(self):
        """7.59¢ * 1.03^2 = 8.052231¢."""
        projection = project_future_rate("D", 2)
        assert abs(projection.rate - 7.59 * 1.03 ** 2) < 1e-9
        assert abs(projection.cost - 1108.76 * 1.03 ** 2) < 1e-6

    def test_large_power_escalation(self):
        assert project_future_rate("DP", 1).escalation == 0.025

    def test_annual_cost(self):
        """D at 12,000 kWh/yr: 12 * (14.48 + 1000*0.0759) = 1084.56."""
        breakdown = calculate_annual_cost("D", 12_000)
        assert len(breakdown.monthly) == 12
        assert abs(breakdown.annual_total - 1084.56) < 1e-6
        assert abs(breakdown.average_rate - 1084.56 / 12_000) < 1e-9

    def test_list_schedules_in_code_order(self):
        summaries = list_rate_schedules()
        assert [s["code"] for s in summaries] == ["D", "M", "G", "DP"]
        assert summaries[2]["typical_load_kw"] == {"min": 100.0, "max": 5000.0}

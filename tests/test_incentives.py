"""Unit tests for the incentive waterfall and incentive caps."""

import logging

from solar_economics.models.incentives import (
    IncentiveWaterfall,
    calculate_net_investment,
    cap_utility_solar_incentive,
    federal_investment_tax_credit,
    waterfall_from_financials,
)
from solar_economics.models.project import ProjectFinancials


class TestWaterfall:
    def test_net_investment(self):
        """500,000 - (100,000 + 20,000) - 114,000 - 50,000 = 216,000."""
        net = calculate_net_investment(500_000, 100_000, 20_000, 114_000, 50_000)
        assert abs(net - 216_000) < 1e-9

    def test_steps_in_order(self):
        waterfall = IncentiveWaterfall(500_000, 100_000, 20_000, 114_000, 50_000)
        steps = waterfall.steps()
        assert [s[0] for s in steps] == [
            "Gross cost", "Utility incentive", "Federal ITC", "Tax shield", "Net investment"]
        assert [s[2] for s in steps] == [500_000, 380_000, 266_000, 216_000, 216_000]
        assert steps[1][1] == -120_000

    def test_totals(self):
        waterfall = IncentiveWaterfall(500_000, 100_000, 20_000, 114_000, 50_000)
        assert waterfall.utility_incentive == 120_000
        assert waterfall.total_incentives == 284_000
        assert waterfall.gross_cost - waterfall.total_incentives == waterfall.net_investment

    def test_negative_net_not_floored(self, caplog):
        """Incentives above cost give a negative net, logged as a warning."""
        with caplog.at_level(logging.WARNING):
            net = calculate_net_investment(100_000, utility_solar=80_000, federal_credit=30_000)
        assert abs(net - (-10_000)) < 1e-9
        assert "exceed gross cost" in caplog.text

    def test_from_financials(self):
        financials = ProjectFinancials(
            capex_gross=300_000, incentives_utility_solar=60_000,
            incentives_utility_battery=10_000, incentives_federal=69_000, tax_shield=20_000)
        assert abs(waterfall_from_financials(financials).net_investment - 141_000) < 1e-9


class TestIncentiveCaps:
    def test_share_cap_binds(self):
        """100 kW at $215,000: min(100,000, 0.40 * 215,000) = 86,000."""
        assert abs(cap_utility_solar_incentive(100, 215_000) - 86_000) < 1e-9

    def test_share_cap_binds_small(self):
        """50 kW at $107,500: min(50,000, 43,000) = 43,000."""
        assert abs(cap_utility_solar_incentive(50, 107_500) - 43_000) < 1e-9

    def test_per_kw_binds(self):
        """100 kW at $500,000: min(100,000, 200,000) = 100,000."""
        assert abs(cap_utility_solar_incentive(100, 500_000) - 100_000) < 1e-9

    def test_capacity_cap(self):
        """2 MW at $5M: only the first 1000 kW are eligible = 1,000,000."""
        assert abs(cap_utility_solar_incentive(2000, 5_000_000) - 1_000_000) < 1e-9

    def test_federal_itc(self):
        """30% of 129,000 = 38,700."""
        assert abs(federal_investment_tax_credit(129_000) - 38_700) < 1e-9

"""Unit tests for the portfolio roll-up and services quote."""

import pytest

from solar_economics.models.portfolio import (
    has_usable_data,
    quote_services_price,
    recalculate_portfolio,
    resolve_metric,
    roll_up,
    volume_discount_percent,
)
from solar_economics.models.project import PortfolioSite, PortfolioSiteOverride, SimulationSnapshot


def _site(site_id, override=None, **sim):
    return PortfolioSite(
        site_id=site_id,
        name=f"Building {site_id}",
        latest_simulation=SimulationSnapshot(**sim) if sim else None,
        override=override or PortfolioSiteOverride(),
    )


# ---- Metric resolution ----

class TestResolution:
    def test_override_wins(self):
        assert resolve_metric(150.0, 100.0) == 150.0

    def test_zero_override_still_wins(self):
        """An explicit 0 is a value, not a missing override."""
        assert resolve_metric(0.0, 50_000.0) == 0.0

    def test_simulated_then_zero(self):
        assert resolve_metric(None, 100.0) == 100.0
        assert resolve_metric(None, None) == 0.0

    def test_usable_data(self):
        assert has_usable_data(_site("a", pv_size_kw=100))
        assert has_usable_data(_site("b", override=PortfolioSiteOverride(npv=0.0)))
        assert not has_usable_data(_site("c"))
        assert not has_usable_data(_site("d", pv_size_kw=0, capex_net=0))


# ---- Roll-up ----

class TestRollUp:
    def test_totals_and_override_precedence(self):
        sites = [
            _site("a", pv_size_kw=100, battery_kwh=50, capex_net=200_000, npv=40_000,
                  irr=0.10, annual_savings=20_000, co2_avoided_tonnes=12.5),
            _site("b", override=PortfolioSiteOverride(pv_size_kw=150, capex_net=0.0),
                  pv_size_kw=120, capex_net=300_000, npv=10_000, annual_savings=5000,
                  co2_avoided_tonnes=7.5),
        ]
        rollup = roll_up(sites)
        assert rollup.total_pv_size_kw == 250
        assert rollup.total_battery_kwh == 50
        assert rollup.total_net_capex == 200_000
        assert rollup.total_npv == 50_000
        assert rollup.total_annual_savings == 25_000
        assert rollup.total_co2_avoided == 20.0
        assert rollup.sites_with_simulations == 2

    def test_weighted_irr(self):
        """(0.10 * 100,000 + 0.20 * 300,000) / 400,000 = 0.175.

        The zero-capex site counts in the totals but not in the weighting.
        """
        sites = [
            _site("a", capex_net=100_000, irr=0.10),
            _site("b", capex_net=300_000, irr=0.20),
            _site("c", capex_net=0, irr=0.50, npv=1000),
        ]
        rollup = roll_up(sites)
        assert abs(rollup.weighted_irr - 0.175) < 1e-9
        assert rollup.sites_with_simulations == 3
        assert rollup.total_npv == 1000

    def test_no_positive_capex(self):
        rollup = roll_up([_site("a", capex_net=0, irr=0.3, npv=500)])
        assert rollup.weighted_irr == 0.0

    def test_site_without_data_is_counted_but_not_summed(self):
        sites = [_site("a", pv_size_kw=100, capex_net=10_000), _site("b")]
        rollup = roll_up(sites)
        assert rollup.num_buildings == 2
        assert rollup.sites_with_simulations == 1

    def test_empty_simulation_still_included(self):
        """A site with a simulation of all-zero values counts as simulated."""
        rollup = roll_up([_site("a", pv_size_kw=0, capex_net=0)])
        assert rollup.sites_with_simulations == 1
        assert rollup.total_net_capex == 0

    def test_discounted_capex(self):
        """5 sites of 10,000 = 50,000, less 5% = 47,500."""
        sites = [_site(str(i), capex_net=10_000) for i in range(5)]
        rollup = roll_up(sites)
        assert rollup.volume_discount_percent == 0.05
        assert abs(rollup.discounted_capex - 47_500) < 1e-9

    def test_empty_portfolio(self):
        rollup = roll_up([])
        assert rollup.num_buildings == 0
        assert rollup.weighted_irr == 0.0


# ---- Volume discount and quote ----

class TestServicesQuote:
    @pytest.mark.parametrize("count, expected", [
        (0, 0.0), (4, 0.0), (5, 0.05), (9, 0.05),
        (10, 0.10), (12, 0.10), (19, 0.10), (20, 0.15), (50, 0.15),
    ])
    def test_volume_discount_tiers(self, count, expected):
        assert volume_discount_percent(count) == expected

    def test_quote_without_discount(self):
        """4 buildings: travel 2 days * 150 + 4 * (600 + 1000 + 1900) = 14,300.

        GST 715.00, QST 1426.425, total 16,441.425.
        """
        quote = quote_services_price(4)
        assert quote.travel_days == 2
        assert quote.travel == 300
        assert quote.subtotal_before_discount == 14_300
        assert quote.discount == 0
        assert abs(quote.gst - 715.0) < 1e-9
        assert abs(quote.qst - 1426.425) < 1e-9
        assert abs(quote.total - 16_441.425) < 1e-6

    def test_quote_with_discount(self):
        """12 buildings: 4 days * 150 + 12 * 3500 = 42,600; less 10% = 38,340.

        Taxes apply to the discounted subtotal: GST 1917.00, QST 3824.415.
        """
        quote = quote_services_price(12)
        assert quote.travel_days == 4
        assert quote.subtotal_before_discount == 42_600
        assert abs(quote.discount - 4260) < 1e-9
        assert abs(quote.subtotal - 38_340) < 1e-9
        assert abs(quote.gst - 1917.0) < 1e-9
        assert abs(quote.qst - 3824.415) < 1e-6
        assert abs(quote.total - 44_081.415) < 1e-6

    def test_explicit_discount(self):
        quote = quote_services_price(3, volume_discount=0.5)
        assert abs(quote.subtotal - quote.subtotal_before_discount / 2) < 1e-9

    def test_recalculate(self):
        sites = [_site(str(i), capex_net=10_000, irr=0.08) for i in range(6)]
        recalc = recalculate_portfolio(sites)
        assert recalc.rollup.num_buildings == 6
        assert recalc.quote.num_buildings == 6
        assert recalc.quote.volume_discount_percent == 0.05
        assert recalc.total_quoted == recalc.quote.total

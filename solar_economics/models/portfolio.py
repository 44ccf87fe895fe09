"""Portfolio roll-up: multi-site totals, volume discount and services quote.

Site records stay authoritative; a roll-up is a read-time projection
recomputed on demand. Each metric resolves as override, then the latest
simulation, then zero.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional

from solar_economics.models.project import PortfolioSite

logger = logging.getLogger(__name__)

# (minimum site count, discount) from the largest tier down.
VOLUME_DISCOUNT_TIERS = (
    (20, 0.15),
    (10, 0.10),
    (5, 0.05),
)

SITES_PER_TRAVEL_DAY = 3
TRAVEL_COST_PER_DAY = 150.0
VISIT_COST_PER_BUILDING = 600.0
EVALUATION_COST_PER_BUILDING = 1000.0
DRAWINGS_COST_PER_BUILDING = 1900.0

GST_RATE = 0.05
QST_RATE = 0.09975


@dataclass
class PortfolioRollup:
    """Aggregated portfolio metrics.

    Attributes:
        total_pv_size_kw: Sum of PV sizes (kW).
        total_battery_kwh: Sum of battery capacities (kWh).
        total_net_capex: Sum of net capital costs ($).
        total_npv: Sum of NPVs ($).
        weighted_irr: IRR weighted by net capex.
        total_annual_savings: Sum of annual savings ($/year).
        total_co2_avoided: Sum of CO2 avoided (tonnes/year).
        num_buildings: Raw number of sites in the portfolio.
        sites_with_simulations: Sites that contributed to the totals.
        volume_discount_percent: Discount tier for num_buildings (0.05 = 5%).
        discounted_capex: total_net_capex after the volume discount ($).
    """

    total_pv_size_kw: float = 0.0
    total_battery_kwh: float = 0.0
    total_net_capex: float = 0.0
    total_npv: float = 0.0
    weighted_irr: float = 0.0
    total_annual_savings: float = 0.0
    total_co2_avoided: float = 0.0
    num_buildings: int = 0
    sites_with_simulations: int = 0
    volume_discount_percent: float = 0.0
    discounted_capex: float = 0.0

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}


@dataclass
class QuotedServicesPrice:
    """Price of the evaluation and engineering services for a portfolio."""

    num_buildings: int
    travel_days: int
    travel: float
    site_visits: float
    evaluation: float
    drawings: float
    subtotal_before_discount: float
    volume_discount_percent: float
    discount: float
    subtotal: float
    gst: float
    qst: float
    total: float

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}


@dataclass
class PortfolioRecalculation:
    """Roll-up and services quote computed together for one site list."""

    rollup: PortfolioRollup
    quote: QuotedServicesPrice

    @property
    def total_quoted(self) -> float:
        return self.quote.total


def resolve_metric(override: Optional[float], simulated: Optional[float]) -> float:
    """Override if set, else the simulated value if set, else 0."""
    if override is not None:
        return override
    if simulated is not None:
        return simulated
    return 0.0


@dataclass
class _ResolvedSite:
    pv_size_kw: float
    battery_kwh: float
    capex_net: float
    npv: float
    irr: float
    annual_savings: float
    co2_avoided: float


def _resolve_site(site: PortfolioSite) -> _ResolvedSite:
    sim = site.latest_simulation
    ov = site.override

    def simulated(name):
        return getattr(sim, name) if sim is not None else None

    return _ResolvedSite(
        pv_size_kw=resolve_metric(ov.pv_size_kw, simulated("pv_size_kw")),
        battery_kwh=resolve_metric(ov.battery_kwh, simulated("battery_kwh")),
        capex_net=resolve_metric(ov.capex_net, simulated("capex_net")),
        npv=resolve_metric(ov.npv, simulated("npv")),
        irr=resolve_metric(ov.irr, simulated("irr")),
        annual_savings=resolve_metric(ov.annual_savings, simulated("annual_savings")),
        co2_avoided=resolve_metric(None, simulated("co2_avoided_tonnes")),
    )


def has_usable_data(site: PortfolioSite) -> bool:
    """True if the site has a value to contribute to portfolio totals.

    Usable means a non-zero resolved PV size, net capex, NPV or annual
    savings, or an override on any of those fields.
    """
    resolved = _resolve_site(site)
    ov = site.override
    return (
        resolved.pv_size_kw > 0
        or resolved.capex_net != 0
        or resolved.npv != 0
        or resolved.annual_savings != 0
        or ov.pv_size_kw is not None
        or ov.capex_net is not None
        or ov.npv is not None
        or ov.annual_savings is not None
    )


def volume_discount_percent(site_count: int) -> float:
    """Discount for a portfolio of site_count buildings (0.10 = 10%)."""
    for minimum, discount in VOLUME_DISCOUNT_TIERS:
        if site_count >= minimum:
            return discount
    return 0.0


def roll_up(sites: Iterable[PortfolioSite]) -> PortfolioRollup:
    """Aggregate site metrics into portfolio totals.

    A site contributes when it has usable data or a latest simulation.
    IRR is weighted by net capex over sites with positive net capex; a
    portfolio with no such site gets a weighted IRR of 0.
    """
    sites = list(sites)
    rollup = PortfolioRollup(num_buildings=len(sites))
    weighted_irr_sum = 0.0
    weighting_capex = 0.0

    for site in sites:
        if not (has_usable_data(site) or site.latest_simulation is not None):
            continue
        resolved = _resolve_site(site)

        rollup.total_pv_size_kw += resolved.pv_size_kw
        rollup.total_battery_kwh += resolved.battery_kwh
        rollup.total_net_capex += resolved.capex_net
        rollup.total_npv += resolved.npv
        rollup.total_annual_savings += resolved.annual_savings
        rollup.total_co2_avoided += resolved.co2_avoided
        rollup.sites_with_simulations += 1

        if resolved.capex_net > 0:
            weighted_irr_sum += resolved.irr * resolved.capex_net
            weighting_capex += resolved.capex_net

    rollup.weighted_irr = weighted_irr_sum / weighting_capex if weighting_capex > 0 else 0.0
    rollup.volume_discount_percent = volume_discount_percent(rollup.num_buildings)
    rollup.discounted_capex = rollup.total_net_capex * (1 - rollup.volume_discount_percent)

    logger.debug("Rolled up %d of %d sites, discount %.0f%%",
                 rollup.sites_with_simulations, rollup.num_buildings,
                 rollup.volume_discount_percent * 100)
    return rollup


def quote_services_price(num_buildings: int, volume_discount: Optional[float] = None) -> QuotedServicesPrice:
    """Price site visits, evaluation and drawings for a portfolio.

    The discount is taken off the subtotal before tax; GST and QST are
    each charged on the discounted subtotal, not on one another.

    Args:
        num_buildings: Number of buildings to evaluate.
        volume_discount: Discount override; defaults to the tier for num_buildings.
    """
    if volume_discount is None:
        volume_discount = volume_discount_percent(num_buildings)

    travel_days = math.ceil(num_buildings / SITES_PER_TRAVEL_DAY)
    travel = travel_days * TRAVEL_COST_PER_DAY
    visits = num_buildings * VISIT_COST_PER_BUILDING
    evaluation = num_buildings * EVALUATION_COST_PER_BUILDING
    drawings = num_buildings * DRAWINGS_COST_PER_BUILDING

    subtotal_before_discount = travel + visits + evaluation + drawings
    discount = subtotal_before_discount * volume_discount
    subtotal = subtotal_before_discount - discount
    gst = subtotal * GST_RATE
    qst = subtotal * QST_RATE

    return QuotedServicesPrice(
        num_buildings=num_buildings,
        travel_days=travel_days,
        travel=travel,
        site_visits=visits,
        evaluation=evaluation,
        drawings=drawings,
        subtotal_before_discount=subtotal_before_discount,
        volume_discount_percent=volume_discount,
        discount=discount,
        subtotal=subtotal,
        gst=gst,
        qst=qst,
        total=subtotal + gst + qst,
    )


def recalculate_portfolio(sites: Iterable[PortfolioSite]) -> PortfolioRecalculation:
    """Roll up a portfolio and quote its services on the same site count."""
    sites = list(sites)
    rollup = roll_up(sites)
    quote = quote_services_price(rollup.num_buildings, rollup.volume_discount_percent)
    return PortfolioRecalculation(rollup=rollup, quote=quote)

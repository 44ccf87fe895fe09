"""
Solar Economics CLI - project economics for solar + storage proposals

Command-line front end over the economics engine:
- List the utility rate schedules
- Compute a monthly bill and detect the likely tariff class
- Estimate annual savings from solar production
- Simulate 25-year cash / loan / lease cumulative cashflows
- Roll up a portfolio of sites and quote evaluation services
- Run the detailed cash / lease / PPA financing model

Usage:
    solar-economics rates
    solar-economics bill 20000 --rate M --peak 80
    solar-economics savings 120000 --consumption 400000 --peak 80
    solar-economics acquisition site.json --chart cashflow.png
    solar-economics portfolio sites.json
    solar-economics model --size 250 --production 287500 --grid-rate 0.075
"""

import argparse
import logging
import sys
from typing import List, Optional

from solar_economics.data.rate_schedules import default_rate_schedules, load_rate_schedules
from solar_economics.data.storage import load_financials, load_portfolio_sites
from solar_economics.data.validators import (
    validate_acquisition_inputs,
    validate_financials,
    validate_portfolio_sites,
)
from solar_economics.models.acquisition import AcquisitionInputs, simulate_acquisition, summarize_financing_options
from solar_economics.models.cashflow_model import CashflowInputs, build_cashflow_model
from solar_economics.models.incentives import waterfall_from_financials
from solar_economics.models.portfolio import recalculate_portfolio
from solar_economics.models.project import UnknownRateCodeError
from solar_economics.models.savings import estimate_annual_savings
from solar_economics.models.tariffs import (
    compute_billing_cost,
    detect_rate_code,
    project_future_rate,
)
from solar_economics.utils.formatters import (
    format_cents_per_kwh,
    format_currency,
    format_currency_exact,
    format_payback_year,
    format_percent,
)

logger = logging.getLogger(__name__)


# ============================================================================
# OUTPUT HELPERS
# ============================================================================

def print_header(text: str, char: str = "=") -> None:
    """Print a formatted section header."""
    width = 70
    print(f"\n{char * width}")
    print(f" {text}")
    print(f"{char * width}")


def print_subheader(text: str) -> None:
    """Print a formatted subsection header."""
    print(f"\n--- {text} ---")


def print_table(headers: List[str], rows: List[List[str]],
                col_widths: Optional[List[int]] = None) -> None:
    """Print a formatted ASCII table."""
    if col_widths is None:
        col_widths = [max(len(str(row[i])) for row in [headers] + rows) + 2
                      for i in range(len(headers))]

    header_line = "|".join(h.center(w) for h, w in zip(headers, col_widths))
    separator = "+".join("-" * w for w in col_widths)
    print(f"+{separator}+")
    print(f"|{header_line}|")
    print(f"+{separator}+")

    for row in rows:
        row_line = "|".join(str(cell).center(w) for cell, w in zip(row, col_widths))
        print(f"|{row_line}|")
    print(f"+{separator}+")


# ============================================================================
# COMMANDS
# ============================================================================

def cmd_rates(args, schedules) -> int:
    print_header("RATE SCHEDULES")
    rows = []
    for schedule in schedules.values():
        projection = project_future_rate(schedule.code, args.years, schedules)
        low, high = schedule.typical_load_kw
        rows.append([
            schedule.code.value,
            schedule.name,
            f"{low:,.0f}-{high:,.0f} kW",
            format_currency_exact(schedule.fixed_charge),
            format_cents_per_kwh(schedule.first_block_rate),
            format_percent(schedule.annual_escalation),
            format_cents_per_kwh(projection.rate),
        ])
    print_table(["Code", "Name", "Typical load", "Fixed/mo", "Block 1", "Escalation",
                 f"Block 1 +{args.years}y"], rows)
    return 0


def cmd_bill(args, schedules) -> int:
    rate = args.rate or detect_rate_code(args.consumption, args.peak).value
    bill = compute_billing_cost(args.consumption, rate, args.peak, schedules)

    print_header(f"MONTHLY BILL - RATE {rate}")
    if not args.rate:
        print("  (rate detected from consumption/demand)")
    print_table(["Component", "Amount"], [
        ["Fixed charge", format_currency_exact(bill.fixed_cost)],
        ["Energy", format_currency_exact(bill.energy_cost)],
        ["Demand", format_currency_exact(bill.demand_cost)],
        ["Total", format_currency_exact(bill.total_cost)],
        ["Effective rate", f"{format_currency_exact(bill.effective_rate, 4)}/kWh"],
    ])
    return 0


def cmd_savings(args, schedules) -> int:
    rate = args.rate or detect_rate_code(args.consumption / 12, args.peak).value
    estimate = estimate_annual_savings(args.production, rate, args.consumption, args.peak, schedules)

    print_header(f"SOLAR SAVINGS - RATE {rate}")
    print_table(["Metric", "Value"], [
        ["Annual savings", format_currency_exact(estimate.annual_savings)],
        ["Monthly savings (avg)", format_currency_exact(estimate.monthly_savings_avg)],
        ["Bill reduction", f"{estimate.savings_percent:.1f}%"],
        ["Value per kWh produced", f"{format_currency_exact(estimate.effective_value_per_kwh, 4)}/kWh"],
    ])
    return 0


def cmd_acquisition(args, schedules) -> int:
    financials = load_financials(args.financials)
    ok, messages = validate_financials(financials)
    for msg in messages:
        print(f"  ! {msg}")

    inputs = AcquisitionInputs.from_financials(
        financials,
        loan_term_years=args.loan_term,
        loan_interest_rate=args.loan_rate,
        loan_down_payment_pct=args.down_payment,
        lease_term_years=args.lease_term,
        lease_implicit_rate=args.lease_rate,
    )
    inputs_ok, input_messages = validate_acquisition_inputs(inputs)
    for msg in input_messages:
        print(f"  ! {msg}")
    if not (ok and inputs_ok):
        print("\nInputs are invalid; results below reflect the data as given.")

    print_header("INCENTIVE WATERFALL")
    print_table(["Step", "Amount", "Running"], [
        [label, format_currency_exact(amount, 0), format_currency_exact(running, 0)]
        for label, amount, running in waterfall_from_financials(financials).steps()
    ])

    result = simulate_acquisition(inputs)

    print_header("CUMULATIVE CASHFLOW (25 YEARS)")
    print_table(["Year", "Cash", "Loan", "Lease"], [
        [str(p.year), format_currency(p.cash, 1), format_currency(p.loan, 1), format_currency(p.lease, 1)]
        for p in result.series
    ])
    print_subheader("Payback")
    print(f"  Cash:  {format_payback_year(result.cash_payback_year)}")
    print(f"  Loan:  {format_payback_year(result.loan_payback_year)}")
    print(f"  Lease: {format_payback_year(result.lease_payback_year)}")

    print_subheader("Financing comparison")
    print_table(["Option", "Rate / Term", "Monthly", "Net year 1"], [
        [
            opt.name,
            f"{opt.rate_pct:g}% / {opt.term_years} y" if opt.rate_pct is not None else "-",
            format_currency_exact(opt.monthly_payment, 0),
            format_currency_exact(opt.net_year1, 0),
        ]
        for opt in summarize_financing_options(
            financials.capex_net, financials.savings_year1 or financials.annual_savings)
    ])

    if args.chart:
        from solar_economics.reports.charts import create_acquisition_chart
        create_acquisition_chart(result, args.chart)
        print(f"\nChart saved to {args.chart}")
    return 0


def cmd_portfolio(args, schedules) -> int:
    sites = load_portfolio_sites(args.sites)
    ok, messages = validate_portfolio_sites(sites)
    for msg in messages:
        print(f"  ! {msg}")

    recalc = recalculate_portfolio(sites)
    rollup = recalc.rollup
    quote = recalc.quote

    print_header(f"PORTFOLIO ({rollup.num_buildings} buildings)")
    print_table(["Metric", "Value"], [
        ["Sites with data", str(rollup.sites_with_simulations)],
        ["PV size", f"{rollup.total_pv_size_kw:,.1f} kW"],
        ["Battery", f"{rollup.total_battery_kwh:,.1f} kWh"],
        ["Net capex", format_currency_exact(rollup.total_net_capex, 0)],
        ["NPV", format_currency_exact(rollup.total_npv, 0)],
        ["Weighted IRR", format_percent(rollup.weighted_irr)],
        ["Annual savings", format_currency_exact(rollup.total_annual_savings, 0)],
        ["CO2 avoided", f"{rollup.total_co2_avoided:,.1f} t/yr"],
        ["Volume discount", format_percent(rollup.volume_discount_percent, 0)],
        ["Discounted capex", format_currency_exact(rollup.discounted_capex, 0)],
    ])

    print_subheader("Services quote")
    print_table(["Item", "Amount"], [
        [f"Travel ({quote.travel_days} days)", format_currency_exact(quote.travel)],
        ["Site visits", format_currency_exact(quote.site_visits)],
        ["Evaluation", format_currency_exact(quote.evaluation)],
        ["Drawings", format_currency_exact(quote.drawings)],
        ["Discount", format_currency_exact(-quote.discount)],
        ["Subtotal", format_currency_exact(quote.subtotal)],
        ["GST", format_currency_exact(quote.gst)],
        ["QST", format_currency_exact(quote.qst)],
        ["Total", format_currency_exact(quote.total)],
    ])
    return 0 if ok else 1


def cmd_model(args, schedules) -> int:
    model = build_cashflow_model(CashflowInputs(
        system_size_kw=args.size,
        annual_production_kwh=args.production,
        cost_per_watt=args.cost_per_watt,
        grid_rate_y1=args.grid_rate,
    ))

    print_header("DETAILED FINANCING MODEL")
    print_table(["Item", "Amount"], [
        ["Gross capex", format_currency_exact(model.gross_capex, 0)],
        ["Utility incentive", format_currency_exact(model.utility_incentive, 0)],
        ["Federal ITC", format_currency_exact(model.itc, 0)],
        ["Net investment", format_currency_exact(model.net_client_investment, 0)],
        ["NPV (cash)", format_currency_exact(model.npv, 0)],
        ["IRR (cash)", format_percent(model.irr)],
    ])
    print_table(["Scenario", "25-yr total", "Avg/yr", "Payback", "Owned from"], [
        [s.name, format_currency(s.total_savings, 1), format_currency(s.avg_annual_savings, 1),
         format_payback_year(s.payback_year), f"Year {s.ownership_year}"]
        for s in (model.cash, model.lease, model.ppa)
    ])
    return 0


# ============================================================================
# MAIN
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solar-economics",
        description="Solar + storage project economics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--rates-file", type=str, default="",
                        help="Rate-schedule JSON file (defaults to the packaged schedules)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("rates", help="List rate schedules")
    p.add_argument("--years", type=int, default=5, help="Projection horizon for block-1 rate")
    p.set_defaults(func=cmd_rates)

    p = sub.add_parser("bill", help="Monthly bill for a consumption")
    p.add_argument("consumption", type=float, help="Monthly consumption (kWh)")
    p.add_argument("--rate", "-r", type=str, help="Rate code (detected if omitted)")
    p.add_argument("--peak", type=float, help="Peak demand (kW)")
    p.set_defaults(func=cmd_bill)

    p = sub.add_parser("savings", help="Annual savings from solar production")
    p.add_argument("production", type=float, help="Annual solar production (kWh)")
    p.add_argument("--consumption", "-c", type=float, required=True, help="Annual consumption (kWh)")
    p.add_argument("--rate", "-r", type=str, help="Rate code (detected if omitted)")
    p.add_argument("--peak", type=float, help="Peak demand (kW)")
    p.set_defaults(func=cmd_savings)

    p = sub.add_parser("acquisition", help="25-year cash / loan / lease cashflows")
    p.add_argument("financials", type=str, help="Site financials JSON file")
    p.add_argument("--loan-term", type=int, default=10)
    p.add_argument("--loan-rate", type=float, default=7.0, help="Annual loan rate (%%)")
    p.add_argument("--down-payment", type=float, default=30.0, help="Down payment (%% of gross)")
    p.add_argument("--lease-term", type=int, default=15)
    p.add_argument("--lease-rate", type=float, default=8.5, help="Implicit lease rate (%%)")
    p.add_argument("--chart", type=str, help="Save a cumulative cashflow chart (PNG)")
    p.set_defaults(func=cmd_acquisition)

    p = sub.add_parser("portfolio", help="Portfolio roll-up and services quote")
    p.add_argument("sites", type=str, help="Portfolio sites JSON file")
    p.set_defaults(func=cmd_portfolio)

    p = sub.add_parser("model", help="Detailed cash / lease / PPA model")
    p.add_argument("--size", type=float, default=100.0, help="System size (kW)")
    p.add_argument("--production", type=float, default=115_000.0, help="Year-1 production (kWh)")
    p.add_argument("--cost-per-watt", type=float, default=2.15)
    p.add_argument("--grid-rate", type=float, default=0.07, help="Year-1 grid rate ($/kWh)")
    p.set_defaults(func=cmd_model)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    schedules = load_rate_schedules(args.rates_file) if args.rates_file else default_rate_schedules()

    try:
        return args.func(args, schedules)
    except UnknownRateCodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())

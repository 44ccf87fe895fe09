"""Input validation functions for the solar project-economics engine.

Each validator returns a tuple of (is_valid: bool, message: str).
Messages describe errors or warnings for user display. The engines do
not call these; callers validate before computing.
"""

from typing import Iterable, List, Tuple

from solar_economics.models.acquisition import AcquisitionInputs
from solar_economics.models.incentives import waterfall_from_financials
from solar_economics.models.project import PortfolioSite, ProjectFinancials, RateCode, UnknownRateCodeError


def validate_consumption(consumption_kwh: float) -> Tuple[bool, str]:
    """Validate a consumption figure in kWh."""
    if consumption_kwh < 0:
        return False, "Consumption cannot be negative."
    if consumption_kwh == 0:
        return True, "Warning: Consumption is 0 kWh; costs reduce to fixed charges."
    return True, ""


def validate_peak_demand(peak_demand_kw) -> Tuple[bool, str]:
    """Validate a peak demand in kW (None means unknown)."""
    if peak_demand_kw is None:
        return True, ""
    if peak_demand_kw < 0:
        return False, "Peak demand cannot be negative."
    if peak_demand_kw > 100_000:
        return True, f"Warning: {peak_demand_kw:,.0f} kW is unusually large. Verify this is correct."
    return True, ""


def validate_rate_code(rate_code) -> Tuple[bool, str]:
    """Validate that a rate code is one of the tariff classes."""
    try:
        RateCode.parse(rate_code)
    except UnknownRateCodeError:
        codes = ", ".join(code.value for code in RateCode)
        return False, f"Unknown rate code {rate_code!r}. Expected one of: {codes}."
    return True, ""


def validate_financials(financials: ProjectFinancials) -> Tuple[bool, List[str]]:
    """Check a simulation record before running the waterfall or simulator.

    A negative net investment is an error: incentives exceed the
    installed cost, which points at bad upstream data.
    """
    messages = []
    is_valid = True

    if financials.capex_gross < 0 or financials.capex_net < 0:
        is_valid = False
        messages.append("Capital cost cannot be negative.")
    if financials.capex_gross == 0 and financials.capex_net == 0:
        messages.append("Warning: No capital cost; cashflows will only reflect savings.")

    for label, value in (
        ("Utility solar incentive", financials.incentives_utility_solar),
        ("Utility battery incentive", financials.incentives_utility_battery),
        ("Federal incentive", financials.incentives_federal),
        ("Tax shield", financials.tax_shield),
    ):
        if value < 0:
            is_valid = False
            messages.append(f"{label} cannot be negative.")

    if financials.capex_gross > 0:
        net = waterfall_from_financials(financials).net_investment
        if net < 0:
            is_valid = False
            messages.append(f"Incentives exceed gross cost (net investment {net:,.0f}).")

    if financials.annual_savings <= 0 and financials.savings_year1 <= 0:
        messages.append("Warning: No savings defined. Payback will not be reached.")

    return is_valid, messages


def validate_acquisition_inputs(inputs: AcquisitionInputs) -> Tuple[bool, List[str]]:
    """Validate financing terms and amounts for the acquisition simulator."""
    messages = []
    is_valid = True

    if inputs.effective_gross_cost <= 0:
        is_valid = False
        messages.append("Gross or net cost must be greater than 0.")
    if not 0 <= inputs.loan_down_payment_pct <= 100:
        is_valid = False
        messages.append("Loan down payment must be between 0% and 100%.")
    for label, rate in (("Loan interest rate", inputs.loan_interest_rate),
                        ("Lease implicit rate", inputs.lease_implicit_rate)):
        if rate < 0:
            is_valid = False
            messages.append(f"{label} cannot be negative.")
        elif rate > 25:
            messages.append(f"Warning: {label} of {rate}% is unusually high.")
    for label, term in (("Loan term", inputs.loan_term_years),
                        ("Lease term", inputs.lease_term_years)):
        if term < 1:
            is_valid = False
            messages.append(f"{label} must be at least 1 year.")
        elif term > 25:
            messages.append(f"Warning: {label} extends past the 25-year horizon.")

    years = [row.year for row in inputs.cashflows]
    if len(years) != len(set(years)):
        is_valid = False
        messages.append("Pre-computed cashflows contain duplicate years.")

    return is_valid, messages


def validate_portfolio_sites(sites: Iterable[PortfolioSite]) -> Tuple[bool, List[str]]:
    """Flag override values that cannot be right."""
    messages = []
    is_valid = True
    seen = set()
    for site in sites:
        label = site.name or site.site_id or "<unnamed>"
        if site.site_id and site.site_id in seen:
            is_valid = False
            messages.append(f"Site {label} appears more than once.")
        seen.add(site.site_id)

        ov = site.override
        for name in ("pv_size_kw", "battery_kwh", "capex_net"):
            value = getattr(ov, name)
            if value is not None and value < 0:
                is_valid = False
                messages.append(f"Site {label}: override {name} cannot be negative.")
        if ov.irr is not None and not -1 < ov.irr < 1:
            messages.append(f"Warning: Site {label}: override IRR {ov.irr} looks like a percent, expected a decimal.")

    return is_valid, messages

"""Chart generation for acquisition cashflow results.

Creates matplotlib charts of cumulative cashflow per acquisition track,
saved as PNG files for the report layer to embed.
"""

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker

from solar_economics.models.acquisition import AcquisitionCashflowResult

TRACK_STYLES = (
    ("cash", "Cash", "#1565c0"),
    ("loan", "Loan", "#2e7d32"),
    ("lease", "Lease", "#ef6c00"),
)


def create_acquisition_chart(result: AcquisitionCashflowResult, output_path: str) -> None:
    """Create a line chart of cumulative cashflow for cash, loan and lease.

    Year 0 is left out, matching the slide in the client report; payback
    years are marked on each line.

    Args:
        result: Output of simulate_acquisition.
        output_path: File path to save the PNG chart.
    """
    points = [p for p in result.series if p.year >= 1]
    if not points:
        return
    years = [p.year for p in points]
    paybacks = {
        "cash": result.cash_payback_year,
        "loan": result.loan_payback_year,
        "lease": result.lease_payback_year,
    }

    fig, ax = plt.subplots(figsize=(8, 4.5), dpi=150)
    for key, label, color in TRACK_STYLES:
        values = [getattr(p, key) / 1e3 for p in points]
        ax.plot(years, values, label=label, color=color, linewidth=2)
        payback = paybacks[key]
        if payback is not None:
            ax.plot(payback, getattr(result.series[payback], key) / 1e3,
                    marker="o", color=color, markersize=6)

    ax.set_xlabel("Year", fontsize=11)
    ax.set_ylabel("$ Thousands", fontsize=11)
    ax.set_title("Cumulative Cashflow by Acquisition Option", fontsize=13, fontweight="bold")
    ax.legend(fontsize=10)
    ax.axhline(y=0, color="black", linewidth=0.5)
    ax.yaxis.set_major_formatter(mticker.FuncFormatter(lambda x, _: f"${x:,.0f}K"))
    ax.grid(axis="y", alpha=0.3)

    fig.tight_layout()
    fig.savefig(output_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)

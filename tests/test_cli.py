"""Smoke tests for the command-line interface."""

import json

from solar_economics.cli import main


class TestCLI:
    def test_rates(self, capsys):
        assert main(["rates", "--years", "2"]) == 0
        out = capsys.readouterr().out
        assert "RATE SCHEDULES" in out
        assert "Large Power" in out

    def test_bill(self, capsys):
        """D at 1500 kWh = $139.76."""
        assert main(["bill", "1500", "--rate", "D"]) == 0
        assert "$139.76" in capsys.readouterr().out

    def test_bill_detects_rate(self, capsys):
        assert main(["bill", "20000", "--peak", "80"]) == 0
        assert "RATE M" in capsys.readouterr().out

    def test_unknown_rate(self, capsys):
        assert main(["bill", "1500", "--rate", "Q"]) == 2
        assert "Unknown rate code" in capsys.readouterr().err

    def test_savings(self, capsys):
        """D, 24,000 kWh/yr less 12,000 kWh solar saves $1,276.56."""
        assert main(["savings", "12000", "--consumption", "24000", "--rate", "D"]) == 0
        assert "$1,276.56" in capsys.readouterr().out

    def test_acquisition_with_chart(self, tmp_path, capsys):
        financials = tmp_path / "site.json"
        financials.write_text(json.dumps({
            "capex_gross": 250_000,
            "capex_net": 140_000,
            "incentives_utility_solar": 60_000,
            "incentives_federal": 50_000,
            "savings_year1": 18_000,
        }))
        chart = tmp_path / "cashflow.png"
        assert main(["acquisition", str(financials), "--chart", str(chart)]) == 0
        out = capsys.readouterr().out
        assert "INCENTIVE WATERFALL" in out
        assert "Payback" in out
        assert chart.exists()

    def test_portfolio(self, tmp_path, capsys):
        sites = tmp_path / "sites.json"
        sites.write_text(json.dumps({"sites": [
            {"site_id": str(i), "name": f"Site {i}",
             "latest_simulation": {"pv_size_kw": 100, "capex_net": 200_000, "irr": 0.09}}
            for i in range(5)
        ]}))
        assert main(["portfolio", str(sites)]) == 0
        out = capsys.readouterr().out
        assert "PORTFOLIO (5 buildings)" in out
        assert "9.0%" in out
        assert "$1,000,000" in out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["portfolio", str(tmp_path / "missing.json")]) == 2

    def test_model(self, capsys):
        assert main(["model"]) == 0
        out = capsys.readouterr().out
        assert "$90,300" in out
        assert "PPA" in out

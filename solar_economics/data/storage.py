"""JSON save/load for engine inputs supplied by the simulation layer."""

import json
from pathlib import Path
from typing import List

from solar_economics.models.project import PortfolioSite, ProjectFinancials


def _write_json(data, filepath: str) -> None:
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)


def save_financials(financials: ProjectFinancials, filepath: str) -> None:
    """Save a site's simulation financials to a JSON file.

    Raises:
        OSError: If file cannot be written.
    """
    _write_json(financials.to_dict(), filepath)


def load_financials(filepath: str) -> ProjectFinancials:
    """Load a site's simulation financials from a JSON file.

    Raises:
        FileNotFoundError: If file does not exist.
        json.JSONDecodeError: If file is not valid JSON.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)
    return ProjectFinancials.from_dict(data)


def save_portfolio_sites(sites: List[PortfolioSite], filepath: str) -> None:
    """Save portfolio sites as {"sites": [...]}."""
    _write_json({"sites": [site.to_dict() for site in sites]}, filepath)


def load_portfolio_sites(filepath: str) -> List[PortfolioSite]:
    """Load portfolio sites from {"sites": [...]} or a bare list.

    Raises:
        FileNotFoundError: If file does not exist.
        json.JSONDecodeError: If file is not valid JSON.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)
    entries = data.get("sites", []) if isinstance(data, dict) else data
    return [PortfolioSite.from_dict(entry) for entry in entries]

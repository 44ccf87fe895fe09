"""Rate-schedule loader for the solar project-economics engine.

Loads utility tariff tables from JSON files shipped under
resources/rate_schedules/. Tables are loaded once and exposed as
read-only mappings keyed by RateCode; a tariff revision is a new file
and a reload, never an in-place edit.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping

from solar_economics.models.project import RateCode, RateSchedule, UnknownRateCodeError

logger = logging.getLogger(__name__)

_DEFAULT_SCHEDULE_FILE = (
    Path(__file__).resolve().parent.parent / "resources" / "rate_schedules" / "hq_2025.json"
)

RateTable = Mapping[RateCode, RateSchedule]


def _parse_rate_table(data: dict, source: str) -> RateTable:
    """Build a read-only rate table from a parsed JSON document.

    Raises:
        ValueError: If a code is unknown or duplicated, a schedule is
            malformed, or a tariff class is missing.
    """
    table: Dict[RateCode, RateSchedule] = {}
    for entry in data.get("rates", []):
        try:
            schedule = RateSchedule.from_dict(entry)
        except UnknownRateCodeError as exc:
            raise ValueError(f"{source}: {exc}") from exc
        except (KeyError, TypeError) as exc:
            raise ValueError(f"{source}: malformed rate entry {entry.get('code')!r}: {exc}") from exc
        if schedule.code in table:
            raise ValueError(f"{source}: duplicate rate code {schedule.code.value}")
        table[schedule.code] = schedule

    missing = [code.value for code in RateCode if code not in table]
    if missing:
        raise ValueError(f"{source}: missing rate codes {', '.join(missing)}")

    # Keep RateCode declaration order regardless of file order.
    return MappingProxyType({code: table[code] for code in RateCode})


def load_rate_schedules(filepath: str = "") -> RateTable:
    """Load a rate table from a JSON file.

    Args:
        filepath: Path to a rate-schedule JSON file. Defaults to the
            schedules shipped with the package.

    Returns:
        Read-only mapping of RateCode to RateSchedule.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the table is malformed.
    """
    path = Path(filepath) if filepath else _DEFAULT_SCHEDULE_FILE
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    table = _parse_rate_table(data, path.name)
    logger.info("Loaded %d rate schedules from %s (effective %s)",
                len(table), path.name, data.get("effective_date", "n/a"))
    return table


@lru_cache(maxsize=None)
def default_rate_schedules() -> RateTable:
    """Return the packaged rate table, loading it on first use."""
    return load_rate_schedules()


def get_schedule_metadata(filepath: str = "") -> Dict[str, str]:
    """Return metadata for a rate-schedule file (name, source, effective date, notes)."""
    path = Path(filepath) if filepath else _DEFAULT_SCHEDULE_FILE
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return {
        "name": data.get("name", path.stem),
        "source": data.get("source", ""),
        "effective_date": data.get("effective_date", ""),
        "notes": data.get("notes", ""),
    }

"""Data models for the solar project-economics engine.

Defines dataclasses for utility rate schedules, per-site simulation
financials and portfolio sites. Records that cross the persistence
boundary support JSON serialization via to_dict()/from_dict() methods.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class UnknownRateCodeError(LookupError):
    """Raised when a rate code does not resolve to a known rate schedule."""

    def __init__(self, code):
        self.code = code
        super().__init__(f"Unknown rate code: {code!r}")


class RateCode(str, Enum):
    """Hydro-Québec tariff classes covered by the engine."""

    D = "D"    # Domestic
    M = "M"    # General, small power
    G = "G"    # General, medium power
    DP = "DP"  # Large power

    @classmethod
    def parse(cls, value) -> "RateCode":
        """Resolve a RateCode member or its string code.

        Raises:
            UnknownRateCodeError: If value is not one of the tariff classes.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise UnknownRateCodeError(value) from None


@dataclass(frozen=True)
class EnergyBlock:
    """One tier of a block energy rate.

    Attributes:
        up_to_kwh: kWh billed in this block per month (None = unbounded).
        rate_cents_per_kwh: Energy rate in ¢/kWh.
    """

    up_to_kwh: Optional[float]
    rate_cents_per_kwh: float


@dataclass(frozen=True)
class DemandCharge:
    """Monthly demand charge.

    Attributes:
        rate_per_kw: $/kW/month billed above the minimum.
        minimum_kw: Demand floor below which nothing is billed (kW).
    """

    rate_per_kw: float
    minimum_kw: float = 0.0


@dataclass(frozen=True)
class RateSchedule:
    """Immutable utility rate schedule for one tariff class.

    Attributes:
        code: Tariff class.
        name: English name.
        name_fr: French name.
        description: English description.
        description_fr: French description.
        fixed_charge: Monthly fixed charge ($/month).
        energy_blocks: Ordered energy blocks; the last block is unbounded.
        demand_charge: Demand charge, None for residential classes.
        typical_load_kw: (min, max) typical customer demand in kW.
        annual_escalation: Historical average annual rate increase.
        effective_date: ISO date the rates took effect.
    """

    code: RateCode
    name: str
    fixed_charge: float
    energy_blocks: Tuple[EnergyBlock, ...]
    demand_charge: Optional[DemandCharge] = None
    typical_load_kw: Tuple[float, float] = (0.0, 0.0)
    annual_escalation: float = 0.03
    effective_date: str = ""
    name_fr: str = ""
    description: str = ""
    description_fr: str = ""

    def __post_init__(self):
        if not self.energy_blocks:
            raise ValueError(f"Rate {self.code.value} has no energy blocks")
        if self.energy_blocks[-1].up_to_kwh is not None:
            raise ValueError(f"Rate {self.code.value}: last energy block must be unbounded")
        for block in self.energy_blocks[:-1]:
            if block.up_to_kwh is None:
                raise ValueError(f"Rate {self.code.value}: only the last energy block may be unbounded")

    @property
    def first_block_rate(self) -> float:
        """Energy rate of the first block in ¢/kWh."""
        return self.energy_blocks[0].rate_cents_per_kwh

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "name": self.name,
            "name_fr": self.name_fr,
            "description": self.description,
            "description_fr": self.description_fr,
            "fixed_charge": self.fixed_charge,
            "energy_blocks": [
                {"up_to_kwh": b.up_to_kwh, "rate_cents_per_kwh": b.rate_cents_per_kwh}
                for b in self.energy_blocks
            ],
            "demand_charge": (
                {"rate_per_kw": self.demand_charge.rate_per_kw,
                 "minimum_kw": self.demand_charge.minimum_kw}
                if self.demand_charge else None
            ),
            "typical_load_kw": list(self.typical_load_kw),
            "annual_escalation": self.annual_escalation,
            "effective_date": self.effective_date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RateSchedule":
        code = RateCode.parse(data["code"])
        blocks = tuple(
            EnergyBlock(
                up_to_kwh=b.get("up_to_kwh"),
                rate_cents_per_kwh=float(b["rate_cents_per_kwh"]),
            )
            for b in data.get("energy_blocks", [])
        )
        demand = data.get("demand_charge")
        typical = data.get("typical_load_kw", [0.0, 0.0])
        return cls(
            code=code,
            name=data.get("name", ""),
            name_fr=data.get("name_fr", ""),
            description=data.get("description", ""),
            description_fr=data.get("description_fr", ""),
            fixed_charge=float(data.get("fixed_charge", 0.0)),
            energy_blocks=blocks,
            demand_charge=(
                DemandCharge(
                    rate_per_kw=float(demand["rate_per_kw"]),
                    minimum_kw=float(demand.get("minimum_kw", 0.0)),
                )
                if demand else None
            ),
            typical_load_kw=(float(typical[0]), float(typical[1])),
            annual_escalation=float(data.get("annual_escalation", 0.03)),
            effective_date=data.get("effective_date", ""),
        )


@dataclass
class CashflowRow:
    """One pre-computed yearly cashflow row from a detailed simulation."""

    year: int
    cumulative: float
    net_cashflow: float = 0.0

    def to_dict(self) -> dict:
        return {"year": self.year, "cumulative": self.cumulative, "net_cashflow": self.net_cashflow}

    @classmethod
    def from_dict(cls, data: dict) -> "CashflowRow":
        return cls(
            year=int(data["year"]),
            cumulative=float(data["cumulative"]),
            net_cashflow=float(data.get("net_cashflow", 0.0)),
        )


@dataclass
class ProjectFinancials:
    """Per-site simulation output consumed read-only by the engine.

    Attributes:
        capex_gross: Fully installed turnkey price ($).
        capex_net: Net capital cost after incentives ($).
        incentives_utility_solar: Utility incentive for the PV portion ($, already capped).
        incentives_utility_battery: Utility incentive for the storage portion ($, already capped).
        incentives_federal: Federal investment tax credit ($).
        tax_shield: Present-value benefit of accelerated capital-cost allowance ($).
        savings_year1: First-year savings ($/year).
        annual_savings: Steady-state annual savings ($/year).
        cashflows: Pre-computed yearly rows with degradation/inflation already applied.
    """

    capex_gross: float = 0.0
    capex_net: float = 0.0
    incentives_utility_solar: float = 0.0
    incentives_utility_battery: float = 0.0
    incentives_federal: float = 0.0
    tax_shield: float = 0.0
    savings_year1: float = 0.0
    annual_savings: float = 0.0
    cashflows: List[CashflowRow] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "capex_gross": self.capex_gross,
            "capex_net": self.capex_net,
            "incentives_utility_solar": self.incentives_utility_solar,
            "incentives_utility_battery": self.incentives_utility_battery,
            "incentives_federal": self.incentives_federal,
            "tax_shield": self.tax_shield,
            "savings_year1": self.savings_year1,
            "annual_savings": self.annual_savings,
            "cashflows": [row.to_dict() for row in self.cashflows],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectFinancials":
        data = dict(data)
        rows = [CashflowRow.from_dict(r) for r in data.pop("cashflows", None) or []]
        known = {k: (v or 0.0) for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(cashflows=rows, **known)


@dataclass
class SimulationSnapshot:
    """A site's latest simulation, as seen by the portfolio roll-up.

    Every field is optional: a simulation that never produced a value
    leaves it as None.
    """

    pv_size_kw: Optional[float] = None
    battery_kwh: Optional[float] = None
    capex_gross: Optional[float] = None
    capex_net: Optional[float] = None
    npv: Optional[float] = None
    irr: Optional[float] = None
    annual_savings: Optional[float] = None
    co2_avoided_tonnes: Optional[float] = None

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}

    @classmethod
    def from_dict(cls, data: dict) -> "SimulationSnapshot":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class PortfolioSiteOverride:
    """Per-site values that take precedence over the site's simulation."""

    pv_size_kw: Optional[float] = None
    battery_kwh: Optional[float] = None
    capex_net: Optional[float] = None
    npv: Optional[float] = None
    irr: Optional[float] = None
    annual_savings: Optional[float] = None

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in self.__dataclass_fields__)

    def to_dict(self) -> dict:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}

    @classmethod
    def from_dict(cls, data: dict) -> "PortfolioSiteOverride":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class PortfolioSite:
    """A site attached to a portfolio, with its latest simulation and overrides."""

    site_id: str = ""
    name: str = ""
    latest_simulation: Optional[SimulationSnapshot] = None
    override: PortfolioSiteOverride = field(default_factory=PortfolioSiteOverride)

    def to_dict(self) -> dict:
        return {
            "site_id": self.site_id,
            "name": self.name,
            "latest_simulation": self.latest_simulation.to_dict() if self.latest_simulation else None,
            "override": self.override.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PortfolioSite":
        sim = data.get("latest_simulation")
        return cls(
            site_id=str(data.get("site_id", "")),
            name=data.get("name", ""),
            latest_simulation=SimulationSnapshot.from_dict(sim) if sim else None,
            override=PortfolioSiteOverride.from_dict(data.get("override") or {}),
        )

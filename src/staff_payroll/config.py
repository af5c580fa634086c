"""Configuration management for the staff payroll engine.

Two layers:

    Settings         - process settings loaded from the environment.
    StatutoryPolicy  - deduction tables and rates, loaded once at startup and
                       passed explicitly to the calculators.

Policy rules:
    1. Tables are data, never conditionals in code.
    2. Immutable after creation (frozen dataclasses).
    3. Validated on construction; a malformed table fails startup.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import load_dotenv


class PolicyConfigError(ValueError):
    """Raised when a statutory policy table is malformed."""


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    database_url: str
    engine_version: str
    host: str
    port: int
    debug: bool
    policy_file: str | None = None
    proration_strategy: str = "period_end_month"
    create_schema: bool = True
    log_level: str = "INFO"

    @property
    def HOST(self) -> str:
        """Alias for host."""
        return self.host

    @property
    def PORT(self) -> int:
        """Alias for port."""
        return self.port

    @property
    def DEBUG(self) -> bool:
        """Alias for debug."""
        return self.debug

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            database_url=os.getenv(
                "DATABASE_URL",
                "sqlite+aiosqlite:///./staff_payroll.db",
            ),
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            policy_file=os.getenv("POLICY_FILE") or None,
            proration_strategy=os.getenv("PRORATION_STRATEGY", "period_end_month"),
            create_schema=os.getenv("CREATE_SCHEMA", "true").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()


# ============================================================================
# Statutory policy
# ============================================================================


def _to_decimal(value: Any, what: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise PolicyConfigError(f"{what}: {value!r} is not a number") from e


@dataclass(frozen=True)
class FlatRateBand:
    """One step of the banded flat-rate contribution."""

    upper_bound: Decimal  # inclusive
    amount: Decimal


@dataclass(frozen=True)
class TaxBracket:
    """Annual income tax bracket. upper_bound None = no upper limit."""

    upper_bound: Decimal | None  # inclusive
    rate: Decimal  # As decimal, e.g., 0.25 for 25%


@dataclass(frozen=True)
class TwoTierConfig:
    """Pension-equivalent contribution over two slices of gross pay."""

    threshold1: Decimal
    threshold2: Decimal
    rate: Decimal

    def __post_init__(self) -> None:
        if self.threshold1 <= 0:
            raise PolicyConfigError("two_tier.threshold1 must be positive")
        if self.threshold2 < self.threshold1:
            raise PolicyConfigError("two_tier.threshold2 must be >= threshold1")
        if not 0 <= self.rate <= 1:
            raise PolicyConfigError("two_tier.rate must be between 0 and 1")


@dataclass(frozen=True)
class LineLabels:
    """Display labels and codes for the statutory lines."""

    basic: str = "Basic"
    flat_rate: str = "NHIF"
    levy: str = "Housing Levy"
    two_tier: str = "NSSF"
    income_tax: str = "PAYE"


@dataclass(frozen=True)
class StatutoryPolicy:
    """
    Deduction tables and rates.

    Attributes:
        currency: ISO currency code stamped on every record.
        flat_rate_bands: Ascending (upper_bound_inclusive, amount) steps.
        flat_rate_ceiling: Amount applied above the highest band.
        two_tier: Thresholds and rate of the two-tier contribution.
        levy_rate: Flat percentage levy on gross, as a decimal.
        income_tax_brackets: Ascending annual brackets; the last may be open.
        annual_personal_relief: Subtracted from annual tax, clamped at zero.
    """

    currency: str
    flat_rate_bands: tuple[FlatRateBand, ...]
    flat_rate_ceiling: Decimal
    two_tier: TwoTierConfig
    levy_rate: Decimal
    income_tax_brackets: tuple[TaxBracket, ...]
    annual_personal_relief: Decimal
    labels: LineLabels = field(default_factory=LineLabels)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.flat_rate_bands:
            raise PolicyConfigError("flat_rate_bands must not be empty")
        bounds = [b.upper_bound for b in self.flat_rate_bands]
        if any(later <= earlier for earlier, later in zip(bounds, bounds[1:])):
            raise PolicyConfigError("flat_rate_bands must be strictly ascending")
        if any(b.amount < 0 for b in self.flat_rate_bands) or self.flat_rate_ceiling < 0:
            raise PolicyConfigError("flat-rate amounts must be non-negative")

        if not 0 <= self.levy_rate <= 1:
            raise PolicyConfigError("levy_rate must be between 0 and 1")

        if not self.income_tax_brackets:
            raise PolicyConfigError("income_tax_brackets must not be empty")
        for i, bracket in enumerate(self.income_tax_brackets):
            if not 0 <= bracket.rate <= 1:
                raise PolicyConfigError(f"income_tax_brackets[{i}].rate must be between 0 and 1")
            if bracket.upper_bound is None and i != len(self.income_tax_brackets) - 1:
                raise PolicyConfigError("only the last income tax bracket may be open-ended")
        closed = [b.upper_bound for b in self.income_tax_brackets if b.upper_bound is not None]
        if any(later <= earlier for earlier, later in zip(closed, closed[1:])):
            raise PolicyConfigError("income_tax_brackets must be strictly ascending")

        if self.annual_personal_relief < 0:
            raise PolicyConfigError("annual_personal_relief must be non-negative")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StatutoryPolicy:
        """Build a policy from its JSON representation.

        {
            "currency": "KES",
            "flat_rate": {"bands": [[5999, 150], ...], "ceiling": 1700},
            "two_tier": {"threshold1": 7000, "threshold2": 36000, "rate": 0.06},
            "levy_rate": 0.015,
            "income_tax": {"brackets": [[288000, 0.10], ..., [null, 0.35]],
                           "annual_relief": 28800},
            "labels": {...}  // optional
        }
        """
        try:
            flat = data["flat_rate"]
            tiers = data["two_tier"]
            income = data["income_tax"]
            return cls(
                currency=str(data.get("currency", "KES")),
                flat_rate_bands=tuple(
                    FlatRateBand(
                        upper_bound=_to_decimal(bound, "flat_rate.bands"),
                        amount=_to_decimal(amount, "flat_rate.bands"),
                    )
                    for bound, amount in flat["bands"]
                ),
                flat_rate_ceiling=_to_decimal(flat["ceiling"], "flat_rate.ceiling"),
                two_tier=TwoTierConfig(
                    threshold1=_to_decimal(tiers["threshold1"], "two_tier.threshold1"),
                    threshold2=_to_decimal(tiers["threshold2"], "two_tier.threshold2"),
                    rate=_to_decimal(tiers["rate"], "two_tier.rate"),
                ),
                levy_rate=_to_decimal(data["levy_rate"], "levy_rate"),
                income_tax_brackets=tuple(
                    TaxBracket(
                        upper_bound=(
                            _to_decimal(bound, "income_tax.brackets")
                            if bound is not None
                            else None
                        ),
                        rate=_to_decimal(rate, "income_tax.brackets"),
                    )
                    for bound, rate in income["brackets"]
                ),
                annual_personal_relief=_to_decimal(
                    income.get("annual_relief", 0), "income_tax.annual_relief"
                ),
                labels=LineLabels(**data.get("labels", {})),
            )
        except (KeyError, TypeError) as e:
            raise PolicyConfigError(f"Malformed policy: {e}") from e


DEFAULT_POLICY: dict[str, Any] = {
    "currency": "KES",
    "flat_rate": {
        "bands": [
            [5999, 150],
            [7999, 300],
            [11999, 400],
            [14999, 500],
            [19999, 600],
            [24999, 750],
            [29999, 850],
            [34999, 900],
            [39999, 950],
            [44999, 1000],
            [49999, 1100],
            [59999, 1200],
            [69999, 1300],
            [79999, 1400],
            [89999, 1500],
            [99999, 1600],
        ],
        "ceiling": 1700,
    },
    "two_tier": {"threshold1": 7000, "threshold2": 36000, "rate": "0.06"},
    "levy_rate": "0.015",
    "income_tax": {
        "brackets": [
            [288000, "0.10"],
            [388000, "0.25"],
            [6000000, "0.30"],
            [9600000, "0.325"],
            [None, "0.35"],
        ],
        "annual_relief": 28800,
    },
}


def load_policy(path: str | None = None) -> StatutoryPolicy:
    """Load the statutory policy from a JSON file, or the default tables."""
    if path is None:
        return StatutoryPolicy.from_dict(DEFAULT_POLICY)

    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise PolicyConfigError(f"Cannot read policy file {path}: {e}") from e
    return StatutoryPolicy.from_dict(data)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

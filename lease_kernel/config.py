"""
Lease Lifecycle Configuration (``lease_kernel.config``).

Responsibility
--------------
Holds the platform settings of the lease kernel -- deposit cap, expiration
window, write-retry budget, database URL and log level -- and loads them
from a YAML file.  Services receive a ``LeaseConfig`` through their
constructors; nothing else reads configuration files.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key or out-of-range value  -> ``ConfigurationError``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from pathlib import Path
from typing import Any, Self

import yaml

from lease_kernel.domain.expiration import DEFAULT_EXPIRING_WINDOW_DAYS
from lease_kernel.domain.validation import DEFAULT_DEPOSIT_CAP, to_decimal
from lease_kernel.exceptions import ConfigurationError, ValidationError
from lease_kernel.logging_config import get_logger

logger = get_logger("config")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LeaseConfig:
    """Configuration schema for the lease lifecycle kernel."""

    # Platform cap on the security deposit (currency units)
    deposit_cap: Decimal = DEFAULT_DEPOSIT_CAP

    # Days before end_date during which an active lease is EXPIRING_SOON
    expiring_window_days: int = DEFAULT_EXPIRING_WINDOW_DAYS

    # Full read-decide-write attempts before a conflict is surfaced
    max_write_attempts: int = 3

    database_url: str = "sqlite:///leases.db"
    log_level: str = "INFO"

    def __post_init__(self):
        if self.deposit_cap < 0:
            raise ConfigurationError("deposit_cap", "cannot be negative")
        if self.expiring_window_days <= 0:
            raise ConfigurationError("expiring_window_days", "must be positive")
        if self.max_write_attempts < 1:
            raise ConfigurationError("max_write_attempts", "must be at least 1")
        if not self.database_url:
            raise ConfigurationError("database_url", "is required")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigurationError(
                "log_level", f"must be one of {', '.join(_LOG_LEVELS)}"
            )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the platform defaults."""
        return cls()

    @classmethod
    def from_mapping(cls, raw: dict[str, Any]) -> Self:
        """Build a config from a parsed YAML mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigurationError(unknown[0], "unknown configuration key")

        values = dict(raw)
        if "deposit_cap" in values:
            try:
                values["deposit_cap"] = to_decimal(values["deposit_cap"], "deposit_cap")
            except ValidationError as exc:
                raise ConfigurationError("deposit_cap", exc.reason) from exc
        for key in ("expiring_window_days", "max_write_attempts"):
            if key in values and (
                isinstance(values[key], bool) or not isinstance(values[key], int)
            ):
                raise ConfigurationError(key, "must be an integer")
        for key in ("database_url", "log_level"):
            if key in values and not isinstance(values[key], str):
                raise ConfigurationError(key, "must be a string")
        return cls(**values)


def load_lease_config(path: Path | str | None = None) -> LeaseConfig:
    """Load a ``LeaseConfig`` from YAML; defaults when ``path`` is None.

    The file holds a flat mapping whose keys are ``LeaseConfig`` field
    names.  An empty file yields the defaults.
    """
    if path is None:
        config = LeaseConfig.with_defaults()
        source = "defaults"
    else:
        path = Path(path)
        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
        if not isinstance(raw, dict):
            raise ConfigurationError(str(path), "top level must be a mapping")
        config = LeaseConfig.from_mapping(raw)
        source = str(path)

    logger.info(
        "lease_config_loaded",
        extra={
            "source": source,
            "deposit_cap": str(config.deposit_cap),
            "expiring_window_days": config.expiring_window_days,
            "max_write_attempts": config.max_write_attempts,
        },
    )
    return config

"""calgrid.config_loader

Config loader for calgrid.

- Reads YAML with PyYAML.
- Exposes a typed dataclass `Config` and a `load_config()` helper that accepts
  an optional path override.
- CALGRID_TIMEZONE and CALGRID_LOG_LEVEL override the file values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .grid_config import GridConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("calgrid.yaml")


@dataclass
class Config:
    """Typed configuration for calgrid.

    Fields:
        timezone: IANA timezone the weekly grid is drawn in
        week_start: first column of the grid ("sunday" or "monday")
        day_start_hour: first displayed hour (0..23)
        day_end_hour: closing hour (1..24, after day_start_hour)
        slot_minutes: slot length; must divide the daily span
        request_timeout: HTTP read timeout in seconds for feed downloads
        max_retries: retries for timeouts and connection errors
        retry_backoff_factor: base of the exponential retry backoff
        log_level: logging level name
    """

    timezone: str = "UTC"
    week_start: str = "sunday"
    day_start_hour: int = 8
    day_end_hour: int = 22
    slot_minutes: int = 30
    request_timeout: int = 30
    max_retries: int = 3
    retry_backoff_factor: float = 1.5
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Values that cannot be used are replaced by their defaults with a
        warning, so the resulting Config always yields a valid GridConfig.
        """
        if data is None:
            data = {}
        defaults = cls()

        def _coerce_int(key: str, default: int) -> int:
            raw = data.get(key, default)
            try:
                return int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default

        timezone = str(data.get("timezone", defaults.timezone))
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Config timezone %r is unknown; using %s", timezone, defaults.timezone)
            timezone = defaults.timezone

        week_start = str(data.get("week_start", defaults.week_start)).lower()
        if week_start not in ("sunday", "monday"):
            logger.warning("Config week_start %r not supported; using sunday", week_start)
            week_start = defaults.week_start

        day_start = _coerce_int("day_start_hour", defaults.day_start_hour)
        day_end = _coerce_int("day_end_hour", defaults.day_end_hour)
        if not 0 <= day_start < day_end <= 24:
            logger.warning(
                "Config hours %d..%d are invalid; using %d..%d",
                day_start,
                day_end,
                defaults.day_start_hour,
                defaults.day_end_hour,
            )
            day_start, day_end = defaults.day_start_hour, defaults.day_end_hour

        slot_minutes = _coerce_int("slot_minutes", defaults.slot_minutes)
        if (
            slot_minutes <= 0
            or (60 % slot_minutes and slot_minutes % 60)
            or ((day_end - day_start) * 60) % slot_minutes
        ):
            logger.warning(
                "Config slot_minutes=%d does not fit the hour and the day; using %d",
                slot_minutes,
                defaults.slot_minutes,
            )
            slot_minutes = defaults.slot_minutes

        request_timeout = max(1, _coerce_int("request_timeout", defaults.request_timeout))
        max_retries = max(0, _coerce_int("max_retries", defaults.max_retries))

        backoff_raw = data.get("retry_backoff_factor", defaults.retry_backoff_factor)
        try:
            retry_backoff_factor = float(backoff_raw)
        except (TypeError, ValueError):
            logger.warning("Config retry_backoff_factor=%r is not a number", backoff_raw)
            retry_backoff_factor = defaults.retry_backoff_factor

        log_level = data.get("log_level", defaults.log_level)
        log_level = str(log_level).upper() if log_level is not None else defaults.log_level

        return cls(
            timezone=timezone,
            week_start=week_start,
            day_start_hour=day_start,
            day_end_hour=day_end,
            slot_minutes=slot_minutes,
            request_timeout=request_timeout,
            max_retries=max_retries,
            retry_backoff_factor=retry_backoff_factor,
            log_level=log_level,
        )

    def grid(self) -> GridConfig:
        """Grid configuration described by this config."""
        return GridConfig(
            day_start_hour=self.day_start_hour,
            day_end_hour=self.day_end_hour,
            slot_minutes=self.slot_minutes,
            week_start=self.week_start,
            timezone=self.timezone,
        )


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    overrides = {
        "timezone": os.environ.get("CALGRID_TIMEZONE"),
        "log_level": os.environ.get("CALGRID_LOG_LEVEL"),
    }
    for key, value in overrides.items():
        if value:
            logger.debug("Environment override %s=%s", key, value)
            data[key] = value
    return data


def load_config(path: str | None = None) -> Config:
    """Load configuration from a YAML file and return a Config instance.

    Args:
        path: Optional path to the config file. Defaults to ./calgrid.yaml.

    Behavior:
    - If file is missing: returns defaults (plus environment overrides).
    - If file exists but top-level is not a mapping: raises ValueError.
    """
    p = Path(path) if path else Path.cwd() / DEFAULT_CONFIG_PATH
    logger.debug("Attempting to load config from %s", p)

    raw: Any = {}
    if p.exists():
        raw = yaml.safe_load(p.read_text())
        # safe_load returns None for empty files
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
            raise ValueError("Config file must contain a mapping at top level")  # noqa: TRY004
        logger.info("Loaded configuration from %s", p)
    else:
        logger.info("Config file %s not found; using defaults", p)

    cfg = Config.from_dict(_apply_env_overrides(dict(raw)))
    logger.debug("Configuration values: %s", cfg)
    return cfg

"""Load, validate, and hot-reload the calculator configuration.

The config lives in ``calculator_config.yaml`` alongside this module (or at
``Settings.calculator_config_path``).  It is loaded once and cached.  Call
``reload_calculator_config()`` to re-read it from disk after an update.

Usage::

    from period_calculator.config_loader import get_calculator_config

    config = get_calculator_config()
    settings = config.period_settings()       # PeriodSettings(30 / 5)
    config.aggregation.max_concurrent         # 8
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

import yaml

from period_calculator.models import PeriodSettings, PillSettings

logger = logging.getLogger("period_calculator.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "calculator_config.yaml"

# Cycle lengths outside this band are accepted but logged.
_PLAUSIBLE_CYCLE_DAYS = (15, 60)


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class PeriodDefaultsConfig:
    """Cycle settings used for users without stored settings."""

    cycle_length: int = 30
    period_length: int = 5
    use_auto_calc: bool = False


@dataclass
class PillDefaultsConfig:
    """Default pill pack layout."""

    use_for_calculation: bool = False
    active_pill_count: int = 21
    rest_days: int = 7


@dataclass
class AggregationConfig:
    """Calendar aggregation service settings.

    Attributes:
        max_concurrent:         Day statuses computed at once per overview.
        status_lookaround_days: Records loaded before/after a status date.
    """

    max_concurrent: int = 8
    status_lookaround_days: int = 90


@dataclass
class CalculatorConfig:
    """Complete, validated calculator configuration.

    Attributes:
        version:         Config schema version string.
        period_defaults: Default cycle settings.
        pill_defaults:   Default pill settings.
        aggregation:     Aggregation service settings.
    """

    version: str
    period_defaults: PeriodDefaultsConfig
    pill_defaults: PillDefaultsConfig
    aggregation: AggregationConfig

    def period_settings(self) -> PeriodSettings:
        """Build the default ``PeriodSettings``.

        The configured values fill both the manual and automatic slots, so
        the result is the same whichever ``use_auto_calc`` selects.
        """
        d = self.period_defaults
        return PeriodSettings(
            manual_cycle_length=d.cycle_length,
            manual_period_length=d.period_length,
            auto_cycle_length=d.cycle_length,
            auto_period_length=d.period_length,
            use_auto_calc=d.use_auto_calc,
        )

    def pill_settings(self) -> PillSettings:
        d = self.pill_defaults
        return PillSettings(
            use_for_calculation=d.use_for_calculation,
            active_pill_count=d.active_pill_count,
            rest_days=d.rest_days,
        )


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when calculator_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Calculator config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigValidationError(f"{path} must contain a mapping at the top level")
    return raw


def _validate_and_build(raw: dict) -> CalculatorConfig:
    """Validate the raw YAML dict and construct a CalculatorConfig.

    Every problem is collected before raising, so one error report lists
    all of them.

    Raises:
        ConfigValidationError: If any value is missing its type or range.
    """
    errors: list[str] = []

    def _section(name: str) -> dict:
        value = raw.get(name, {}) or {}
        if not isinstance(value, dict):
            errors.append(f"'{name}' must be a mapping")
            return {}
        return value

    def _int(section: dict, key: str, section_name: str, default: int, minimum: int) -> int:
        value = section.get(key, default)
        if isinstance(value, bool):
            errors.append(f"{section_name}.{key} must be an integer, got {value!r}")
            return default
        try:
            number = int(value)
        except (TypeError, ValueError):
            errors.append(f"{section_name}.{key} must be an integer, got {value!r}")
            return default
        if number < minimum:
            errors.append(f"{section_name}.{key} = {number} must be >= {minimum}")
        return number

    def _bool(section: dict, key: str, section_name: str, default: bool) -> bool:
        value = section.get(key, default)
        if not isinstance(value, bool):
            errors.append(f"{section_name}.{key} must be true or false, got {value!r}")
            return default
        return value

    version = str(raw.get("version", "1.0"))

    # ── Period defaults ──
    pd_raw = _section("period_defaults")
    period_defaults = PeriodDefaultsConfig(
        cycle_length=_int(pd_raw, "cycle_length", "period_defaults", 30, 1),
        period_length=_int(pd_raw, "period_length", "period_defaults", 5, 1),
        use_auto_calc=_bool(pd_raw, "use_auto_calc", "period_defaults", False),
    )
    low, high = _PLAUSIBLE_CYCLE_DAYS
    if not low <= period_defaults.cycle_length <= high:
        logger.warning(
            "period_defaults.cycle_length = %d is outside the usual %d-%d day range",
            period_defaults.cycle_length, low, high,
        )
    if period_defaults.period_length > period_defaults.cycle_length:
        errors.append("period_defaults.period_length must not exceed cycle_length")

    # ── Pill defaults ──
    pl_raw = _section("pill_defaults")
    pill_defaults = PillDefaultsConfig(
        use_for_calculation=_bool(pl_raw, "use_for_calculation", "pill_defaults", False),
        active_pill_count=_int(pl_raw, "active_pill_count", "pill_defaults", 21, 1),
        rest_days=_int(pl_raw, "rest_days", "pill_defaults", 7, 0),
    )

    # ── Aggregation ──
    ag_raw = _section("aggregation")
    aggregation = AggregationConfig(
        max_concurrent=_int(ag_raw, "max_concurrent", "aggregation", 8, 1),
        status_lookaround_days=_int(ag_raw, "status_lookaround_days", "aggregation", 90, 1),
    )

    if errors:
        raise ConfigValidationError(
            f"calculator_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return CalculatorConfig(
        version=version,
        period_defaults=period_defaults,
        pill_defaults=pill_defaults,
        aggregation=aggregation,
    )


def load_calculator_config(path: Path | None = None) -> CalculatorConfig:
    """Load and validate the calculator config from disk.

    Args:
        path: Override path to YAML. Uses the bundled calculator_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded calculator config v%s from %s", config.version, target)
    return config


def _configured_path() -> Path | None:
    from period_calculator.config import get_settings

    configured = get_settings().calculator_config_path
    return Path(configured) if configured else None


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: CalculatorConfig | None = None
_config_lock = threading.Lock()


def get_calculator_config() -> CalculatorConfig:
    """Return the global CalculatorConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_calculator_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                _config = load_calculator_config(_configured_path())
    return _config


def reload_calculator_config(path: Path | None = None) -> CalculatorConfig:
    """Re-read the config from disk and replace the global singleton.

    A failed reload raises and leaves the previous config in place.

    Args:
        path: Override path to YAML. Defaults to the configured or bundled file.
    """
    global _config
    new_config = load_calculator_config(path or _configured_path())
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded calculator config: %s → %s", old_version, new_config.version)
    return new_config

"""Loading and saving histogram configurations.

Settings dictionaries come in two styles, mirroring the two factories:

    Bins style:   {"first_edge": 1.0, "bin_count": 5, "bin_width": 0.5}
    Range style:  {"min": 1.0, "max": 4.0, "bin_width": 0.5, "round_range": true}

Both accept the optional flags "integer_bins" and "include_all". Saved
settings always use the bins style with the geometry already resolved.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from framehist.config.settings import HistogramSettings
from framehist.config.values import HistogramConfig

logger = logging.getLogger(__name__)

_BINS_KEYS = {"first_edge", "bin_count", "bin_width", "integer_bins", "include_all"}
_RANGE_KEYS = {
    "min",
    "max",
    "bin_count",
    "bin_width",
    "integer_bins",
    "round_range",
    "include_all",
}
_CONFIG_KEYS = {"settings", "kind", "n_columns", "empty_value"}


def _check_keys(d: dict, allowed: set[str], what: str) -> None:
    unknown = set(d) - allowed
    if unknown:
        raise ValueError(f"Unknown {what} keys: {', '.join(sorted(unknown))}")


# ============================================================================
# Settings
# ============================================================================


def settings_from_dict(d: dict) -> HistogramSettings:
    """Create HistogramSettings from dictionary.

    :param d: Dictionary in bins or range style
    :returns: HistogramSettings instance
    :raises ValueError: On unknown keys or an invalid bin specification
    """
    if "min" in d or "max" in d:
        _check_keys(d, _RANGE_KEYS, "range settings")
        if "min" not in d or "max" not in d:
            raise ValueError("range settings need both 'min' and 'max'")
        return HistogramSettings.from_range(
            d["min"],
            d["max"],
            bin_count=d.get("bin_count"),
            bin_width=d.get("bin_width"),
            integer_bins=d.get("integer_bins", False),
            round_range=d.get("round_range", False),
            include_all=d.get("include_all", False),
        )

    _check_keys(d, _BINS_KEYS, "bins settings")
    missing = {"first_edge", "bin_count", "bin_width"} - set(d)
    if missing:
        raise ValueError(f"bins settings missing keys: {', '.join(sorted(missing))}")
    return HistogramSettings.from_bins(
        d["first_edge"],
        d["bin_count"],
        d["bin_width"],
        integer_bins=d.get("integer_bins", False),
        include_all=d.get("include_all", False),
    )


def settings_to_dict(settings: HistogramSettings) -> dict:
    """Convert HistogramSettings to dictionary.

    :param settings: HistogramSettings instance
    :returns: Bins-style dictionary representation
    """
    return {
        "first_edge": float(settings.first_edge),
        "bin_count": int(settings.bin_count),
        "bin_width": float(settings.bin_width),
        "include_all": bool(settings.include_out_of_range),
    }


# ============================================================================
# Configs
# ============================================================================


def config_from_dict(d: dict) -> HistogramConfig:
    """Create HistogramConfig from dictionary.

    :param d: Dictionary with a nested "settings" dictionary
    :returns: HistogramConfig instance
    """
    _check_keys(d, _CONFIG_KEYS, "config")
    if "settings" not in d:
        raise ValueError("config needs a 'settings' entry")
    return HistogramConfig(
        settings=settings_from_dict(d["settings"]),
        kind=d.get("kind", "count"),
        n_columns=d.get("n_columns", 1),
        empty_value=float(d.get("empty_value", 0.0)),
    )


def config_to_dict(config: HistogramConfig) -> dict:
    """Convert HistogramConfig to dictionary.

    :param config: HistogramConfig instance
    :returns: Dictionary representation
    """
    return {
        "settings": settings_to_dict(config.settings),
        "kind": config.kind,
        "n_columns": config.n_columns,
        "empty_value": config.empty_value,
    }


def load_config_json(path: str | Path) -> HistogramConfig:
    """Load HistogramConfig from JSON file.

    :param path: Path to JSON file
    :returns: HistogramConfig instance
    """
    with open(path) as f:
        d = json.load(f)
    config = config_from_dict(d)
    logger.debug("Loaded histogram config from %s", path)
    return config


def save_config_json(config: HistogramConfig, path: str | Path) -> None:
    """Save HistogramConfig to JSON file.

    A nan empty value is written as JSON ``NaN``, which :func:`json.load` reads back.

    :param config: HistogramConfig instance
    :param path: Output path
    """
    with open(path, "w") as f:
        json.dump(config_to_dict(config), f, indent=2)

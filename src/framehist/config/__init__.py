"""Configuration module for framehist.

Usage:
    from framehist.config import histogram_from_range, HistogramConfig

    settings = histogram_from_range(1.0, 3.0, bin_count=4)
    config = HistogramConfig(settings=settings, kind="weighted_sum")
"""

from framehist.config.loading import (
    config_from_dict,
    config_to_dict,
    load_config_json,
    save_config_json,
    settings_from_dict,
    settings_to_dict,
)
from framehist.config.settings import (
    HistogramSettings,
    histogram_from_bins,
    histogram_from_range,
)
from framehist.config.values import ACCUMULATOR_KINDS, AccumulatorKind, HistogramConfig

__all__ = [
    "HistogramSettings",
    "histogram_from_bins",
    "histogram_from_range",
    "HistogramConfig",
    "AccumulatorKind",
    "ACCUMULATOR_KINDS",
    "settings_from_dict",
    "settings_to_dict",
    "config_from_dict",
    "config_to_dict",
    "load_config_json",
    "save_config_json",
]

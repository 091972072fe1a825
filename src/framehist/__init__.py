"""
framehist - Streaming frame histograms

Bin per-frame sample streams into histogram rows and average them over
frames into per-bin means with standard errors.

Features:
- Bin geometry from explicit bins or from a value range
- Integer-centered bins, range rounding, out-of-range clamping
- Counting, weighted-sum and weighted-average per-frame accumulators
- Running per-bin mean/standard error (Welford) over frames
- Independent clones and double-bin-width resampling
- Event-driven module for frame pipelines
- Numba-compiled binning kernels

Example:
    >>> from framehist import HistogramModule, Frame, PointSet, histogram_from_range
    >>>
    >>> settings = histogram_from_range(1.0, 3.0, bin_count=4)
    >>> module = HistogramModule.counting(settings)
    >>> average = module.process([
    ...     Frame(0, [PointSet([0.7, 1.1, 2.3, 2.9])]),
    ...     Frame(1, [PointSet([1.3, 2.2])]),
    ... ])
    >>> average.pairs()
"""

__version__ = "0.1.0"

from framehist.config import (
    ACCUMULATOR_KINDS,
    HistogramConfig,
    HistogramSettings,
    config_from_dict,
    config_to_dict,
    histogram_from_bins,
    histogram_from_range,
    load_config_json,
    save_config_json,
    settings_from_dict,
    settings_to_dict,
)
from framehist.histogram import (
    AverageHistogram,
    CountingAccumulator,
    FrameRow,
    HistogramAverage,
    HistogramState,
    WeightedAverageAccumulator,
    WeightedSumAccumulator,
    create_accumulator,
)
from framehist.pipeline import Frame, HistogramModule, PointSet
from framehist.protocols import FrameAccumulator, FrameConsumer

__all__ = [
    # Version
    "__version__",
    # Settings and config
    "HistogramSettings",
    "histogram_from_bins",
    "histogram_from_range",
    "HistogramConfig",
    "ACCUMULATOR_KINDS",
    "settings_from_dict",
    "settings_to_dict",
    "config_from_dict",
    "config_to_dict",
    "load_config_json",
    "save_config_json",
    # Accumulators
    "FrameRow",
    "CountingAccumulator",
    "WeightedSumAccumulator",
    "WeightedAverageAccumulator",
    "create_accumulator",
    # Averaging
    "AverageHistogram",
    "HistogramState",
    "HistogramAverage",
    # Pipeline
    "HistogramModule",
    "Frame",
    "PointSet",
    # Protocols
    "FrameAccumulator",
    "FrameConsumer",
]

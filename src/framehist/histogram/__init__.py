"""Histogram computation module.

Bin per-frame samples into rows and average the rows over frames.

Example:
    >>> from framehist import histogram_from_range
    >>> from framehist.histogram import AverageHistogram, CountingAccumulator
    >>>
    >>> settings = histogram_from_range(1.0, 3.0, bin_count=4)
    >>> acc = CountingAccumulator(settings)
    >>> average = AverageHistogram(settings)
    >>> for i, samples in enumerate(frames):
    ...     average.add_frame(acc.process_frame(i, [(0, samples)]))
    >>> result = average.done()
    >>> coarse = average.resample_double_bin_width()
"""

from framehist.histogram.accumulators import (
    CountingAccumulator,
    FrameRow,
    WeightedAverageAccumulator,
    WeightedSumAccumulator,
    accumulator_from_config,
    create_accumulator,
    find_bins,
)
from framehist.histogram.average import AverageHistogram, HistogramState
from framehist.histogram.result import HistogramAverage

__all__ = [
    "FrameRow",
    "CountingAccumulator",
    "WeightedSumAccumulator",
    "WeightedAverageAccumulator",
    "create_accumulator",
    "accumulator_from_config",
    "find_bins",
    "AverageHistogram",
    "HistogramState",
    "HistogramAverage",
]

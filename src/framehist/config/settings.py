"""Histogram bin geometry.

This module defines the immutable HistogramSettings value that every
accumulator and average histogram shares, together with the two factory
styles used to build it.

Example:
    >>> from framehist import histogram_from_bins, histogram_from_range
    >>>
    >>> settings = histogram_from_bins(1.0, 5, 0.5)
    >>> settings.last_edge
    3.5
    >>> histogram_from_range(1.0, 4.0, bin_width=0.5).bin_count
    6
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# Slack for range rounding, so that 3.0 / 0.1 does not round up to 31 bins
_ROUND_TOLERANCE = 1e-9


@dataclass(frozen=True)
class HistogramSettings:
    """Bin geometry of a histogram.

    Bin ``i`` covers ``[first_edge + i * bin_width, first_edge + (i + 1) * bin_width)``.

    Attributes:
        first_edge: Lower edge of the first bin
        bin_width: Width of every bin (> 0)
        bin_count: Number of bins (>= 1)
        include_out_of_range: Clamp out-of-range samples into the boundary
            bins instead of discarding them
    """

    first_edge: float
    bin_width: float
    bin_count: int
    include_out_of_range: bool = False

    def __post_init__(self):
        if not math.isfinite(self.first_edge):
            raise ValueError(f"first_edge must be finite, got {self.first_edge}")
        if not math.isfinite(self.bin_width) or self.bin_width <= 0:
            raise ValueError(f"bin_width must be positive, got {self.bin_width}")
        if isinstance(self.bin_count, bool) or not isinstance(self.bin_count, int | np.integer):
            raise ValueError(f"bin_count must be an integer, got {type(self.bin_count).__name__}")
        if self.bin_count < 1:
            raise ValueError(f"bin_count must be at least 1, got {self.bin_count}")

    # ========================================================================
    # Factory methods
    # ========================================================================

    @classmethod
    def from_bins(
        cls,
        start: float,
        count: int,
        width: float,
        *,
        integer_bins: bool = False,
        include_all: bool = False,
    ) -> HistogramSettings:
        """Create settings from an explicit first edge, bin count and width.

        :param start: Lower edge of the first bin
        :param count: Number of bins
        :param width: Bin width
        :param integer_bins: Shift the bins down by half a width so that
            ``start`` becomes the center of the first bin
        :param include_all: Clamp out-of-range samples into the boundary bins
        :returns: Validated HistogramSettings
        :raises ValueError: If count < 1 or width <= 0
        """
        width = float(width)
        if not width > 0:
            raise ValueError(f"bin_width must be positive, got {width}")

        first_edge = float(start)
        if integer_bins:
            first_edge -= 0.5 * width

        settings = cls(
            first_edge=first_edge,
            bin_width=width,
            bin_count=count,
            include_out_of_range=include_all,
        )
        logger.debug("Histogram settings from bins: %s", settings)
        return settings

    @classmethod
    def from_range(
        cls,
        min_value: float,
        max_value: float,
        *,
        bin_count: int | None = None,
        bin_width: float | None = None,
        integer_bins: bool = False,
        round_range: bool = False,
        include_all: bool = False,
    ) -> HistogramSettings:
        """Create settings covering ``[min_value, max_value]``.

        Exactly one of ``bin_count`` and ``bin_width`` must be given.

        With ``integer_bins``, ``min_value`` and ``max_value`` become the
        centers of the first and last bins: the range grows by half a bin at
        both ends.

        :param min_value: Lower end of the range
        :param max_value: Upper end of the range
        :param bin_count: Number of bins the range is split into
        :param bin_width: Width of the bins; the count is rounded to fit
        :param integer_bins: Center the boundary bins on the range ends
        :param round_range: Expand the range outwards to multiples of
            ``bin_width`` (requires ``bin_width``)
        :param include_all: Clamp out-of-range samples into the boundary bins
        :returns: Validated HistogramSettings
        :raises ValueError: On an empty range or an invalid bin specification
        """
        min_value = float(min_value)
        max_value = float(max_value)
        if not (math.isfinite(min_value) and math.isfinite(max_value)):
            raise ValueError(f"range must be finite, got [{min_value}, {max_value}]")
        if max_value <= min_value:
            raise ValueError(f"max_value ({max_value}) must be greater than min_value ({min_value})")
        if (bin_count is None) == (bin_width is None):
            raise ValueError("exactly one of bin_count and bin_width must be given")
        if round_range and bin_width is None:
            raise ValueError("round_range requires bin_width")

        if bin_width is not None:
            width = float(bin_width)
            if not width > 0:
                raise ValueError(f"bin_width must be positive, got {width}")
            if round_range:
                min_value = width * math.floor(min_value / width + _ROUND_TOLERANCE)
                max_value = width * math.ceil(max_value / width - _ROUND_TOLERANCE)
            count = int(math.floor((max_value - min_value) / width + 0.5))
            if integer_bins:
                min_value -= 0.5 * width
                count += 1
        else:
            count = bin_count
            if isinstance(count, bool) or not isinstance(count, int | np.integer):
                raise ValueError(f"bin_count must be an integer, got {type(count).__name__}")
            if integer_bins:
                if count < 2:
                    raise ValueError("integer_bins with a range needs at least 2 bins")
                width = (max_value - min_value) / (count - 1)
                min_value -= 0.5 * width
            else:
                if count < 1:
                    raise ValueError(f"bin_count must be at least 1, got {count}")
                width = (max_value - min_value) / count

        settings = cls(
            first_edge=min_value,
            bin_width=width,
            bin_count=int(count),
            include_out_of_range=include_all,
        )
        logger.debug("Histogram settings from range: %s", settings)
        return settings

    # ========================================================================
    # Derived geometry
    # ========================================================================

    @property
    def last_edge(self) -> float:
        """Upper edge of the last bin."""
        return self.first_edge + self.bin_width * self.bin_count

    @property
    def bin_edges(self) -> NDArray[np.float64]:
        """Bin edges, shape [bin_count + 1]."""
        return self.first_edge + self.bin_width * np.arange(self.bin_count + 1, dtype=np.float64)

    @property
    def bin_centers(self) -> NDArray[np.float64]:
        """Bin centers, shape [bin_count]."""
        return self.first_edge + self.bin_width * (np.arange(self.bin_count, dtype=np.float64) + 0.5)

    def find_bin(self, value: float) -> int:
        """Get the bin index of a single value.

        :param value: Sample value
        :returns: Bin index, or -1 if the value is discarded
        """
        if math.isnan(value):
            return -1
        if value < self.first_edge:
            return 0 if self.include_out_of_range else -1
        position = (value - self.first_edge) / self.bin_width
        if position >= self.bin_count:
            return self.bin_count - 1 if self.include_out_of_range else -1
        return int(math.floor(position))


def histogram_from_bins(
    start: float,
    count: int,
    width: float,
    *,
    integer_bins: bool = False,
    include_all: bool = False,
) -> HistogramSettings:
    """Shorthand for :meth:`HistogramSettings.from_bins`."""
    return HistogramSettings.from_bins(
        start, count, width, integer_bins=integer_bins, include_all=include_all
    )


def histogram_from_range(
    min_value: float,
    max_value: float,
    *,
    bin_count: int | None = None,
    bin_width: float | None = None,
    integer_bins: bool = False,
    round_range: bool = False,
    include_all: bool = False,
) -> HistogramSettings:
    """Shorthand for :meth:`HistogramSettings.from_range`."""
    return HistogramSettings.from_range(
        min_value,
        max_value,
        bin_count=bin_count,
        bin_width=bin_width,
        integer_bins=integer_bins,
        round_range=round_range,
        include_all=include_all,
    )

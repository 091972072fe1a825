"""Averaging of per-frame histogram rows.

AverageHistogram folds a stream of frame rows into running per-bin
statistics and, once finalized, exposes per-bin mean and standard error.

State machine:
    EMPTY -> ACCUMULATING (add_frame) -> FINALIZED (done)

Example:
    >>> settings = histogram_from_range(1.0, 3.0, bin_count=4)
    >>> histogram = AverageHistogram(settings)
    >>> histogram.add_frame([1.0, 0.0, 1.0, 1.0])
    >>> histogram.add_frame([0.0, 0.0, 1.0, 0.0])
    >>> average = histogram.done()
    >>> average.mean
    array([[0.5, 0. , 1. , 0.5]])
    >>> coarse = histogram.resample_double_bin_width()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import ArrayLike

from framehist.config.settings import HistogramSettings
from framehist.histogram.accumulators import FrameRow
from framehist.histogram.kernels import standard_error_numba, welford_update_numba
from framehist.histogram.result import HistogramAverage

logger = logging.getLogger(__name__)


class HistogramState(Enum):
    """Lifecycle state of an AverageHistogram."""

    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    FINALIZED = "finalized"


@dataclass
class RunningStats:
    """Welford running statistics, one entry per column and bin."""

    n: np.ndarray
    mean: np.ndarray
    m2: np.ndarray

    @classmethod
    def zeros(cls, n_columns: int, n_bins: int) -> RunningStats:
        shape = (n_columns, n_bins)
        return cls(
            n=np.zeros(shape, dtype=np.int64),
            mean=np.zeros(shape, dtype=np.float64),
            m2=np.zeros(shape, dtype=np.float64),
        )

    def copy(self) -> RunningStats:
        return RunningStats(n=self.n.copy(), mean=self.mean.copy(), m2=self.m2.copy())


class AverageHistogram:
    """Running per-bin mean and standard error over frames.

    Every bin of every column is averaged independently. NaN entries in a
    row are skipped for their bin, so ``sample_counts`` may be lower than
    ``frame_count``.
    """

    def __init__(self, settings: HistogramSettings, n_columns: int = 1):
        if isinstance(n_columns, bool) or not isinstance(n_columns, int) or n_columns < 1:
            raise ValueError(f"n_columns must be a positive integer, got {n_columns!r}")
        self._settings = settings
        self._n_columns = n_columns
        self._frame_count = 0
        self._stats: RunningStats | None = RunningStats.zeros(n_columns, settings.bin_count)
        self._result: HistogramAverage | None = None

    @classmethod
    def from_result(cls, result: HistogramAverage) -> AverageHistogram:
        """Wrap already finalized values in a finalized AverageHistogram.

        :param result: Finalized per-bin values
        :returns: AverageHistogram in the FINALIZED state
        """
        histogram = cls(result.settings, result.n_columns)
        histogram._stats = None
        histogram._frame_count = result.frame_count
        histogram._result = result
        return histogram

    # ========================================================================
    # State
    # ========================================================================

    @property
    def settings(self) -> HistogramSettings:
        return self._settings

    @property
    def n_columns(self) -> int:
        return self._n_columns

    @property
    def n_bins(self) -> int:
        return self._settings.bin_count

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def state(self) -> HistogramState:
        if self._result is not None:
            return HistogramState.FINALIZED
        if self._frame_count == 0:
            return HistogramState.EMPTY
        return HistogramState.ACCUMULATING

    @property
    def is_finalized(self) -> bool:
        return self._result is not None

    # ========================================================================
    # Accumulation
    # ========================================================================

    def add_frame(self, row: FrameRow | ArrayLike) -> None:
        """Fold one frame row into the running statistics.

        :param row: FrameRow or array of shape [n_columns, n_bins]
            ([n_bins] is accepted for a single column)
        :raises RuntimeError: If the histogram is already finalized
        :raises ValueError: If the row shape does not match
        """
        if self.is_finalized:
            raise RuntimeError("cannot add frames to a finalized AverageHistogram")

        values = row.values if isinstance(row, FrameRow) else row
        values = np.asarray(values, dtype=np.float64)
        if values.ndim == 1 and self._n_columns == 1:
            values = values[np.newaxis, :]
        expected = (self._n_columns, self.n_bins)
        if values.shape != expected:
            raise ValueError(f"expected frame row of shape {expected}, got {values.shape}")

        values = np.ascontiguousarray(values)
        welford_update_numba(values, self._stats.n, self._stats.mean, self._stats.m2)
        self._frame_count += 1

    def done(self) -> HistogramAverage:
        """Finalize the accumulation.

        No frames can be added afterwards. Calling done() again returns the
        same result.

        :returns: Read-only per-bin mean and standard error
        """
        if self._result is not None:
            return self._result

        error = np.empty_like(self._stats.mean)
        standard_error_numba(self._stats.n, self._stats.m2, error)
        self._result = HistogramAverage(
            settings=self._settings,
            mean=self._stats.mean,
            error=error,
            sample_counts=self._stats.n,
            frame_count=self._frame_count,
        )
        self._stats = None
        logger.debug(
            "Finalized average histogram over %d frames (%d bins, %d columns)",
            self._frame_count,
            self.n_bins,
            self._n_columns,
        )
        return self._result

    # ========================================================================
    # Finalized values
    # ========================================================================

    @property
    def result(self) -> HistogramAverage:
        """Finalized values.

        :raises RuntimeError: If done() has not been called
        """
        if self._result is None:
            raise RuntimeError("AverageHistogram is not finalized; call done() first")
        return self._result

    @property
    def mean(self) -> np.ndarray:
        """Per-bin means, shape [n_columns, n_bins] (finalized only)."""
        return self.result.mean

    @property
    def error(self) -> np.ndarray:
        """Per-bin standard errors, shape [n_columns, n_bins] (finalized only)."""
        return self.result.error

    # ========================================================================
    # Derived histograms
    # ========================================================================

    def clone(self) -> AverageHistogram:
        """Create an independent deep copy in the same state.

        :returns: New AverageHistogram
        """
        copy = AverageHistogram.__new__(AverageHistogram)
        copy._settings = self._settings
        copy._n_columns = self._n_columns
        copy._frame_count = self._frame_count
        copy._stats = None if self._stats is None else self._stats.copy()
        if self._result is None:
            copy._result = None
        else:
            copy._result = HistogramAverage(
                settings=self._result.settings,
                mean=self._result.mean,
                error=self._result.error,
                sample_counts=self._result.sample_counts,
                frame_count=self._result.frame_count,
            )
        return copy

    def resample_double_bin_width(self, integer_bins: bool = False) -> AverageHistogram:
        """Merge neighbouring bins into a histogram with twice the bin width.

        Without ``integer_bins``, bins (0, 1), (2, 3), ... are merged and the
        first edge is kept. With ``integer_bins``, the first new bin is
        centered on old bin 0 and holds it alone; bins (1, 2), (3, 4), ...
        follow. A trailing bin without a partner is copied unchanged.

        A merged bin's mean is the average of the two means and its error is
        ``sqrt(e1**2 + e2**2) / 2``.

        :param integer_bins: Keep the center of bin 0 as a bin center
        :returns: New finalized AverageHistogram
        :raises RuntimeError: If this histogram is not finalized
        """
        if not self.is_finalized:
            raise RuntimeError("resample_double_bin_width requires a finalized histogram")

        source = self._result
        width = self._settings.bin_width
        n_bins = self.n_bins

        first = 1 if integer_bins else 0
        starts = list(range(first, n_bins, 2))
        # Right partner of each pair, -1 where the bin stands alone
        partners = [j + 1 if j + 1 < n_bins else -1 for j in starts]
        if integer_bins:
            starts.insert(0, 0)
            partners.insert(0, -1)
        starts = np.asarray(starts, dtype=np.int64)
        partners = np.asarray(partners, dtype=np.int64)
        paired = partners >= 0
        right = np.where(paired, partners, starts)

        mean = np.where(
            paired,
            0.5 * (source.mean[:, starts] + source.mean[:, right]),
            source.mean[:, starts],
        )
        error = np.where(
            paired,
            0.5 * np.hypot(source.error[:, starts], source.error[:, right]),
            source.error[:, starts],
        )
        counts = np.where(
            paired,
            source.sample_counts[:, starts] + source.sample_counts[:, right],
            source.sample_counts[:, starts],
        )

        if integer_bins:
            start = self._settings.first_edge + 0.5 * width
        else:
            start = self._settings.first_edge
        settings = HistogramSettings.from_bins(
            start,
            len(starts),
            2 * width,
            integer_bins=integer_bins,
            include_all=self._settings.include_out_of_range,
        )

        resampled = AverageHistogram.from_result(
            HistogramAverage(
                settings=settings,
                mean=np.ascontiguousarray(mean),
                error=np.ascontiguousarray(error),
                sample_counts=np.ascontiguousarray(counts),
                frame_count=self._frame_count,
            )
        )
        logger.debug("Resampled %d bins to %d (integer_bins=%s)", n_bins, len(starts), integer_bins)
        return resampled

    def __repr__(self) -> str:
        return (
            f"AverageHistogram({self._settings}, n_columns={self._n_columns}, "
            f"frames={self._frame_count}, state={self.state.value})"
        )

"""Finalized average histogram view with analysis methods."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike

from framehist.config.settings import HistogramSettings


@dataclass(frozen=True)
class HistogramAverage:
    """Per-bin averages of a finalized AverageHistogram.

    The arrays are copied on construction and read-only. Methods that
    change values return a new instance.

    Attributes:
        settings: Bin geometry
        mean: Per-bin mean over frames, shape [n_columns, n_bins]
        error: Per-bin standard error of the mean, shape [n_columns, n_bins]
        sample_counts: Number of frame values averaged per bin, shape [n_columns, n_bins]
        frame_count: Number of frames the histogram was built from

    Example:
        >>> average = histogram.done()
        >>> for center, (mean, err) in zip(average.bin_centers, average.pairs()):
        ...     print(f"{center:.2f}: {mean:.3f} +- {err:.3f}")
    """

    settings: HistogramSettings
    mean: np.ndarray
    error: np.ndarray
    sample_counts: np.ndarray
    frame_count: int

    def __post_init__(self):
        # Own copies, so the caller's arrays stay writeable
        for name in ("mean", "error", "sample_counts"):
            object.__setattr__(self, name, np.array(getattr(self, name), copy=True))
        if self.mean.ndim != 2 or self.mean.shape[1] != self.settings.bin_count:
            raise ValueError(
                f"mean must have shape [n_columns, {self.settings.bin_count}], "
                f"got {self.mean.shape}"
            )
        if self.error.shape != self.mean.shape or self.sample_counts.shape != self.mean.shape:
            raise ValueError("mean, error and sample_counts must have the same shape")
        for array in (self.mean, self.error, self.sample_counts):
            array.setflags(write=False)

    @property
    def bin_edges(self) -> np.ndarray:
        """Get bin edges.

        :return: Array of bin edges, shape [n_bins + 1]
        """
        return self.settings.bin_edges

    @property
    def bin_centers(self) -> np.ndarray:
        """Get bin center values.

        :return: Array of bin centers, shape [n_bins]
        """
        return self.settings.bin_centers

    @property
    def n_bins(self) -> int:
        return self.settings.bin_count

    @property
    def n_columns(self) -> int:
        return self.mean.shape[0]

    def pairs(self, column: int = 0) -> list[tuple[float, float]]:
        """Get ``(mean, standard_error)`` for every bin of a column.

        :param column: Column index
        :return: One pair per bin
        """
        return [(float(m), float(e)) for m, e in zip(self.mean[column], self.error[column])]

    # ========================================================================
    # Scaling
    # ========================================================================

    def _with_values(self, mean: np.ndarray, error: np.ndarray) -> HistogramAverage:
        return HistogramAverage(
            settings=self.settings,
            mean=mean,
            error=error,
            sample_counts=self.sample_counts,
            frame_count=self.frame_count,
        )

    def scaled(self, factor: float, column: int | None = None) -> HistogramAverage:
        """Scale means and errors by a constant.

        :param factor: Scale factor
        :param column: Column to scale, None for all columns
        :return: New HistogramAverage
        """
        scale = np.ones((self.n_columns, 1), dtype=np.float64)
        if column is None:
            scale[:] = factor
        else:
            scale[column] = factor
        return self._with_values(self.mean * scale, self.error * np.abs(scale))

    def scaled_by_vector(self, factors: ArrayLike) -> HistogramAverage:
        """Scale every bin by its own factor, the same for all columns.

        :param factors: Per-bin factors, shape [n_bins]
        :return: New HistogramAverage
        """
        factors = np.asarray(factors, dtype=np.float64)
        if factors.shape != (self.n_bins,):
            raise ValueError(f"expected {self.n_bins} factors, got shape {factors.shape}")
        return self._with_values(self.mean * factors, self.error * np.abs(factors))

    def normalize_probability(self) -> HistogramAverage:
        """Scale each column into a probability density.

        After normalization ``sum(mean) * bin_width == 1`` for every column
        with a non-zero total.

        :return: New HistogramAverage
        """
        totals = self.mean.sum(axis=1) * self.settings.bin_width
        scale = np.ones_like(totals)
        nonzero = totals != 0
        scale[nonzero] = 1.0 / totals[nonzero]
        scale = scale[:, np.newaxis]
        return self._with_values(self.mean * scale, self.error * np.abs(scale))

    # ========================================================================
    # Analysis
    # ========================================================================

    def percentile(self, p: float, column: int = 0) -> float:
        """Compute percentile from the averaged bin values.

        :param p: Percentile value (0-100)
        :param column: Column index
        :return: Bin center at percentile
        """
        weights = np.clip(self.mean[column], 0.0, None)
        cumsum = np.cumsum(weights)
        total = cumsum[-1]
        if total == 0:
            return float(self.bin_centers[0])

        target = total * (p / 100.0)
        idx = np.searchsorted(cumsum, target)
        idx = min(idx, self.n_bins - 1)
        return float(self.bin_centers[idx])

    def mode(self, column: int = 0) -> float:
        """Get the center of the bin with the largest mean.

        :param column: Column index
        :return: Bin center
        """
        idx = np.argmax(self.mean[column])
        return float(self.bin_centers[idx])

    @classmethod
    def empty(cls, settings: HistogramSettings, n_columns: int = 1) -> HistogramAverage:
        """Create an all-zero result.

        :param settings: Bin geometry
        :param n_columns: Number of columns
        :return: Empty HistogramAverage
        """
        shape = (n_columns, settings.bin_count)
        return cls(
            settings=settings,
            mean=np.zeros(shape, dtype=np.float64),
            error=np.zeros(shape, dtype=np.float64),
            sample_counts=np.zeros(shape, dtype=np.int64),
            frame_count=0,
        )

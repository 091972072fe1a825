"""Per-frame histogram accumulators.

An accumulator turns the point sets of one frame into one row of per-bin
values. Three variants share the same binning kernel:

- CountingAccumulator: number of samples per bin
- WeightedSumAccumulator: sum of sample weights per bin
- WeightedAverageAccumulator: mean sample weight per bin

Example:
    >>> acc = CountingAccumulator(histogram_from_range(1.0, 3.0, bin_count=4))
    >>> acc.begin_frame(0)
    >>> acc.add_point_set(0, [0.7, 1.1, 2.3, 2.9])
    >>> acc.end_frame().values
    array([[1., 0., 1., 1.]])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from framehist.config.settings import HistogramSettings
from framehist.config.values import ACCUMULATOR_KINDS, AccumulatorKind, HistogramConfig
from framehist.histogram.kernels import (
    accumulate_counts_numba,
    accumulate_weights_numba,
    find_bins_numba,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameRow:
    """Per-bin values of one committed frame.

    Attributes:
        frame_index: Index of the frame in the input stream
        x: Frame-level coordinate (e.g. time), None if not given
        values: Per-bin values, shape [n_columns, n_bins]
        hit_counts: Per-bin sample counts [n_columns, n_bins], only set by
            the weighted average accumulator
    """

    frame_index: int
    x: float | None
    values: NDArray[np.float64]
    hit_counts: NDArray[np.int64] | None = None

    def __post_init__(self):
        self.values.setflags(write=False)
        if self.hit_counts is not None:
            self.hit_counts.setflags(write=False)

    @property
    def n_columns(self) -> int:
        return self.values.shape[0]

    @property
    def n_bins(self) -> int:
        return self.values.shape[1]


def find_bins(settings: HistogramSettings, values: ArrayLike) -> NDArray[np.int64]:
    """Compute bin indices for an array of values.

    :param settings: Bin geometry and out-of-range policy
    :param values: Sample values, any shape (flattened)
    :returns: Bin index per value, -1 for discarded values
    """
    values = np.ascontiguousarray(np.asarray(values, dtype=np.float64).ravel())
    out = np.empty(values.shape[0], dtype=np.int64)
    find_bins_numba(
        values,
        float(settings.first_edge),
        float(settings.bin_width),
        int(settings.bin_count),
        bool(settings.include_out_of_range),
        out,
    )
    return out


class _FrameAccumulatorBase:
    """Frame lifecycle shared by all accumulator variants.

    Subclasses implement ``_reset``, ``_accumulate`` and ``_row``.
    """

    kind: str = ""
    weighted: bool = False

    def __init__(self, settings: HistogramSettings, n_columns: int = 1):
        if isinstance(n_columns, bool) or not isinstance(n_columns, int) or n_columns < 1:
            raise ValueError(f"n_columns must be a positive integer, got {n_columns!r}")
        self._settings = settings
        self._n_columns = n_columns
        self._frame_index: int | None = None
        self._frame_x: float | None = None
        self._frames_finished = 0

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
    def in_frame(self) -> bool:
        """Check if a frame has been started and not yet finished."""
        return self._frame_index is not None

    @property
    def frames_finished(self) -> int:
        return self._frames_finished

    def begin_frame(self, frame_index: int, x: float | None = None) -> None:
        """Start a new frame, discarding all transient per-bin state.

        :param frame_index: Index of the frame in the input stream
        :param x: Optional frame coordinate, passed through to the row
        :raises RuntimeError: If the previous frame was not finished
        """
        if self.in_frame:
            raise RuntimeError(
                f"frame {self._frame_index} not finished before starting frame {frame_index}"
            )
        self._reset()
        self._frame_index = frame_index
        self._frame_x = x

    def add_point_set(
        self,
        column: int,
        values: ArrayLike,
        weights: ArrayLike | None = None,
    ) -> None:
        """Bin one point set of the current frame into a column.

        Point sets with the same column accumulate into the same row.

        :param column: Signal column index
        :param values: Sample values [N]
        :param weights: Sample weights [N] (weighted variants only)
        :raises RuntimeError: If no frame is in progress
        :raises ValueError: On a bad column or mismatched weights
        """
        if not self.in_frame:
            raise RuntimeError("add_point_set called outside a frame")
        if not 0 <= column < self._n_columns:
            raise ValueError(f"column {column} out of range for {self._n_columns} column(s)")

        bins = find_bins(self._settings, values)
        if self.weighted:
            if weights is None:
                raise ValueError(f"{type(self).__name__} needs a weight for every value")
            weights = np.ascontiguousarray(np.asarray(weights, dtype=np.float64).ravel())
            if weights.shape[0] != bins.shape[0]:
                raise ValueError(
                    f"got {bins.shape[0]} values but {weights.shape[0]} weights"
                )
            self._accumulate(column, bins, weights)
        else:
            if weights is not None:
                raise ValueError(f"{type(self).__name__} does not take weights")
            self._accumulate(column, bins, None)

    def end_frame(self) -> FrameRow:
        """Finish the current frame and emit its row.

        :returns: FrameRow with per-bin values of the frame
        :raises RuntimeError: If no frame is in progress
        """
        if not self.in_frame:
            raise RuntimeError("end_frame called without begin_frame")
        values, hit_counts = self._row()
        row = FrameRow(
            frame_index=self._frame_index,
            x=self._frame_x,
            values=values,
            hit_counts=hit_counts,
        )
        self._frame_index = None
        self._frame_x = None
        self._frames_finished += 1
        logger.debug("[%s] Finished frame %d", type(self).__name__, row.frame_index)
        return row

    def process_frame(
        self,
        frame_index: int,
        point_sets: list[tuple[Any, ...]],
        x: float | None = None,
    ) -> FrameRow:
        """Run a complete frame through the accumulator.

        :param frame_index: Index of the frame
        :param point_sets: ``(column, values)`` or ``(column, values, weights)`` tuples
        :param x: Optional frame coordinate
        :returns: FrameRow of the frame
        """
        self.begin_frame(frame_index, x)
        try:
            for point_set in point_sets:
                self.add_point_set(*point_set)
        except (ValueError, RuntimeError):
            self.abort_frame()
            raise
        return self.end_frame()

    def abort_frame(self) -> None:
        """Discard the current frame without emitting a row.

        Does nothing when no frame is in progress.
        """
        if not self.in_frame:
            return
        logger.debug("[%s] Discarded frame %d", type(self).__name__, self._frame_index)
        self._reset()
        self._frame_index = None
        self._frame_x = None

    def _reset(self) -> None:
        raise NotImplementedError

    def _accumulate(
        self, column: int, bins: NDArray[np.int64], weights: NDArray[np.float64] | None
    ) -> None:
        raise NotImplementedError

    def _row(self) -> tuple[NDArray[np.float64], NDArray[np.int64] | None]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._settings}, n_columns={self._n_columns})"


class CountingAccumulator(_FrameAccumulatorBase):
    """Counts samples per bin."""

    kind = "count"
    weighted = False

    def __init__(self, settings: HistogramSettings, n_columns: int = 1):
        super().__init__(settings, n_columns)
        self._counts = np.zeros((n_columns, settings.bin_count), dtype=np.int64)

    def _reset(self) -> None:
        self._counts.fill(0)

    def _accumulate(self, column, bins, weights) -> None:
        accumulate_counts_numba(bins, self._counts[column])

    def _row(self):
        return self._counts.astype(np.float64), None


class WeightedSumAccumulator(_FrameAccumulatorBase):
    """Sums sample weights per bin."""

    kind = "weighted_sum"
    weighted = True

    def __init__(self, settings: HistogramSettings, n_columns: int = 1):
        super().__init__(settings, n_columns)
        self._sums = np.zeros((n_columns, settings.bin_count), dtype=np.float64)
        self._hits = np.zeros((n_columns, settings.bin_count), dtype=np.int64)

    def _reset(self) -> None:
        self._sums.fill(0.0)
        self._hits.fill(0)

    def _accumulate(self, column, bins, weights) -> None:
        accumulate_weights_numba(bins, weights, self._sums[column], self._hits[column])

    def _row(self):
        return self._sums.copy(), None


class WeightedAverageAccumulator(_FrameAccumulatorBase):
    """Averages sample weights per bin.

    Bins that receive no sample in a frame report ``empty_value``. Use
    ``empty_value=float("nan")`` to have an AverageHistogram skip those bins
    instead of averaging in a zero.
    """

    kind = "weighted_average"
    weighted = True

    def __init__(
        self,
        settings: HistogramSettings,
        n_columns: int = 1,
        empty_value: float = 0.0,
    ):
        super().__init__(settings, n_columns)
        self._empty_value = float(empty_value)
        self._sums = np.zeros((n_columns, settings.bin_count), dtype=np.float64)
        self._hits = np.zeros((n_columns, settings.bin_count), dtype=np.int64)

    @property
    def empty_value(self) -> float:
        return self._empty_value

    def _reset(self) -> None:
        self._sums.fill(0.0)
        self._hits.fill(0)

    def _accumulate(self, column, bins, weights) -> None:
        accumulate_weights_numba(bins, weights, self._sums[column], self._hits[column])

    def _row(self):
        values = np.full(self._sums.shape, self._empty_value, dtype=np.float64)
        hit = self._hits > 0
        values[hit] = self._sums[hit] / self._hits[hit]
        return values, self._hits.copy()


FrameAccumulatorType = CountingAccumulator | WeightedSumAccumulator | WeightedAverageAccumulator


def create_accumulator(
    kind: AccumulatorKind,
    settings: HistogramSettings,
    n_columns: int = 1,
    empty_value: float = 0.0,
) -> FrameAccumulatorType:
    """Create a per-frame accumulator by name.

    :param kind: One of "count", "weighted_sum", "weighted_average"
    :param settings: Bin geometry
    :param n_columns: Number of signal columns per frame
    :param empty_value: Value of empty bins (weighted_average only)
    :returns: New accumulator instance
    :raises ValueError: On an unknown kind
    """
    if kind == "count":
        return CountingAccumulator(settings, n_columns)
    elif kind == "weighted_sum":
        return WeightedSumAccumulator(settings, n_columns)
    elif kind == "weighted_average":
        return WeightedAverageAccumulator(settings, n_columns, empty_value)
    else:
        raise ValueError(
            f"Unknown accumulator kind: {kind}. Available: {', '.join(ACCUMULATOR_KINDS)}"
        )


def accumulator_from_config(config: HistogramConfig) -> FrameAccumulatorType:
    """Create the accumulator described by a HistogramConfig."""
    return create_accumulator(config.kind, config.settings, config.n_columns, config.empty_value)

"""Frame event adapter for histogram accumulation.

HistogramModule receives the per-frame event stream of a data pipeline,
feeds it to an accumulator and forwards each committed frame row to the
built-in AverageHistogram and any registered consumers.

Event order per frame:
    frame_started -> (point_set_started -> add_point* -> point_set_finished)*
    -> frame_finished

Example:
    >>> from framehist import HistogramModule, histogram_from_range
    >>>
    >>> module = HistogramModule.counting(histogram_from_range(1.0, 3.0, bin_count=4))
    >>> module.frame_started(0, x=1.0)
    >>> module.point_set_started(0)
    >>> module.add_point(1.1)
    >>> module.add_point(2.3)
    >>> module.point_set_finished()
    >>> row = module.frame_finished()
    >>> average = module.data_finished()
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from framehist.config.settings import HistogramSettings
from framehist.config.values import HistogramConfig
from framehist.histogram.accumulators import (
    CountingAccumulator,
    FrameRow,
    WeightedAverageAccumulator,
    WeightedSumAccumulator,
    accumulator_from_config,
)
from framehist.histogram.average import AverageHistogram
from framehist.histogram.result import HistogramAverage
from framehist.protocols import FrameAccumulator, FrameConsumer

logger = logging.getLogger(__name__)


@dataclass
class PointSet:
    """
    One group of samples within a frame.

    Attributes:
        values: Sample values
        weights: Sample weights, None for unweighted data
        column: Signal column the samples belong to
    """

    values: Sequence[float]
    weights: Sequence[float] | None = None
    column: int = 0


@dataclass
class Frame:
    """
    One unit of input data.

    Attributes:
        index: Frame index
        point_sets: Point sets of the frame, in order
        x: Frame coordinate (e.g. time), not used for binning
    """

    index: int
    point_sets: list[PointSet] = field(default_factory=list)
    x: float | None = None


class HistogramModule:
    """Event-driven histogram module.

    :param accumulator: Per-frame accumulator
    :param average: Also average the rows in a built-in AverageHistogram
    """

    def __init__(self, accumulator: FrameAccumulator, *, average: bool = True):
        if not isinstance(accumulator, FrameAccumulator):
            raise TypeError(f"Expected a FrameAccumulator, got {type(accumulator).__name__}")
        self._accumulator = accumulator
        self._averager = (
            AverageHistogram(accumulator.settings, accumulator.n_columns) if average else None
        )
        self._consumers: list[FrameConsumer] = []
        self._column: int | None = None
        self._values: list[float] = []
        self._weights: list[float | None] = []

    # ========================================================================
    # Construction
    # ========================================================================

    @classmethod
    def from_config(cls, config: HistogramConfig, *, average: bool = True) -> HistogramModule:
        """Create a module from a HistogramConfig.

        :param config: Settings, accumulator kind and column count
        :param average: Also average the rows
        :returns: New HistogramModule
        """
        return cls(accumulator_from_config(config), average=average)

    @classmethod
    def counting(cls, settings: HistogramSettings, n_columns: int = 1) -> HistogramModule:
        """Create a module counting samples per bin."""
        return cls(CountingAccumulator(settings, n_columns))

    @classmethod
    def weighted(cls, settings: HistogramSettings, n_columns: int = 1) -> HistogramModule:
        """Create a module summing sample weights per bin."""
        return cls(WeightedSumAccumulator(settings, n_columns))

    @classmethod
    def bin_average(
        cls,
        settings: HistogramSettings,
        n_columns: int = 1,
        empty_value: float = 0.0,
    ) -> HistogramModule:
        """Create a module averaging sample weights per bin."""
        return cls(WeightedAverageAccumulator(settings, n_columns, empty_value))

    # ========================================================================
    # Accessors
    # ========================================================================

    @property
    def settings(self) -> HistogramSettings:
        return self._accumulator.settings

    @property
    def accumulator(self) -> FrameAccumulator:
        return self._accumulator

    @property
    def averager(self) -> AverageHistogram:
        """Built-in AverageHistogram fed with every committed row.

        :raises RuntimeError: If the module was created with average=False
        """
        if self._averager is None:
            raise RuntimeError("HistogramModule was created without an averager")
        return self._averager

    def add_consumer(self, consumer: FrameConsumer) -> None:
        """Register a consumer that receives every committed row, in frame order.

        :param consumer: Object with an ``add_frame(row)`` method
        """
        if not isinstance(consumer, FrameConsumer):
            raise TypeError(f"Expected a FrameConsumer, got {type(consumer).__name__}")
        self._consumers.append(consumer)

    # ========================================================================
    # Frame events
    # ========================================================================

    def frame_started(self, frame_index: int, x: float | None = None) -> None:
        """Start a frame.

        :param frame_index: Frame index
        :param x: Frame coordinate, passed through to the row
        """
        self._accumulator.begin_frame(frame_index, x)

    def point_set_started(self, column: int = 0) -> None:
        """Start a point set for a column.

        :param column: Signal column index
        :raises RuntimeError: If a point set is already open
        """
        if self._column is not None:
            raise RuntimeError("point set started before the previous one finished")
        if not 0 <= column < self._accumulator.n_columns:
            raise ValueError(
                f"column {column} out of range for {self._accumulator.n_columns} column(s)"
            )
        self._column = column
        self._values = []
        self._weights = []

    def add_point(self, value: float, weight: float | None = None) -> None:
        """Add one sample to the open point set.

        :param value: Sample value
        :param weight: Sample weight (weighted accumulators only)
        :raises RuntimeError: If no point set is open
        """
        if self._column is None:
            raise RuntimeError("add_point called outside a point set")
        self._values.append(value)
        self._weights.append(weight)

    def point_set_finished(self) -> None:
        """Close the open point set and bin its samples.

        :raises RuntimeError: If no point set is open
        :raises ValueError: If weights are missing or were given where not
            accepted
        """
        if self._column is None:
            raise RuntimeError("point_set_finished called without point_set_started")
        column, values, weights = self._column, self._values, self._weights
        self._column = None
        self._values = []
        self._weights = []

        if not values:
            return
        given = [w is not None for w in weights]
        if all(given):
            self._accumulator.add_point_set(column, values, weights)
        elif not any(given):
            self._accumulator.add_point_set(column, values)
        else:
            raise ValueError("either all or none of the points in a set must have weights")

    def frame_finished(self) -> FrameRow:
        """Commit the frame and forward its row.

        :returns: FrameRow of the committed frame
        :raises RuntimeError: If a point set is still open
        """
        if self._column is not None:
            raise RuntimeError("frame finished with an open point set")
        row = self._accumulator.end_frame()
        if self._averager is not None:
            self._averager.add_frame(row)
        for consumer in self._consumers:
            consumer.add_frame(row)
        return row

    def abort_frame(self) -> None:
        """Drop the open frame, including any open point set.

        Nothing of the frame reaches the averager or the consumers. Use it
        to recover after an event of the frame was rejected.
        """
        self._column = None
        self._values = []
        self._weights = []
        self._accumulator.abort_frame()

    def data_finished(self) -> HistogramAverage | None:
        """Signal that no more frames follow.

        :returns: Finalized averages, or None without an averager
        :raises RuntimeError: If a frame is still open
        """
        if self._accumulator.in_frame:
            raise RuntimeError("data finished with an open frame")
        if self._averager is None:
            return None
        result = self._averager.done()
        logger.debug("Histogram module finished after %d frames", result.frame_count)
        return result

    # ========================================================================
    # Batch processing
    # ========================================================================

    def process(self, frames: Iterable[Frame]) -> HistogramAverage | None:
        """Feed whole frames through the event interface and finish.

        A frame that fails is dropped before the error propagates, so frames
        committed earlier stay the only ones seen downstream.

        :param frames: Frames in arrival order
        :returns: Finalized averages, or None without an averager
        """
        for frame in frames:
            for point_set in frame.point_sets:
                if point_set.weights is not None and len(point_set.weights) != len(
                    point_set.values
                ):
                    raise ValueError(
                        f"frame {frame.index}: {len(point_set.values)} values but "
                        f"{len(point_set.weights)} weights"
                    )
            self.frame_started(frame.index, frame.x)
            try:
                for point_set in frame.point_sets:
                    self.point_set_started(point_set.column)
                    if point_set.weights is None:
                        for value in point_set.values:
                            self.add_point(value)
                    else:
                        for value, weight in zip(point_set.values, point_set.weights):
                            self.add_point(value, weight)
                    self.point_set_finished()
            except (ValueError, RuntimeError):
                self.abort_frame()
                raise
            self.frame_finished()
        return self.data_finished()

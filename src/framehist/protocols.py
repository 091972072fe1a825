"""
Protocol definitions for framehist frame processing.

Defines the two capabilities a frame pipeline is built from: accumulators
that emit one row per frame, and consumers that take those rows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

    from framehist.config.settings import HistogramSettings
    from framehist.histogram.accumulators import FrameRow


@runtime_checkable
class FrameAccumulator(Protocol):
    """
    Protocol for per-frame accumulators.

    A frame is opened with begin_frame, filled with any number of point sets
    and committed with end_frame, which returns the frame's row. Nothing is
    visible downstream before end_frame.
    """

    @property
    def settings(self) -> HistogramSettings:
        """Bin geometry of the rows this accumulator emits."""
        ...

    @property
    def n_columns(self) -> int:
        """Number of signal columns per row."""
        ...

    @property
    def in_frame(self) -> bool:
        """Whether a frame has been started and not yet finished."""
        ...

    def begin_frame(self, frame_index: int, x: float | None = None) -> None:
        """Start a frame and reset transient state."""
        ...

    def add_point_set(
        self, column: int, values: ArrayLike, weights: ArrayLike | None = None
    ) -> None:
        """Bin one point set of the current frame."""
        ...

    def end_frame(self) -> FrameRow:
        """Commit the current frame and return its row."""
        ...

    def abort_frame(self) -> None:
        """Discard the current frame without emitting a row."""
        ...


@runtime_checkable
class FrameConsumer(Protocol):
    """Protocol for anything that takes committed frame rows."""

    def add_frame(self, row: FrameRow | Any) -> None:
        """Consume one frame row."""
        ...

"""Histogram configuration values.

A HistogramConfig bundles the bin geometry with the choice of per-frame
accumulator, so a whole histogram module can be described by one value and
loaded from a JSON document.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from framehist.config.settings import HistogramSettings

AccumulatorKind = Literal["count", "weighted_sum", "weighted_average"]

ACCUMULATOR_KINDS: tuple[str, ...] = ("count", "weighted_sum", "weighted_average")


@dataclass(frozen=True)
class HistogramConfig:
    """Configuration of a histogram module.

    Attributes:
        settings: Bin geometry shared by the accumulator and its averager
        kind: Per-frame accumulator variant
        n_columns: Number of independent signal columns per frame
        empty_value: Row value for bins without hits (weighted_average only)

    Example:
        >>> config = HistogramConfig(
        ...     settings=histogram_from_range(1.0, 3.0, bin_count=4),
        ...     kind="weighted_average",
        ... )
        >>> module = HistogramModule.from_config(config)
    """

    settings: HistogramSettings
    kind: AccumulatorKind = "count"
    n_columns: int = 1
    empty_value: float = 0.0

    def __post_init__(self):
        if not isinstance(self.settings, HistogramSettings):
            raise ValueError(
                f"settings must be HistogramSettings, got {type(self.settings).__name__}"
            )
        if self.kind not in ACCUMULATOR_KINDS:
            raise ValueError(
                f"Unknown accumulator kind: {self.kind}. Available: {', '.join(ACCUMULATOR_KINDS)}"
            )
        if isinstance(self.n_columns, bool) or not isinstance(self.n_columns, int):
            raise ValueError(f"n_columns must be an integer, got {type(self.n_columns).__name__}")
        if self.n_columns < 1:
            raise ValueError(f"n_columns must be at least 1, got {self.n_columns}")
        if math.isinf(self.empty_value):
            raise ValueError("empty_value must be finite or nan")

    @property
    def is_weighted(self) -> bool:
        """Check if samples carry weights."""
        return self.kind != "count"

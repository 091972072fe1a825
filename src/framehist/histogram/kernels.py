"""Numba-compiled histogram kernels.

All kernels are sequential: histogram accumulation into shared bins is not
race-free, so none of them use ``parallel=True``. ``fastmath`` is left off
because the kernels rely on NaN checks.
"""

from __future__ import annotations

import logging

import numpy as np
from numba import njit
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


@njit(cache=True, nogil=True)
def find_bins_numba(
    values: NDArray[np.float64],
    first_edge: float,
    bin_width: float,
    n_bins: int,
    include_all: bool,
    out: NDArray[np.int64],
) -> None:
    """Compute the bin index of every value.

    Values below the first edge or at/above the last edge get -1, or are
    clamped into bin 0 / bin n_bins - 1 when ``include_all`` is set. NaN
    values always get -1.

    :param values: Sample values [N]
    :param first_edge: Lower edge of bin 0
    :param bin_width: Bin width
    :param n_bins: Number of bins
    :param include_all: Clamp out-of-range values instead of discarding
    :param out: Output bin indices [N]
    """
    for i in range(values.shape[0]):
        v = values[i]
        if np.isnan(v):
            out[i] = -1
        elif v < first_edge:
            out[i] = 0 if include_all else -1
        else:
            position = (v - first_edge) / bin_width
            if position >= n_bins:
                out[i] = n_bins - 1 if include_all else -1
            else:
                out[i] = int(np.floor(position))


@njit(cache=True, nogil=True)
def accumulate_counts_numba(
    bins: NDArray[np.int64],
    out: NDArray[np.int64],
) -> None:
    """Add one to ``out`` for every valid bin index.

    :param bins: Bin indices [N], -1 for discarded samples
    :param out: Per-bin counts [n_bins], updated in place
    """
    for i in range(bins.shape[0]):
        b = bins[i]
        if b >= 0:
            out[b] += 1


@njit(cache=True, nogil=True)
def accumulate_weights_numba(
    bins: NDArray[np.int64],
    weights: NDArray[np.float64],
    out_sum: NDArray[np.float64],
    out_hits: NDArray[np.int64],
) -> None:
    """Add each weight to its bin and count the hits.

    :param bins: Bin indices [N], -1 for discarded samples
    :param weights: Sample weights [N]
    :param out_sum: Per-bin weight sums [n_bins], updated in place
    :param out_hits: Per-bin hit counts [n_bins], updated in place
    """
    for i in range(bins.shape[0]):
        b = bins[i]
        if b >= 0:
            out_sum[b] += weights[i]
            out_hits[b] += 1


# Note: Sequential Welford's algorithm - not parallelizable
@njit(cache=True, nogil=True)
def welford_update_numba(
    row: NDArray[np.float64],
    n: NDArray[np.int64],
    mean: NDArray[np.float64],
    m2: NDArray[np.float64],
) -> None:
    """Fold one frame row into running per-bin statistics.

    NaN entries leave their bin untouched.

    :param row: Frame values [n_columns, n_bins]
    :param n: Per-bin sample counts [n_columns, n_bins], updated in place
    :param mean: Per-bin running means [n_columns, n_bins], updated in place
    :param m2: Per-bin sums of squared deviations [n_columns, n_bins], updated in place
    """
    n_columns, n_bins = row.shape
    for c in range(n_columns):
        for b in range(n_bins):
            x = row[c, b]
            if np.isnan(x):
                continue
            n[c, b] += 1
            delta = x - mean[c, b]
            mean[c, b] += delta / n[c, b]
            m2[c, b] += delta * (x - mean[c, b])


@njit(cache=True, nogil=True)
def standard_error_numba(
    n: NDArray[np.int64],
    m2: NDArray[np.float64],
    out: NDArray[np.float64],
) -> None:
    """Compute the standard error of the mean, ``sqrt(M2 / (n (n - 1)))``.

    Bins with fewer than two samples get 0.

    :param n: Per-bin sample counts [n_columns, n_bins]
    :param m2: Per-bin sums of squared deviations [n_columns, n_bins]
    :param out: Output standard errors [n_columns, n_bins]
    """
    n_columns, n_bins = n.shape
    for c in range(n_columns):
        for b in range(n_bins):
            k = n[c, b]
            if k > 1:
                out[c, b] = np.sqrt(max(m2[c, b], 0.0) / (k * (k - 1)))
            else:
                out[c, b] = 0.0


def warmup_histogram_kernels() -> None:
    """Warm up Numba JIT compilation for histogram kernels.

    Should be called on module import to avoid first-call overhead.
    """
    values = np.linspace(0.0, 1.0, 16)
    bins = np.empty(16, dtype=np.int64)
    counts = np.zeros(4, dtype=np.int64)
    sums = np.zeros(4, dtype=np.float64)
    hits = np.zeros(4, dtype=np.int64)
    n = np.zeros((1, 4), dtype=np.int64)
    mean = np.zeros((1, 4), dtype=np.float64)
    m2 = np.zeros((1, 4), dtype=np.float64)
    err = np.zeros((1, 4), dtype=np.float64)

    # Trigger compilation
    find_bins_numba(values, 0.0, 0.25, 4, False, bins)
    accumulate_counts_numba(bins, counts)
    accumulate_weights_numba(bins, values, sums, hits)
    welford_update_numba(sums.reshape(1, 4), n, mean, m2)
    standard_error_numba(n, m2, err)

    logger.debug("Histogram Numba kernels warmed up")


# Warmup on import
warmup_histogram_kernels()

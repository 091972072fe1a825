"""Tests for the finalized HistogramAverage view."""

import numpy as np
import pytest

from framehist import AverageHistogram, HistogramAverage, histogram_from_range


@pytest.fixture
def result():
    settings = histogram_from_range(0.0, 2.0, bin_count=4)
    histogram = AverageHistogram(settings, n_columns=2)
    histogram.add_frame([[1.0, 2.0, 4.0, 1.0], [0.0, 2.0, 2.0, 0.0]])
    histogram.add_frame([[3.0, 2.0, 2.0, 1.0], [0.0, 4.0, 2.0, 2.0]])
    return histogram.done()


class TestHistogramAverage:
    """Test HistogramAverage properties."""

    def test_geometry(self, result):
        """Test bin counts, edges and centers."""
        assert result.n_bins == 4
        assert result.n_columns == 2
        np.testing.assert_allclose(result.bin_edges, [0.0, 0.5, 1.0, 1.5, 2.0])
        np.testing.assert_allclose(result.bin_centers, [0.25, 0.75, 1.25, 1.75])

    def test_pairs(self, result):
        """Test (mean, error) pairs per bin."""
        pairs = result.pairs(0)
        assert len(pairs) == 4
        assert pairs[0] == pytest.approx((2.0, 1.0))
        assert pairs[1] == pytest.approx((2.0, 0.0))
        assert result.pairs(1)[1] == pytest.approx((3.0, 1.0))

    def test_read_only(self, result):
        """Test the arrays cannot be modified."""
        with pytest.raises(ValueError):
            result.mean[0, 0] = 10.0
        with pytest.raises(ValueError):
            result.error[0, 0] = 10.0

    def test_caller_arrays_stay_writeable(self, result):
        """Test construction copies the arrays it is given."""
        mean = np.ones((1, 4))
        error = np.zeros((1, 4))
        counts = np.full((1, 4), 2, dtype=np.int64)
        average = HistogramAverage(result.settings, mean, error, counts, frame_count=2)

        assert mean.flags.writeable
        assert error.flags.writeable
        assert counts.flags.writeable
        mean[0, 0] = 5.0
        assert average.mean[0, 0] == 1.0
        assert not average.mean.flags.writeable

    def test_shape_validation(self, result):
        """Test mismatched shapes are rejected."""
        with pytest.raises(ValueError):
            HistogramAverage(
                settings=result.settings,
                mean=np.zeros((1, 3)),
                error=np.zeros((1, 3)),
                sample_counts=np.zeros((1, 3), dtype=np.int64),
                frame_count=0,
            )

    def test_empty(self):
        """Test the all-zero result."""
        settings = histogram_from_range(0.0, 1.0, bin_count=8)
        empty = HistogramAverage.empty(settings, n_columns=3)
        assert empty.mean.shape == (3, 8)
        assert empty.frame_count == 0
        assert not empty.mean.any()


class TestScaling:
    """Test scaling and normalization."""

    def test_scaled_all(self, result):
        """Test scaling every column."""
        scaled = result.scaled(2.0)
        np.testing.assert_allclose(scaled.mean, result.mean * 2.0)
        np.testing.assert_allclose(scaled.error, result.error * 2.0)
        # Original untouched
        assert result.mean[0, 0] == pytest.approx(2.0)

    def test_scaled_single_column(self, result):
        """Test scaling one column."""
        scaled = result.scaled(-3.0, column=1)
        np.testing.assert_allclose(scaled.mean[0], result.mean[0])
        np.testing.assert_allclose(scaled.mean[1], result.mean[1] * -3.0)
        np.testing.assert_allclose(scaled.error[1], result.error[1] * 3.0)

    def test_scaled_by_vector(self, result):
        """Test per-bin scaling."""
        factors = np.array([1.0, 2.0, 0.5, 0.0])
        scaled = result.scaled_by_vector(factors)
        np.testing.assert_allclose(scaled.mean, result.mean * factors)
        with pytest.raises(ValueError):
            result.scaled_by_vector([1.0, 2.0])

    def test_normalize_probability(self, result):
        """Test each column integrates to one."""
        normalized = result.normalize_probability()
        totals = normalized.mean.sum(axis=1) * normalized.settings.bin_width
        np.testing.assert_allclose(totals, [1.0, 1.0])
        assert normalized.frame_count == result.frame_count

    def test_normalize_zero_column(self):
        """Test an all-zero column is left unchanged."""
        settings = histogram_from_range(0.0, 1.0, bin_count=2)
        empty = HistogramAverage.empty(settings)
        normalized = empty.normalize_probability()
        np.testing.assert_array_equal(normalized.mean, empty.mean)


class TestAnalysis:
    """Test percentile and mode."""

    def test_mode(self, result):
        """Test the bin with the largest mean."""
        assert result.mode(0) == pytest.approx(1.25)
        assert result.mode(1) == pytest.approx(0.75)

    def test_percentile(self, result):
        """Test percentiles over the averaged values."""
        # Column 0 means: [2, 2, 3, 1], total 8
        assert result.percentile(0, 0) == pytest.approx(0.25)
        assert result.percentile(50, 0) == pytest.approx(0.75)
        assert result.percentile(100, 0) == pytest.approx(1.75)

    def test_percentile_empty(self):
        """Test percentile of an empty result returns the first center."""
        settings = histogram_from_range(0.0, 1.0, bin_count=2)
        assert HistogramAverage.empty(settings).percentile(50) == pytest.approx(0.25)

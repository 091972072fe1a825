"""Tests for HistogramConfig and dict/JSON loading."""

import json
import math

import pytest

from framehist import (
    HistogramConfig,
    config_from_dict,
    config_to_dict,
    histogram_from_bins,
    histogram_from_range,
    load_config_json,
    save_config_json,
    settings_from_dict,
    settings_to_dict,
)


class TestHistogramConfig:
    """Test HistogramConfig validation."""

    def test_defaults(self):
        """Test default configuration values."""
        config = HistogramConfig(settings=histogram_from_bins(0.0, 10, 0.1))
        assert config.kind == "count"
        assert config.n_columns == 1
        assert config.empty_value == 0.0
        assert config.is_weighted is False

    def test_weighted_kinds(self):
        """Test weighted kinds are flagged."""
        settings = histogram_from_bins(0.0, 10, 0.1)
        assert HistogramConfig(settings=settings, kind="weighted_sum").is_weighted
        assert HistogramConfig(settings=settings, kind="weighted_average").is_weighted

    def test_invalid_values(self):
        """Test invalid configurations are rejected."""
        settings = histogram_from_bins(0.0, 10, 0.1)
        with pytest.raises(ValueError):
            HistogramConfig(settings=settings, kind="median")
        with pytest.raises(ValueError):
            HistogramConfig(settings=settings, n_columns=0)
        with pytest.raises(ValueError):
            HistogramConfig(settings=settings, empty_value=float("inf"))
        with pytest.raises(ValueError):
            HistogramConfig(settings={"first_edge": 0.0})


class TestSettingsDict:
    """Test settings conversion."""

    def test_bins_style(self):
        """Test loading bins-style settings."""
        settings = settings_from_dict(
            {"first_edge": 1.0, "bin_count": 5, "bin_width": 0.5, "integer_bins": True}
        )
        assert settings == histogram_from_bins(1.0, 5, 0.5, integer_bins=True)

    def test_range_style(self):
        """Test loading range-style settings."""
        settings = settings_from_dict(
            {"min": 1.2, "max": 3.8, "bin_width": 0.5, "round_range": True, "include_all": True}
        )
        assert settings.first_edge == pytest.approx(1.0)
        assert settings.bin_count == 6
        assert settings.include_out_of_range is True

    def test_round_trip(self):
        """Test saved settings load back to the same geometry."""
        settings = histogram_from_range(1.0, 4.0, bin_count=7, integer_bins=True)
        assert settings_from_dict(settings_to_dict(settings)) == settings

    def test_unknown_keys(self):
        """Test unknown keys are rejected."""
        with pytest.raises(ValueError):
            settings_from_dict({"first_edge": 1.0, "bin_count": 5, "bin_width": 0.5, "bins": 3})
        with pytest.raises(ValueError):
            settings_from_dict({"min": 1.0, "max": 2.0, "bin_count": 2, "first_edge": 0.0})

    def test_missing_keys(self):
        """Test incomplete dictionaries are rejected."""
        with pytest.raises(ValueError):
            settings_from_dict({"first_edge": 1.0, "bin_count": 5})
        with pytest.raises(ValueError):
            settings_from_dict({"min": 1.0, "bin_count": 5})


class TestConfigJson:
    """Test JSON loading and saving."""

    def test_save_and_load(self, tmp_path):
        """Test a config survives a JSON file."""
        config = HistogramConfig(
            settings=histogram_from_range(1.0, 3.0, bin_count=4, include_all=True),
            kind="weighted_sum",
            n_columns=3,
        )
        path = tmp_path / "histogram.json"
        save_config_json(config, path)
        assert load_config_json(path) == config

    def test_nan_empty_value(self, tmp_path):
        """Test a nan empty value is written and read back."""
        config = HistogramConfig(
            settings=histogram_from_bins(0.0, 4, 1.0),
            kind="weighted_average",
            empty_value=float("nan"),
        )
        path = tmp_path / "average.json"
        save_config_json(config, path)
        assert math.isnan(load_config_json(path).empty_value)

    def test_load_range_document(self, tmp_path):
        """Test loading a hand-written range document."""
        path = tmp_path / "range.json"
        path.write_text(
            json.dumps(
                {
                    "settings": {"min": 1.0, "max": 4.0, "bin_width": 0.5},
                    "kind": "count",
                }
            )
        )
        config = load_config_json(path)
        assert config.settings.bin_count == 6
        assert config.kind == "count"

    def test_config_dict_requires_settings(self):
        """Test configs without settings are rejected."""
        with pytest.raises(ValueError):
            config_from_dict({"kind": "count"})
        with pytest.raises(ValueError):
            config_from_dict({"settings": {"min": 0, "max": 1, "bin_count": 2}, "mode": "x"})

    def test_config_to_dict(self):
        """Test dictionary representation."""
        config = HistogramConfig(settings=histogram_from_bins(0.0, 2, 1.0))
        assert config_to_dict(config) == {
            "settings": {"first_edge": 0.0, "bin_count": 2, "bin_width": 1.0, "include_all": False},
            "kind": "count",
            "n_columns": 1,
            "empty_value": 0.0,
        }

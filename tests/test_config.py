"""
Tests for configuration loading.
"""

import pytest

from smartpark.config import AppConfig, load_config
from smartpark.domain.models import ZoneType


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        config = AppConfig()

        assert config.extra_hour_rate == 5
        assert config.reset_occupancy_ratio == 0.3
        assert config.zone_layout() == {
            ZoneType.CAR: (50, 38),
            ZoneType.BIKE: (80, 52),
            ZoneType.BICYCLE: (100, 55),
        }
        location = config.location.to_location_config()
        assert location.pricing.label == "₹20 for 7 Hours"
        assert location.surveillance

    def test_load_from_yaml_merges_zone_defaults(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            "storage_dir: data\n"
            "log_level: info\n"
            "location:\n"
            "  name: City Mall\n"
            "  price: 30\n"
            "zones:\n"
            "  car:\n"
            "    total: 10\n"
            "    occupied: 2\n",
            encoding="utf-8",
        )

        config = AppConfig.load_from_yaml(config_path)

        assert config.storage_dir == tmp_path / "data"
        assert config.log_level == "INFO"
        assert config.location.name == "City Mall"
        assert config.zone_layout()[ZoneType.CAR] == (10, 2)
        assert config.zone_layout()[ZoneType.BIKE] == (80, 52)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml_raises(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("zones: [unclosed\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(config_path)

    def test_non_mapping_root_raises(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(config_path)

    @pytest.mark.parametrize(
        "data",
        [
            {"zones": {"car": {"total": 5, "occupied": 6}}},
            {"zones": {"truck": {"total": 5}}},
            {"reset_occupancy_ratio": 1.5},
            {"extra_hour_rate": -1},
            {"location": {"price": 0}},
            {"log_level": "LOUD"},
        ],
    )
    def test_invalid_values_are_rejected(self, data):
        with pytest.raises(ValueError):
            AppConfig(**data)


class TestLoadConfig:
    """Tests for load_config fallbacks."""

    def test_defaults_without_config_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert load_config() == AppConfig()

    def test_explicit_path_must_exist(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

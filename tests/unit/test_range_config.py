"""Unit tests for range configuration loading."""

from pathlib import Path

import pytest

from comprange_engine.config import RangeBuildConfig, RegionSettings, load_range_config
from comprange_engine.exceptions import InvalidConfigurationError, MissingConfigurationError
from comprange_engine.levels import DEFAULT_LEVELS

REPO_CONFIG = Path(__file__).resolve().parents[2] / "config" / "range_config.yaml"

BASE_YAML = """
regions:
  - name: US
    currency: usd
    rounding_increment: 100
    fx_to_usd: 1.0
  - name: India
    currency: INR
    rounding_increment: 1000
    fx_to_usd: 0.012
categories:
  EN.SODE: X0
  SA.ACMG: Y1
family_names:
  EN.SODE: Software Engineering
engine:
  half_level_uplift: 1.2
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "range_config.yaml"
    path.write_text(text)
    return path


class TestLoadRangeConfig:

    def test_loads_regions_and_categories(self, tmp_path):
        cfg = load_range_config(_write(tmp_path, BASE_YAML), env={})

        assert cfg.region_names == ["US", "India"]
        assert cfg.region("US").currency == "USD"
        assert cfg.categories == {"EN.SODE": "A", "SA.ACMG": "B"}
        assert cfg.family_name("EN.SODE") == "Software Engineering"
        assert cfg.family_name("SA.ACMG") == "SA.ACMG"
        assert cfg.levels == list(DEFAULT_LEVELS)

    def test_env_overrides(self, tmp_path):
        env = {
            "CR_ENGINE__HALF_LEVEL_UPLIFT": "1.15",
            "CR_CACHE__ENABLED": "false",
            "CR_CACHE__TTL_SECONDS": "60",
            "OTHER_VAR": "ignored",
        }
        cfg = load_range_config(_write(tmp_path, BASE_YAML), env=env)

        assert cfg.engine.half_level_uplift == pytest.approx(1.15)
        assert cfg.cache.enabled is False
        assert cfg.cache.ttl_seconds == 60

    def test_env_overrides_can_be_disabled(self, tmp_path):
        env = {"CR_ENGINE__HALF_LEVEL_UPLIFT": "1.5"}
        cfg = load_range_config(_write(tmp_path, BASE_YAML), env_overrides=False, env=env)
        assert cfg.engine.half_level_uplift == pytest.approx(1.2)

    def test_top_level_keys_are_case_insensitive(self, tmp_path):
        cfg = load_range_config(_write(tmp_path, BASE_YAML.replace("categories:", "Categories:")), env={})
        assert cfg.categories["EN.SODE"] == "A"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_range_config(tmp_path / "missing.yaml")

    def test_unknown_category_is_invalid(self, tmp_path):
        text = BASE_YAML.replace("SA.ACMG: Y1", "SA.ACMG: Q7")
        with pytest.raises(InvalidConfigurationError) as exc_info:
            load_range_config(_write(tmp_path, text), env={})
        assert "Q7" in exc_info.value.message

    def test_non_positive_rounding_increment_is_invalid(self, tmp_path):
        text = BASE_YAML.replace("rounding_increment: 1000", "rounding_increment: 0")
        with pytest.raises(InvalidConfigurationError):
            load_range_config(_write(tmp_path, text), env={})

    def test_missing_categories_section(self, tmp_path):
        text = BASE_YAML.split("categories:")[0]
        with pytest.raises(MissingConfigurationError) as exc_info:
            load_range_config(_write(tmp_path, text), env={})
        assert "categories" in exc_info.value.message
        assert exc_info.value.context.config_path == str(tmp_path / "range_config.yaml")

    def test_empty_categories_section_loads(self, tmp_path):
        text = BASE_YAML.split("categories:")[0] + "categories: {}\n"
        assert load_range_config(_write(tmp_path, text), env={}).categories == {}

    def test_repository_config_loads(self):
        cfg = load_range_config(REPO_CONFIG, env={})
        assert "US" in cfg.region_names
        assert set(cfg.categories.values()) <= {"A", "B"}


class TestRangeBuildConfig:

    def test_defaults(self):
        cfg = RangeBuildConfig()
        assert cfg.region_names == ["US", "UK", "India"]
        assert cfg.engine.new_hire_window_days == 365
        assert cfg.cache.ttl_seconds == 600

    def test_duplicate_regions_rejected(self):
        with pytest.raises(ValueError):
            RangeBuildConfig(regions=[RegionSettings(name="US"), RegionSettings(name="US")])

    def test_empty_regions_rejected(self):
        with pytest.raises(ValueError):
            RangeBuildConfig(regions=[])

    def test_levels_are_normalized_and_deduplicated(self):
        cfg = RangeBuildConfig(levels=["l5 ic", "L5 IC", "L5.5 mgr"])
        assert cfg.levels == ["L5 IC", "L5.5 Mgr"]

    def test_unrecognized_level_rejected(self):
        with pytest.raises(ValueError):
            RangeBuildConfig(levels=["Senior"])

    def test_build_rounder(self, three_region_config):
        rounder = three_region_config.build_rounder()
        assert rounder.increment("India") == 1000
        assert rounder.fx_rate("UK") == 1.25
        assert rounder.currency("India") == "INR"

    def test_extra_keys_allowed(self):
        cfg = RangeBuildConfig(notes="legacy key")
        assert cfg.notes == "legacy key"

    def test_shared_display_name_rejected(self):
        with pytest.raises(ValueError, match="share display name 'Eng'"):
            RangeBuildConfig(
                categories={"A1": "A", "B1": "B"},
                family_names={"A1": "Eng", "B1": "Eng"},
            )

    def test_display_name_colliding_with_family_code_rejected(self):
        with pytest.raises(ValueError):
            RangeBuildConfig(categories={"A1": "A", "B1": "B"}, family_names={"A1": "B1"})

    def test_names_for_uncategorized_families_are_ignored(self):
        cfg = RangeBuildConfig(categories={"A1": "A"}, family_names={"A1": "Eng", "Z9": "Eng"})
        assert cfg.family_name("A1") == "Eng"

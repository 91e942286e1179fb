"""Unit tests for src/infrastructure/settings.py.

Tests cover OptimizerSettings defaults, env var override, and the
domain config builders.  No .env file is read.
"""

import pytest
from pydantic import ValidationError

from src.domain.models.optimization import (
    ComparisonConfig,
    EligibilityConfig,
    SearchConfig,
    TargetBand,
)
from src.infrastructure.settings import OptimizerSettings, get_settings


def _settings(**overrides) -> OptimizerSettings:
    return OptimizerSettings(_env_file=None, **overrides)


def test_settings_defaults():
    s = _settings()
    assert s.min_supply_usd == 500_000.0
    assert s.min_history_points == 5
    assert s.max_candidates == 12
    assert s.excluded_prefixes == ["PT-"]
    assert s.iterations == 3000
    assert s.min_weight == 0.05
    assert (s.target_apy_min, s.target_apy_max) == (0.07, 0.08)
    assert s.dust_threshold == 0.001
    assert s.average_window_days == 7


def test_settings_reads_prefixed_env(monkeypatch):
    monkeypatch.setenv("YIELD_OPTIMIZER_MIN_WEIGHT", "0.1")
    monkeypatch.setenv("YIELD_OPTIMIZER_ITERATIONS", "500")
    s = _settings()
    assert s.min_weight == 0.1
    assert s.iterations == 500


def test_settings_reads_prefix_list_as_json(monkeypatch):
    monkeypatch.setenv("YIELD_OPTIMIZER_EXCLUDED_PREFIXES", '["PT-", "YT-"]')
    assert _settings().excluded_prefixes == ["PT-", "YT-"]


def test_settings_ignores_unprefixed_env(monkeypatch):
    monkeypatch.setenv("MIN_WEIGHT", "0.2")
    assert _settings().min_weight == 0.05


def test_settings_rejects_min_weight_of_one():
    with pytest.raises(ValidationError):
        _settings(min_weight=1.0)


def test_target_band_builder():
    band = _settings(target_apy_min=0.05, target_apy_max=0.06).target_band()
    assert band == TargetBand(min_apy=0.05, max_apy=0.06)


def test_target_band_builder_rejects_inverted_band():
    with pytest.raises(ValidationError):
        _settings(target_apy_min=0.09, target_apy_max=0.08).target_band()


def test_eligibility_config_builder():
    config = _settings(min_supply_usd=1_000_000.0, max_candidates=8).eligibility_config()
    assert isinstance(config, EligibilityConfig)
    assert config.min_supply_usd == 1_000_000.0
    assert config.min_history_points == 5
    assert config.max_candidates == 8


def test_search_config_builder():
    config = _settings(iterations=100, min_weight=0.1).search_config()
    assert isinstance(config, SearchConfig)
    assert config.iterations == 100
    assert config.min_weight == 0.1
    assert config.max_active_assets == 4
    assert config.target_band.midpoint == pytest.approx(0.075)


def test_comparison_config_builder():
    s = _settings(excluded_prefixes=["PT-", "YT-"], dust_threshold=0.01, average_window_days=14)
    config = s.comparison_config()
    assert isinstance(config, ComparisonConfig)
    assert config.excluded_prefixes == ("PT-", "YT-")
    assert config.dust_threshold == 0.01
    assert config.average_window_days == 14
    assert config.eligibility == s.eligibility_config()
    assert config.search == s.search_config()


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()

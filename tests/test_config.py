"""Tests for configuration loading and validation."""

from dataclasses import replace

import pytest

from service_intake.config import (
    AppConfig,
    ConversationConfig,
    ModelConfig,
    PortalConfig,
    ValidationConfig,
    _csv,
    _safe_float,
    _safe_int,
    _validate_config,
)


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_invalid_temperature_too_high(self):
        config = replace(AppConfig(), model=replace(ModelConfig(), llm_temperature=3.0))
        with pytest.raises(ValueError, match="LLM_TEMPERATURE"):
            _validate_config(config)

    def test_invalid_temperature_negative(self):
        config = replace(AppConfig(), model=replace(ModelConfig(), llm_temperature=-0.5))
        with pytest.raises(ValueError, match="LLM_TEMPERATURE"):
            _validate_config(config)

    def test_invalid_max_tokens(self):
        config = replace(AppConfig(), model=replace(ModelConfig(), llm_max_tokens=0))
        with pytest.raises(ValueError, match="LLM_MAX_TOKENS"):
            _validate_config(config)

    def test_negative_cache_seconds(self):
        config = replace(AppConfig(), portal=replace(PortalConfig(), catalog_cache_seconds=-1))
        with pytest.raises(ValueError, match="CATALOG_CACHE_SECONDS"):
            _validate_config(config)

    def test_invalid_history_window(self):
        config = replace(
            AppConfig(), conversation=replace(ConversationConfig(), history_window=0)
        )
        with pytest.raises(ValueError, match="HISTORY_WINDOW"):
            _validate_config(config)

    def test_empty_decline_phrases(self):
        config = replace(
            AppConfig(), conversation=replace(ConversationConfig(), decline_phrases=())
        )
        with pytest.raises(ValueError, match="DECLINE_PHRASES"):
            _validate_config(config)

    def test_invalid_minimum_age(self):
        config = replace(
            AppConfig(), validation=replace(ValidationConfig(), driver_license_min_age=150)
        )
        with pytest.raises(ValueError, match="DRIVER_LICENSE_MIN_AGE"):
            _validate_config(config)

    def test_invalid_validation_timeout(self):
        config = replace(
            AppConfig(), validation=replace(ValidationConfig(), validation_timeout_sec=0)
        )
        with pytest.raises(ValueError, match="VALIDATION_TIMEOUT"):
            _validate_config(config)


class TestEnvParsing:
    def test_safe_int_default(self, monkeypatch):
        monkeypatch.delenv("TEST_INT_VALUE", raising=False)
        assert _safe_int("TEST_INT_VALUE", "7") == 7

    def test_safe_int_from_env(self, monkeypatch):
        monkeypatch.setenv("TEST_INT_VALUE", "42")
        assert _safe_int("TEST_INT_VALUE", "7") == 42

    def test_safe_int_invalid(self, monkeypatch):
        monkeypatch.setenv("TEST_INT_VALUE", "lots")
        with pytest.raises(ValueError, match="Invalid integer for TEST_INT_VALUE"):
            _safe_int("TEST_INT_VALUE", "7")

    def test_safe_float_invalid(self, monkeypatch):
        monkeypatch.setenv("TEST_FLOAT_VALUE", "warm")
        with pytest.raises(ValueError, match="Invalid float"):
            _safe_float("TEST_FLOAT_VALUE", "0.5")

    def test_csv_phrases(self, monkeypatch):
        monkeypatch.setenv("TEST_PHRASES", " No , SKIP,, n/a ")
        assert _csv("TEST_PHRASES", "") == ("no", "skip", "n/a")


class TestDefaults:
    def test_jurisdiction_defaults(self):
        config = ValidationConfig()
        assert config.driver_license_min_age == 17
        assert config.business_permit_min_age == 18

    def test_repository_path_points_at_bundled_data(self):
        assert PortalConfig().service_repository_path.endswith("service_repository.json")

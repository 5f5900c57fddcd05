# app/tests/test_config.py
"""Tests for configuration management and startup validation."""
import os
from unittest.mock import patch

import pytest

from app.config import (
    DEFAULT_LOYALTY_API_BASE_URL,
    DEFAULT_LOYALTY_CLIENT_CACHE_SIZE,
    DEFAULT_MAX_REQUEST_SIZE_BYTES,
    DEFAULT_MIN_WITHDRAWAL_PAISE,
    DEFAULT_PLATFORM_FEE_PERCENT,
    AppConfig,
    ConfigurationError,
    load_config,
    log_config_snapshot,
    validate_config_snapshot_safety,
)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_default_values(self):
        """Config loads with sensible defaults when no env vars set."""
        with patch.dict(os.environ, {}, clear=True):
            config = load_config()

        assert config.service_name == "battle-nest-loyalty"
        assert config.service_version == "0.1.0"
        assert config.environment == "development"
        assert config.max_request_size_bytes == DEFAULT_MAX_REQUEST_SIZE_BYTES
        assert config.loyalty_api_base_url == DEFAULT_LOYALTY_API_BASE_URL
        assert config.default_platform_fee_percent == DEFAULT_PLATFORM_FEE_PERCENT
        assert config.min_withdrawal_paise == DEFAULT_MIN_WITHDRAWAL_PAISE
        assert config.loyalty_client_cache_size == DEFAULT_LOYALTY_CLIENT_CACHE_SIZE
        assert config.warnings == []

    def test_environment_from_env(self):
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}, clear=True):
            config = load_config()

        assert config.environment == "production"

    def test_loyalty_api_settings(self):
        with patch.dict(
            os.environ,
            {
                "LOYALTY_API_BASE_URL": "https://api.battlenest.example",
                "LOYALTY_API_TIMEOUT": "3",
                "LOYALTY_CACHE_TTL_SECONDS": "60",
            },
            clear=True,
        ):
            config = load_config()

        assert config.loyalty_api_base_url == "https://api.battlenest.example"
        assert config.loyalty_api_timeout == 3
        assert config.loyalty_cache_ttl_seconds == 60

    def test_client_cache_size(self):
        with patch.dict(os.environ, {"LOYALTY_CLIENT_CACHE_SIZE": "16"}, clear=True):
            config = load_config()

        assert config.loyalty_client_cache_size == 16

    def test_zero_client_cache_size_rejected(self):
        with patch.dict(os.environ, {"LOYALTY_CLIENT_CACHE_SIZE": "0"}, clear=True):
            config = load_config()

        assert config.loyalty_client_cache_size == DEFAULT_LOYALTY_CLIENT_CACHE_SIZE
        assert any("LOYALTY_CLIENT_CACHE_SIZE" in w for w in config.warnings)

    def test_token_not_read_from_env(self):
        """A session token in the environment never reaches config."""
        with patch.dict(os.environ, {"LOYALTY_API_TOKEN": "tok-123"}, clear=True):
            config = load_config()

        assert "tok-123" not in repr(config)


class TestBaseUrlValidation:
    """Tests for LOYALTY_API_BASE_URL validation."""

    def test_invalid_url_fails_fast(self):
        with patch.dict(os.environ, {"LOYALTY_API_BASE_URL": "ftp://nope"}, clear=True):
            with pytest.raises(ConfigurationError):
                load_config()

    def test_invalid_url_warns_when_not_fail_fast(self):
        with patch.dict(os.environ, {"LOYALTY_API_BASE_URL": "nope"}, clear=True):
            config = load_config(fail_fast=False)

        assert config.loyalty_api_base_url == DEFAULT_LOYALTY_API_BASE_URL
        assert any("must start with http" in w for w in config.warnings)


class TestNumericValidation:
    """Tests for numeric environment variables."""

    def test_invalid_string_uses_default_with_warning(self):
        with patch.dict(
            os.environ, {"MAX_REQUEST_SIZE_BYTES": "not-a-number"}, clear=True
        ):
            config = load_config()

        assert config.max_request_size_bytes == DEFAULT_MAX_REQUEST_SIZE_BYTES
        assert any("not a valid integer" in w for w in config.warnings)

    def test_below_minimum_uses_default_with_warning(self):
        with patch.dict(os.environ, {"MAX_REQUEST_SIZE_BYTES": "100"}, clear=True):
            config = load_config()

        assert config.max_request_size_bytes == DEFAULT_MAX_REQUEST_SIZE_BYTES
        assert any("below minimum" in w for w in config.warnings)

    def test_zero_timeout_rejected(self):
        with patch.dict(os.environ, {"LOYALTY_API_TIMEOUT": "0"}, clear=True):
            config = load_config()

        assert config.loyalty_api_timeout == 10
        assert any("LOYALTY_API_TIMEOUT" in w for w in config.warnings)

    def test_fee_percent_in_range(self):
        with patch.dict(os.environ, {"DEFAULT_PLATFORM_FEE_PERCENT": "2.5"}, clear=True):
            config = load_config()

        assert config.default_platform_fee_percent == 2.5

    @pytest.mark.parametrize("raw", ["150", "-1", "nan", "five"])
    def test_fee_percent_out_of_range_uses_default(self, raw):
        with patch.dict(os.environ, {"DEFAULT_PLATFORM_FEE_PERCENT": raw}, clear=True):
            config = load_config()

        assert config.default_platform_fee_percent == DEFAULT_PLATFORM_FEE_PERCENT
        assert any("DEFAULT_PLATFORM_FEE_PERCENT" in w for w in config.warnings)

    def test_min_withdrawal_override(self):
        with patch.dict(os.environ, {"MIN_WITHDRAWAL_PAISE": "10000"}, clear=True):
            config = load_config()

        assert config.min_withdrawal_paise == 10000


class TestConfigSnapshotSafety:
    """Tests for config snapshot security."""

    def test_snapshot_contains_expected_fields(self):
        snapshot = log_config_snapshot(AppConfig())

        assert "service=" in snapshot
        assert "version=" in snapshot
        assert "environment=" in snapshot
        assert "loyalty_api_base_url=" in snapshot
        assert "default_platform_fee_percent=" in snapshot
        assert "min_withdrawal_paise=" in snapshot
        assert "loyalty_client_cache_size=" in snapshot

    def test_snapshot_never_contains_token(self):
        with patch.dict(
            os.environ,
            {"LOYALTY_API_TOKEN": "super-secret-token-12345"},
            clear=True,
        ):
            config = load_config()
            snapshot = log_config_snapshot(config)

        assert "super-secret-token" not in snapshot

    def test_clean_snapshot_passes(self):
        snapshot = log_config_snapshot(AppConfig())
        assert validate_config_snapshot_safety(snapshot) is True

    def test_leaked_token_caught(self):
        bad_snapshot = "service=test token=abc123 version=1.0"
        assert validate_config_snapshot_safety(bad_snapshot) is False

    def test_presence_flags_allowed(self):
        good_snapshot = "api_key_present=True token_present=False"
        assert validate_config_snapshot_safety(good_snapshot) is True

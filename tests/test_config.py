"""
Tests for settings (pydantic-settings).
"""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from streamput.config import (
    MIB,
    MIN_PART_SIZE,
    Settings,
    configure_settings,
    get_settings,
    reset_settings,
)


class TestSettings:
    """Tests for the Settings model."""

    def test_default_values(self):
        """Test default configuration values."""
        settings = Settings()

        # Pipeline defaults
        assert settings.part_size == 8 * MIB
        assert settings.worker_count == 5
        assert settings.queue_depth_multiplier == 2
        assert settings.max_parts == 10_000

        # Resilience defaults
        assert settings.retry_attempts == 3
        assert settings.complete_attempts == 2
        assert settings.abort_timeout == 30.0
        assert settings.upload_timeout is None

        # Store defaults
        assert settings.s3_bucket is None
        assert settings.s3_region == "us-east-1"

        # Logging defaults
        assert settings.log_json is False
        assert settings.log_level == "INFO"

    def test_queue_size(self):
        """Queue bound is workers times depth multiplier."""
        settings = Settings(worker_count=4, queue_depth_multiplier=3)
        assert settings.queue_size == 12

    def test_environment_variable_override(self):
        """Test STREAMPUT_* variables override defaults."""
        env = {
            "STREAMPUT_WORKER_COUNT": "12",
            "STREAMPUT_PART_SIZE": str(16 * MIB),
            "STREAMPUT_S3_BUCKET": "feeds",
            "STREAMPUT_LOG_JSON": "true",
            "STREAMPUT_UPLOAD_TIMEOUT": "120",
        }
        with patch.dict("os.environ", env):
            settings = Settings()

        assert settings.worker_count == 12
        assert settings.part_size == 16 * MIB
        assert settings.s3_bucket == "feeds"
        assert settings.log_json is True
        assert settings.upload_timeout == 120.0

    def test_part_size_below_store_minimum(self):
        """Parts smaller than 5 MiB are rejected."""
        with pytest.raises(ValidationError):
            Settings(part_size=MIN_PART_SIZE - 1)

    def test_worker_count_bounds(self):
        with pytest.raises(ValidationError):
            Settings(worker_count=0)
        with pytest.raises(ValidationError):
            Settings(worker_count=65)

    def test_backoff_order(self):
        """Max backoff must not be below the initial backoff."""
        with pytest.raises(ValidationError, match="retry_max_backoff"):
            Settings(retry_initial_backoff=5.0, retry_max_backoff=1.0)

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="TRACE")

    def test_unknown_env_ignored(self):
        """Unrelated STREAMPUT_* variables do not break loading."""
        with patch.dict("os.environ", {"STREAMPUT_SOMETHING_ELSE": "x"}):
            Settings()


class TestSettingsSingleton:
    """Tests for get/configure/reset helpers."""

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_configure_settings_replaces(self):
        before = get_settings()
        after = configure_settings(worker_count=9)

        assert after is not before
        assert get_settings() is after
        assert get_settings().worker_count == 9

    def test_reset_settings_reloads_environment(self):
        get_settings()
        with patch.dict("os.environ", {"STREAMPUT_WORKER_COUNT": "3"}):
            reset_settings()
            assert get_settings().worker_count == 3

"""Unit tests for service settings."""

import pytest
from pydantic import ValidationError

from services.tidy_service.src.config import Settings, get_settings
from services.tidy_service.src.rename_preview.models import CaseStyle, RulePriorityMode, TargetPlatform


class TestSettings:
    """Test settings defaults and environment overrides."""

    def test_defaults(self):
        """Test default values."""
        settings = Settings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.rule_priority_mode == RulePriorityMode.COMBINED
        assert settings.case_normalization == CaseStyle.NONE
        assert settings.target_platform == TargetPlatform.ALL
        assert settings.max_filename_length == 255
        assert settings.replacement_char == "_"
        assert settings.os_sanitize is True
        assert settings.case_sensitive_filesystem is None

    def test_environment_overrides(self, monkeypatch):
        """Test TIDY_ prefixed environment variables."""
        monkeypatch.setenv("TIDY_CASE_NORMALIZATION", "kebab-case")
        monkeypatch.setenv("TIDY_RULE_PRIORITY_MODE", "filename-first")
        monkeypatch.setenv("TIDY_LOG_LEVEL", "debug")
        monkeypatch.setenv("TIDY_CHECK_FILESYSTEM", "false")

        settings = Settings(_env_file=None)

        assert settings.case_normalization == CaseStyle.KEBAB_CASE
        assert settings.rule_priority_mode == RulePriorityMode.FILENAME_FIRST
        assert settings.log_level == "DEBUG"
        assert settings.check_filesystem is False

    def test_invalid_log_level(self):
        """Test unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="loud")

    @pytest.mark.parametrize("char", ["/", ":", "ab", ""])
    def test_invalid_replacement_char(self, char):
        """Test the replacement must be one valid filename character."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, replacement_char=char)

    def test_invalid_case_style(self):
        """Test unknown case styles are rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, case_normalization="shouting")

    def test_get_settings_is_cached(self):
        """Test settings are loaded once."""
        get_settings.cache_clear()

        assert get_settings() is get_settings()

        get_settings.cache_clear()

"""Configuration management for the tidy rename preview service."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from services.tidy_service.src.rename_preview.models import (
    CaseStyle,
    RulePriorityMode,
    TargetPlatform,
    TruncationStyle,
)


class Settings(BaseSettings):
    """Service settings, read from ``TIDY_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="TIDY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Render logs as JSON instead of console output")

    # Rule and template selection
    rule_priority_mode: RulePriorityMode = Field(
        default=RulePriorityMode.COMBINED, description="How metadata and filename rules are ordered"
    )
    default_template_id: str | None = Field(default=None, description="Template used when no rule matches")

    # Name assembly
    case_normalization: CaseStyle = Field(default=CaseStyle.NONE, description="Case style applied to proposed names")
    preserve_acronyms: bool = Field(default=False, description="Keep known acronyms upper-cased when normalizing case")
    sanitize_filenames: bool = Field(default=True, description="Sanitize resolved placeholder values")
    default_fallback: str = Field(default="", description="Value used for placeholders that resolve empty")

    # OS sanitization
    os_sanitize: bool = Field(default=True, description="Apply OS-specific filename sanitization")
    target_platform: TargetPlatform = Field(default=TargetPlatform.ALL, description="Platform rules to sanitize for")
    max_filename_length: int = Field(default=255, ge=10, description="Maximum proposed filename length")
    replacement_char: str = Field(default="_", min_length=1, max_length=1, description="Replacement for bad chars")
    truncation_style: TruncationStyle = Field(default=TruncationStyle.ELLIPSIS, description="How long names are cut")

    # Conflict detection
    check_filesystem: bool = Field(default=True, description="Check proposed paths against the filesystem")
    case_sensitive_filesystem: bool | None = Field(
        default=None, description="Override filesystem case sensitivity (detected from the OS when unset)"
    )

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("replacement_char")
    @classmethod
    def _validate_replacement_char(cls, value: str) -> str:
        if value in '<>:"/\\|?*' or ord(value) < 0x20:
            raise ValueError("Replacement character must itself be valid in filenames")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached service settings."""
    return Settings()

"""Unit tests for the rename preview service facade."""

import threading
from datetime import datetime
from unittest.mock import patch

import pytest

from services.tidy_service.src.config import Settings
from services.tidy_service.src.rename_preview.models import (
    CaseStyle,
    FileInfo,
    FilenamePatternRule,
    RenamePreview,
    RenameStatus,
    Template,
)
from services.tidy_service.src.rename_preview.results import ErrorType, Result
from services.tidy_service.src.service import (
    EXIT_FAILED,
    EXIT_OK,
    EXIT_SKIPPED,
    AppConfig,
    Preferences,
    RenamePreviewService,
    create_service,
    exit_code,
)


@pytest.fixture
def settings():
    """Settings that never touch the filesystem."""
    return Settings(_env_file=None, check_filesystem=False, case_sensitive_filesystem=True)


@pytest.fixture
def service(settings):
    """Create a service."""
    return RenamePreviewService(settings)


def make_file(path, modified_at=datetime(2024, 3, 1)):
    return FileInfo.from_path(path, modified_at=modified_at)


class TestRenamePreviewService:
    """Test preview orchestration."""

    def test_fixed_template(self, service):
        """Test a preview with an explicit template."""
        result = service.preview([make_file("/p/a.jpg")], {}, template="{date}_{original}")

        assert result.ok
        assert result.value.proposals[0].proposed_name == "2024-03-01_a.jpg"
        assert result.value.template_used == "{date}_{original}"

    def test_default_templates(self, service):
        """Test rule-based selection with the built-in templates."""
        result = service.preview([make_file("/p/a.jpg")], {})

        assert result.value.proposals[0].proposed_name == "2024-03-01-a.jpg"
        assert result.value.template_used == "{date}-{original}"

    def test_preference_default_template(self, service):
        """Test preferences choose the default template."""
        config = AppConfig(preferences=Preferences(default_template_id="year-month-folders"))

        result = service.preview([make_file("/p/a.jpg")], {}, app_config=config)

        assert result.value.template_used == "{year}/{month}/{original}"

    def test_settings_default_template(self):
        """Test settings choose the default template when preferences do not."""
        settings = Settings(_env_file=None, check_filesystem=False, default_template_id="camera-date")

        result = RenamePreviewService(settings).preview([make_file("/p/a.jpg")], {})

        assert result.value.template_used == "{camera}-{date}-{original}"

    def test_first_template_without_flag(self, service):
        """Test the first template is the default when none is flagged."""
        config = AppConfig(templates=[Template(id="plain", name="Plain", pattern="x-{original}")])

        result = service.preview([make_file("/p/a.jpg")], {}, app_config=config)

        assert result.value.proposals[0].proposed_name == "x-a.jpg"

    def test_no_templates(self, service):
        """Test rule-based selection without any template is a failed result."""
        result = service.preview([make_file("/p/a.jpg")], {}, app_config=AppConfig(templates=[]))

        assert not result.ok
        assert result.error.type == ErrorType.DEFAULT_TEMPLATE_NOT_FOUND
        assert result.error.message == "No templates configured"
        assert exit_code(result) == EXIT_FAILED

    def test_unknown_default_template(self, service):
        """Test a preferred default template that does not exist."""
        config = AppConfig(preferences=Preferences(default_template_id="missing"))

        result = service.preview([make_file("/p/a.jpg")], {}, app_config=config)

        assert result.error.type == ErrorType.DEFAULT_TEMPLATE_NOT_FOUND
        assert result.error.message == 'Default template "missing" not found'

    def test_rules_and_preferences(self, service):
        """Test rules, fallbacks and case style from the configuration."""
        templates = [
            Template(id="default", name="Default", pattern="{original}", is_default=True),
            Template(id="shots", name="Shots", pattern="{camera} {original}"),
        ]
        config = AppConfig(
            templates=templates,
            filename_rules=[
                FilenamePatternRule(id="r1", name="Shots", pattern="Screen*", template_id="shots"),
            ],
            preferences=Preferences(case_normalization=CaseStyle.KEBAB_CASE, fallbacks={"camera": "Desktop"}),
        )

        result = service.preview([make_file("/p/Screen Shot.PNG")], {}, app_config=config)

        proposal = result.value.proposals[0]
        assert proposal.proposed_name == "desktop-screen-shot.png"
        assert proposal.applied_rule.rule_id == "r1"
        assert [i.code for i in proposal.issues] == ["USED_FALLBACK"]

    def test_settings_case_style(self):
        """Test the configured case style applies without preferences."""
        settings = Settings(_env_file=None, check_filesystem=False, case_normalization="snake_case")

        result = RenamePreviewService(settings).preview([make_file("/p/My Photo.jpg")], {}, template="{original}")

        assert result.value.proposals[0].proposed_name == "my_photo.jpg"

    def test_os_sanitize_disabled(self):
        """Test disabling stage-two sanitization."""
        settings = Settings(_env_file=None, check_filesystem=False, os_sanitize=False)

        service = RenamePreviewService(settings)
        result = service.preview([make_file("/p/a.jpg")], {}, template="{year}/{original}")

        assert service.create_os_sanitizer() is None
        assert result.value.proposals[0].status == RenameStatus.INVALID_NAME

    def test_cancel_event_passed_through(self, service):
        """Test cancellation reaches the generator."""
        event = threading.Event()
        event.set()

        result = service.preview([make_file("/p/a.jpg")], {}, template="{original}", cancel_event=event)

        assert result.error.type == ErrorType.CANCELLED

    def test_base_directory(self, service):
        """Test folder structures resolve under the base directory."""
        config = AppConfig(
            filename_rules=[
                FilenamePatternRule(
                    id="r1", name="All", pattern="*", template_id="date-prefix", folder_structure_id="ym"
                )
            ],
            folder_structures=[{"id": "ym", "name": "Year", "pattern": "{year}"}],
        )

        result = service.preview([make_file("/p/a.jpg")], {}, app_config=config, base_directory="/archive")

        assert result.value.proposals[0].proposed_path == "/archive/2024/2024-03-01-a.jpg"

    @patch("services.tidy_service.src.service.configure_logging")
    def test_create_service(self, mock_configure, settings):
        """Test logging is configured from settings."""
        service = create_service(settings)

        mock_configure.assert_called_once_with("INFO", False)
        assert service.settings is settings


class TestExitCode:
    """Test process exit codes."""

    def preview_with(self, *statuses):
        proposals = [
            {
                "id": str(i),
                "original_path": f"/p/{i}",
                "original_name": str(i),
                "proposed_name": f"{i}x",
                "proposed_path": f"/p/{i}x",
                "status": status,
            }
            for i, status in enumerate(statuses)
        ]
        return Result.success(RenamePreview(proposals=proposals, template_used="{original}"))

    def test_ok(self):
        """Test ready and unchanged proposals succeed."""
        assert exit_code(self.preview_with(RenameStatus.READY, RenameStatus.NO_CHANGE)) == EXIT_OK

    def test_failed(self):
        """Test conflicts, invalid names and errors fail."""
        assert exit_code(self.preview_with(RenameStatus.CONFLICT, RenameStatus.MISSING_DATA)) == EXIT_FAILED
        assert exit_code(self.preview_with(RenameStatus.INVALID_NAME)) == EXIT_FAILED
        assert exit_code(Result.failure(ErrorType.CANCELLED, "stopped")) == EXIT_FAILED

    def test_skipped(self):
        """Test missing data alone reports skipped files."""
        assert exit_code(self.preview_with(RenameStatus.READY, RenameStatus.MISSING_DATA)) == EXIT_SKIPPED

"""Service facade wiring the rename preview engine from settings."""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence

import structlog
from pydantic import BaseModel, Field

from services.tidy_service.src.config import Settings, get_settings
from services.tidy_service.src.rename_preview.conflict_detector import ConflictDetector
from services.tidy_service.src.rename_preview.models import (
    CaseStyle,
    FileInfo,
    FilenamePatternRule,
    FolderStructure,
    MetadataPatternRule,
    RenamePreview,
    RulePriorityMode,
    Template,
    UnifiedMetadata,
)
from services.tidy_service.src.rename_preview.os_sanitizer import OSFilenameSanitizer, SanitizeOptions
from services.tidy_service.src.rename_preview.pattern_manager import PatternManager
from services.tidy_service.src.rename_preview.proposal_generator import (
    PreviewOptions,
    ProgressCallback,
    ProposalGenerator,
    RuleSet,
)
from services.tidy_service.src.rename_preview.results import ErrorType, Result
from services.tidy_service.src.structured_logging import configure_logging

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_SKIPPED = 2

DEFAULT_TEMPLATES: tuple[Template, ...] = (
    Template(id="date-prefix", name="Date Prefix", pattern="{date}-{original}", is_default=True),
    Template(id="year-month-folders", name="Year/Month Folders", pattern="{year}/{month}/{original}"),
    Template(id="camera-date", name="Camera + Date", pattern="{camera}-{date}-{original}", file_types=["jpg", "jpeg"]),
    Template(id="document-date", name="Document Date", pattern="{date}-{original}", file_types=["pdf", "docx"]),
)


class Preferences(BaseModel):
    """User preferences that override service settings for one configuration."""

    default_template_id: str | None = Field(default=None, description="Template used when no rule matches")
    rule_priority_mode: RulePriorityMode | None = Field(default=None, description="Ordering of rule kinds")
    case_normalization: CaseStyle | None = Field(default=None, description="Case style for proposed names")
    fallbacks: dict[str, str] = Field(default_factory=dict, description="Per-placeholder fallback values")


class AppConfig(BaseModel):
    """Templates, rules and preferences supplied by the configuration loader."""

    templates: list[Template] = Field(default_factory=lambda: list(DEFAULT_TEMPLATES))
    rules: list[MetadataPatternRule] = Field(default_factory=list)
    filename_rules: list[FilenamePatternRule] = Field(default_factory=list)
    folder_structures: list[FolderStructure] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)


class RenamePreviewService:
    """Entry point for collaborators (CLI, GUI) that need a rename preview."""

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the service.

        Args:
            settings: Optional settings, loaded from the environment if not provided
        """
        self.settings = settings or get_settings()

    def create_pattern_manager(self, case_style: CaseStyle | None = None) -> PatternManager:
        """Create a pattern manager, optionally overriding the configured case style."""
        return PatternManager(
            sanitize_filenames=self.settings.sanitize_filenames,
            case_style=case_style or self.settings.case_normalization,
            preserve_acronyms=self.settings.preserve_acronyms,
            default_fallback=self.settings.default_fallback,
        )

    def create_os_sanitizer(self) -> OSFilenameSanitizer | None:
        """Create the OS sanitizer, or None when OS sanitization is disabled."""
        if not self.settings.os_sanitize:
            return None
        return OSFilenameSanitizer(
            SanitizeOptions(
                replacement=self.settings.replacement_char,
                target_platform=self.settings.target_platform,
                max_length=self.settings.max_filename_length,
                truncation_style=self.settings.truncation_style,
            )
        )

    def create_conflict_detector(self) -> ConflictDetector:
        """Create a conflict detector."""
        return ConflictDetector(
            case_sensitive=self.settings.case_sensitive_filesystem,
            check_filesystem=self.settings.check_filesystem,
        )

    def create_generator(self, case_style: CaseStyle | None = None) -> ProposalGenerator:
        """Create a proposal generator with all components."""
        return ProposalGenerator(
            pattern_manager=self.create_pattern_manager(case_style),
            os_sanitizer=self.create_os_sanitizer(),
            conflict_detector=self.create_conflict_detector(),
        )

    def _default_template_id(self, config: AppConfig) -> str | None:
        """Preferences first, then settings, then the template flagged default."""
        if config.preferences.default_template_id:
            return config.preferences.default_template_id
        if self.settings.default_template_id:
            return self.settings.default_template_id
        if not config.templates:
            return None
        flagged = next((t for t in config.templates if t.is_default), None)
        return flagged.id if flagged is not None else config.templates[0].id

    def preview(
        self,
        files: Sequence[FileInfo],
        metadata_map: Mapping[str, UnifiedMetadata],
        template: str | None = None,
        app_config: AppConfig | None = None,
        cancel_event: threading.Event | None = None,
        on_progress: ProgressCallback | None = None,
        base_directory: str | None = None,
        ai_suggestions: Mapping[str, str] | None = None,
    ) -> Result[RenamePreview]:
        """Generate a rename preview.

        With ``template`` every file uses that pattern. Otherwise templates are
        selected per file by the rules in ``app_config``.

        Args:
            files: Files to rename
            metadata_map: Metadata records keyed by file path
            template: Fixed template pattern
            app_config: Templates, rules, folder structures and preferences
            cancel_event: Set to abort generation
            on_progress: Called with (current, total) after each file
            base_directory: Root for folder-structure moves (defaults to each file's directory)
            ai_suggestions: Pre-computed name suggestions keyed by file path

        Returns:
            Result holding the RenamePreview
        """
        config = app_config or AppConfig()
        preferences = config.preferences
        options = PreviewOptions(
            fallbacks=dict(preferences.fallbacks),
            ai_suggestions=dict(ai_suggestions or {}),
            cancel_event=cancel_event,
            on_progress=on_progress,
        )
        generator = self.create_generator(preferences.case_normalization)

        logger.info("Generating rename preview", files=len(files), fixed_template=template is not None)
        if template is not None:
            return generator.generate_preview(files, metadata_map, template, options)

        default_template_id = self._default_template_id(config)
        if default_template_id is None:
            logger.warning("No templates configured for rule-based preview")
            return Result.failure(ErrorType.DEFAULT_TEMPLATE_NOT_FOUND, "No templates configured")

        rule_set = RuleSet(
            templates=config.templates,
            default_template_id=default_template_id,
            metadata_rules=config.rules,
            filename_rules=config.filename_rules,
            folder_structures=config.folder_structures,
            priority_mode=preferences.rule_priority_mode or self.settings.rule_priority_mode,
            base_directory=base_directory,
        )
        return generator.generate_preview_with_rules(files, metadata_map, rule_set, options)


def exit_code(result: Result[RenamePreview]) -> int:
    """Process exit code for a preview outcome.

    Returns:
        0 when every proposal is ready or unchanged, 1 on errors, conflicts or
        invalid names, 2 when files were skipped for missing data
    """
    if not result.ok or result.value is None:
        return EXIT_FAILED
    summary = result.value.summary
    if summary.conflicts or summary.invalid_name:
        return EXIT_FAILED
    if summary.missing_data:
        return EXIT_SKIPPED
    return EXIT_OK


def create_service(settings: Settings | None = None) -> RenamePreviewService:
    """Configure logging from settings and create the service."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_json)
    return RenamePreviewService(settings)

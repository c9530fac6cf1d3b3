"""Generation of rename previews for a batch of files."""

from __future__ import annotations

import os
import threading
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

import structlog

from .conflict_detector import ConflictDetector
from .folder_resolver import resolve_folder_path
from .models import (
    FileInfo,
    FilenamePatternRule,
    FolderStructure,
    MetadataPatternRule,
    PlaceholderContext,
    ProposalMetadata,
    RenamePreview,
    RenameProposal,
    RenameStatus,
    RulePriorityMode,
    Template,
    UnifiedMetadata,
)
from .os_sanitizer import OSFilenameSanitizer, SanitizeChangeType
from .pattern_manager import PatternManager, original_filename
from .results import ErrorType, IssueCode, Result
from .rules import TemplateResolution, resolve_template_for_rule
from .sanitizer import is_valid_filename

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[int, int], None]

SANITIZE_ISSUE_CODES = {
    SanitizeChangeType.CHAR_REPLACEMENT: IssueCode.SANITIZED_CHAR_REPLACEMENT,
    SanitizeChangeType.RESERVED_NAME: IssueCode.SANITIZED_RESERVED_NAME,
    SanitizeChangeType.TRUNCATION: IssueCode.SANITIZED_TRUNCATION,
    SanitizeChangeType.TRAILING_FIX: IssueCode.SANITIZED_TRAILING_FIX,
}


@dataclass
class PreviewOptions:
    """Per-call options for preview generation.

    Attributes:
        fallbacks: Per-placeholder fallback values
        ai_suggestions: Pre-computed name suggestions keyed by file path
        cancel_event: Set to abort generation before the next file
        on_progress: Called with (current, total) after each file
    """

    fallbacks: Mapping[str, str] = field(default_factory=dict)
    ai_suggestions: Mapping[str, str] = field(default_factory=dict)
    cancel_event: threading.Event | None = None
    on_progress: ProgressCallback | None = None


@dataclass
class RuleSet:
    """Templates, rules and folder structures used for rule-based previews."""

    templates: Sequence[Template]
    default_template_id: str
    metadata_rules: Sequence[MetadataPatternRule] = field(default_factory=list)
    filename_rules: Sequence[FilenamePatternRule] = field(default_factory=list)
    folder_structures: Sequence[FolderStructure] = field(default_factory=list)
    priority_mode: RulePriorityMode = RulePriorityMode.COMBINED
    base_directory: str | None = None

    def get_template(self, template_id: str) -> Template | None:
        return next((t for t in self.templates if t.id == template_id), None)

    def get_folder_structure(self, structure_id: str) -> FolderStructure | None:
        return next((s for s in self.folder_structures if s.id == structure_id), None)


class ProposalGenerator:
    """Builds one RenameProposal per file, then runs conflict detection over the batch."""

    def __init__(
        self,
        pattern_manager: PatternManager | None = None,
        os_sanitizer: OSFilenameSanitizer | None = None,
        conflict_detector: ConflictDetector | None = None,
    ):
        """Initialize the generator.

        Args:
            pattern_manager: Applies templates to files
            os_sanitizer: Stage-two sanitizer; None skips OS sanitization
            conflict_detector: Marks duplicates and filesystem collisions
        """
        self.pattern_manager = pattern_manager or PatternManager()
        self.os_sanitizer = os_sanitizer
        self.conflict_detector = conflict_detector or ConflictDetector()

    def generate_preview(
        self,
        files: Sequence[FileInfo],
        metadata_map: Mapping[str, UnifiedMetadata],
        pattern: str,
        options: PreviewOptions | None = None,
    ) -> Result[RenamePreview]:
        """Preview renaming every file with one fixed template.

        Args:
            files: Files to rename
            metadata_map: Metadata records keyed by file path
            pattern: Template pattern
            options: Fallbacks, suggestions, cancellation and progress

        Returns:
            Result holding the RenamePreview, or a ``cancelled`` or
            ``generation_error`` error
        """
        options = options or PreviewOptions()

        def build(file: FileInfo, metadata: UnifiedMetadata | None) -> RenameProposal:
            return self._build_proposal(file, metadata, pattern, options)

        return self._run(files, metadata_map, pattern, options, build)

    def generate_preview_with_rules(
        self,
        files: Sequence[FileInfo],
        metadata_map: Mapping[str, UnifiedMetadata],
        rule_set: RuleSet,
        options: PreviewOptions | None = None,
    ) -> Result[RenamePreview]:
        """Preview renaming files with the template selected by rules per file.

        Args:
            files: Files to rename
            metadata_map: Metadata records keyed by file path
            rule_set: Templates, rules, folder structures and priority mode
            options: Fallbacks, suggestions, cancellation and progress

        Returns:
            Result holding the RenamePreview, or a
            ``default_template_not_found``, ``cancelled`` or
            ``generation_error`` error
        """
        options = options or PreviewOptions()
        default_template = rule_set.get_template(rule_set.default_template_id)
        if default_template is None:
            return Result.failure(
                ErrorType.DEFAULT_TEMPLATE_NOT_FOUND,
                f'Default template "{rule_set.default_template_id}" not found',
                template_id=rule_set.default_template_id,
            )

        def build(file: FileInfo, metadata: UnifiedMetadata | None) -> RenameProposal:
            resolution = resolve_template_for_rule(
                rule_set.metadata_rules,
                rule_set.filename_rules,
                file,
                metadata or UnifiedMetadata.empty(file),
                rule_set.templates,
                default_template,
                rule_set.priority_mode,
            )
            return self._build_proposal(
                file, metadata, resolution.template.pattern, options, resolution=resolution, rule_set=rule_set
            )

        return self._run(files, metadata_map, default_template.pattern, options, build)

    def _run(
        self,
        files: Sequence[FileInfo],
        metadata_map: Mapping[str, UnifiedMetadata],
        template_used: str,
        options: PreviewOptions,
        build: Callable[[FileInfo, UnifiedMetadata | None], RenameProposal],
    ) -> Result[RenamePreview]:
        """Shared loop: cancellation, progress, conflict detection and error capture."""
        total = len(files)
        proposals: list[RenameProposal] = []
        try:
            for index, file in enumerate(files):
                if options.cancel_event is not None and options.cancel_event.is_set():
                    logger.info("Preview generation cancelled", processed=index, total=total)
                    return Result.failure(ErrorType.CANCELLED, "Preview generation cancelled", processed=index)

                proposal = build(file, metadata_map.get(file.path))
                proposals.append(proposal)
                logger.debug(
                    "Built rename proposal",
                    path=file.path,
                    proposed_name=proposal.proposed_name,
                    status=proposal.status.value,
                )
                self._report_progress(options.on_progress, index + 1, total)

            self.conflict_detector.detect(proposals)
        except Exception as e:
            logger.exception("Preview generation failed", error=str(e))
            return Result.failure(ErrorType.GENERATION_ERROR, f"Preview generation failed: {e}")

        preview = RenamePreview(proposals=proposals, template_used=template_used)
        summary = preview.summary
        logger.info(
            "Generated rename preview",
            total=summary.total,
            ready=summary.ready,
            conflicts=summary.conflicts,
            missing_data=summary.missing_data,
            invalid_name=summary.invalid_name,
        )
        return Result.success(preview)

    @staticmethod
    def _report_progress(callback: ProgressCallback | None, current: int, total: int) -> None:
        if callback is None:
            return
        try:
            callback(current, total)
        except Exception as e:
            logger.warning("Progress callback raised, ignoring", error=str(e), current=current, total=total)

    def _build_proposal(
        self,
        file: FileInfo,
        metadata: UnifiedMetadata | None,
        pattern: str,
        options: PreviewOptions,
        resolution: TemplateResolution | None = None,
        rule_set: RuleSet | None = None,
    ) -> RenameProposal:
        """Run the per-file state machine.

        Steps, each of which may only escalate the status: apply the template
        and compute the target directory, flag missing data and fallbacks,
        detect no-change, OS-sanitize, validate the final name.
        """
        original_name = original_filename(file)
        proposal = RenameProposal(
            id=str(uuid.uuid4()),
            original_path=file.path,
            original_name=original_name,
            proposed_name=original_name,
            proposed_path=file.path,
            metadata=ProposalMetadata.from_unified(metadata),
        )
        if resolution is not None:
            proposal.template_source = resolution.template_source
            proposal.applied_rule = resolution.applied_rule
            proposal.issues.extend(resolution.issues)

        context = PlaceholderContext.from_metadata(file, metadata, options.ai_suggestions.get(file.path))
        applied = self.pattern_manager.apply(file, pattern, context, options.fallbacks)
        if not applied.ok or applied.value is None:
            assert applied.error is not None
            proposal.add_issue(IssueCode.TEMPLATE_ERROR.value, applied.error.message)
            proposal.escalate(RenameStatus.MISSING_DATA)
            return proposal

        preview = applied.value
        proposal.proposed_name = preview.proposed_name
        directory = os.path.dirname(file.path)

        if resolution is not None and resolution.folder_structure_id and rule_set is not None:
            directory = self._resolve_directory(
                proposal, file, metadata, resolution.folder_structure_id, rule_set, options
            )
        proposal.is_move_operation = os.path.normpath(directory) != os.path.normpath(os.path.dirname(file.path))
        proposal.proposed_path = os.path.join(directory, proposal.proposed_name)

        for name in preview.empty_placeholders:
            proposal.add_issue(IssueCode.MISSING_METADATA.value, f"Placeholder {{{name}}} could not be filled", name)
            proposal.escalate(RenameStatus.MISSING_DATA)
        for name in preview.used_fallbacks:
            proposal.add_issue(IssueCode.USED_FALLBACK.value, f"Used fallback value for {{{name}}}", name)

        if proposal.proposed_name == original_name and not proposal.is_move_operation:
            proposal.escalate(RenameStatus.NO_CHANGE)

        if self.os_sanitizer is not None:
            sanitized = self.os_sanitizer.sanitize(proposal.proposed_name)
            if sanitized.was_modified:
                proposal.proposed_name = sanitized.sanitized
                proposal.proposed_path = os.path.join(directory, proposal.proposed_name)
                for change in sanitized.changes:
                    proposal.add_issue(SANITIZE_ISSUE_CODES[change.type].value, change.message)

        if not is_valid_filename(proposal.proposed_name):
            proposal.add_issue(
                IssueCode.INVALID_NAME.value, "Proposed filename contains invalid characters", "proposed_name"
            )
            proposal.escalate(RenameStatus.INVALID_NAME)

        return proposal

    def _resolve_directory(
        self,
        proposal: RenameProposal,
        file: FileInfo,
        metadata: UnifiedMetadata | None,
        structure_id: str,
        rule_set: RuleSet,
        options: PreviewOptions,
    ) -> str:
        """Target directory from the rule's folder structure, or the file's own on failure."""
        current = os.path.dirname(file.path)
        structure = rule_set.get_folder_structure(structure_id)
        if structure is None:
            proposal.add_issue(
                IssueCode.FOLDER_STRUCTURE_MISSING.value,
                f'Folder structure "{structure_id}" not found; the file stays in its directory',
                "folder_structure_id",
            )
            return current
        if not structure.enabled:
            return current

        resolved = resolve_folder_path(
            structure.pattern,
            metadata,
            file,
            fallbacks=options.fallbacks,
            case_style=self.pattern_manager.case_style,
            preserve_acronyms=self.pattern_manager.preserve_acronyms,
        )
        if not resolved.ok or resolved.value is None:
            assert resolved.error is not None
            proposal.add_issue(
                IssueCode.FOLDER_RESOLUTION_FAILED.value,
                f"Folder structure resolution failed: {resolved.error.message}",
                "folder_structure_id",
            )
            proposal.escalate(RenameStatus.MISSING_DATA)
            return current

        proposal.folder_structure_id = structure_id
        base_directory = rule_set.base_directory or current
        return os.path.join(base_directory, *resolved.value.resolved_path.split("/"))

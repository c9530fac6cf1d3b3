"""Data models for the rename preview engine."""

from __future__ import annotations

import posixpath
from collections import Counter
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


class FileCategory(str, Enum):
    """Broad file categories assigned by the scanner."""

    IMAGE = "image"
    DOCUMENT = "document"
    PDF = "pdf"
    SPREADSHEET = "spreadsheet"
    PRESENTATION = "presentation"
    AUDIO = "audio"
    VIDEO = "video"
    ARCHIVE = "archive"
    CODE = "code"
    TEXT = "text"
    DATA = "data"
    OTHER = "other"


class MetadataCapability(str, Enum):
    """How much metadata the extractor can read for a file type."""

    FULL = "full"
    BASIC = "basic"
    EXTENDED = "extended"
    NONE = "none"


class ExtractionStatus(str, Enum):
    """Outcome of metadata extraction for one file."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    UNSUPPORTED = "unsupported"


class PlaceholderSource(str, Enum):
    """Provenance of a resolved placeholder value."""

    EXIF = "exif"
    DOCUMENT = "document"
    FILESYSTEM = "filesystem"
    FALLBACK = "fallback"
    LITERAL = "literal"


class RenameStatus(str, Enum):
    """Closed set of per-file outcomes."""

    READY = "ready"
    CONFLICT = "conflict"
    MISSING_DATA = "missing-data"
    NO_CHANGE = "no-change"
    INVALID_NAME = "invalid-name"


class TemplateSource(str, Enum):
    """Where the template used for a proposal came from."""

    RULE = "rule"
    DEFAULT = "default"
    FALLBACK = "fallback"


class RuleOperator(str, Enum):
    """Comparison operators for metadata rule conditions."""

    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    REGEX = "regex"
    EXISTS = "exists"
    NOT_EXISTS = "notExists"


class MatchMode(str, Enum):
    """How rule conditions combine."""

    ALL = "all"
    ANY = "any"


class RuleType(str, Enum):
    """Kind of rule that selected a template."""

    METADATA = "metadata"
    FILENAME = "filename"


class RulePriorityMode(str, Enum):
    """Ordering of metadata and filename rules during resolution."""

    COMBINED = "combined"
    METADATA_FIRST = "metadata-first"
    FILENAME_FIRST = "filename-first"


class CaseStyle(str, Enum):
    """Supported case normalization styles."""

    NONE = "none"
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    CAPITALIZE = "capitalize"
    TITLE_CASE = "title-case"
    KEBAB_CASE = "kebab-case"
    SNAKE_CASE = "snake_case"
    CAMEL_CASE = "camelCase"
    PASCAL_CASE = "PascalCase"


class TargetPlatform(str, Enum):
    """Platforms whose filename rules the OS sanitizer enforces."""

    ALL = "all"
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"
    CURRENT = "current"


class TruncationStyle(str, Enum):
    """How over-long filenames are shortened."""

    ELLIPSIS = "ellipsis"
    NONE = "none"


# File and metadata records, supplied by the scanner and extractor


class FileInfo(BaseModel):
    """A file discovered by the scanner."""

    path: str = Field(..., description="Absolute path to the file")
    name: str = Field(..., description="Filename without extension")
    extension: str = Field(default="", description="Extension without the leading dot")
    full_name: str = Field(..., description="Filename including extension")
    size: int = Field(default=0, ge=0, description="File size in bytes")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    modified_at: datetime | None = Field(default=None, description="Last modification timestamp")
    relative_path: str = Field(default="", description="Path relative to the scan root")
    mime_type: str | None = Field(default=None, description="Detected MIME type")
    category: FileCategory = Field(default=FileCategory.OTHER, description="File category")
    metadata_supported: bool = Field(default=False, description="Whether metadata can be extracted")
    metadata_capability: MetadataCapability = Field(default=MetadataCapability.NONE)

    @classmethod
    def from_path(cls, path: str, **kwargs: Any) -> FileInfo:
        """Build a FileInfo from a path, deriving name, extension and full name.

        A dotfile without any other dot (``.bashrc``) has no extension.

        Args:
            path: Path to the file
            **kwargs: Any other FileInfo field (size, modified_at, ...)

        Returns:
            FileInfo for the path
        """
        full_name = posixpath.basename(path.replace("\\", "/"))
        dot = full_name.rfind(".")
        if dot > 0:
            name, extension = full_name[:dot], full_name[dot + 1 :]
        else:
            name, extension = full_name, ""
        return cls(path=path, name=name, extension=extension, full_name=full_name, **kwargs)


class GPSCoordinates(BaseModel):
    """GPS position in decimal degrees."""

    latitude: float
    longitude: float
    altitude: float | None = None


class ImageMetadata(BaseModel):
    """EXIF metadata extracted from an image."""

    date_taken: datetime | None = None
    camera_make: str | None = None
    camera_model: str | None = None
    gps: GPSCoordinates | None = None
    width: int | None = None
    height: int | None = None
    orientation: int | None = None
    exposure_time: str | None = None
    f_number: float | None = None
    iso: int | None = None


class PDFMetadata(BaseModel):
    """Document information dictionary of a PDF."""

    title: str | None = None
    author: str | None = None
    subject: str | None = None
    keywords: str | None = None
    creator: str | None = None
    producer: str | None = None
    creation_date: datetime | None = None
    modification_date: datetime | None = None
    page_count: int | None = None


class OfficeMetadata(BaseModel):
    """Core and app properties of an Office Open XML document."""

    title: str | None = None
    subject: str | None = None
    creator: str | None = None
    keywords: str | None = None
    description: str | None = None
    last_modified_by: str | None = None
    created: datetime | None = None
    modified: datetime | None = None
    revision: str | None = None
    category: str | None = None
    application: str | None = None
    app_version: str | None = None
    page_count: int | None = None
    word_count: int | None = None


class UnifiedMetadata(BaseModel):
    """All metadata known for one file."""

    file: FileInfo
    image: ImageMetadata | None = None
    pdf: PDFMetadata | None = None
    office: OfficeMetadata | None = None
    extraction_status: ExtractionStatus = ExtractionStatus.SUCCESS
    extraction_error: str | None = None

    @classmethod
    def empty(cls, file: FileInfo) -> UnifiedMetadata:
        """Metadata record for a file with nothing extracted."""
        return cls(file=file, extraction_status=ExtractionStatus.UNSUPPORTED)


class PlaceholderContext(BaseModel):
    """Read-only view of one file's data used to resolve placeholders."""

    model_config = ConfigDict(frozen=True)

    file: FileInfo
    image_metadata: ImageMetadata | None = None
    pdf_metadata: PDFMetadata | None = None
    office_metadata: OfficeMetadata | None = None
    ai_suggestion: str | None = Field(default=None, description="Name suggested by an external provider")

    @classmethod
    def from_metadata(
        cls, file: FileInfo, metadata: UnifiedMetadata | None, ai_suggestion: str | None = None
    ) -> PlaceholderContext:
        """Assemble the context for a file from its (possibly missing) metadata."""
        if metadata is None:
            return cls(file=file, ai_suggestion=ai_suggestion)
        return cls(
            file=file,
            image_metadata=metadata.image,
            pdf_metadata=metadata.pdf,
            office_metadata=metadata.office,
            ai_suggestion=ai_suggestion,
        )


# Configuration records, loaded by a collaborator


class Template(BaseModel):
    """A naming template."""

    id: str = Field(..., description="Unique identifier for the template")
    name: str = Field(..., min_length=1, max_length=255, description="Human-readable name")
    pattern: str = Field(..., description="Pattern string, e.g. '{date}-{original}'")
    file_types: list[str] | None = Field(default=None, description="Advisory list of extensions")
    is_default: bool = Field(default=False, description="Whether this is the default template")


class RuleCondition(BaseModel):
    """A single test against a metadata field."""

    field: str = Field(..., min_length=1, description="Dotted field path, e.g. 'image.camera_make'")
    operator: RuleOperator
    value: str | None = Field(default=None, description="Expected value (unused by exists/notExists)")
    case_sensitive: bool = False


class MetadataPatternRule(BaseModel):
    """Rule selecting a template from metadata conditions."""

    id: str
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    conditions: list[RuleCondition] = Field(..., min_length=1)
    match_mode: MatchMode = MatchMode.ALL
    template_id: str
    folder_structure_id: str | None = None
    priority: int = Field(default=0, ge=0)
    enabled: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class FilenamePatternRule(BaseModel):
    """Rule selecting a template from a filename glob."""

    id: str
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    pattern: str = Field(..., min_length=1, description="Glob pattern, e.g. 'IMG_*.{jpg,jpeg}'")
    case_sensitive: bool = False
    template_id: str
    folder_structure_id: str | None = None
    priority: int = Field(default=0, ge=0)
    enabled: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class FolderStructure(BaseModel):
    """A folder organization pattern, e.g. '{year}/{month}'."""

    id: str
    name: str = Field(..., min_length=1, max_length=100)
    pattern: str = Field(..., min_length=1)
    description: str | None = None
    enabled: bool = True
    priority: int = Field(default=0, ge=0)


# Proposal output


class RenameIssue(BaseModel):
    """A soft problem recorded on a proposal."""

    code: str
    message: str
    field: str | None = None


class AppliedRule(BaseModel):
    """The rule that selected a proposal's template."""

    rule_id: str
    rule_name: str
    rule_type: RuleType


class ProposalMetadata(BaseModel):
    """Metadata snapshot attached to a proposal for display."""

    image: ImageMetadata | None = None
    pdf: PDFMetadata | None = None
    office: OfficeMetadata | None = None

    @classmethod
    def from_unified(cls, metadata: UnifiedMetadata | None) -> ProposalMetadata | None:
        """Snapshot the extracted parts of a metadata record, or None when nothing was extracted."""
        if metadata is None or (metadata.image is None and metadata.pdf is None and metadata.office is None):
            return None
        return cls(image=metadata.image, pdf=metadata.pdf, office=metadata.office)


class RenameProposal(BaseModel):
    """Proposed rename (and optional move) of one file."""

    id: str = Field(..., description="Identifier, unique within one preview")
    original_path: str
    original_name: str
    proposed_name: str
    proposed_path: str
    status: RenameStatus = RenameStatus.READY
    issues: list[RenameIssue] = Field(default_factory=list)
    applied_rule: AppliedRule | None = None
    template_source: TemplateSource | None = None
    metadata: ProposalMetadata | None = None
    is_move_operation: bool = False
    folder_structure_id: str | None = None

    def add_issue(self, code: str, message: str, field: str | None = None) -> None:
        """Record an issue without touching the status."""
        self.issues.append(RenameIssue(code=code, message=message, field=field))

    def escalate(self, status: RenameStatus) -> bool:
        """Move to a stricter status, never back.

        ``invalid-name`` always wins. ``conflict`` and ``no-change`` only
        replace ``ready``. ``missing-data`` replaces ``ready`` or
        ``no-change``.

        Args:
            status: Requested status

        Returns:
            True if the status changed
        """
        current = self.status
        if status == RenameStatus.INVALID_NAME:
            allowed = True
        elif status == RenameStatus.MISSING_DATA:
            allowed = current in (RenameStatus.READY, RenameStatus.NO_CHANGE)
        elif status in (RenameStatus.CONFLICT, RenameStatus.NO_CHANGE):
            allowed = current == RenameStatus.READY
        else:
            allowed = False

        if allowed and current != status:
            self.status = status
            return True
        return False


class PreviewSummary(BaseModel):
    """Counts per status, always derived from the proposal list."""

    total: int = 0
    ready: int = 0
    conflicts: int = 0
    missing_data: int = 0
    no_change: int = 0
    invalid_name: int = 0
    move_operations: int = 0
    rename_only: int = 0

    @classmethod
    def from_proposals(cls, proposals: list[RenameProposal]) -> PreviewSummary:
        """Fold a proposal list into summary counts."""
        counts = Counter(p.status for p in proposals)
        moves = sum(1 for p in proposals if p.is_move_operation)
        return cls(
            total=len(proposals),
            ready=counts[RenameStatus.READY],
            conflicts=counts[RenameStatus.CONFLICT],
            missing_data=counts[RenameStatus.MISSING_DATA],
            no_change=counts[RenameStatus.NO_CHANGE],
            invalid_name=counts[RenameStatus.INVALID_NAME],
            move_operations=moves,
            rename_only=len(proposals) - moves,
        )


class RenamePreview(BaseModel):
    """Result of one preview generation."""

    proposals: list[RenameProposal] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    template_used: str = Field(..., description="Pattern of the default or fixed template")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def summary(self) -> PreviewSummary:
        """Summary counts, recomputed from the proposals on every access."""
        return PreviewSummary.from_proposals(self.proposals)

    def proposals_with_status(self, status: RenameStatus) -> list[RenameProposal]:
        """Proposals currently in the given status."""
        return [p for p in self.proposals if p.status == status]

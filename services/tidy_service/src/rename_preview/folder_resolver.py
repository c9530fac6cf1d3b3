"""Resolution of folder structure patterns such as ``{year}/{month}``.

Unlike filename templates, folder patterns are strict: every placeholder must
resolve to real data or a configured fallback, otherwise the whole path fails.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field

import structlog

from .case_normalizer import normalize_path
from .models import CaseStyle, FileInfo, PlaceholderContext, UnifiedMetadata
from .resolvers import ResolverOptions, resolve_placeholder
from .results import ErrorType, Result
from .sanitizer import WINDOWS_RESERVED_PATTERN
from .template_parser import PLACEHOLDER_TYPES, LiteralToken, parse_template

logger = structlog.get_logger(__name__)

INVALID_PATH_CHARS = re.compile(r'[<>:"|?*\x00-\x1f]')
_PLACEHOLDER_PATTERN = re.compile(r"\{[^{}]*\}")
_SEPARATORS = re.compile(r"[/\\]+")


@dataclass(frozen=True)
class FolderPatternValidation:
    """Structural check of a folder pattern."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    placeholders: list[str] = field(default_factory=list)
    normalized_pattern: str = ""


@dataclass(frozen=True)
class FolderResolution:
    """A folder pattern resolved for one file."""

    resolved_path: str
    resolved_placeholders: list[str]
    missing_placeholders: list[str] = field(default_factory=list)
    used_fallbacks: bool = False


def normalize_folder_pattern(pattern: str) -> str:
    """Use forward slashes, collapse repeats and drop leading/trailing slashes."""
    return re.sub(r"/+", "/", pattern.replace("\\", "/")).strip("/")


def validate_folder_pattern(pattern: str) -> FolderPatternValidation:
    """Check a folder pattern before resolving it.

    Invalid path characters outside placeholders and malformed braces are
    errors. Unknown placeholders, Windows reserved segment names and segments
    ending in a dot or space are warnings.

    Args:
        pattern: Folder pattern

    Returns:
        FolderPatternValidation
    """
    if not pattern or not pattern.strip():
        return FolderPatternValidation(valid=False, errors=["Pattern cannot be empty"])

    normalized = normalize_folder_pattern(pattern)
    errors: list[str] = []
    warnings: list[str] = []
    placeholders: list[str] = []

    literal_text = _PLACEHOLDER_PATTERN.sub("", normalized)
    invalid = INVALID_PATH_CHARS.findall(literal_text)
    if invalid:
        errors.append(f"Pattern contains invalid path characters: {', '.join(invalid)}")

    depth = 0
    current: list[str] = []
    for position, char in enumerate(normalized):
        if char == "{":
            if depth > 0:
                errors.append(f"Nested braces at position {position}")
            depth += 1
            current = []
        elif char == "}":
            if depth == 0:
                errors.append(f"Unexpected closing brace at position {position}")
                continue
            depth -= 1
            name = "".join(current).split(":", 1)[0].strip()
            if not name:
                errors.append("Empty placeholder found")
            else:
                placeholders.append(name)
                if name not in PLACEHOLDER_TYPES:
                    warnings.append(f"Unknown placeholder '{{{name}}}' - may not resolve at runtime")
            current = []
        elif depth > 0:
            current.append(char)
    if depth > 0:
        errors.append("Unclosed brace in pattern")

    for segment in normalized.split("/"):
        literal = _PLACEHOLDER_PATTERN.sub("", segment)
        if literal and WINDOWS_RESERVED_PATTERN.match(literal):
            warnings.append(f"Path segment '{literal}' is a Windows reserved name")
        if literal.endswith("."):
            warnings.append(f"Path segment '{segment}' ends with a dot (may cause issues on Windows)")
        if literal.endswith(" "):
            warnings.append(f"Path segment '{segment}' ends with a space (may cause issues on Windows)")

    return FolderPatternValidation(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        placeholders=placeholders,
        normalized_pattern=normalized,
    )


def sanitize_path_segment(value: str) -> str:
    """Clean one resolved value so it stays inside a single path segment.

    Edge dots and spaces are trimmed, so ``..`` or ``.`` cannot climb out of
    or collapse the folder structure; such values come back empty.
    """
    value = INVALID_PATH_CHARS.sub("", value)
    return _SEPARATORS.sub("_", value).strip(" .")


def resolve_folder_path(
    pattern: str,
    metadata: UnifiedMetadata | None,
    file: FileInfo,
    fallbacks: Mapping[str, str] | None = None,
    case_style: CaseStyle = CaseStyle.NONE,
    preserve_acronyms: bool = False,
) -> Result[FolderResolution]:
    """Resolve a folder pattern for a file.

    Every placeholder must produce a value, from data or from ``fallbacks``.
    All missing placeholders are reported together in one ``missing_metadata``
    error.

    Args:
        pattern: Folder pattern, e.g. ``{year}/{month}``
        metadata: Metadata record for the file, if any
        file: File being organized
        fallbacks: Per-placeholder fallback values
        case_style: Case style applied to every segment
        preserve_acronyms: Keep known acronyms upper-cased

    Returns:
        Result holding a FolderResolution, or an ``invalid_pattern`` or
        ``missing_metadata`` error
    """
    validation = validate_folder_pattern(pattern)
    if not validation.valid:
        return Result.failure(ErrorType.INVALID_PATTERN, "; ".join(validation.errors), pattern=pattern)

    parsed_result = parse_template(validation.normalized_pattern)
    if not parsed_result.ok or parsed_result.value is None:
        assert parsed_result.error is not None
        return Result.failure(ErrorType.INVALID_PATTERN, parsed_result.error.message, pattern=pattern)
    parsed = parsed_result.value

    fallbacks = fallbacks or {}
    context = PlaceholderContext.from_metadata(file, metadata)
    options = ResolverOptions(
        sanitize_for_filename=True,
        template_has_date=parsed.has_placeholder("year", "month", "day", "date"),
    )

    values: dict[tuple[str, str | None], str] = {}
    resolved: list[str] = []
    missing: list[str] = []
    used_fallbacks = False

    for token in parsed.tokens:
        if isinstance(token, LiteralToken):
            continue
        key = (token.name, token.format_spec)
        if key in values or token.name in missing:
            continue

        resolution = resolve_placeholder(token.name, context, options.with_format(token.format_spec))
        value = sanitize_path_segment(resolution.value)
        if not value:
            value = sanitize_path_segment(fallbacks.get(token.name, ""))
            used_fallbacks = used_fallbacks or bool(value)

        if value:
            values[key] = value
            if token.name not in resolved:
                resolved.append(token.name)
        else:
            missing.append(token.name)

    if missing:
        logger.debug("Folder pattern unresolved", pattern=pattern, path=file.path, missing=missing)
        return Result.failure(
            ErrorType.MISSING_METADATA,
            f"Missing required metadata: {', '.join(missing)}",
            missing_fields=missing,
        )

    path = "".join(
        token.value if isinstance(token, LiteralToken) else values[(token.name, token.format_spec)]
        for token in parsed.tokens
    )
    path = normalize_path(normalize_folder_pattern(path), case_style, preserve_acronyms=preserve_acronyms)
    return Result.success(
        FolderResolution(resolved_path=path, resolved_placeholders=resolved, used_fallbacks=used_fallbacks)
    )

"""Applies naming templates to files."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

import structlog

from .case_normalizer import normalize_case
from .models import CaseStyle, FileInfo, PlaceholderContext
from .resolvers import ResolvedPlaceholder, ResolverOptions, resolve_placeholder
from .results import ErrorType, Result
from .template_parser import (
    DATE_PLACEHOLDERS,
    PLACEHOLDER_TYPES,
    LiteralToken,
    ParsedTemplate,
    get_unknown_placeholders,
    parse_template,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TemplatePreview:
    """A template applied to one file, before OS sanitization and conflicts."""

    original_path: str
    original_name: str
    proposed_name: str
    proposed_path: str
    pattern: str
    resolutions: tuple[ResolvedPlaceholder, ...]

    @property
    def empty_placeholders(self) -> list[str]:
        return [r.name for r in self.resolutions if r.is_empty]

    @property
    def has_empty_placeholders(self) -> bool:
        return any(r.is_empty for r in self.resolutions)

    @property
    def used_fallbacks(self) -> list[str]:
        return [r.name for r in self.resolutions if r.used_fallback]


def original_filename(file: FileInfo) -> str:
    """The file's current name, rebuilt from stem and extension."""
    extension = file.extension.removeprefix(".")
    return f"{file.name}.{extension}" if extension else file.name


class PatternManager:
    """Resolves template placeholders for a file and assembles the proposed name."""

    def __init__(
        self,
        sanitize_filenames: bool = True,
        case_style: CaseStyle = CaseStyle.NONE,
        preserve_acronyms: bool = False,
        default_fallback: str = "",
    ):
        """Initialize the pattern manager.

        Args:
            sanitize_filenames: Sanitize resolved placeholder values
            case_style: Case style applied to the assembled name stem
            preserve_acronyms: Keep known acronyms upper-cased when normalizing
            default_fallback: Fallback for placeholders without a specific one
        """
        self.sanitize_filenames = sanitize_filenames
        self.case_style = CaseStyle(case_style)
        self.preserve_acronyms = preserve_acronyms
        self.default_fallback = default_fallback

    def apply(
        self,
        file: FileInfo,
        pattern: str,
        context: PlaceholderContext | None = None,
        fallbacks: Mapping[str, str] | None = None,
    ) -> Result[TemplatePreview]:
        """Apply a pattern to a file.

        Args:
            file: File to name
            pattern: Template pattern
            context: Placeholder context (defaults to one without metadata)
            fallbacks: Per-placeholder fallback values

        Returns:
            Result holding a TemplatePreview, or an ``invalid_pattern`` or
            ``invalid_filename`` error
        """
        parsed_result = parse_template(pattern)
        if not parsed_result.ok or parsed_result.value is None:
            assert parsed_result.error is not None
            return Result.failure(
                ErrorType.INVALID_PATTERN,
                f"Invalid template: {parsed_result.error.message}",
                **parsed_result.error.details,
            )
        parsed = parsed_result.value

        context = context or PlaceholderContext(file=file)
        options = ResolverOptions(
            fallback=self.default_fallback,
            fallbacks=dict(fallbacks or {}),
            sanitize_for_filename=self.sanitize_filenames,
            template_has_date=parsed.has_placeholder(*DATE_PLACEHOLDERS),
        )

        name, resolutions = self._render(parsed, context, options)
        name = self._finish_name(name, file)

        extension = file.extension.removeprefix(".")
        stripped = name.strip()
        if stripped in ("", ".", "..") or (extension and stripped == f".{extension}"):
            return Result.failure(ErrorType.INVALID_FILENAME, "Template produced empty or invalid filename")

        logger.debug("Applied template", pattern=pattern, path=file.path, proposed_name=name)
        return Result.success(
            TemplatePreview(
                original_path=file.path,
                original_name=original_filename(file),
                proposed_name=name,
                proposed_path=os.path.join(os.path.dirname(file.path), name),
                pattern=pattern,
                resolutions=tuple(resolutions),
            )
        )

    def _render(
        self, parsed: ParsedTemplate, context: PlaceholderContext, options: ResolverOptions
    ) -> tuple[str, list[ResolvedPlaceholder]]:
        """Join literal and resolved tokens; resolutions are unique per placeholder name."""
        parts: list[str] = []
        by_name: dict[str, ResolvedPlaceholder] = {}
        cache: dict[tuple[str, str | None], ResolvedPlaceholder] = {}

        for token in parsed.tokens:
            if isinstance(token, LiteralToken):
                parts.append(token.value)
                continue
            key = (token.name, token.format_spec)
            if key not in cache:
                cache[key] = resolve_placeholder(token.name, context, options.with_format(token.format_spec))
            resolution = cache[key]
            by_name.setdefault(token.name, resolution)
            parts.append(resolution.value)

        return "".join(parts), list(by_name.values())

    def _finish_name(self, name: str, file: FileInfo) -> str:
        """Case-normalize the stem and make sure the extension is attached."""
        extension = file.extension.removeprefix(".")
        suffix = f".{extension}" if extension else ""

        stem = name
        has_suffix = bool(suffix) and name.lower().endswith(suffix.lower())
        if has_suffix:
            stem = name[: -len(suffix)]

        if self.case_style != CaseStyle.NONE:
            stem = normalize_case(stem, self.case_style, self.preserve_acronyms).normalized
            suffix = suffix.lower()
        elif has_suffix:
            suffix = name[-len(suffix) :]

        return stem + suffix

    def validate_pattern(self, pattern: str) -> tuple[bool, list[str], list[str]]:
        """Validate a pattern string.

        Args:
            pattern: Pattern to validate

        Returns:
            Tuple of (is_valid, errors, warnings). Unknown placeholders are
            warnings only since they resolve to their fallback.
        """
        if not pattern or not pattern.strip():
            return False, ["Pattern cannot be empty"], []

        result = parse_template(pattern)
        if not result.ok:
            assert result.error is not None
            return False, [result.error.message], []

        warnings = [f"Unknown placeholder: {{{name}}}" for name in get_unknown_placeholders(pattern)]
        return True, [], warnings

    def get_available_placeholders(self) -> list[str]:
        """Get the placeholder names the resolvers understand."""
        return sorted(PLACEHOLDER_TYPES)

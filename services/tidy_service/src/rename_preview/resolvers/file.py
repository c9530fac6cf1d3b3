"""Filesystem placeholders: ext, original, size, name and ai."""

from __future__ import annotations

import re

from ..models import PlaceholderContext, PlaceholderSource
from ..template_parser import FILE_PLACEHOLDERS
from .base import ResolvedPlaceholder, ResolverOptions, missing, resolved

SIZE_UNITS = (
    ("GB", 1024**3),
    ("MB", 1024**2),
    ("KB", 1024),
)

DATE_START_PATTERNS = (
    re.compile(r"^(\d{4}[-_]\d{2}[-_]\d{2})[-_\s]+"),  # YYYY-MM-DD
    re.compile(r"^(\d{8})[-_\s]+"),  # YYYYMMDD
    re.compile(r"^(\d{2}[-_]\d{2}[-_]\d{4})[-_\s]+"),  # DD-MM-YYYY / MM-DD-YYYY
    re.compile(r"^(\d{4}[-_]\d{2})[-_\s]+(?=\D)"),  # YYYY-MM
    re.compile(r"^(\d{4})[-_\s]+(?=\D)"),  # YYYY
)

DATE_END_PATTERNS = (
    re.compile(r"[-_\s]+(\d{4}[-_]\d{2}[-_]\d{2})$"),
    re.compile(r"[-_\s]+(\d{8})$"),
    re.compile(r"[-_\s]+(\d{2}[-_]\d{2}[-_]\d{4})$"),
    re.compile(r"(?<!\d[-_])[-_\s]+(\d{4}[-_]\d{2})$"),
    re.compile(r"(?<!\d[-_])[-_\s]+(\d{4})$"),
)

# Only these carry free text and need sanitizing.
_SANITIZED = frozenset({"name", "original", "ai"})


def is_file_placeholder(name: str) -> bool:
    return name in FILE_PLACEHOLDERS


def format_bytes(size: int) -> str:
    """Human-readable size with one decimal, dropping a trailing ``.0``.

    >>> format_bytes(1536)
    '1.5KB'
    >>> format_bytes(2 * 1024 * 1024)
    '2MB'
    """
    if size <= 0:
        return "0B"
    for unit, threshold in SIZE_UNITS:
        if size >= threshold:
            display = f"{size / threshold:.1f}"
            if display.endswith(".0"):
                display = display[:-2]
            return f"{display}{unit}"
    return f"{size}B"


def _strip_first(name: str, patterns: tuple[re.Pattern[str], ...], from_start: bool) -> str:
    for pattern in patterns:
        match = pattern.search(name)
        if match:
            stripped = name[match.end() :] if from_start else name[: match.start()]
            if stripped:
                return stripped
    return name


def strip_date_patterns(name: str) -> str:
    """Remove one embedded date from the start and one from the end of a name.

    Used for ``{name}`` when the template already adds a date, so the date
    does not appear twice. A strip that would leave nothing is skipped.
    """
    name = _strip_first(name, DATE_START_PATTERNS, from_start=True)
    return _strip_first(name, DATE_END_PATTERNS, from_start=False)


def resolve_file_placeholder(
    name: str, context: PlaceholderContext, options: ResolverOptions | None = None
) -> ResolvedPlaceholder:
    """Resolve a file placeholder from FileInfo (and the AI suggestion for name/ai).

    Args:
        name: One of ext, original, size, name, ai
        context: Placeholder context for the file
        options: Resolver options

    Returns:
        ResolvedPlaceholder
    """
    options = options or ResolverOptions()
    file = context.file
    value = ""
    source = PlaceholderSource.FILESYSTEM

    if name == "ext":
        value = file.extension.removeprefix(".")
    elif name == "original":
        value = file.name
    elif name == "size":
        value = format_bytes(file.size)
    elif name == "ai":
        value = context.ai_suggestion or ""
        source = PlaceholderSource.LITERAL
    elif name == "name":
        if context.ai_suggestion:
            value, source = context.ai_suggestion, PlaceholderSource.LITERAL
        else:
            value = file.name
        if value and options.template_has_date:
            value = strip_date_patterns(value)
    else:
        raise ValueError(f"Not a file placeholder: {name}")

    if not value:
        return missing(name, options)
    if name in _SANITIZED:
        return resolved(name, value, source, options)
    return ResolvedPlaceholder(name=name, value=value, source=source)

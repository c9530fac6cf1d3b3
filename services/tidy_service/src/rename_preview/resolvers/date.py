"""Date placeholders: year, month, day and date."""

from __future__ import annotations

import re
from datetime import datetime

from ..models import PlaceholderContext, PlaceholderSource
from ..template_parser import DATE_PLACEHOLDERS
from .base import ResolvedPlaceholder, ResolverOptions, missing

DEFAULT_FORMATS = {
    "year": "YYYY",
    "month": "MM",
    "day": "DD",
    "date": "YYYY-MM-DD",
}

_FORMAT_TOKEN = re.compile(r"YYYY|YY|MM|DD|M|D")


def is_date_placeholder(name: str) -> bool:
    return name in DATE_PLACEHOLDERS


def find_best_date(context: PlaceholderContext) -> tuple[datetime | None, PlaceholderSource]:
    """Pick the most authoritative date known for a file.

    Priority: EXIF date taken, PDF creation date, Office created date, then
    the filesystem modification time.

    Returns:
        Tuple of (date or None, source)
    """
    if context.image_metadata and context.image_metadata.date_taken:
        return context.image_metadata.date_taken, PlaceholderSource.EXIF
    if context.pdf_metadata and context.pdf_metadata.creation_date:
        return context.pdf_metadata.creation_date, PlaceholderSource.DOCUMENT
    if context.office_metadata and context.office_metadata.created:
        return context.office_metadata.created, PlaceholderSource.DOCUMENT
    if context.file.modified_at:
        return context.file.modified_at, PlaceholderSource.FILESYSTEM
    return None, PlaceholderSource.LITERAL


def format_date(value: datetime, format_spec: str) -> str:
    """Render a date with ``YYYY``, ``YY``, ``MM``, ``DD``, ``M`` and ``D`` tokens.

    >>> format_date(datetime(2024, 7, 5), "DD.MM.YY")
    '05.07.24'
    """
    tokens = {
        "YYYY": f"{value.year:04d}",
        "YY": f"{value.year % 100:02d}",
        "MM": f"{value.month:02d}",
        "DD": f"{value.day:02d}",
        "M": str(value.month),
        "D": str(value.day),
    }
    return _FORMAT_TOKEN.sub(lambda match: tokens[match.group(0)], format_spec)


def resolve_date_placeholder(
    name: str, context: PlaceholderContext, options: ResolverOptions | None = None
) -> ResolvedPlaceholder:
    """Resolve a date placeholder.

    Date output is built only from digits and the format's own separators,
    so it is not passed through the filename sanitizer.
    """
    options = options or ResolverOptions()
    value, source = find_best_date(context)
    if value is None:
        return missing(name, options)

    format_spec = options.format_spec or DEFAULT_FORMATS[name]
    return ResolvedPlaceholder(name=name, value=format_date(value, format_spec), source=source)

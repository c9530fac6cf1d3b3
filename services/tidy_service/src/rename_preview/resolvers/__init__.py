"""Placeholder resolvers.

Each resolver maps a placeholder name and a PlaceholderContext to a value and
its provenance. Resolvers never raise for missing data; they return an empty
value (or the configured fallback).
"""

from ..models import PlaceholderContext
from ..template_parser import DATE_PLACEHOLDERS, FILE_PLACEHOLDERS, FOLDER_PLACEHOLDERS, METADATA_PLACEHOLDERS
from .base import ResolvedPlaceholder, ResolverOptions, missing
from .date import find_best_date, format_date, resolve_date_placeholder
from .file import format_bytes, resolve_file_placeholder, strip_date_patterns
from .folder import resolve_folder_placeholder
from .metadata import format_camera, format_location, resolve_metadata_placeholder


def resolve_placeholder(
    name: str, context: PlaceholderContext, options: ResolverOptions | None = None
) -> ResolvedPlaceholder:
    """Resolve any placeholder by name.

    Unknown names resolve to their fallback, or empty.

    Args:
        name: Placeholder name
        context: Placeholder context for the file
        options: Resolver options

    Returns:
        ResolvedPlaceholder
    """
    options = options or ResolverOptions()
    if name in DATE_PLACEHOLDERS:
        return resolve_date_placeholder(name, context, options)
    if name in METADATA_PLACEHOLDERS:
        return resolve_metadata_placeholder(name, context, options)
    if name in FILE_PLACEHOLDERS:
        return resolve_file_placeholder(name, context, options)
    if name in FOLDER_PLACEHOLDERS:
        return resolve_folder_placeholder(name, context, options)
    return missing(name, options)


__all__ = [
    "ResolvedPlaceholder",
    "ResolverOptions",
    "find_best_date",
    "format_bytes",
    "format_camera",
    "format_date",
    "format_location",
    "resolve_placeholder",
    "strip_date_patterns",
]

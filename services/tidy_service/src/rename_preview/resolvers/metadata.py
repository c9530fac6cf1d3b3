"""Document and EXIF metadata placeholders: title, author, camera, location."""

from __future__ import annotations

import re

from ..models import GPSCoordinates, PlaceholderContext, PlaceholderSource
from ..template_parser import METADATA_PLACEHOLDERS
from .base import ResolvedPlaceholder, ResolverOptions, missing, resolved

_WHITESPACE = re.compile(r"\s+")
_CORPORATE_SUFFIX = re.compile(r"\s*\b(?:corporation|corp|inc|ltd)\b\.?\s*", re.IGNORECASE)


def is_metadata_placeholder(name: str) -> bool:
    return name in METADATA_PLACEHOLDERS


def clean_camera_name(name: str) -> str:
    """Collapse whitespace and drop corporate suffixes.

    >>> clean_camera_name("Canon  Inc.")
    'Canon'
    """
    name = _WHITESPACE.sub(" ", name)
    name = _CORPORATE_SUFFIX.sub(" ", name)
    return _WHITESPACE.sub(" ", name).strip()


def format_camera(make: str | None, model: str | None) -> str:
    """Combine camera make and model, dropping a make the model already names."""
    make = clean_camera_name(make or "")
    model = clean_camera_name(model or "")
    if make and model:
        return model if make.lower() in model.lower() else f"{make} {model}"
    return make or model


def format_coordinate(value: float, positive: str, negative: str) -> str:
    hemisphere = positive if value >= 0 else negative
    return f"{abs(value):.4f}{hemisphere}"


def format_location(gps: GPSCoordinates) -> str:
    """Format GPS as ``{lat}{N|S}_{lng}{E|W}`` with four decimals."""
    return f"{format_coordinate(gps.latitude, 'N', 'S')}_{format_coordinate(gps.longitude, 'E', 'W')}"


def _resolve_title(name: str, context: PlaceholderContext, options: ResolverOptions) -> ResolvedPlaceholder:
    for meta in (context.pdf_metadata, context.office_metadata):
        if meta and meta.title and meta.title.strip():
            return resolved(name, meta.title.strip(), PlaceholderSource.DOCUMENT, options)
    if context.file.name:
        return resolved(name, context.file.name, PlaceholderSource.FILESYSTEM, options)
    return missing(name, options)


def _resolve_author(name: str, context: PlaceholderContext, options: ResolverOptions) -> ResolvedPlaceholder:
    # No filesystem fallback: an unknown author stays unknown.
    candidates = (
        context.pdf_metadata.author if context.pdf_metadata else None,
        context.office_metadata.creator if context.office_metadata else None,
    )
    for author in candidates:
        if author and author.strip():
            return resolved(name, author.strip(), PlaceholderSource.DOCUMENT, options)
    return missing(name, options)


def _resolve_camera(name: str, context: PlaceholderContext, options: ResolverOptions) -> ResolvedPlaceholder:
    image = context.image_metadata
    camera = format_camera(image.camera_make, image.camera_model) if image else ""
    if not camera:
        return missing(name, options)
    return resolved(name, camera, PlaceholderSource.EXIF, options)


def _resolve_location(name: str, context: PlaceholderContext, options: ResolverOptions) -> ResolvedPlaceholder:
    image = context.image_metadata
    if not image or image.gps is None:
        return missing(name, options)
    return resolved(name, format_location(image.gps), PlaceholderSource.EXIF, options)


_RESOLVERS = {
    "title": _resolve_title,
    "author": _resolve_author,
    "camera": _resolve_camera,
    "location": _resolve_location,
}


def resolve_metadata_placeholder(
    name: str, context: PlaceholderContext, options: ResolverOptions | None = None
) -> ResolvedPlaceholder:
    """Resolve a metadata placeholder, sanitizing its value when requested.

    Args:
        name: One of title, author, camera, location
        context: Placeholder context for the file
        options: Resolver options

    Returns:
        ResolvedPlaceholder
    """
    return _RESOLVERS[name](name, context, options or ResolverOptions())

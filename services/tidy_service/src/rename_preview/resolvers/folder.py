"""Folder placeholders: the directory holding the file and the one above it."""

from __future__ import annotations

import posixpath

from ..models import PlaceholderContext, PlaceholderSource
from ..template_parser import FOLDER_PLACEHOLDERS
from .base import ResolvedPlaceholder, ResolverOptions, missing, resolved


def is_folder_placeholder(name: str) -> bool:
    return name in FOLDER_PLACEHOLDERS


def _ancestor_name(path: str, levels: int) -> str:
    directory = path.replace("\\", "/")
    for _ in range(levels):
        directory = posixpath.dirname(directory)
    return posixpath.basename(directory)


def resolve_folder_placeholder(
    name: str, context: PlaceholderContext, options: ResolverOptions | None = None
) -> ResolvedPlaceholder:
    """Resolve ``folder`` (parent directory name) or ``parent`` (grandparent).

    A file at the filesystem root has no folder name; that resolves like any
    other missing value.
    """
    options = options or ResolverOptions()
    levels = {"folder": 1, "parent": 2}.get(name)
    if levels is None:
        raise ValueError(f"Not a folder placeholder: {name}")

    value = _ancestor_name(context.file.path, levels)
    if not value:
        return missing(name, options)
    return resolved(name, value, PlaceholderSource.FILESYSTEM, options)

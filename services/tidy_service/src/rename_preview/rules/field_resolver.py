"""Resolution of dotted metadata field paths used by rule conditions.

A field path is ``namespace.field[.nested]`` with namespaces ``file``,
``image``, ``pdf`` and ``office``. Segments may be written in snake_case or
camelCase (``image.date_taken`` and ``image.dateTaken`` are the same field).
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

from ..models import FileInfo, GPSCoordinates, ImageMetadata, OfficeMetadata, PDFMetadata, UnifiedMetadata

NAMESPACES = ("file", "image", "pdf", "office")

_NAMESPACE_MODELS: dict[str, type[BaseModel]] = {
    "file": FileInfo,
    "image": ImageMetadata,
    "pdf": PDFMetadata,
    "office": OfficeMetadata,
}

FIELD_ALIASES: dict[str, dict[str, str]] = {
    "image": {"make": "camera_make", "model": "camera_model"},
    "office": {"author": "creator"},
}

# Computed fields that do not exist on the model itself.
_VIRTUAL_FIELDS = {"image": frozenset({"camera"})}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True)
class FieldResolution:
    """Outcome of resolving a field path.

    ``found`` is False when the owning metadata object is missing, the value
    is None, or the path is malformed.
    """

    found: bool
    value: str | None
    original_type: str


_NOT_FOUND = FieldResolution(found=False, value=None, original_type="undefined")


def _snake(segment: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", segment).lower()


def parse_field_path(field_path: str) -> tuple[str | None, list[str]]:
    """Split a field path into namespace and normalized path segments.

    Returns:
        Tuple of (namespace or None when malformed, path segments)
    """
    if not field_path or not isinstance(field_path, str):
        return None, []
    segments = field_path.strip().split(".")
    namespace, path = segments[0], segments[1:]
    if namespace not in NAMESPACES or not path or any(not s for s in path):
        return None, []
    path = [_snake(s) for s in path]
    path[0] = FIELD_ALIASES.get(namespace, {}).get(path[0], path[0])
    return namespace, path


def is_valid_field_path(field_path: str) -> bool:
    """Whether a field path names a field that exists in its namespace."""
    namespace, path = parse_field_path(field_path)
    if namespace is None:
        return False

    field = path[0]
    if field in _VIRTUAL_FIELDS.get(namespace, frozenset()):
        return len(path) == 1
    if field not in _NAMESPACE_MODELS[namespace].model_fields:
        return False
    if namespace == "image" and field == "gps" and len(path) > 1:
        return len(path) == 2 and path[1] in GPSCoordinates.model_fields
    return len(path) == 1


def _lookup(metadata: UnifiedMetadata, namespace: str, path: list[str]) -> Any:
    owner: Any = getattr(metadata, namespace)
    if owner is None:
        return None

    field = path[0]
    if namespace == "image" and field == "camera":
        make, model = owner.camera_make, owner.camera_model
        if make and model:
            return f"{make} {model}"
        return make or model or None

    value = getattr(owner, field, None)
    for segment in path[1:]:
        if value is None:
            return None
        value = getattr(value, segment, None)
    return value


def value_type(value: Any) -> str:
    """Name of a raw value's type, as reported in FieldResolution."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, datetime):
        return "date"
    if isinstance(value, (str, Enum)):
        return "string"
    return "object"


def value_to_string(value: Any) -> str | None:
    """Convert a raw value to the string rule operators compare against."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def resolve_field_path(field_path: str, metadata: UnifiedMetadata) -> FieldResolution:
    """Resolve a field path against a file's metadata.

    Args:
        field_path: Dotted path, e.g. ``image.make`` or ``pdf.author``
        metadata: Metadata record for the file

    Returns:
        FieldResolution with the value converted to a string
    """
    if not is_valid_field_path(field_path):
        return _NOT_FOUND

    namespace, path = parse_field_path(field_path)
    assert namespace is not None
    raw = _lookup(metadata, namespace, path)
    if raw is None:
        return FieldResolution(found=False, value=None, original_type="null")
    return FieldResolution(found=True, value=value_to_string(raw), original_type=value_type(raw))


def field_exists(field_path: str, metadata: UnifiedMetadata) -> bool:
    return resolve_field_path(field_path, metadata).found

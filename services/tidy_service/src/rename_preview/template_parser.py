"""Template pattern parsing.

A pattern mixes literal text with ``{placeholder}`` tokens. ``{{`` and ``}}``
produce literal braces, and a placeholder may carry a format suffix after a
colon (``{date:YYYY-MM-DD}``).
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from .results import ErrorType, Result

DATE_PLACEHOLDERS = frozenset({"year", "month", "day", "date"})
METADATA_PLACEHOLDERS = frozenset({"title", "author", "camera", "location"})
FILE_PLACEHOLDERS = frozenset({"ext", "original", "size", "name", "ai"})
FOLDER_PLACEHOLDERS = frozenset({"folder", "parent"})

PLACEHOLDER_TYPES = DATE_PLACEHOLDERS | METADATA_PLACEHOLDERS | FILE_PLACEHOLDERS | FOLDER_PLACEHOLDERS


@dataclass(frozen=True)
class LiteralToken:
    """Literal text copied into the output unchanged."""

    value: str


@dataclass(frozen=True)
class PlaceholderToken:
    """A ``{name}`` or ``{name:format}`` token."""

    name: str
    format_spec: str | None = None


TemplateToken = LiteralToken | PlaceholderToken


@dataclass(frozen=True)
class ParsedTemplate:
    """Tokenized pattern. Placeholders are unique and in first-seen order."""

    pattern: str
    tokens: tuple[TemplateToken, ...]
    placeholders: tuple[str, ...]

    def has_placeholder(self, *names: str) -> bool:
        """Whether any of the given placeholder names occurs in the pattern."""
        return any(name in self.placeholders for name in names)


def _parse_error(reason: str, position: int, message: str) -> Result[ParsedTemplate]:
    return Result.failure(ErrorType.INVALID_PATTERN, message, reason=reason, position=position)


@lru_cache(maxsize=256)
def parse_template(pattern: str) -> Result[ParsedTemplate]:
    """Split a pattern into literal and placeholder tokens.

    Args:
        pattern: Template pattern, e.g. ``"{year}-{month}-{original}"``

    Returns:
        Result holding the ParsedTemplate, or an ``invalid_pattern`` error
        whose details carry ``reason`` (``unclosed_brace``,
        ``unexpected_close_brace``, ``nested_brace``, ``empty_placeholder``)
        and ``position``.
    """
    tokens: list[TemplateToken] = []
    placeholders: list[str] = []
    literal: list[str] = []
    i = 0
    length = len(pattern)

    while i < length:
        char = pattern[i]
        next_char = pattern[i + 1] if i + 1 < length else ""

        if char == "{" and next_char == "{":
            literal.append("{")
            i += 2
            continue
        if char == "}" and next_char == "}":
            literal.append("}")
            i += 2
            continue

        if char == "}":
            return _parse_error("unexpected_close_brace", i, f"Unexpected closing brace at position {i}")

        if char != "{":
            literal.append(char)
            i += 1
            continue

        close = pattern.find("}", i + 1)
        if close == -1:
            return _parse_error("unclosed_brace", i, f"Unclosed brace at position {i}")
        nested = pattern.find("{", i + 1, close)
        if nested != -1:
            return _parse_error("nested_brace", nested, f"Nested brace at position {nested}")

        body = pattern[i + 1 : close]
        name, sep, format_spec = body.partition(":")
        name = name.strip()
        if not name:
            return _parse_error("empty_placeholder", i, "Empty placeholder {} is not allowed")

        if literal:
            tokens.append(LiteralToken("".join(literal)))
            literal = []
        tokens.append(PlaceholderToken(name, format_spec.strip() if sep and format_spec.strip() else None))
        if name not in placeholders:
            placeholders.append(name)
        i = close + 1

    if literal:
        tokens.append(LiteralToken("".join(literal)))

    return Result.success(ParsedTemplate(pattern=pattern, tokens=tuple(tokens), placeholders=tuple(placeholders)))


def extract_placeholders(pattern: str) -> list[str]:
    """Placeholder names in a pattern, or an empty list if it does not parse."""
    result = parse_template(pattern)
    if not result.ok or result.value is None:
        return []
    return list(result.value.placeholders)


def is_known_placeholder(name: str) -> bool:
    return name in PLACEHOLDER_TYPES


def get_unknown_placeholders(pattern: str) -> list[str]:
    """Placeholder names the resolvers do not understand."""
    return [name for name in extract_placeholders(pattern) if not is_known_placeholder(name)]

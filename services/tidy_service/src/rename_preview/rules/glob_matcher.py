"""Glob matching for filename pattern rules.

Supported syntax: ``*``, ``?``, ``[set]``, ``[!set]`` / ``[^set]``,
``{a,b,c}`` alternatives (nestable) and backslash escapes. Matching is a full
match against the filename, case-insensitive unless requested otherwise.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from ..models import FileInfo, FilenamePatternRule
from ..results import Result, RuleErrorCode


@dataclass(frozen=True)
class GlobValidation:
    """Outcome of validating a glob pattern."""

    valid: bool
    error: str | None = None
    position: int | None = None


def validate_glob_pattern(pattern: str) -> GlobValidation:
    """Check glob syntax eagerly so bad patterns are errors, not silent misses.

    Rejected: empty or whitespace-only patterns, unclosed ``[`` or ``{``,
    empty classes ``[]`` or ``[!]``, empty alternatives ``{a,,b}`` / ``{,a}``, empty
    braces ``{,}`` and trailing commas ``{a,}``.
    """
    if not pattern or not pattern.strip():
        return GlobValidation(False, "Pattern cannot be empty or whitespace-only")

    bracket_depth = brace_depth = 0
    bracket_start = brace_start = -1
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\" and i + 1 < len(pattern):
            i += 2
            continue

        if char == "[":
            if bracket_depth == 0:
                bracket_start = i
            bracket_depth += 1
        elif char == "]" and bracket_depth > 0:
            bracket_depth -= 1
            if pattern[bracket_start + 1 : i] in ("", "!", "^"):
                return GlobValidation(False, "Empty character class [] is not allowed", bracket_start)
        elif char == "{":
            if brace_depth == 0:
                brace_start = i
            brace_depth += 1
        elif char == "}" and brace_depth > 0:
            brace_depth -= 1
        elif char == "," and brace_depth > 0 and pattern[i - 1] in "{,":
            return GlobValidation(False, "Empty alternative in brace expansion is not allowed", i)
        i += 1

    if bracket_depth > 0:
        return GlobValidation(False, "Unclosed character class [", bracket_start)
    if brace_depth > 0:
        return GlobValidation(False, "Unclosed brace expansion {", brace_start)
    if "{,}" in pattern:
        return GlobValidation(False, "Empty brace expansion {,} is not allowed", pattern.index("{,}"))
    if ",}" in pattern:
        return GlobValidation(False, "Trailing comma in brace expansion is not allowed", pattern.index(",}"))
    return GlobValidation(True)


def is_valid_glob_pattern(pattern: str) -> bool:
    return validate_glob_pattern(pattern).valid


def _find_brace_group(pattern: str) -> tuple[int, int]:
    depth = 0
    start = -1
    for i, char in enumerate(pattern):
        if i > 0 and pattern[i - 1] == "\\":
            continue
        if char == "{":
            if depth == 0:
                start = i
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                return start, i
    return -1, -1


def _split_alternatives(content: str) -> list[str]:
    alternatives: list[str] = []
    current: list[str] = []
    depth = 0
    for i, char in enumerate(content):
        if i > 0 and content[i - 1] == "\\":
            current.append(char)
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == "," and depth == 0:
            alternatives.append("".join(current))
            current = []
            continue
        current.append(char)
    alternatives.append("".join(current))
    return alternatives


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives, outermost first.

    >>> expand_braces("*.{jpg,png}")
    ['*.jpg', '*.png']
    """
    start, end = _find_brace_group(pattern)
    if start == -1:
        return [pattern]

    prefix, suffix = pattern[:start], pattern[end + 1 :]
    expanded: list[str] = []
    for alternative in _split_alternatives(pattern[start + 1 : end]):
        expanded.extend(expand_braces(prefix + alternative + suffix))
    return expanded


def glob_to_regex(pattern: str) -> str:
    """Translate one brace-free glob into a regex body (without anchors)."""
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]

        if char == "\\" and i + 1 < len(pattern):
            parts.append(re.escape(pattern[i + 1]))
            i += 2
            continue

        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        elif char == "[":
            j = i + 1
            negated = j < len(pattern) and pattern[j] in "!^"
            if negated:
                j += 1
            class_end = -1
            while j < len(pattern):
                if pattern[j] == "]" and j > i + 1:
                    class_end = j
                    break
                j += 2 if pattern[j] == "\\" else 1
            if class_end == -1:
                parts.append(re.escape(char))
            else:
                content = pattern[i + 1 + int(negated) : class_end]
                content = re.sub(r"([\]\\^\[])", r"\\\1", content)
                parts.append(f"[{'^' if negated else ''}{content}]")
                i = class_end
        else:
            parts.append(re.escape(char))
        i += 1
    return "".join(parts)


@lru_cache(maxsize=512)
def compile_glob_pattern(pattern: str, case_sensitive: bool = False) -> re.Pattern[str]:
    """Compile a glob (with brace alternatives) into an anchored regex."""
    bodies = [glob_to_regex(p) for p in expand_braces(pattern)]
    body = bodies[0] if len(bodies) == 1 else "(?:" + "|".join(bodies) + ")"
    return re.compile(body, 0 if case_sensitive else re.IGNORECASE | re.DOTALL)


def match_glob(filename: str, pattern: str, case_sensitive: bool = False) -> bool:
    """Whether a filename matches a glob. Invalid globs never match."""
    if not is_valid_glob_pattern(pattern):
        return False
    try:
        regex = compile_glob_pattern(pattern, case_sensitive)
    except re.error:
        return False
    return regex.fullmatch(filename) is not None


def evaluate_filename_rule(rule: FilenamePatternRule, file: FileInfo) -> Result[bool]:
    """Match a filename rule against a file's full name.

    Returns:
        Result holding whether the rule matched (False for disabled rules),
        or an ``INVALID_PATTERN`` error for malformed globs
    """
    if not rule.enabled:
        return Result.success(False)

    validation = validate_glob_pattern(rule.pattern)
    if not validation.valid:
        return Result.failure(
            RuleErrorCode.INVALID_PATTERN,
            f'Invalid pattern in rule "{rule.name}": {rule.pattern}',
            rule_id=rule.id,
            reason=validation.error,
        )
    return Result.success(match_glob(file.full_name, rule.pattern, rule.case_sensitive))

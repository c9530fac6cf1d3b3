"""Generic filename sanitization applied to resolved placeholder values.

This is the first of two sanitization stages. It is platform agnostic and
silent: it only makes a value safe to embed in a filename. The OS-specific,
change-recording stage lives in ``os_sanitizer``.
"""

import re

MAX_FILENAME_LENGTH = 200

INVALID_CHARS_PATTERN = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
SEPARATOR_RUN_PATTERN = re.compile(r"[-_\s]+")
WINDOWS_RESERVED_PATTERN = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])$", re.IGNORECASE)

# Trimmed from both ends of a sanitized value.
_EDGE_CHARS = "_. "

# Truncation may back up to a separator only within the last 20% of the kept text.
_BOUNDARY_RATIO = 0.8


def sanitize_filename(text: str) -> str:
    """Make a string safe to use as (part of) a filename.

    Invalid characters become ``_``, runs of ``-``, ``_`` and whitespace
    collapse into one ``_``, edge underscores, dots and spaces are trimmed,
    and the result is cut to ``MAX_FILENAME_LENGTH`` characters, preferring
    an ``_`` boundary. The output passes ``is_valid_filename`` unless it is
    empty or a Windows-reserved stem such as ``CON``, which the OS sanitizer
    handles.

    Args:
        text: Raw value

    Returns:
        Sanitized value, possibly empty
    """
    if not text:
        return ""

    result = INVALID_CHARS_PATTERN.sub("_", text)
    result = SEPARATOR_RUN_PATTERN.sub("_", result)
    result = result.strip(_EDGE_CHARS)

    if len(result) > MAX_FILENAME_LENGTH:
        result = result[:MAX_FILENAME_LENGTH]
        boundary = result.rfind("_")
        if boundary > MAX_FILENAME_LENGTH * _BOUNDARY_RATIO:
            result = result[:boundary]
        result = result.strip(_EDGE_CHARS)

    return result


def is_reserved_stem(stem: str) -> bool:
    """Whether a name without extension is a Windows device name (exact match only)."""
    return bool(WINDOWS_RESERVED_PATTERN.fullmatch(stem))


def is_valid_filename(name: str) -> bool:
    """Terminal validity gate for a complete filename.

    Rejects empty names, names over ``MAX_FILENAME_LENGTH``, any invalid
    character, Windows-reserved stems (``CON.txt`` but not ``CONTACT.txt``),
    and a leading or trailing dot or space.
    """
    if not name or len(name) > MAX_FILENAME_LENGTH:
        return False
    if INVALID_CHARS_PATTERN.search(name):
        return False

    stem = name[: name.rfind(".")] if "." in name else name
    if is_reserved_stem(stem):
        return False

    return not (name[0] in ". " or name[-1] in ". ")

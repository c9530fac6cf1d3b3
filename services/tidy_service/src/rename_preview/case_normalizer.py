"""Case normalization of names, folder names and paths.

Text is split into words on separators and camelCase boundaries, then
recombined in the requested style.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from .models import CaseStyle

DEFAULT_SEPARATORS: tuple[str, ...] = (" ", "_", "-", ".")

COMMON_ACRONYMS = frozenset(
    {
        "PDF", "API", "URL", "HTML", "CSS", "JSON", "XML", "SQL",
        "USB", "HDMI", "RGB", "GPS", "EXIF", "JPEG", "PNG", "GIF",
        "MP3", "MP4", "AVI", "MOV", "WAV", "FLAC", "RAW", "HEIC",
        "ID", "UI", "UX", "AI", "ML", "VR", "AR", "IoT",
    }
)  # fmt: skip

# Upper-cased lookup to canonical spelling, so "iot" becomes "IoT".
_ACRONYM_SPELLING = {acronym.upper(): acronym for acronym in COMMON_ACRONYMS}

_LOWER_UPPER_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_ACRONYM_WORD_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_DELIMITER = "\x00"


@dataclass(frozen=True)
class CaseNormalizationResult:
    """Outcome of normalizing one string."""

    original: str
    normalized: str
    style: CaseStyle
    changed: bool


def is_valid_case_style(style: str) -> bool:
    """Whether a configuration value names a supported case style."""
    return style in {s.value for s in CaseStyle}


def split_words(text: str, separators: Sequence[str] = DEFAULT_SEPARATORS) -> list[str]:
    """Split text into words on separators and camelCase/ACRONYMWord boundaries.

    >>> split_words("myHTMLParser_v2")
    ['my', 'HTML', 'Parser', 'v2']
    """
    if not text:
        return []

    for separator in separators:
        text = text.replace(separator, _WORD_DELIMITER)

    words: list[str] = []
    for chunk in text.split(_WORD_DELIMITER):
        if not chunk:
            continue
        chunk = _LOWER_UPPER_BOUNDARY.sub(rf"\1{_WORD_DELIMITER}\2", chunk)
        chunk = _ACRONYM_WORD_BOUNDARY.sub(rf"\1{_WORD_DELIMITER}\2", chunk)
        words.extend(part for part in chunk.split(_WORD_DELIMITER) if part)
    return words


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def _acronym(word: str) -> str | None:
    return _ACRONYM_SPELLING.get(word.upper())


def _recombine(words: list[str], style: CaseStyle, preserve_acronyms: bool) -> str:
    def shape(word: str, index: int, default: str) -> str:
        if preserve_acronyms and (acronym := _acronym(word)) is not None:
            # camelCase must start lower-case even for an acronym.
            if style == CaseStyle.CAMEL_CASE and index == 0:
                return word.lower()
            return acronym
        return default

    if style == CaseStyle.LOWERCASE:
        return " ".join(shape(w, i, w.lower()) for i, w in enumerate(words))
    if style == CaseStyle.UPPERCASE:
        return " ".join(w.upper() for w in words)
    if style == CaseStyle.CAPITALIZE:
        return " ".join(shape(w, i, _capitalize(w) if i == 0 else w.lower()) for i, w in enumerate(words))
    if style == CaseStyle.TITLE_CASE:
        return " ".join(shape(w, i, _capitalize(w)) for i, w in enumerate(words))
    if style == CaseStyle.KEBAB_CASE:
        return "-".join(shape(w, i, w.lower()) for i, w in enumerate(words))
    if style == CaseStyle.SNAKE_CASE:
        return "_".join(shape(w, i, w.lower()) for i, w in enumerate(words))
    if style == CaseStyle.CAMEL_CASE:
        return "".join(shape(w, i, w.lower() if i == 0 else _capitalize(w)) for i, w in enumerate(words))
    if style == CaseStyle.PASCAL_CASE:
        return "".join(shape(w, i, _capitalize(w)) for i, w in enumerate(words))
    raise ValueError(f"Unsupported case style: {style}")


def normalize_case(
    text: str,
    style: CaseStyle | str,
    preserve_acronyms: bool = False,
    separators: Sequence[str] = DEFAULT_SEPARATORS,
) -> CaseNormalizationResult:
    """Normalize the case of a string.

    ``none`` (and empty input) returns the input untouched without splitting.

    Args:
        text: Input text
        style: Target case style
        preserve_acronyms: Keep known acronyms (PDF, API, ...) upper-cased
        separators: Characters treated as word separators

    Returns:
        CaseNormalizationResult
    """
    style = CaseStyle(style)
    if style == CaseStyle.NONE or not text:
        return CaseNormalizationResult(original=text, normalized=text, style=style, changed=False)

    normalized = _recombine(split_words(text, separators), style, preserve_acronyms)
    return CaseNormalizationResult(original=text, normalized=normalized, style=style, changed=normalized != text)


def normalize_filename(filename: str, style: CaseStyle | str, preserve_acronyms: bool = False) -> str:
    """Normalize a filename's stem, lower-casing its extension.

    A leading dot (hidden file) and the extension are reattached untouched by
    word splitting.
    """
    if not filename:
        return ""
    style = CaseStyle(style)
    if style == CaseStyle.NONE:
        return filename

    hidden = filename.startswith(".")
    working = filename[1:] if hidden else filename
    dot = working.rfind(".")
    if dot > 0:
        stem, extension = working[:dot], working[dot:]
    else:
        stem, extension = working, ""

    normalized = normalize_case(stem, style, preserve_acronyms).normalized
    return ("." if hidden else "") + normalized + extension.lower()


def normalize_folder_name(folder_name: str, style: CaseStyle | str, preserve_acronyms: bool = False) -> str:
    if not folder_name:
        return ""
    return normalize_case(folder_name, style, preserve_acronyms).normalized


def normalize_path(
    path: str, style: CaseStyle | str, preserve_root: bool = False, preserve_acronyms: bool = False
) -> str:
    """Normalize each ``/``-separated segment of a path.

    Empty segments (leading or trailing separators) are kept. With
    ``preserve_root`` the first segment, e.g. a drive letter, is left as is.
    """
    if not path:
        return ""
    if CaseStyle(style) == CaseStyle.NONE:
        return path

    segments = path.split("/")
    return "/".join(
        segment if not segment or (preserve_root and index == 0)
        else normalize_folder_name(segment, style, preserve_acronyms)
        for index, segment in enumerate(segments)
    )

"""OS-specific sanitization of fully assembled filenames.

Second sanitization stage. Every correction is recorded as a typed change so
the proposal generator can surface it as an issue.
"""

from __future__ import annotations

import platform
import re
from dataclasses import dataclass, field
from enum import Enum

import structlog

from .models import TargetPlatform, TruncationStyle

logger = structlog.get_logger(__name__)

DEFAULT_MAX_LENGTH = 255
ELLIPSIS = "..."

INVALID_CHARS_UNIVERSAL = re.compile(r'[/\\:*?"<>|]')
INVALID_CHARS_WINDOWS = re.compile(r'[/\\:*?"<>|\x00-\x1f]')
INVALID_CHARS_POSIX = re.compile(r"[/\x00]")

WINDOWS_RESERVED_NAMES = frozenset(
    {"con", "prn", "aux", "nul"} | {f"com{i}" for i in range(1, 10)} | {f"lpt{i}" for i in range(1, 10)}
)

TRAILING_CHARS_PATTERN = re.compile(r"[. ]+$")


class SanitizeChangeType(str, Enum):
    """Kinds of correction the OS sanitizer can make."""

    CHAR_REPLACEMENT = "char_replacement"
    RESERVED_NAME = "reserved_name"
    TRUNCATION = "truncation"
    TRAILING_FIX = "trailing_fix"


@dataclass(frozen=True)
class SanitizeChange:
    """One recorded correction."""

    type: SanitizeChangeType
    original: str
    replacement: str
    message: str


@dataclass(frozen=True)
class SanitizeOptions:
    """Options for OS sanitization."""

    replacement: str = "_"
    target_platform: TargetPlatform = TargetPlatform.ALL
    max_length: int = DEFAULT_MAX_LENGTH
    truncation_style: TruncationStyle = TruncationStyle.ELLIPSIS


@dataclass
class SanitizeResult:
    """Outcome of sanitizing one filename."""

    sanitized: str
    original: str
    changes: list[SanitizeChange] = field(default_factory=list)

    @property
    def was_modified(self) -> bool:
        return self.sanitized != self.original


def split_filename(filename: str) -> tuple[str, str]:
    """Split a filename into stem and extension (extension keeps its dot).

    A dotfile without another dot (``.gitignore``) has no extension.
    """
    dot = filename.rfind(".")
    if dot <= 0:
        return filename, ""
    return filename[:dot], filename[dot:]


def is_reserved_name(stem: str) -> bool:
    """Whether a filename stem is a Windows device name (case-insensitive, exact)."""
    return stem.lower() in WINDOWS_RESERVED_NAMES


class OSFilenameSanitizer:
    """Sanitizes filenames for the target platform and records each change."""

    def __init__(self, options: SanitizeOptions | None = None):
        """Initialize the sanitizer.

        Args:
            options: Replacement character, target platform, length limit and
                truncation style. Defaults to the strictest (all platforms).
        """
        self.options = options or SanitizeOptions()
        self.platform = platform.system().lower()

        target = self.options.target_platform
        if target == TargetPlatform.CURRENT:
            target = TargetPlatform.WINDOWS if self.platform == "windows" else TargetPlatform.ALL
            # Reserved names and trailing characters only matter on Windows.
            self.check_windows_rules = self.platform == "windows"
        else:
            self.check_windows_rules = target in (TargetPlatform.ALL, TargetPlatform.WINDOWS)

        if target == TargetPlatform.WINDOWS:
            self.invalid_chars = INVALID_CHARS_WINDOWS
        elif target in (TargetPlatform.MACOS, TargetPlatform.LINUX):
            self.invalid_chars = INVALID_CHARS_POSIX
        else:
            self.invalid_chars = INVALID_CHARS_UNIVERSAL

    def sanitize(self, filename: str) -> SanitizeResult:
        """Sanitize a filename.

        Args:
            filename: Complete filename including extension

        Returns:
            SanitizeResult with the sanitized name and the list of changes
        """
        result = SanitizeResult(sanitized=filename, original=filename)
        if not filename:
            return result

        name = self._replace_invalid_chars(filename, result.changes)
        if self.check_windows_rules:
            name = self._handle_reserved_names(name, result.changes)
            name = self._clean_trailing(name, result.changes)
        if len(name) > self.options.max_length:
            name = self._truncate_filename(name, result.changes)

        result.sanitized = name
        if result.was_modified:
            logger.debug("Sanitized filename", filename=filename, sanitized=name, changes=len(result.changes))
        return result

    def _replace_invalid_chars(self, filename: str, changes: list[SanitizeChange]) -> str:
        replacement = self.options.replacement
        found = list(dict.fromkeys(self.invalid_chars.findall(filename)))
        if found:
            changes.append(
                SanitizeChange(
                    type=SanitizeChangeType.CHAR_REPLACEMENT,
                    original="".join(found),
                    replacement=replacement * len(found),
                    message="Replaced invalid characters: " + ", ".join(f'"{c}"' for c in found),
                )
            )
            filename = self.invalid_chars.sub(replacement, filename)

        if replacement:
            filename = re.sub(f"(?:{re.escape(replacement)}){{2,}}", replacement, filename)
        return filename

    def _handle_reserved_names(self, filename: str, changes: list[SanitizeChange]) -> str:
        stem, ext = split_filename(filename)
        if not is_reserved_name(stem):
            return filename

        changes.append(
            SanitizeChange(
                type=SanitizeChangeType.RESERVED_NAME,
                original=stem,
                replacement=f"{stem}_file",
                message=f'"{stem}" is a reserved name on Windows',
            )
        )
        return f"{stem}_file{ext}"

    def _clean_trailing(self, filename: str, changes: list[SanitizeChange]) -> str:
        message = "Removed trailing spaces/periods (invalid on Windows)"
        stem, ext = split_filename(filename)
        trimmed_stem = TRAILING_CHARS_PATTERN.sub("", stem)

        if trimmed_stem != stem:
            changes.append(
                SanitizeChange(
                    type=SanitizeChangeType.TRAILING_FIX,
                    original=stem[len(trimmed_stem) :],
                    replacement="",
                    message=message,
                )
            )
            filename = trimmed_stem + ext

        trimmed = TRAILING_CHARS_PATTERN.sub("", filename)
        if trimmed != filename:
            # One change per filename is enough when the stem was already fixed.
            if trimmed_stem == stem:
                changes.append(
                    SanitizeChange(
                        type=SanitizeChangeType.TRAILING_FIX,
                        original=filename[len(trimmed) :],
                        replacement="",
                        message=message,
                    )
                )
            filename = trimmed
        return filename

    def _truncate_filename(self, filename: str, changes: list[SanitizeChange]) -> str:
        max_length = self.options.max_length
        stem, ext = split_filename(filename)
        max_stem = max_length - len(ext)

        if max_stem < 1:
            truncated = filename[:max_length]
            changes.append(
                SanitizeChange(
                    type=SanitizeChangeType.TRUNCATION,
                    original=filename,
                    replacement=truncated,
                    message=f"Truncated from {len(filename)} to {max_length} characters (extension too long)",
                )
            )
            return truncated

        available = max_stem - len(ELLIPSIS)
        if self.options.truncation_style == TruncationStyle.ELLIPSIS and available > 0:
            truncated = stem[:available] + ELLIPSIS + ext
        else:
            truncated = stem[:max_stem] + ext

        changes.append(
            SanitizeChange(
                type=SanitizeChangeType.TRUNCATION,
                original=filename,
                replacement=truncated,
                message=f"Truncated from {len(filename)} to {len(truncated)} characters",
            )
        )
        return truncated

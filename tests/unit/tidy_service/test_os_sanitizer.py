"""Unit tests for OS-specific filename sanitization."""

from unittest.mock import patch

import pytest

from services.tidy_service.src.rename_preview.models import TargetPlatform, TruncationStyle
from services.tidy_service.src.rename_preview.os_sanitizer import (
    OSFilenameSanitizer,
    SanitizeChangeType,
    SanitizeOptions,
    is_reserved_name,
    split_filename,
)


class TestOSFilenameSanitizer:
    """Test sanitization for all platforms."""

    @pytest.fixture
    def sanitizer(self):
        """Create a sanitizer with the strictest defaults."""
        return OSFilenameSanitizer()

    def test_clean_name_unchanged(self, sanitizer):
        """Test that a valid name passes through."""
        result = sanitizer.sanitize("holiday_2024.jpg")

        assert result.sanitized == "holiday_2024.jpg"
        assert not result.was_modified
        assert result.changes == []

    def test_replaces_invalid_characters(self, sanitizer):
        """Test invalid characters are replaced and listed once each."""
        result = sanitizer.sanitize("file:name?.txt")

        assert result.sanitized == "file_name_.txt"
        assert len(result.changes) == 1
        change = result.changes[0]
        assert change.type == SanitizeChangeType.CHAR_REPLACEMENT
        assert change.message == 'Replaced invalid characters: ":", "?"'

    def test_collapses_repeated_replacements(self, sanitizer):
        """Test adjacent replacements collapse into one."""
        assert sanitizer.sanitize("a<>b.txt").sanitized == "a_b.txt"

    def test_slash_in_name(self, sanitizer):
        """Test that a literal slash is never left in a filename."""
        result = sanitizer.sanitize("2024/07/photo.jpg")

        assert result.sanitized == "2024_07_photo.jpg"
        assert result.changes[0].message == 'Replaced invalid characters: "/"'

    def test_reserved_name(self, sanitizer):
        """Test Windows device names get a suffix."""
        result = sanitizer.sanitize("CON.txt")

        assert result.sanitized == "CON_file.txt"
        assert result.changes[0].type == SanitizeChangeType.RESERVED_NAME
        assert result.changes[0].message == '"CON" is a reserved name on Windows'

    def test_reserved_name_is_exact(self, sanitizer):
        """Test that names merely starting with a device name are kept."""
        assert not sanitizer.sanitize("CONTACT.txt").was_modified

    def test_trailing_dots_and_spaces(self, sanitizer):
        """Test trailing periods and spaces are removed from the stem."""
        result = sanitizer.sanitize("notes. .txt")

        assert result.sanitized == "notes.txt"
        assert [c.type for c in result.changes] == [SanitizeChangeType.TRAILING_FIX]
        assert result.changes[0].message == "Removed trailing spaces/periods (invalid on Windows)"

    def test_trailing_dot_without_extension(self, sanitizer):
        """Test a name ending with a dot."""
        result = sanitizer.sanitize("draft.")

        assert result.sanitized == "draft"
        assert len(result.changes) == 1

    def test_truncation_with_ellipsis(self):
        """Test long names keep their extension and gain an ellipsis."""
        sanitizer = OSFilenameSanitizer(SanitizeOptions(max_length=20))

        result = sanitizer.sanitize("a" * 30 + ".txt")

        assert result.sanitized == "a" * 13 + "..." + ".txt"
        assert len(result.sanitized) == 20
        assert result.changes[0].type == SanitizeChangeType.TRUNCATION
        assert result.changes[0].message == "Truncated from 34 to 20 characters"

    def test_truncation_without_ellipsis(self):
        """Test plain truncation."""
        sanitizer = OSFilenameSanitizer(SanitizeOptions(max_length=20, truncation_style=TruncationStyle.NONE))

        result = sanitizer.sanitize("a" * 30 + ".txt")

        assert result.sanitized == "a" * 16 + ".txt"

    def test_custom_replacement(self):
        """Test a custom replacement character."""
        sanitizer = OSFilenameSanitizer(SanitizeOptions(replacement="-"))

        assert sanitizer.sanitize("a:b.txt").sanitized == "a-b.txt"

    def test_empty_name(self, sanitizer):
        """Test empty input."""
        assert sanitizer.sanitize("").sanitized == ""


class TestPlatformTargets:
    """Test platform-specific rule selection."""

    def test_posix_target_only_rejects_slash(self):
        """Test Linux rules allow Windows-only characters."""
        sanitizer = OSFilenameSanitizer(SanitizeOptions(target_platform=TargetPlatform.LINUX))

        result = sanitizer.sanitize("a:b/c.txt")

        assert result.sanitized == "a:b_c.txt"

    def test_posix_target_skips_reserved_names(self):
        """Test reserved names are only a Windows concern."""
        sanitizer = OSFilenameSanitizer(SanitizeOptions(target_platform=TargetPlatform.MACOS))

        assert sanitizer.sanitize("CON.txt").sanitized == "CON.txt"

    @patch("platform.system")
    def test_current_platform_windows(self, mock_system):
        """Test current resolves to Windows rules on Windows."""
        mock_system.return_value = "Windows"

        sanitizer = OSFilenameSanitizer(SanitizeOptions(target_platform=TargetPlatform.CURRENT))

        assert sanitizer.check_windows_rules
        assert sanitizer.sanitize("AUX.log").sanitized == "AUX_file.log"

    @patch("platform.system")
    def test_current_platform_linux(self, mock_system):
        """Test current skips Windows rules elsewhere."""
        mock_system.return_value = "Linux"

        sanitizer = OSFilenameSanitizer(SanitizeOptions(target_platform=TargetPlatform.CURRENT))

        assert not sanitizer.check_windows_rules
        assert sanitizer.sanitize("AUX.log").sanitized == "AUX.log"


class TestHelpers:
    """Test module helpers."""

    def test_split_filename(self):
        """Test stem and extension splitting."""
        assert split_filename("photo.tar.gz") == ("photo.tar", ".gz")
        assert split_filename(".gitignore") == (".gitignore", "")
        assert split_filename("README") == ("README", "")

    def test_is_reserved_name(self):
        """Test reserved name lookup is case-insensitive and exact."""
        assert is_reserved_name("com3")
        assert not is_reserved_name("com")

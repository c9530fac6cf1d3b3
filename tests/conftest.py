"""Pytest configuration and fixtures."""

from datetime import datetime

import pytest

from services.tidy_service.src.rename_preview.conflict_detector import ConflictDetector
from services.tidy_service.src.rename_preview.models import FileInfo, UnifiedMetadata


@pytest.fixture
def make_file():
    """Factory for FileInfo records built from a path."""

    def _make(path: str, modified_at: datetime | None = datetime(2024, 1, 1, 12, 0), **kwargs) -> FileInfo:
        return FileInfo.from_path(path, modified_at=modified_at, **kwargs)

    return _make


@pytest.fixture
def make_metadata():
    """Factory for UnifiedMetadata records."""

    def _make(file: FileInfo, **parts) -> UnifiedMetadata:
        return UnifiedMetadata(file=file, **parts)

    return _make


@pytest.fixture
def offline_detector():
    """Conflict detector that never sees existing files on disk."""
    return ConflictDetector(case_sensitive=True, exists=lambda path: False)

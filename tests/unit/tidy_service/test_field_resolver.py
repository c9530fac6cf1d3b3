"""Unit tests for metadata field path resolution."""

from datetime import datetime

import pytest

from services.tidy_service.src.rename_preview.models import (
    FileInfo,
    GPSCoordinates,
    ImageMetadata,
    OfficeMetadata,
    PDFMetadata,
    UnifiedMetadata,
)
from services.tidy_service.src.rename_preview.rules.field_resolver import (
    field_exists,
    is_valid_field_path,
    parse_field_path,
    resolve_field_path,
    value_to_string,
)


@pytest.fixture
def metadata():
    """Metadata with image, PDF and Office parts."""
    file = FileInfo.from_path("/photos/IMG_0001.jpg", size=2048)
    return UnifiedMetadata(
        file=file,
        image=ImageMetadata(
            camera_make="Apple",
            camera_model="iPhone 15 Pro",
            date_taken=datetime(2024, 7, 15, 10, 30),
            gps=GPSCoordinates(latitude=48.8584, longitude=2.2945),
            iso=100,
        ),
        pdf=PDFMetadata(author="Jane Doe"),
        office=OfficeMetadata(creator="John Smith"),
    )


class TestFieldPaths:
    """Test field path parsing and validation."""

    def test_parse_snake_and_camel(self):
        """Test camelCase segments map to snake_case."""
        assert parse_field_path("image.dateTaken") == ("image", ["date_taken"])
        assert parse_field_path("image.date_taken") == ("image", ["date_taken"])

    def test_parse_aliases(self):
        """Test short aliases."""
        assert parse_field_path("image.make") == ("image", ["camera_make"])
        assert parse_field_path("office.author") == ("office", ["creator"])

    @pytest.mark.parametrize("path", ["", "image", "audio.title", "image.", "image..make"])
    def test_parse_malformed(self, path):
        """Test malformed paths have no namespace."""
        assert parse_field_path(path) == (None, [])

    @pytest.mark.parametrize(
        "path",
        ["file.name", "file.extension", "image.cameraMake", "image.camera", "image.gps.latitude", "pdf.author"],
    )
    def test_valid_paths(self, path):
        """Test paths naming existing fields."""
        assert is_valid_field_path(path)

    @pytest.mark.parametrize(
        "path",
        ["image.lens", "pdf.camera", "image.gps.speed", "image.camera.make", "file.name.first"],
    )
    def test_invalid_paths(self, path):
        """Test paths naming fields that do not exist."""
        assert not is_valid_field_path(path)


class TestResolveFieldPath:
    """Test field value resolution."""

    def test_string_field(self, metadata):
        """Test a plain string value."""
        resolution = resolve_field_path("image.make", metadata)

        assert resolution.found
        assert resolution.value == "Apple"
        assert resolution.original_type == "string"

    def test_virtual_camera_field(self, metadata):
        """Test the combined camera field."""
        assert resolve_field_path("image.camera", metadata).value == "Apple iPhone 15 Pro"

    def test_number_field(self, metadata):
        """Test numbers are compared as strings."""
        resolution = resolve_field_path("file.size", metadata)

        assert resolution.value == "2048"
        assert resolution.original_type == "number"

    def test_date_field(self, metadata):
        """Test dates are rendered in ISO format."""
        resolution = resolve_field_path("image.dateTaken", metadata)

        assert resolution.value == "2024-07-15T10:30:00"
        assert resolution.original_type == "date"

    def test_nested_gps_field(self, metadata):
        """Test nested GPS lookups."""
        assert resolve_field_path("image.gps.latitude", metadata).value == "48.8584"

    def test_enum_field(self, metadata):
        """Test enum values render as their value."""
        assert resolve_field_path("file.category", metadata).value == "other"

    def test_missing_namespace(self):
        """Test a namespace the file has no metadata for."""
        metadata = UnifiedMetadata(file=FileInfo.from_path("/a.txt"))

        resolution = resolve_field_path("image.make", metadata)

        assert not resolution.found
        assert resolution.value is None

    def test_none_value(self, metadata):
        """Test a known field without a value."""
        resolution = resolve_field_path("pdf.title", metadata)

        assert not resolution.found
        assert resolution.original_type == "null"

    def test_invalid_path(self, metadata):
        """Test an unknown field path."""
        resolution = resolve_field_path("image.lens", metadata)

        assert not resolution.found
        assert resolution.original_type == "undefined"

    def test_field_exists(self, metadata):
        """Test existence checks."""
        assert field_exists("office.author", metadata)
        assert not field_exists("office.title", metadata)

    def test_value_to_string(self):
        """Test conversion of raw values."""
        assert value_to_string(True) == "true"
        assert value_to_string(None) is None
        assert value_to_string(3) == "3"

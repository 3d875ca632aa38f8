"""Tests for core data models."""

import pytest
from pydantic import ValidationError

from checklist_images.core.exceptions import ConfigurationError
from checklist_images.core.models import (
    CompressedArtifact,
    CompressionOptions,
    SourceImage,
    UploadResult,
    UploaderConfig,
    clamp_concurrency,
)


class TestSourceImage:
    """Tests for SourceImage."""

    def test_size_is_byte_length(self):
        image = SourceImage(data=b"12345", mime_type="image/jpeg", filename="a.jpg")
        assert image.size == 5

    @pytest.mark.parametrize(
        "filename,expected",
        [("photo.JPG", "jpg"), ("photo.jpeg", "jpeg"), ("archive.tar.png", "png"), ("noext", "")],
    )
    def test_extension(self, filename, expected):
        assert SourceImage(data=b"", filename=filename).extension == expected

    def test_is_immutable(self):
        image = SourceImage(data=b"x", filename="a.jpg")
        with pytest.raises(ValidationError):
            image.filename = "b.jpg"

    def test_repr_hides_payload(self):
        image = SourceImage(data=b"secret-bytes", filename="a.jpg")
        assert "secret-bytes" not in repr(image)

    def test_from_path_guesses_mime_type(self, tmp_path):
        path = tmp_path / "freios.jpg"
        path.write_bytes(b"\xff\xd8\xff\xd9")

        image = SourceImage.from_path(path)

        assert image.filename == "freios.jpg"
        assert image.mime_type == "image/jpeg"
        assert image.data == b"\xff\xd8\xff\xd9"

    def test_from_path_unknown_extension(self, tmp_path):
        path = tmp_path / "blob.unknownext"
        path.write_bytes(b"data")
        assert SourceImage.from_path(path).mime_type == "application/octet-stream"


class TestCompressionOptions:
    """Tests for CompressionOptions."""

    def test_defaults(self):
        options = CompressionOptions()
        assert options.max_width == 1600
        assert options.max_height == 1600
        assert options.target_max_bytes == 800 * 1024
        assert options.min_quality == 0.6
        assert options.max_quality == 0.95

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_width": 0},
            {"max_height": -1},
            {"target_max_bytes": 0},
            {"min_quality": 0},
            {"max_quality": 1.5},
            {"min_quality": 0.9, "max_quality": 0.5},
        ],
    )
    def test_invalid_values_raise_configuration_error(self, overrides):
        with pytest.raises(ConfigurationError):
            CompressionOptions(**overrides)

    def test_merged_applies_partial_overrides(self):
        options = CompressionOptions().merged({"target_max_bytes": 1024})
        assert options.target_max_bytes == 1024
        assert options.max_width == 1600

    def test_merged_without_overrides_returns_same_instance(self):
        options = CompressionOptions()
        assert options.merged(None) is options
        assert options.merged({}) is options

    def test_merged_validates(self):
        with pytest.raises(ConfigurationError):
            CompressionOptions().merged({"min_quality": 0.99})


class TestCompressedArtifact:
    def test_defaults_and_size(self):
        artifact = CompressedArtifact(data=b"abc", extension="jpg", mime_type="image/jpeg")
        assert artifact.size == 3
        assert artifact.quality is None
        assert artifact.fallback is False


class TestUploadResult:
    def test_payload_uses_backend_column_name(self):
        result = UploadResult(context_id=42, url="https://cdn/x.webp")
        assert result.to_payload() == {"checklistid": 42, "url": "https://cdn/x.webp"}


class TestUploaderConfig:
    def test_defaults(self):
        config = UploaderConfig()
        assert config.bucket == "vistoria"
        assert config.concurrency == 3
        assert config.bulk_endpoint == "/api/checklists/images/bulk"
        assert config.cache_control == "604800"
        assert config.compression == CompressionOptions()

    @pytest.mark.parametrize("requested,expected", [(0, 1), (-5, 1), (4, 4), (8, 8), (50, 8)])
    def test_concurrency_is_clamped(self, requested, expected):
        assert UploaderConfig(concurrency=requested).concurrency == expected


def test_clamp_concurrency_default():
    assert clamp_concurrency(None) == 3

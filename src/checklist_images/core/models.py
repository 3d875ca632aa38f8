"""Shared data models for checklist-images."""

import mimetypes
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .exceptions import ConfigurationError

DEFAULT_MAX_WIDTH = 1600
DEFAULT_MAX_HEIGHT = 1600
DEFAULT_TARGET_MAX_BYTES = 800 * 1024
DEFAULT_MIN_QUALITY = 0.6
DEFAULT_MAX_QUALITY = 0.95

DEFAULT_BUCKET = "vistoria"
DEFAULT_BULK_ENDPOINT = "/api/checklists/images/bulk"
DEFAULT_CACHE_CONTROL = "604800"
DEFAULT_CONCURRENCY = 3
MAX_CONCURRENCY = 8


class SourceImage(BaseModel):
    """A raw image file handed to the pipeline by the caller."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    mime_type: str = ""
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        """Lower-cased filename extension without the dot ("" if none)."""
        if "." not in self.filename:
            return ""
        return self.filename.rsplit(".", 1)[-1].lower()

    @classmethod
    def from_path(
        cls, path: Union[str, Path], mime_type: Optional[str] = None
    ) -> "SourceImage":
        """Read a file from disk, guessing the mime type from its extension."""
        path = Path(path)
        if mime_type is None:
            guessed, _ = mimetypes.guess_type(path.name)
            mime_type = guessed or "application/octet-stream"
        return cls(data=path.read_bytes(), mime_type=mime_type, filename=path.name)


class CompressionOptions(BaseModel):
    """Budget and bounds for a single compression call."""

    model_config = ConfigDict(frozen=True)

    max_width: int = DEFAULT_MAX_WIDTH
    max_height: int = DEFAULT_MAX_HEIGHT
    target_max_bytes: int = DEFAULT_TARGET_MAX_BYTES
    min_quality: float = DEFAULT_MIN_QUALITY
    max_quality: float = DEFAULT_MAX_QUALITY

    @model_validator(mode="after")
    def _check_bounds(self) -> "CompressionOptions":
        if self.max_width <= 0 or self.max_height <= 0:
            raise ConfigurationError("max_width and max_height must be positive")
        if self.target_max_bytes <= 0:
            raise ConfigurationError("target_max_bytes must be positive")
        for name in ("min_quality", "max_quality"):
            value = getattr(self, name)
            if not 0 < value <= 1:
                raise ConfigurationError(f"{name} must be in (0, 1], got {value}")
        if self.min_quality > self.max_quality:
            raise ConfigurationError("min_quality must not exceed max_quality")
        return self

    def merged(self, overrides: Optional[Dict[str, Any]] = None) -> "CompressionOptions":
        """Return a validated copy with ``overrides`` applied on top."""
        if not overrides:
            return self
        return type(self).model_validate({**self.model_dump(), **overrides})


class CompressedArtifact(BaseModel):
    """Encoded output of the compression engine, ready for upload."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    extension: str
    mime_type: str
    quality: Optional[float] = None
    fallback: bool = False

    @property
    def size(self) -> int:
        return len(self.data)


class UploadTask(BaseModel):
    """A file paired with the checklist item it belongs to."""

    model_config = ConfigDict(frozen=True)

    file: SourceImage
    context_id: int


class UploadResult(BaseModel):
    """Public location of an uploaded artifact."""

    model_config = ConfigDict(frozen=True)

    # The registration backend stores the context id as "checklistid"
    context_id: int = Field(serialization_alias="checklistid")
    url: str

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class UploaderConfig(BaseModel):
    """Configuration for ChecklistImageUploader."""

    bucket: str = DEFAULT_BUCKET
    concurrency: int = DEFAULT_CONCURRENCY
    bulk_endpoint: str = DEFAULT_BULK_ENDPOINT
    cache_control: str = DEFAULT_CACHE_CONTROL
    compression: CompressionOptions = Field(default_factory=CompressionOptions)

    @field_validator("concurrency")
    @classmethod
    def _clamp_concurrency(cls, value: int) -> int:
        return clamp_concurrency(value)


def clamp_concurrency(value: Optional[int]) -> int:
    """Clamp a requested concurrency to [1, MAX_CONCURRENCY], default 3."""
    if value is None:
        return DEFAULT_CONCURRENCY
    return max(1, min(MAX_CONCURRENCY, value))

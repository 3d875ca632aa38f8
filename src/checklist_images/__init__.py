"""Client-side compression and upload pipeline for checklist photos."""

from .core import (
    ChecklistImageUploader,
    CompressedArtifact,
    CompressionOptions,
    ImageCompressor,
    SourceImage,
    UploaderConfig,
    read_orientation,
    run_with_concurrency,
)
from .core.factories import UploaderFactory

__version__ = "0.1.0"

__all__ = [
    "ChecklistImageUploader",
    "CompressedArtifact",
    "CompressionOptions",
    "ImageCompressor",
    "SourceImage",
    "UploaderConfig",
    "UploaderFactory",
    "read_orientation",
    "run_with_concurrency",
]

"""Core components of the checklist image pipeline."""

from .compression import ImageCompressor, render_upright, supports_webp
from .concurrency import run_with_concurrency
from .decoding import (
    DecodedSource,
    ImageDecoder,
    InlineImageDecoder,
    ThreadedImageDecoder,
    create_image_decoder,
)
from .exceptions import (
    ChecklistImagesError,
    ConfigurationError,
    DecodeError,
    EncodeError,
    RegistrationError,
    StorageError,
)
from .logging_config import get_logger, setup_logger
from .models import (
    CompressedArtifact,
    CompressionOptions,
    SourceImage,
    UploaderConfig,
    UploadResult,
    UploadTask,
)
from .orientation import OrientationResult, parse_exif_orientation, read_orientation
from .services import ChecklistImageUploader, UploadTaskFactory, build_storage_path

__all__ = [
    "SourceImage",
    "CompressionOptions",
    "CompressedArtifact",
    "UploadTask",
    "UploadResult",
    "UploaderConfig",
    "OrientationResult",
    "read_orientation",
    "parse_exif_orientation",
    "DecodedSource",
    "ImageDecoder",
    "ThreadedImageDecoder",
    "InlineImageDecoder",
    "create_image_decoder",
    "ImageCompressor",
    "render_upright",
    "supports_webp",
    "run_with_concurrency",
    "ChecklistImageUploader",
    "UploadTaskFactory",
    "build_storage_path",
    "setup_logger",
    "get_logger",
    "ChecklistImagesError",
    "ConfigurationError",
    "DecodeError",
    "EncodeError",
    "StorageError",
    "RegistrationError",
]

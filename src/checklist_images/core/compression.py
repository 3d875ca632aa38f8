"""Budget-driven image compression with orientation-correcting redraw."""

import asyncio
import functools
import io
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image

from .decoding import DecodedSource, ImageDecoder, create_image_decoder
from .error_handling import with_error_handling
from .exceptions import EncodeError
from .logging_config import get_logger
from .models import CompressedArtifact, CompressionOptions, SourceImage
from .orientation import read_orientation

RESIZE_ROUNDS = 3
QUALITY_PROBES = 6
SHRINK_FACTOR = 0.9
FALLBACK_QUALITY = 0.7

# EXIF orientation -> Pillow operation that makes the stored pixels upright
TRANSPOSE_FOR_ORIENTATION = {
    2: Image.Transpose.FLIP_LEFT_RIGHT,
    3: Image.Transpose.ROTATE_180,
    4: Image.Transpose.FLIP_TOP_BOTTOM,
    5: Image.Transpose.TRANSPOSE,
    6: Image.Transpose.ROTATE_270,
    7: Image.Transpose.TRANSVERSE,
    8: Image.Transpose.ROTATE_90,
}


@dataclass(frozen=True)
class OutputFormat:
    """An encoding the engine can produce."""

    pillow_format: str
    mime_type: str
    extension: str


WEBP = OutputFormat("WEBP", "image/webp", "webp")
JPEG = OutputFormat("JPEG", "image/jpeg", "jpg")


@functools.lru_cache(maxsize=None)
def supports_webp() -> bool:
    """Probe once per process whether Pillow can encode WEBP."""
    buffer = io.BytesIO()
    try:
        Image.new("RGB", (1, 1)).save(buffer, format="WEBP")
    except (KeyError, OSError, ValueError):
        return False
    return buffer.getvalue()[8:12] == b"WEBP"


def _round(value: float) -> int:
    return int(value + 0.5)


def effective_dimensions(width: int, height: int, orientation: int) -> Tuple[int, int]:
    """Upright dimensions: orientations 5-8 swap width and height."""
    if 5 <= orientation <= 8:
        return height, width
    return width, height


def target_dimensions(
    width: int, height: int, max_width: int, max_height: int
) -> Tuple[int, int]:
    """Scale (width, height) down to fit inside max_width x max_height."""
    scale = 1.0
    if width > max_width or height > max_height:
        scale = min(max_width / width, max_height / height)
    return max(1, _round(width * scale)), max(1, _round(height * scale))


def shrink_dimensions(width: int, height: int) -> Tuple[int, int]:
    return max(1, _round(width * SHRINK_FACTOR)), max(1, _round(height * SHRINK_FACTOR))


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )


def render_upright(
    image: Image.Image,
    orientation: int,
    width: int,
    height: int,
    keep_alpha: bool = False,
) -> Image.Image:
    """
    Redraw ``image`` upright onto a new width x height buffer.

    The orientation transform is applied before resampling, so width and
    height are always the upright output size. The result is a fresh RGB
    (or RGBA when ``keep_alpha`` and the source has transparency) image; the
    input is never modified.
    """
    method = TRANSPOSE_FOR_ORIENTATION.get(orientation)
    upright = image.transpose(method) if method is not None else image
    # Palette and bilevel modes only resample with NEAREST
    mode = "RGBA" if keep_alpha and _has_alpha(upright) else "RGB"
    upright = upright.convert(mode)
    if upright.size != (width, height):
        upright = upright.resize((width, height), Image.Resampling.LANCZOS)
    return upright


@with_error_handling(fallback=EncodeError)
def encode_image(image: Image.Image, pillow_format: str, quality: float) -> bytes:
    """Encode ``image`` at ``quality`` in (0, 1]."""
    buffer = io.BytesIO()
    image.save(buffer, format=pillow_format, quality=max(1, min(100, _round(quality * 100))))
    data = buffer.getvalue()
    if not data:
        raise EncodeError(f"{pillow_format} encoder produced no bytes")
    return data


class ImageCompressor:
    """Produces upload-ready artifacts that respect a byte budget."""

    def __init__(self, decoder: Optional[ImageDecoder] = None, prefer_webp: bool = True):
        self._decoder = decoder or create_image_decoder()
        self._prefer_webp = prefer_webp
        self._logger = get_logger("compression")

    async def compress(
        self, file: SourceImage, options: Optional[CompressionOptions] = None
    ) -> CompressedArtifact:
        """
        Compress ``file`` into an upright artifact within the byte budget.

        Files already within budget and upright are returned untouched.
        Otherwise the engine searches quality (6 probes) at up to three
        sizes, each 10% smaller than the last, and finally falls back to a
        JPEG at quality 0.7 which may exceed the budget.

        Raises:
            DecodeError: The bytes are not a decodable image.
            EncodeError: The encoder failed to produce bytes.
        """
        options = options or CompressionOptions()
        orientation = read_orientation(file)

        if file.size <= options.target_max_bytes and orientation == 1:
            self._logger.debug(
                f"[{file.filename}] {file.size} bytes already within budget, skipping"
            )
            return self._passthrough(file)

        source = await self._decoder.load(file)
        try:
            return await self._compress_source(source, orientation, options, file.filename)
        finally:
            source.close()

    def _passthrough(self, file: SourceImage) -> CompressedArtifact:
        extension = file.extension
        if extension == "jpeg":
            extension = "jpg"
        return CompressedArtifact(
            data=file.data,
            extension=extension or "jpg",
            mime_type=file.mime_type or JPEG.mime_type,
        )

    def _output_format(self) -> OutputFormat:
        if self._prefer_webp and supports_webp():
            return WEBP
        return JPEG

    async def _compress_source(
        self,
        source: DecodedSource,
        orientation: int,
        options: CompressionOptions,
        filename: str,
    ) -> CompressedArtifact:
        base_width, base_height = effective_dimensions(
            source.width, source.height, orientation
        )
        width, height = target_dimensions(
            base_width, base_height, options.max_width, options.max_height
        )
        output = self._output_format()
        self._logger.debug(
            f"[{filename}] {source.width}x{source.height} orientation={orientation} "
            f"-> {width}x{height} {output.pillow_format}"
        )

        for resize_round in range(RESIZE_ROUNDS):
            canvas = await asyncio.to_thread(
                render_upright, source.image, orientation, width, height, output is WEBP
            )
            try:
                best = await self._search_quality(canvas, output, options)
            finally:
                canvas.close()
            if best is not None:
                self._logger.info(
                    f"[{filename}] Compressed to {best.size} bytes at "
                    f"{width}x{height} q={best.quality:.3f}"
                )
                return best
            self._logger.debug(
                f"[{filename}] No quality fits {options.target_max_bytes} bytes "
                f"at {width}x{height} (round {resize_round + 1}/{RESIZE_ROUNDS})"
            )
            width, height = shrink_dimensions(width, height)

        return await self._fallback(source, orientation, width, height, options, filename)

    async def _search_quality(
        self, canvas: Image.Image, output: OutputFormat, options: CompressionOptions
    ) -> Optional[CompressedArtifact]:
        low, high = options.min_quality, options.max_quality
        best: Optional[CompressedArtifact] = None
        for _ in range(QUALITY_PROBES):
            quality = (low + high) / 2
            data = await asyncio.to_thread(
                encode_image, canvas, output.pillow_format, quality
            )
            if len(data) <= options.target_max_bytes:
                best = CompressedArtifact(
                    data=data,
                    extension=output.extension,
                    mime_type=output.mime_type,
                    quality=quality,
                )
                low = quality
            else:
                high = quality
        return best

    async def _fallback(
        self,
        source: DecodedSource,
        orientation: int,
        width: int,
        height: int,
        options: CompressionOptions,
        filename: str,
    ) -> CompressedArtifact:
        canvas = await asyncio.to_thread(
            render_upright, source.image, orientation, width, height
        )
        try:
            data = await asyncio.to_thread(
                encode_image, canvas, JPEG.pillow_format, FALLBACK_QUALITY
            )
        finally:
            canvas.close()

        if len(data) > options.target_max_bytes:
            self._logger.warning(
                f"[{filename}] Budget of {options.target_max_bytes} bytes not met; "
                f"fallback JPEG is {len(data)} bytes at {width}x{height}"
            )
        return CompressedArtifact(
            data=data,
            extension=JPEG.extension,
            mime_type=JPEG.mime_type,
            quality=FALLBACK_QUALITY,
            fallback=True,
        )

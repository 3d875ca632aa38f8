"""Image decoders turning raw bytes into a drawable Pillow image."""

import asyncio
import io
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from PIL import Image

from .error_handling import with_error_handling
from .exceptions import DecodeError
from .logging_config import get_logger
from .models import SourceImage


@dataclass
class DecodedSource:
    """Decoded pixels plus their natural (stored, pre-orientation) size."""

    image: Image.Image
    width: int
    height: int

    def close(self) -> None:
        self.image.close()


@with_error_handling(fallback=DecodeError)
def decode_image(data: bytes) -> DecodedSource:
    """Fully decode ``data`` with Pillow; EXIF orientation is left untouched."""
    image = Image.open(io.BytesIO(data))
    image.load()
    width, height = image.size
    if width <= 0 or height <= 0:
        raise DecodeError("Decoded image has no pixels")
    return DecodedSource(image=image, width=width, height=height)


class ImageDecoder(ABC):
    """Turns a SourceImage into a DecodedSource."""

    @abstractmethod
    async def load(self, file: SourceImage) -> DecodedSource:
        """Decode ``file``; raises DecodeError for unsupported or corrupt bytes."""
        ...


class ThreadedImageDecoder(ImageDecoder):
    """Decodes in a worker thread so the event loop keeps running."""

    async def load(self, file: SourceImage) -> DecodedSource:
        return await asyncio.to_thread(decode_image, file.data)


class InlineImageDecoder(ImageDecoder):
    """Decodes on the event loop thread, then yields once."""

    async def load(self, file: SourceImage) -> DecodedSource:
        source = decode_image(file.data)
        await asyncio.sleep(0)
        return source


def create_image_decoder(prefer_threads: Optional[bool] = None) -> ImageDecoder:
    """
    Pick a decoder implementation.

    Args:
        prefer_threads: Force the threaded (True) or inline (False) decoder.
            None selects the threaded decoder when the runtime supports it.
    """
    logger = get_logger("decoding")
    if prefer_threads is None:
        prefer_threads = hasattr(asyncio, "to_thread")
    if prefer_threads:
        logger.debug("Using threaded image decoder")
        return ThreadedImageDecoder()
    logger.debug("Using inline image decoder")
    return InlineImageDecoder()

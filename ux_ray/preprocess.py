"""
Image Preprocessing

Shrinks a screenshot until it fits the upload budget. The image is first
downscaled so its longest edge is at most `max_dimension`, then re-encoded
as JPEG, lowering the quality step by step while the base64 form is still
larger than the budget. Compression is best effort: once the quality floor
is reached the last encoding is returned even if it is over budget.
"""

import asyncio
import base64
import io
import logging

from PIL import Image

from .errors import PreprocessError
from .models import CompressedImage, Config, RawImage

logger = logging.getLogger(__name__)

# base64 inflates bytes by 4/3 plus padding; the budget is checked on the
# encoded text against max_bytes scaled by this factor
BASE64_OVERHEAD = 1.37

DEFAULT_MAX_BYTES = 500 * 1024
DEFAULT_MAX_DIMENSION = 1200
DEFAULT_QUALITY = 0.8
DEFAULT_QUALITY_STEP = 0.1
DEFAULT_QUALITY_FLOOR = 0.1

OUTPUT_MEDIA_TYPE = "image/jpeg"


def scaled_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """
    Fit (width, height) inside a max_dimension square, keeping aspect ratio.

    The longer edge becomes exactly max_dimension; the other is rounded to
    the nearest pixel (never below 1). Sizes already inside the limit are
    returned unchanged.
    """
    if width <= max_dimension and height <= max_dimension:
        return width, height

    if width >= height:
        return max_dimension, max(1, round(height * max_dimension / width))
    return max(1, round(width * max_dimension / height)), max_dimension


def _flatten(img: Image.Image) -> Image.Image:
    """Convert to RGB, compositing any transparency onto white"""
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return img.convert("RGB")


def _encode(img: Image.Image, quality: float) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=max(1, round(quality * 100)))
    return buf.getvalue()


def encoded_length(data: bytes) -> int:
    """Length of `data` once base64-encoded for the request body"""
    return len(base64.b64encode(data))


class ImagePreprocessor:
    """
    Adaptive JPEG compressor for screenshots.

    Example:
        preprocessor = ImagePreprocessor(max_bytes=500 * 1024, max_dimension=1200)
        compressed = preprocessor.compress(RawImage.from_path(Path("shot.png")))
    """

    def __init__(
        self,
        max_bytes: int = DEFAULT_MAX_BYTES,
        max_dimension: int = DEFAULT_MAX_DIMENSION,
        initial_quality: float = DEFAULT_QUALITY,
        quality_step: float = DEFAULT_QUALITY_STEP,
        quality_floor: float = DEFAULT_QUALITY_FLOOR,
    ):
        if quality_floor > initial_quality:
            raise ValueError("quality_floor must not exceed initial_quality")

        self.max_bytes = max_bytes
        self.max_dimension = max_dimension
        self.initial_quality = initial_quality
        self.quality_step = quality_step
        self.quality_floor = quality_floor

    @classmethod
    def from_config(cls, config: Config) -> "ImagePreprocessor":
        return cls(
            max_bytes=config.max_bytes,
            max_dimension=config.max_dimension,
            initial_quality=config.quality_initial,
            quality_step=config.quality_step,
            quality_floor=config.quality_floor,
        )

    @property
    def encoded_budget(self) -> float:
        """Budget in base64 characters"""
        return self.max_bytes * BASE64_OVERHEAD

    def compress(self, image: RawImage) -> CompressedImage:
        """
        Downscale and re-encode `image` to fit the byte budget.

        Args:
            image: Screenshot as uploaded

        Returns:
            CompressedImage (JPEG). Its size may exceed the budget when the
            quality floor was reached first.

        Raises:
            PreprocessError: If the image cannot be decoded or encoded
        """
        try:
            with Image.open(io.BytesIO(image.data)) as source:
                source.load()
                frame = _flatten(source)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise PreprocessError(f"Cannot decode image: {e}") from e

        width, height = scaled_size(frame.width, frame.height, self.max_dimension)
        if (width, height) != frame.size:
            logger.debug(
                "Resizing %dx%d -> %dx%d", frame.width, frame.height, width, height
            )
            frame = frame.resize((width, height), Image.Resampling.LANCZOS)

        quality = self.initial_quality
        try:
            data = _encode(frame, quality)
            while encoded_length(data) > self.encoded_budget and quality > self.quality_floor:
                quality = max(self.quality_floor, round(quality - self.quality_step, 2))
                logger.debug(
                    "%d base64 chars over budget of %d, retrying at quality %.2f",
                    encoded_length(data), self.encoded_budget, quality,
                )
                data = _encode(frame, quality)
        except (OSError, ValueError) as e:
            raise PreprocessError(f"Cannot encode image: {e}") from e

        if encoded_length(data) > self.encoded_budget:
            logger.info(
                "Image still over budget at quality floor %.2f (%d bytes)",
                quality, len(data),
            )

        return CompressedImage(
            data=data,
            media_type=OUTPUT_MEDIA_TYPE,
            width=width,
            height=height,
            quality=quality,
        )

    async def compress_async(self, image: RawImage) -> CompressedImage:
        """Run `compress` off the event loop (decode/encode are CPU bound)"""
        return await asyncio.to_thread(self.compress, image)


def compress(
    image: RawImage,
    max_bytes: int = DEFAULT_MAX_BYTES,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
) -> CompressedImage:
    """Compress with the default quality schedule."""
    return ImagePreprocessor(max_bytes=max_bytes, max_dimension=max_dimension).compress(image)

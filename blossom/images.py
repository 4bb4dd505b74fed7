"""Image attachment helpers.

Turns data URIs, bare base64 strings, and image files into content blocks,
shrinks images above the upload threshold, and builds user messages with
their attachments.
"""

from __future__ import annotations

import base64
import io
import logging
import math
import re
from pathlib import Path

from PIL import Image

from blossom.schemas.chat import ChatMessage, ImageBlock, ImageMediaType, TextBlock
from blossom.schemas.config import MiB

logger = logging.getLogger(__name__)

# Images above this size are recompressed before upload
IMAGE_COMPRESSION_THRESHOLD = 2 * MiB

# Fraction of the theoretical scale used on the first attempt
_INITIAL_SCALE_FACTOR = 0.85
_INITIAL_QUALITY = 85
_SCALES = (0.7, 0.5, 0.4, 0.3, 0.2)
_QUALITIES = (80, 70, 60, 50, 40)
_LAST_RESORT = (0.15, 30)

_DATA_URI_RE = re.compile(r"^data:(image/\w+);base64,(.+)$", re.DOTALL)

_SUFFIX_MEDIA_TYPES: dict[str, ImageMediaType] = {
    ".jpg": ImageMediaType.JPEG,
    ".jpeg": ImageMediaType.JPEG,
    ".png": ImageMediaType.PNG,
    ".gif": ImageMediaType.GIF,
    ".webp": ImageMediaType.WEBP,
}


def parse_image(image: str) -> ImageBlock:
    """Build an ImageBlock from a data URI or raw base64 string.

    Strings without a recognised data URI prefix are assumed to be
    base64-encoded PNG.
    """
    match = _DATA_URI_RE.match(image)
    if match:
        try:
            media_type = ImageMediaType(match.group(1))
        except ValueError:
            media_type = ImageMediaType.PNG
        return ImageBlock(media_type=media_type, data=match.group(2))
    return ImageBlock(media_type=ImageMediaType.PNG, data=image)


def _encode(image: Image.Image, fmt: str, quality: int) -> bytes:
    buffer = io.BytesIO()
    if fmt == "JPEG":
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        image.save(buffer, format="JPEG", quality=quality, optimize=True)
    elif fmt == "WEBP":
        image.save(buffer, format="WEBP", quality=quality)
    else:
        image.save(buffer, format="PNG", optimize=True, compress_level=9)
    return buffer.getvalue()


def _try_compress(
    image: Image.Image,
    media_type: ImageMediaType,
    scale: float,
    quality: int,
    size_limit: int,
) -> tuple[bytes, ImageMediaType]:
    """Encode one candidate at ``scale`` and ``quality``.

    Never enlarges. PNG and GIF are written as PNG first and fall back to
    JPEG when the PNG is still over ``size_limit``; GIF animation is lost.
    """
    width, height = image.size
    new_width = max(1, round(width * scale))
    if new_width < width:
        new_height = max(1, round(height * new_width / width))
        image = image.resize((new_width, new_height), Image.Resampling.LANCZOS)

    if media_type == ImageMediaType.JPEG:
        return _encode(image, "JPEG", quality), ImageMediaType.JPEG
    if media_type == ImageMediaType.WEBP:
        return _encode(image, "WEBP", quality), ImageMediaType.WEBP

    data = _encode(image, "PNG", quality)
    if len(data) <= size_limit:
        return data, ImageMediaType.PNG
    return _encode(image, "JPEG", quality), ImageMediaType.JPEG


def compress_image(
    data: bytes,
    media_type: ImageMediaType,
    size_limit: int = IMAGE_COMPRESSION_THRESHOLD,
) -> tuple[bytes, ImageMediaType]:
    """Shrink an encoded image until it fits ``size_limit`` bytes.

    Images already within the limit are returned untouched. Otherwise the
    first attempt scales by the square root of the size ratio at quality
    85, then progressively smaller scales and lower qualities are tried,
    ending with a 15% / quality 30 rendition that is returned even if it
    is still too large.

    Returns:
        The encoded bytes and their media type, which differs from the
        input when PNG or GIF had to be converted.

    Raises:
        OSError: If the data is not a readable image.
    """
    if len(data) <= size_limit:
        return data, media_type

    with Image.open(io.BytesIO(data)) as source:
        source.load()
        image = source.copy()

    initial_scale = math.sqrt(size_limit / len(data)) * _INITIAL_SCALE_FACTOR
    attempts = [(initial_scale, _INITIAL_QUALITY)]
    attempts += [(scale, quality) for scale in _SCALES for quality in _QUALITIES]

    for scale, quality in attempts:
        result = _try_compress(image, media_type, scale, quality, size_limit)
        if len(result[0]) <= size_limit:
            break
    else:
        result = _try_compress(image, media_type, *_LAST_RESORT, size_limit)

    logger.debug(
        "Compressed %s image from %d to %d bytes (%s)",
        media_type.value,
        len(data),
        len(result[0]),
        result[1].value,
    )
    return result


def compress_block(
    block: ImageBlock, size_limit: int = IMAGE_COMPRESSION_THRESHOLD
) -> ImageBlock:
    """Return ``block`` recompressed when its decoded payload exceeds the limit.

    Raises:
        ValueError: If the payload is not valid base64.
        OSError: If the payload is not a readable image.
    """
    # Decoded size is at most three quarters of the base64 length
    if len(block.data) * 3 // 4 <= size_limit:
        return block

    raw = base64.b64decode(block.data, validate=True)
    data, media_type = compress_image(raw, block.media_type, size_limit)
    if data is raw:
        return block
    return ImageBlock(
        media_type=media_type, data=base64.b64encode(data).decode("ascii")
    )


def load_image_file(
    path: Path, size_limit: int = IMAGE_COMPRESSION_THRESHOLD
) -> ImageBlock:
    """Read an image file into an ImageBlock, compressing it if too large.

    Raises:
        ValueError: If the file suffix is not a supported image format.
        OSError: If the file cannot be read or decoded.
    """
    media_type = _SUFFIX_MEDIA_TYPES.get(path.suffix.lower())
    if media_type is None:
        supported = ", ".join(sorted(_SUFFIX_MEDIA_TYPES))
        raise ValueError(f"Unsupported image type '{path.suffix}' (expected {supported})")
    data, media_type = compress_image(path.read_bytes(), media_type, size_limit)
    return ImageBlock(media_type=media_type, data=base64.b64encode(data).decode("ascii"))


def to_data_uri(block: ImageBlock) -> str:
    """Encode an ImageBlock as a data URI."""
    return f"data:{block.media_type.value};base64,{block.data}"


def build_user_message(
    text: str,
    images: list[str | ImageBlock] | None = None,
    size_limit: int = IMAGE_COMPRESSION_THRESHOLD,
) -> ChatMessage:
    """Build a user message, placing image blocks before the text.

    Attachments over ``size_limit`` are recompressed.
    """
    if not images:
        return ChatMessage(role="user", content=text)

    blocks: list[ImageBlock | TextBlock] = [
        compress_block(
            image if isinstance(image, ImageBlock) else parse_image(image), size_limit
        )
        for image in images
    ]
    blocks.append(TextBlock(text=text))
    return ChatMessage(role="user", content=blocks)

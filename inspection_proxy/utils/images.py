"""Image processing utilities."""

import base64
import binascii
import re
from io import BytesIO
from typing import NamedTuple, Optional, Tuple, Union
from PIL import Image, ImageOps, UnidentifiedImageError

from .logger import get_logger
from .errors import ImageProcessingError, ValidationError

logger = get_logger(__name__)

PNG_SIGNATURE = b"\x89PNG"
JPEG_SIGNATURE = b"\xff\xd8\xff"

_DATA_URI_MIME = re.compile(r"data:(image/[^;,]+)")


class DecodedImage(NamedTuple):
    """Image payload after prefix stripping and MIME detection."""
    data: bytes
    base64: str
    mime_type: str


def normalize_mime(mime_type: Optional[str]) -> Optional[str]:
    """Lower-case a MIME type and fold image/jpg into image/jpeg."""
    if not mime_type:
        return None
    mime_type = mime_type.strip().lower()
    if mime_type == "image/jpg":
        return "image/jpeg"
    return mime_type


def split_data_uri(value: str) -> Tuple[str, Optional[str]]:
    """
    Strip a data URI prefix from a base64 string.

    Args:
        value: Plain base64 or ``data:image/<type>;base64,<data>``

    Returns:
        Tuple of (base64 payload, MIME type named by the prefix or None)
    """
    if "," not in value:
        return value, None

    prefix, payload = value.split(",", 1)
    match = _DATA_URI_MIME.search(prefix)
    return payload, normalize_mime(match.group(1)) if match else None


def sniff_mime(data: bytes) -> Optional[str]:
    """Identify PNG, JPEG or WebP from magic bytes."""
    if len(data) >= 8 and data[:4] == PNG_SIGNATURE:
        return "image/png"
    if len(data) >= 3 and data[:3] == JPEG_SIGNATURE:
        return "image/jpeg"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def detect_mime(
    data: bytes,
    hint: Optional[str] = None,
    default: str = "image/png",
) -> str:
    """
    Determine the real MIME type of an image.

    Magic bytes win over any declared value; the hint is only used when
    the signature is not recognised.
    """
    return sniff_mime(data) or normalize_mime(hint) or default


def extension_for_mime(mime_type: str) -> str:
    """File extension used when uploading an image of this type."""
    if mime_type == "image/png":
        return "png"
    if mime_type == "image/webp":
        return "webp"
    return "jpg"


def base64_to_bytes(base64_string: str) -> bytes:
    """
    Convert base64 string to bytes.

    Raises:
        ValidationError: If the string is not valid base64
    """
    compact = "".join(base64_string.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Invalid imageBase64: {e}") from e


def bytes_to_base64(image_bytes: bytes) -> str:
    """Convert image bytes to base64 string."""
    return base64.b64encode(image_bytes).decode('utf-8')


def to_data_uri(image_bytes: bytes, mime_type: str = "image/png") -> str:
    """Render bytes as a base64 data URI."""
    return f"data:{mime_type};base64,{bytes_to_base64(image_bytes)}"


def decode_image_input(
    image: Union[bytes, str],
    declared_mime: Optional[str] = None,
    default_mime: str = "image/png",
) -> DecodedImage:
    """
    Accept raw bytes or (data URI prefixed) base64 and detect the MIME type.

    A MIME type named by a data URI prefix takes precedence over the
    declared one; magic bytes take precedence over both.

    Raises:
        ValidationError: If the image is missing or not decodable
    """
    if isinstance(image, (bytes, bytearray)):
        data = bytes(image)
        hint = declared_mime
    elif isinstance(image, str):
        payload, prefix_mime = split_data_uri(image.strip())
        data = base64_to_bytes(payload)
        hint = prefix_mime or declared_mime
    else:
        raise ValidationError("Invalid imageBase64: must be a string")

    if not data:
        raise ValidationError("Missing required field: image")

    mime_type = detect_mime(data, hint, default_mime)
    return DecodedImage(data=data, base64=bytes_to_base64(data), mime_type=mime_type)


def prepare_square_png(
    image_bytes: bytes,
    size: int = 1024,
    max_bytes: int = 4 * 1024 * 1024,
) -> bytes:
    """
    Centre-crop and resize to a square PNG no larger than ``max_bytes``.

    Args:
        image_bytes: Source image in any format Pillow reads
        size: Edge length in pixels
        max_bytes: Upload ceiling; larger results are palette-reduced

    Returns:
        PNG bytes

    Raises:
        ImageProcessingError: If the image cannot be read
    """
    try:
        image = Image.open(BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise ImageProcessingError(f"Failed to read image: {e}") from e

    original_size = image.size
    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA")

    fitted = ImageOps.fit(image, (size, size), Image.LANCZOS, centering=(0.5, 0.5))

    buffer = BytesIO()
    fitted.save(buffer, format="PNG", optimize=True)
    png_bytes = buffer.getvalue()

    if len(png_bytes) > max_bytes:
        logger.info(
            "Prepared PNG over upload limit, reducing colours",
            extra={"size_bytes": len(png_bytes), "max_bytes": max_bytes}
        )
        buffer = BytesIO()
        fitted.quantize(colors=256).save(buffer, format="PNG", optimize=True)
        png_bytes = buffer.getvalue()

    logger.debug(
        f"Prepared square PNG: {original_size[0]}x{original_size[1]} -> {size}x{size}",
        extra={"size_kb": len(png_bytes) / 1024}
    )

    return png_bytes


def white_mask_png(size: int = 1024) -> bytes:
    """Fully opaque white RGBA mask; marks the whole image as editable."""
    mask = Image.new("RGBA", (size, size), (255, 255, 255, 255))
    buffer = BytesIO()
    mask.save(buffer, format="PNG")
    return buffer.getvalue()


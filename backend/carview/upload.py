from __future__ import annotations

import base64
import binascii
import io
import re

from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from carview.errors import InvalidImageError

# Register HEIF opener for HEIC/HEIF support
register_heif_opener()

ALLOWED_CONTENT_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/heic",
    "image/heif",
}

# Pillow format name -> MIME type for sniffed bare base64 payloads
PIL_FORMAT_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "HEIF": "image/heif",
}

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^;,]*)*?);base64,(?P<data>.*)$", re.DOTALL)


def normalize_content_type(content_type: str | None) -> str | None:
    """Normalize content type for consistent handling. Converts image/jpg to image/jpeg."""
    if not content_type:
        return None
    content_type = content_type.lower()
    if content_type == "image/jpg":
        return "image/jpeg"
    return content_type


def to_data_url(content: bytes, content_type: str) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def decode_base64(payload: str) -> bytes:
    try:
        return base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Invalid base64 image data: {e}") from e


def sniff_content_type(content: bytes) -> str:
    """Detect the image MIME type with Pillow."""
    try:
        img = Image.open(io.BytesIO(content))
        fmt = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError("Payload is not a recognizable image") from e
    content_type = PIL_FORMAT_TYPES.get(fmt or "")
    if content_type is None:
        raise InvalidImageError(f"Unsupported image format: {fmt}")
    return content_type


def heic_to_jpeg(content: bytes) -> bytes:
    """Convert HEIC/HEIF bytes to JPEG; the gateway does not accept HEIC."""
    try:
        img = Image.open(io.BytesIO(content))
        if img.mode != "RGB":
            img = img.convert("RGB")
        output = io.BytesIO()
        img.save(output, format="JPEG", quality=95)
        return output.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"Failed to convert HEIC/HEIF to JPEG: {e}") from e


def normalize_image_payload(image: str, max_bytes: int) -> str:
    """
    Turn the imageBase64 request field into something the gateway accepts.

    - http(s) URLs pass through unchanged
    - data URLs must carry an allowed image MIME type
    - bare base64 is sniffed and wrapped as a data URL
    - HEIC/HEIF is re-encoded as JPEG
    """
    image = image.strip()
    if image.startswith(("http://", "https://")):
        return image

    match = _DATA_URL_RE.match(image)
    if match:
        content_type = normalize_content_type(match.group("mime"))
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise InvalidImageError(f"Unsupported content_type: {match.group('mime')}")
        content = decode_base64(match.group("data"))
    elif image.startswith("data:"):
        raise InvalidImageError("Image data URL must be base64 encoded")
    else:
        content = decode_base64(image)
        content_type = sniff_content_type(content)

    if not content:
        raise InvalidImageError("Image payload is empty")
    if len(content) > max_bytes:
        raise InvalidImageError(f"Image exceeds {max_bytes // (1024 * 1024)}MB")

    if content_type in {"image/heic", "image/heif"}:
        return to_data_url(heic_to_jpeg(content), "image/jpeg")
    if match and match.group("mime") == content_type:
        return image
    return to_data_url(content, content_type)

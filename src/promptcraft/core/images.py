"""
Image handling for promptcraft.

This module validates uploaded images for extraction (size cap, MIME type
detection, decodability), and converts between raw bytes and data URLs for
source-image references and preview images.
"""

import base64
import io
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from promptcraft.logging_config import get_logger
from promptcraft.utils.exceptions import ImageProcessingError, ValidationError

logger = get_logger(__name__)

# MIME types the vision model accepts
SUPPORTED_MIME_TYPES = frozenset(
    {"image/png", "image/jpeg", "image/webp", "image/heic", "image/heif", "image/gif"}
)

_SUFFIX_MIME = {
    "PNG": "image/png",
    "JPG": "image/jpeg",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "HEIC": "image/heic",
    "HEIF": "image/heif",
    "GIF": "image/gif",
}


@dataclass(frozen=True)
class ImageInput:
    """Validated image bytes ready for an extraction request."""

    data: bytes
    mime_type: str

    @property
    def data_url(self) -> str:
        return create_data_url(self.data, self.mime_type)


def infer_mime_from_magic(data: bytes) -> str | None:
    """Infer image MIME type from magic bytes. Returns e.g. 'image/png' or None."""
    if len(data) < 12:
        return None
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if data[:2] == b"\xff\xd8":
        return "image/jpeg"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[4:12] in (b"ftypheic", b"ftypheix"):
        return "image/heic"
    if data[4:12] == b"ftypmif1":
        return "image/heif"
    return None


def normalize_mime_type(mime_type: str | None) -> str | None:
    """Normalize a MIME type or bare format name (JPG, png) to a supported MIME type, else None."""
    if not mime_type:
        return None
    s = mime_type.strip().lower().split(";")[0].strip()
    if not s.startswith("image/"):
        s = _SUFFIX_MIME.get(s.upper(), "")
    if s == "image/jpg":
        s = "image/jpeg"
    return s if s in SUPPORTED_MIME_TYPES else None


def is_supported_mime_type(mime_type: str | None) -> bool:
    return normalize_mime_type(mime_type) is not None


def create_data_url(data: bytes, mime_type: str = "image/png") -> str:
    """
    Create a data URL from raw image bytes.

    Args:
        data: Raw image bytes
        mime_type: MIME type of the image

    Returns:
        Data URL string
    """
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def parse_data_url(data_url: str) -> tuple[bytes, str | None]:
    """
    Parse a data URL (data:image/xxx;base64,yyy) into raw bytes and MIME type.

    Returns:
        (decoded_bytes, normalized MIME type or None)

    Raises:
        ValidationError: If the string is not a base64 data URL
    """
    data_url = data_url.strip()
    if not data_url.startswith("data:"):
        raise ValidationError("Not a data URL", field="image")
    idx = data_url.find(";base64,")
    if idx == -1:
        raise ValidationError("Data URL missing ;base64, part", field="image")
    try:
        payload = base64.b64decode(data_url[idx + 8 :], validate=True)
    except ValueError as e:
        raise ValidationError(f"Invalid base64 in data URL: {e}", field="image") from e
    return payload, normalize_mime_type(data_url[5:idx])


def _verify_decodable(data: bytes) -> None:
    try:
        try:
            from pillow_heif import register_heif_opener

            register_heif_opener()
        except ImportError:
            pass  # HEIF support not available
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
    except Exception as e:
        raise ImageProcessingError(f"Failed to load image from bytes: {str(e)}") from e


def load_image_input(
    source: str | Path | bytes,
    mime_type: str | None = None,
    max_bytes: int | None = None,
    verify: bool = True,
) -> ImageInput:
    """
    Load and validate an image for extraction.

    Source may be raw bytes, a data URL, or a file path. The MIME type is
    taken from mime_type, else the data URL, else the file suffix, else the
    magic bytes.

    Args:
        source: Raw bytes, data URL, or path
        mime_type: Optional MIME type or format hint
        max_bytes: Reject images larger than this many bytes
        verify: Decode the image with Pillow to reject corrupt data

    Returns:
        ImageInput with bytes and normalized MIME type

    Raises:
        ValidationError: Empty, oversized, or unsupported image
        ImageProcessingError: Image cannot be read or decoded
    """
    image_path = ""
    if isinstance(source, bytes):
        data = source
    elif isinstance(source, str) and source.strip().startswith("data:"):
        data, parsed_mime = parse_data_url(source)
        mime_type = mime_type or parsed_mime
    else:
        path = Path(source)
        image_path = str(path)
        if not path.exists():
            raise ValidationError(f"Image file not found: {path}", field="image")
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ImageProcessingError(f"Failed to read image: {e}", image_path=image_path) from e
        mime_type = mime_type or _SUFFIX_MIME.get(path.suffix.upper().lstrip("."))

    if not data:
        raise ValidationError("Image data is empty", field="image")
    if max_bytes is not None and len(data) > max_bytes:
        raise ValidationError(
            f"Max size: {max_bytes // (1024 * 1024)}MB for image analysis.", field="image"
        )

    resolved = normalize_mime_type(mime_type) or infer_mime_from_magic(data)
    if resolved is None:
        raise ValidationError(
            "Could not determine a supported image type. "
            f"Supported types: {', '.join(sorted(SUPPORTED_MIME_TYPES))}",
            field="mime_type",
        )

    if verify:
        try:
            _verify_decodable(data)
        except ImageProcessingError as e:
            e.image_path = image_path
            raise

    logger.debug("Loaded image bytes=%d mime=%s", len(data), resolved)
    return ImageInput(data=data, mime_type=resolved)


def decode_data_url_image(data_url: str) -> Image.Image:
    """
    Decode a data URL into a PIL Image.

    Raises:
        ValidationError: Not a base64 data URL
        ImageProcessingError: Payload is not a decodable image
    """
    data, _mime = parse_data_url(data_url)
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
        return image
    except Exception as e:
        raise ImageProcessingError(f"Failed to decode image: {str(e)}") from e


def save_data_url_image(data_url: str, path: Path) -> Path:
    """
    Write the image in data_url to path. Format follows the path suffix (PNG when absent).

    Returns:
        The path written
    """
    image = decode_data_url_image(data_url)
    fmt = path.suffix.upper().lstrip(".") or "PNG"
    if fmt == "JPG":
        fmt = "JPEG"
    if fmt == "JPEG" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    try:
        image.save(path, format=fmt)
    except (OSError, KeyError, ValueError) as e:
        raise ImageProcessingError(f"Failed to save image: {str(e)}", image_path=str(path)) from e
    return path

"""
Thumbnail generator.

Raster images are decoded with Pillow, turned upright from their EXIF
orientation and shrunk to fit a square box. Vector and icon files are passed
through untouched. The encoded thumbnail is built completely in memory, so a
failure never leaves a half-written payload behind.
"""

import logging
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, ImageOps

from .errors import InvalidRequest, ProcessingError, UnsupportedType
from .models import IMAGE_EXTENSIONS, ResolvedPath
from .streaming import check_regular_file, read_bytes

logger = logging.getLogger(__name__)

# Returned verbatim, never resized
PASSTHROUGH_TYPES = {
    '.svg': 'image/svg+xml',
    '.ico': 'image/x-icon',
}

# Extension -> (Pillow format, content type). Multi-frame and palette
# oriented formats come out as PNG so transparency survives the resize.
OUTPUT_FORMATS = {
    '.jpg': ('JPEG', 'image/jpeg'),
    '.jpeg': ('JPEG', 'image/jpeg'),
    '.png': ('PNG', 'image/png'),
    '.bmp': ('BMP', 'image/bmp'),
    '.webp': ('WEBP', 'image/webp'),
    '.gif': ('PNG', 'image/png'),
    '.tiff': ('PNG', 'image/png'),
    '.tif': ('PNG', 'image/png'),
}

# Modes each encoder writes without conversion
WRITABLE_MODES = {
    'JPEG': ('RGB', 'L'),
    'PNG': ('RGB', 'RGBA', 'L', 'LA'),
    'BMP': ('RGB', 'RGBA', 'L'),
    'WEBP': ('RGB', 'RGBA'),
}

JPEG_QUALITY = 85


def parse_size(raw: Optional[str], default: int, maximum: int) -> int:
    """
    Parse the requested edge length.

    Raises:
        InvalidRequest: Not a positive integer
    """
    if raw is None or raw == '':
        return default
    try:
        size = int(raw)
    except ValueError:
        raise InvalidRequest(f"Invalid thumbnail size: {raw!r}")
    if size < 1:
        raise InvalidRequest(f"Thumbnail size must be positive: {size}")
    return min(size, maximum)


def _has_alpha(img: Image.Image) -> bool:
    return img.mode in ('RGBA', 'LA', 'PA') or 'transparency' in img.info


def _prepare_mode(img: Image.Image, fmt: str) -> Image.Image:
    """Convert to a mode the target encoder can write and LANCZOS can resample."""
    allowed = WRITABLE_MODES[fmt]
    if img.mode in allowed:
        return img
    if _has_alpha(img) and 'RGBA' in allowed:
        return img.convert('RGBA')
    return img.convert('RGB')


def render_thumbnail(img: Image.Image, fmt: str, max_edge: int) -> bytes:
    """Shrink an opened image to fit ``max_edge`` and encode it as ``fmt``."""
    img = ImageOps.exif_transpose(img)
    img = _prepare_mode(img, fmt)

    # thumbnail() keeps the aspect ratio and never enlarges
    img.thumbnail((max_edge, max_edge), Image.Resampling.LANCZOS)

    buffer = BytesIO()
    if fmt == 'JPEG':
        img.save(buffer, format=fmt, quality=JPEG_QUALITY)
    else:
        img.save(buffer, format=fmt)
    return buffer.getvalue()


def make_thumbnail(resolved: ResolvedPath, max_edge: int) -> Tuple[bytes, str]:
    """
    Build a thumbnail for an image file.

    Args:
        resolved: Path already checked by the resolver
        max_edge: Longest edge of the result in pixels

    Returns:
        Tuple of (content, content_type)

    Raises:
        NotFound, IsADirectory, UnsupportedType, ProcessingError
    """
    check_regular_file(resolved.absolute)

    ext = resolved.extension
    if ext not in IMAGE_EXTENSIONS:
        raise UnsupportedType(f"File is not a supported image type: {ext or '(none)'}")

    if ext in PASSTHROUGH_TYPES:
        return read_bytes(resolved.absolute), PASSTHROUGH_TYPES[ext]

    fmt, content_type = OUTPUT_FORMATS[ext]
    try:
        with Image.open(resolved.absolute) as img:
            content = render_thumbnail(img, fmt, max_edge)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        logger.warning(f"Thumbnail failed for {resolved.absolute}: {e}")
        raise ProcessingError(f"Failed to generate thumbnail: {e}")

    logger.debug(f"Thumbnail {resolved.absolute} -> {fmt} {len(content)} bytes")
    return content, content_type

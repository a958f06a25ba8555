"""
File streamer - raw bytes of one file with an extension-derived content type.
"""

import logging
import os
import stat as stat_module
from typing import Tuple

from .errors import AccessDenied, Internal, InvalidRequest, IsADirectory, NotFound
from .models import ResolvedPath

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = 'application/octet-stream'

# Fixed table; no content sniffing
CONTENT_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.bmp': 'image/bmp',
    '.webp': 'image/webp',
    '.svg': 'image/svg+xml',
    '.ico': 'image/x-icon',
    '.tiff': 'image/tiff',
    '.tif': 'image/tiff',
}


def content_type_for(extension: str) -> str:
    """Content type for a file extension (with leading dot)."""
    return CONTENT_TYPES.get(extension.lower(), DEFAULT_CONTENT_TYPE)


def check_regular_file(absolute: str) -> os.stat_result:
    """Stat a path that must be a file; directories are rejected explicitly."""
    try:
        st = os.stat(absolute)
    except FileNotFoundError:
        raise NotFound(f"File not found: {absolute}")
    except PermissionError:
        raise AccessDenied(f"Permission denied: {absolute}")
    except OSError as e:
        raise NotFound(f"File not found: {absolute} ({e.strerror})")
    except ValueError:
        raise InvalidRequest(f"Invalid file path: {absolute!r}")

    if stat_module.S_ISDIR(st.st_mode):
        raise IsADirectory(f"Path is a directory, not a file: {absolute}")
    return st


def read_bytes(absolute: str) -> bytes:
    try:
        with open(absolute, 'rb') as f:
            return f.read()
    except FileNotFoundError:
        raise NotFound(f"File not found: {absolute}")
    except PermissionError:
        raise AccessDenied(f"Permission denied: {absolute}")
    except OSError as e:
        logger.error(f"Error reading file {absolute}: {e}")
        raise Internal(f"Error reading file: {absolute}")


def read_file(resolved: ResolvedPath) -> Tuple[bytes, str]:
    """
    Read a whole file.

    Returns:
        Tuple of (content, content_type)

    Raises:
        NotFound, IsADirectory, AccessDenied, Internal
    """
    check_regular_file(resolved.absolute)
    content = read_bytes(resolved.absolute)
    return content, content_type_for(resolved.extension)

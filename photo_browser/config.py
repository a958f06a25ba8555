"""
Process-wide configuration, built once at startup and read-only afterwards.
"""

import multiprocessing
import os
from dataclasses import dataclass, field
from pathlib import Path


DEFAULT_PORT = 8080
DEFAULT_HOST = "127.0.0.1"

# Thumbnail edge used when the request does not specify one
DEFAULT_THUMBNAIL_SIZE = 128

# Requests above this edge are clamped
MAX_THUMBNAIL_SIZE = 1024

# Resizing is CPU bound, so stay close to the core count
DEFAULT_THUMBNAIL_WORKERS = min(8, multiprocessing.cpu_count() or 1)

# Prefetch defaults for viewer clients
PRELOAD_BATCH_SIZE = 20
PRELOAD_LOOKAHEAD = 10
DEFAULT_FETCH_WORKERS = 4

UNRESTRICTED_FLAG = "--unrestricted"


def _home_directory() -> str:
    return os.path.normpath(os.path.expanduser("~"))


@dataclass(frozen=True)
class ServerConfig:
    """Settings for the browsing server."""
    root: str
    confined: bool = True
    home: str = field(default_factory=_home_directory)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    open_browser: bool = True
    default_thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE
    max_thumbnail_size: int = MAX_THUMBNAIL_SIZE
    thumbnail_workers: int = DEFAULT_THUMBNAIL_WORKERS

    def __post_init__(self):
        # Resolve the root once here; request handling never touches it again
        object.__setattr__(self, "root", str(Path(self.root).resolve()))
        if self.thumbnail_workers < 1:
            raise ValueError("thumbnail_workers must be at least 1")
        if self.default_thumbnail_size < 1 or self.max_thumbnail_size < 1:
            raise ValueError("Thumbnail sizes must be positive")


@dataclass(frozen=True)
class ViewerConfig:
    """Settings for a viewer client talking to a running server."""
    base_url: str
    timeout: float = 15.0
    batch_size: int = PRELOAD_BATCH_SIZE
    lookahead: int = PRELOAD_LOOKAHEAD
    fetch_workers: int = DEFAULT_FETCH_WORKERS

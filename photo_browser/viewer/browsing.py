"""
Browsing session - the listing a client is currently looking at.
"""

import logging
from typing import List, Optional, Set

from ..client import BrowserClient
from ..config import DEFAULT_THUMBNAIL_SIZE
from ..errors import BrowserError
from ..models import DirectoryEntry, DirectoryListing, image_set
from .prefetch import PrefetchScheduler

logger = logging.getLogger(__name__)


class BrowsingSession:
    """
    Holds the current listing and everything derived from it.

    A successful navigation replaces the listing outright, forgets which
    thumbnails failed and resets the prefetch scheduler. A failed navigation
    keeps the previous listing and records the error so it can be retried.
    """

    def __init__(self, client: BrowserClient, scheduler: Optional[PrefetchScheduler] = None):
        self.client = client
        self.scheduler = scheduler
        self.listing: Optional[DirectoryListing] = None
        self.error: Optional[BrowserError] = None
        self._last_requested: Optional[str] = None
        self._failed_thumbnails: Set[str] = set()

    def navigate(self, path: Optional[str] = None) -> bool:
        """Load ``path`` (server default when None). Returns False on failure."""
        self._last_requested = path
        try:
            listing = self.client.list_directory(path)
        except BrowserError as e:
            logger.warning(f"Listing {path!r} failed: {e.message}")
            self.error = e
            return False

        self.listing = listing
        self.error = None
        self._failed_thumbnails = set()
        if self.scheduler is not None:
            self.scheduler.reset()
        return True

    def retry(self) -> bool:
        """Repeat the last navigation."""
        return self.navigate(self._last_requested)

    def go_up(self) -> bool:
        if self.listing is None or self.listing.parent is None:
            return False
        return self.navigate(self.listing.parent)

    def image_set(self) -> List[DirectoryEntry]:
        return image_set(self.listing) if self.listing else []

    def mark_thumbnail_failed(self, path: str):
        self._failed_thumbnails.add(path)

    def thumbnail_failed(self, path: str) -> bool:
        return path in self._failed_thumbnails

    def thumbnail(self, path: str, size: int = DEFAULT_THUMBNAIL_SIZE) -> Optional[bytes]:
        """
        Thumbnail bytes, or None when a placeholder should be shown.

        A failure is remembered until the listing changes, so a broken image
        is requested at most once per listing.
        """
        if self.thumbnail_failed(path):
            return None
        try:
            content, _ = self.client.fetch_thumbnail(path, size)
        except BrowserError as e:
            logger.debug(f"Thumbnail failed for {path}: {e.message}")
            self.mark_thumbnail_failed(path)
            return None
        return content

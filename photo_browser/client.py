"""
HTTP client for a running photo browser server.
"""

import logging
from typing import Optional, Tuple

import httpx

from .config import DEFAULT_THUMBNAIL_SIZE
from .errors import BrowserError, Internal, error_from_response
from .models import DirectoryListing

logger = logging.getLogger(__name__)


class BrowserClient:
    """Thin wrapper around the list, file and thumbnail endpoints."""

    def __init__(self, base_url: str, timeout: float = 15.0, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip('/')
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _get(self, endpoint: str, params: dict) -> httpx.Response:
        try:
            response = self._client.get(endpoint, params=params)
        except httpx.TimeoutException:
            raise Internal(f"Timeout requesting {endpoint}")
        except httpx.HTTPError as e:
            raise Internal(f"Request to {endpoint} failed: {e}")

        if response.is_success:
            return response

        try:
            body = response.json()
        except ValueError:
            body = None
        raise error_from_response(response.status_code, body)

    def list_directory(self, path: Optional[str] = None) -> DirectoryListing:
        """Fetch a listing; ``None`` asks the server for its default directory."""
        params = {} if path is None else {'path': path}
        response = self._get('/api/fs/list', params)
        return DirectoryListing.from_dict(response.json(), requested_path=path or '')

    def fetch_file(self, path: str) -> Tuple[bytes, str]:
        response = self._get('/api/fs/file', {'path': path})
        return response.content, response.headers.get('content-type', '')

    def fetch_thumbnail(self, path: str, size: int = DEFAULT_THUMBNAIL_SIZE) -> Tuple[bytes, str]:
        response = self._get('/api/fs/thumbnail', {'path': path, 'size': str(size)})
        return response.content, response.headers.get('content-type', '')


__all__ = ['BrowserClient', 'BrowserError']

"""
Web server for browsing a directory tree and its images.
"""

import json
import logging
import sys
import urllib.parse
from concurrent.futures import ThreadPoolExecutor
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional

from .config import ServerConfig
from .errors import BrowserError, Internal, InvalidRequest
from .listing import list_directory
from .paths import PathResolver
from .streaming import read_file
from .thumbnails import make_thumbnail, parse_size
from .web_assets import get_app_js, get_index_html, get_styles_css

logger = logging.getLogger(__name__)

FILE_CACHE_CONTROL = 'public, max-age=3600'
THUMBNAIL_CACHE_CONTROL = 'public, max-age=86400'

# Minimal 1x1 transparent PNG
FAVICON = bytes([
    0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A, 0x00, 0x00, 0x00, 0x0D,
    0x49, 0x48, 0x44, 0x52, 0x00, 0x00, 0x00, 0x01, 0x00, 0x00, 0x00, 0x01,
    0x08, 0x06, 0x00, 0x00, 0x00, 0x1F, 0x15, 0xC4, 0x89, 0x00, 0x00, 0x00,
    0x0A, 0x49, 0x44, 0x41, 0x54, 0x78, 0x9C, 0x63, 0x00, 0x01, 0x00, 0x00,
    0x05, 0x00, 0x01, 0x0D, 0x0A, 0x2D, 0xB4, 0x00, 0x00, 0x00, 0x00, 0x49,
    0x45, 0x4E, 0x44, 0xAE, 0x42, 0x60, 0x82
])


class PhotoBrowserHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the photo browser."""

    server: "PhotoBrowserServer"

    def do_GET(self):
        """Handle GET requests."""
        parsed = urllib.parse.urlparse(self.path)
        path = parsed.path
        query = urllib.parse.parse_qs(parsed.query)

        # API endpoints
        if path == '/api/fs/list':
            self.handle_api(self.send_listing, query)
        elif path == '/api/fs/file':
            self.handle_api(self.send_file, query)
        elif path == '/api/fs/thumbnail':
            self.handle_api(self.send_thumbnail, query)
        elif path == '/' or path == '/index.html':
            self.send_text(get_index_html(), 'text/html; charset=utf-8')
        elif path == '/styles.css':
            self.send_text(get_styles_css(), 'text/css; charset=utf-8')
        elif path == '/app.js':
            self.send_text(get_app_js(), 'application/javascript; charset=utf-8')
        elif path == '/favicon.ico':
            self.send_bytes(FAVICON, 'image/png', cache_control='max-age=86400')
        else:
            # Nothing else on disk is served
            self.send_json({"error": "Not found", "kind": "not_found"}, 404)

    def handle_api(self, endpoint, query: dict):
        """Run an API endpoint and map its failure to exactly one error kind."""
        try:
            endpoint(query)
        except BrowserError as e:
            self.send_json(e.to_dict(), e.status)
        except (BrokenPipeError, ConnectionResetError):
            # Client went away mid-response
            pass
        except Exception:
            logger.exception(f"Unexpected error handling {self.path}")
            self.send_json(Internal("Internal server error").to_dict(), 500)

    @staticmethod
    def query_value(query: dict, name: str) -> Optional[str]:
        values = query.get(name)
        return values[0] if values else None

    def required_path(self, query: dict) -> str:
        path = self.query_value(query, 'path')
        if not path:
            raise InvalidRequest("Missing path parameter")
        return path

    def send_listing(self, query: dict):
        """Send a directory listing as JSON."""
        resolver = self.server.resolver
        requested = self.query_value(query, 'path')
        if requested is None:
            requested = resolver.default_path
        resolved = resolver.resolve(requested)
        listing = list_directory(resolved, resolver)
        self.send_json(listing.to_dict())

    def send_file(self, query: dict):
        """Send a whole file."""
        resolved = self.server.resolver.resolve(self.required_path(query))
        content, content_type = read_file(resolved)
        self.send_bytes(content, content_type, cache_control=FILE_CACHE_CONTROL)

    def send_thumbnail(self, query: dict):
        """Send a thumbnail; the resize itself runs on the thumbnail pool."""
        config = self.server.config
        resolved = self.server.resolver.resolve(self.required_path(query))
        size = parse_size(
            self.query_value(query, 'size'),
            config.default_thumbnail_size,
            config.max_thumbnail_size,
        )
        future = self.server.thumbnail_pool.submit(make_thumbnail, resolved, size)
        content, content_type = future.result()
        self.send_bytes(content, content_type, cache_control=THUMBNAIL_CACHE_CONTROL)

    def send_json(self, data: dict, status: int = 200):
        """Send JSON response."""
        content = json.dumps(data).encode('utf-8')
        self.send_bytes(content, 'application/json', status=status)

    def send_text(self, text: str, content_type: str):
        self.send_bytes(text.encode('utf-8'), content_type)

    def send_bytes(
        self,
        content: bytes,
        content_type: str,
        status: int = 200,
        cache_control: Optional[str] = None,
    ):
        """Send a complete body; the payload is always fully built beforehand."""
        try:
            self.send_response(status)
            self.send_header('Content-Type', content_type)
            self.send_header('Content-Length', str(len(content)))
            if cache_control:
                self.send_header('Cache-Control', cache_control)
            self.end_headers()
            self.wfile.write(content)
        except (BrokenPipeError, ConnectionResetError):
            # Client disconnected before we finished sending - ignore
            pass

    def log_message(self, format, *args):
        """Route access logs through logging; API traffic only at debug."""
        message = format % args
        if '/api/' in message or '/favicon' in message:
            logger.debug(message)
        else:
            logger.info(message)


class PhotoBrowserServer(ThreadingHTTPServer):
    """Threaded HTTP server carrying the read-only configuration."""

    daemon_threads = True

    def __init__(self, config: ServerConfig, handler_class=PhotoBrowserHandler):
        self.config = config
        self.resolver = PathResolver.from_config(config)
        self.thumbnail_pool = ThreadPoolExecutor(
            max_workers=config.thumbnail_workers,
            thread_name_prefix='thumbnail',
        )
        super().__init__((config.host, config.port), handler_class)

    def handle_error(self, request, client_address):
        """Handle errors - suppress broken pipe and connection reset."""
        exc_type, _, _ = sys.exc_info()
        if exc_type in (BrokenPipeError, ConnectionResetError):
            # Client disconnected - silently ignore
            return
        super().handle_error(request, client_address)

    def server_close(self):
        super().server_close()
        self.thumbnail_pool.shutdown(wait=False)


def run_server(config: ServerConfig):
    """
    Run the photo browser web server until interrupted.

    Args:
        config: Server configuration
    """
    server = PhotoBrowserServer(config)
    host, port = server.server_address[:2]
    url = f"http://{host}:{port}"

    print(f"\n{'='*50}")
    print("Photo Browser Server")
    print(f"{'='*50}")
    print(f"Root: {config.root}")
    print(f"Confinement: {'root only' if config.confined else 'unrestricted'}")
    print(f"URL: {url}")
    print(f"{'='*50}")
    print("\nPress Ctrl+C to stop\n")

    logger.info(f"Serving {config.root} on {url} ({config.thumbnail_workers} thumbnail workers)")

    if config.open_browser:
        import webbrowser
        webbrowser.open(url)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nServer stopped.")
    finally:
        server.server_close()

"""
Command-line interface for the photo browser.
"""

import argparse
import locale
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_THUMBNAIL_SIZE,
    DEFAULT_THUMBNAIL_WORKERS,
    ServerConfig,
    ViewerConfig,
)
from .errors import BrowserError


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def setup_collation():
    """Use the user's locale for name ordering in listings."""
    try:
        locale.setlocale(locale.LC_COLLATE, '')
    except locale.Error:
        logging.warning("Unsupported locale settings, listing names in code point order")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='photo-browser',
        description='Browse a directory tree and its images over HTTP',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Browse ~/Pictures in the web browser
  photo-browser serve ~/Pictures

  # Allow browsing the whole filesystem
  photo-browser serve ~/Pictures --unrestricted

  # Page through a directory full screen from another machine
  photo-browser view http://192.168.1.10:8080 holidays --start beach.jpg
"""
    )

    parser.add_argument(
        '--version', action='version', version=f'photo-browser {__version__}'
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Serve command
    serve_parser = subparsers.add_parser('serve', help='Start the browsing server')
    serve_parser.add_argument('directory', help='Root directory to serve')
    serve_parser.add_argument(
        '--port', '-p', type=int, default=DEFAULT_PORT,
        help=f'Port number (default: {DEFAULT_PORT})'
    )
    serve_parser.add_argument(
        '--host', default=DEFAULT_HOST,
        help=f'Host to bind to (default: {DEFAULT_HOST})'
    )
    serve_parser.add_argument(
        '--unrestricted', action='store_true',
        help='Allow paths outside the root directory'
    )
    serve_parser.add_argument(
        '--thumbnail-size', type=int, default=DEFAULT_THUMBNAIL_SIZE,
        help=f'Default thumbnail edge in pixels (default: {DEFAULT_THUMBNAIL_SIZE})'
    )
    serve_parser.add_argument(
        '--workers', '-w', type=int, default=DEFAULT_THUMBNAIL_WORKERS,
        help=f'Thumbnail worker threads (default: {DEFAULT_THUMBNAIL_WORKERS})'
    )
    serve_parser.add_argument(
        '--no-browser', action='store_true',
        help='Do not open browser automatically'
    )

    # View command
    view_parser = subparsers.add_parser('view', help='Open a full-screen viewer against a running server')
    view_parser.add_argument('url', help='Server URL, e.g. http://127.0.0.1:8080')
    view_parser.add_argument('path', nargs='?', help='Directory to view (default: server default)')
    view_parser.add_argument('--start', help='File name of the first image to show')
    view_parser.add_argument(
        '--timeout', type=float, default=15.0,
        help='Request timeout in seconds (default: 15)'
    )

    return parser


def serve_photos_cmd(
    directory: str,
    port: int = DEFAULT_PORT,
    host: str = DEFAULT_HOST,
    unrestricted: bool = False,
    thumbnail_size: int = DEFAULT_THUMBNAIL_SIZE,
    workers: int = DEFAULT_THUMBNAIL_WORKERS,
    open_browser: bool = True,
):
    """Start the photo browser web server."""
    from .web_server import run_server

    dir_path = Path(directory).expanduser().resolve()

    if not dir_path.is_dir():
        print(f"❌ Directory not found: {dir_path}")
        sys.exit(1)

    try:
        config = ServerConfig(
            root=str(dir_path),
            confined=not unrestricted,
            host=host,
            port=port,
            open_browser=open_browser,
            default_thumbnail_size=thumbnail_size,
            thumbnail_workers=workers,
        )
    except ValueError as e:
        print(f"❌ Invalid settings: {e}")
        sys.exit(1)

    setup_collation()

    try:
        run_server(config)
    except KeyboardInterrupt:
        pass
    except OSError as e:
        print(f"\n❌ Error: {e}")
        sys.exit(1)


def view_cmd(url: str, path: Optional[str] = None, start: Optional[str] = None, timeout: float = 15.0):
    """Open the full-screen viewer."""
    from .viewer.tk_app import ViewerApp

    app = ViewerApp(ViewerConfig(base_url=url, timeout=timeout))
    try:
        app.run(path, start=start)
    except BrowserError as e:
        print(f"❌ {e.message}")
        if e.hint:
            print(f"   {e.hint}")
        sys.exit(1)
    except ValueError as e:
        print(f"❌ {e}")
        sys.exit(1)


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.verbose)

    if args.command == 'serve':
        serve_photos_cmd(
            args.directory,
            port=args.port,
            host=args.host,
            unrestricted=args.unrestricted,
            thumbnail_size=args.thumbnail_size,
            workers=args.workers,
            open_browser=not args.no_browser,
        )
    elif args.command == 'view':
        view_cmd(args.url, args.path, start=args.start, timeout=args.timeout)


if __name__ == '__main__':
    main()

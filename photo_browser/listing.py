"""
Directory lister - one level of a directory, directories first.
"""

import locale
import logging
import os
import stat as stat_module
from typing import List, Tuple

from .errors import AccessDenied, Internal, InvalidRequest, NotADirectory, NotFound
from .models import DirectoryEntry, DirectoryListing, EntryKind, ResolvedPath
from .paths import PathResolver

logger = logging.getLogger(__name__)

HIDDEN_PREFIX = '.'


def collation_key(name: str) -> str:
    """Locale collation key for a file name."""
    try:
        return locale.strxfrm(name)
    except (ValueError, UnicodeError):
        # Undecodable names (surrogate escapes) fall back to code point order
        return name


def sort_key(entry: DirectoryEntry) -> Tuple[int, str, str]:
    kind_rank = 0 if entry.kind == EntryKind.DIRECTORY else 1
    # Raw name breaks collation ties so repeated listings are identical
    return (kind_rank, collation_key(entry.name), entry.name)


def _check_directory(absolute: str) -> None:
    try:
        st = os.stat(absolute)
    except FileNotFoundError:
        raise NotFound(f"Directory not found: {absolute}")
    except PermissionError:
        raise AccessDenied(f"Permission denied: {absolute}")
    except OSError as e:
        raise NotFound(f"Directory not found: {absolute} ({e.strerror})")
    except ValueError:
        raise InvalidRequest(f"Invalid directory path: {absolute!r}")

    if not stat_module.S_ISDIR(st.st_mode):
        raise NotADirectory(f"Path is not a directory: {absolute}")


def list_directory(resolved: ResolvedPath, resolver: PathResolver) -> DirectoryListing:
    """
    List the immediate children of a directory.

    Args:
        resolved: Path already checked by the resolver
        resolver: Resolver used to render entry paths for clients

    Returns:
        DirectoryListing, directories first, each group in locale order

    Raises:
        NotFound, NotADirectory, AccessDenied, Internal
    """
    absolute = resolved.absolute
    _check_directory(absolute)

    entries: List[DirectoryEntry] = []
    try:
        with os.scandir(absolute) as it:
            for item in it:
                if item.name.startswith(HIDDEN_PREFIX):
                    continue

                try:
                    is_dir = item.is_dir()
                except OSError:
                    is_dir = False

                if is_dir:
                    kind = EntryKind.DIRECTORY
                    extension = ''
                else:
                    kind = EntryKind.FILE
                    extension = os.path.splitext(item.name)[1].lower()

                entries.append(DirectoryEntry(
                    name=item.name,
                    kind=kind,
                    relative_path=resolver.relative_to_root(os.path.join(absolute, item.name)),
                    extension=extension,
                ))
    except PermissionError:
        raise AccessDenied(f"Permission denied: {absolute}")
    except FileNotFoundError:
        # Removed between the stat and the read
        raise NotFound(f"Directory not found: {absolute}")
    except OSError as e:
        logger.error(f"Error reading directory {absolute}: {e}")
        raise Internal(f"Error reading directory: {absolute}")

    entries.sort(key=sort_key)
    logger.debug(f"Listed {absolute}: {len(entries)} entries")

    return DirectoryListing(
        requested_path=resolved.requested,
        absolute_path=absolute,
        entries=entries,
        parent=resolver.parent_of(resolved),
    )

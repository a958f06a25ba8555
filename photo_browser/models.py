"""
Data model for directory listings and resolved paths.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


# Extensions the listing flags as images, the thumbnailer accepts and the
# viewer pages through.
IMAGE_EXTENSIONS = (
    '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.webp',
    '.svg', '.tiff', '.tif', '.ico',
)


class EntryKind(str, Enum):
    """Kind of a directory entry."""
    DIRECTORY = "directory"
    FILE = "file"


@dataclass(frozen=True)
class ResolvedPath:
    """A requested path after home expansion and normalization."""
    requested: str
    absolute: str
    within_root: bool

    @property
    def extension(self) -> str:
        return os.path.splitext(self.absolute)[1].lower()


@dataclass(frozen=True)
class DirectoryEntry:
    """Represents one visible entry of a directory."""
    name: str
    kind: EntryKind
    relative_path: str  # Forward slashes, relative to the server root
    extension: str      # Lower-cased with leading dot, '' for directories

    @property
    def is_image(self) -> bool:
        return self.kind == EntryKind.FILE and self.extension in IMAGE_EXTENSIONS

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.kind.value,
            "path": self.relative_path,
            "ext": self.extension,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DirectoryEntry":
        return cls(
            name=data["name"],
            kind=EntryKind(data["type"]),
            relative_path=data["path"],
            extension=data.get("ext", ""),
        )


@dataclass
class DirectoryListing:
    """Listing of a single directory, directories first."""
    requested_path: str
    absolute_path: str
    entries: List[DirectoryEntry] = field(default_factory=list)
    parent: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "path": self.absolute_path.replace('\\', '/'),
            "absolutePath": self.absolute_path,
            "parent": self.parent,
            "items": [entry.to_dict() for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict, requested_path: str = "") -> "DirectoryListing":
        return cls(
            requested_path=requested_path or data.get("path", ""),
            absolute_path=data.get("absolutePath", data.get("path", "")),
            entries=[DirectoryEntry.from_dict(item) for item in data.get("items", [])],
            parent=data.get("parent"),
        )


def image_set(listing: DirectoryListing) -> List[DirectoryEntry]:
    """Return the images of a listing, in listing order."""
    return [entry for entry in listing.entries if entry.is_image]

"""Data models for the folder watcher package."""

import mimetypes
import posixpath
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Mapping, Optional

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class DirMode(Enum):
    """How deep a watcher lists below its root path."""
    SHALLOW = "shallow"
    RECURSIVE = "recursive"


class EntryTag(Enum):
    """Kinds of rows in a folder listing."""
    FILE = "file"
    FOLDER = "folder"
    DELETED = "deleted"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a listing timestamp into an aware UTC datetime."""
    if not value:
        return None
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime the way the listing API does."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int


@dataclass(frozen=True)
class GpsCoordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class MediaMetadata:
    """
    Photo or video metadata.

    Attributes:
        tag: "photo" or "video"
        dimensions: Pixel size, if known
        location: Where the media was captured, if known
        time_taken: Capture time, if known
        duration_ms: Video length in milliseconds
    """
    tag: str
    dimensions: Optional[Dimensions] = None
    location: Optional[GpsCoordinates] = None
    time_taken: Optional[datetime] = None
    duration_ms: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "MediaMetadata":
        """Create from dictionary."""
        dims = data.get("dimensions")
        loc = data.get("location")
        return cls(
            tag=data.get(".tag", ""),
            dimensions=Dimensions(dims["width"], dims["height"]) if dims else None,
            location=GpsCoordinates(loc["latitude"], loc["longitude"]) if loc else None,
            time_taken=parse_timestamp(data.get("time_taken")),
            duration_ms=data.get("duration"),
        )


@dataclass(frozen=True)
class MediaInfo:
    """
    Media info attached to a file entry.

    Attributes:
        tag: "pending" while the server is still processing, else "metadata"
        metadata: Present only when tag is "metadata"
    """
    tag: str
    metadata: Optional[MediaMetadata] = None

    @classmethod
    def from_dict(cls, data: dict) -> "MediaInfo":
        """Create from dictionary."""
        meta = data.get("metadata")
        return cls(
            tag=data.get(".tag", ""),
            metadata=MediaMetadata.from_dict(meta) if meta else None,
        )


@dataclass(frozen=True)
class FolderEntry:
    """
    One row of a folder listing.

    Tombstone rows (tag DELETED) carry a path but no id; they say that
    whatever lived at path_lower is gone.

    Attributes:
        tag: FILE, FOLDER or DELETED
        name: Last path component
        id: Stable identity, invariant across renames (None for tombstones)
        path_lower: Lower-cased full path, the key used for reconciliation
        path_display: Cased path for display only
        rev: File revision
        size: File size in bytes
        client_modified: Modification time reported by the uploading client
        server_modified: Last modification time on the server
        media_info: Photo/video info, if requested
    """
    tag: EntryTag
    name: str = ""
    id: Optional[str] = None
    path_lower: Optional[str] = None
    path_display: Optional[str] = None
    rev: Optional[str] = None
    size: int = 0
    client_modified: Optional[datetime] = None
    server_modified: Optional[datetime] = None
    media_info: Optional[MediaInfo] = None

    @property
    def is_deleted(self) -> bool:
        return self.tag == EntryTag.DELETED

    @property
    def is_file(self) -> bool:
        return self.tag == EntryTag.FILE

    @property
    def is_folder(self) -> bool:
        return self.tag == EntryTag.FOLDER

    def image_type(self, image_extensions: Mapping[str, str]) -> str:
        """
        Guess the image type of a file entry.

        Args:
            image_extensions: Map of lower-case extension (with dot) to type

        Returns:
            A lower-case type such as "jpg", or "" for non-images
        """
        if not self.is_file or not self.path_lower:
            return ""
        ext = posixpath.splitext(self.path_lower)[1]
        if not ext:
            return ""

        if self.media_info is not None and self.media_info.tag == "metadata":
            meta = self.media_info.metadata
            if meta is not None and meta.tag == "photo":
                return ext[1:]

        known = image_extensions.get(ext)
        if known:
            return known

        mime_type, _ = mimetypes.guess_type(f"file{ext}")
        if mime_type and mime_type.startswith("image/"):
            return ext[1:]
        return ""

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = {
            ".tag": self.tag.value,
            "name": self.name,
            "path_lower": self.path_lower,
            "path_display": self.path_display,
        }
        if self.tag != EntryTag.DELETED:
            data["id"] = self.id
        if self.tag == EntryTag.FILE:
            data.update({
                "rev": self.rev,
                "size": self.size,
                "client_modified": format_timestamp(self.client_modified),
                "server_modified": format_timestamp(self.server_modified),
            })
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "FolderEntry":
        """Create from dictionary."""
        media = data.get("media_info")
        return cls(
            tag=EntryTag(data[".tag"]),
            name=data.get("name", ""),
            id=data.get("id"),
            path_lower=data.get("path_lower"),
            path_display=data.get("path_display"),
            rev=data.get("rev"),
            size=data.get("size", 0),
            client_modified=parse_timestamp(data.get("client_modified")),
            server_modified=parse_timestamp(data.get("server_modified")),
            media_info=MediaInfo.from_dict(media) if media else None,
        )


@dataclass
class ListFolderResult:
    """One page of a folder listing."""
    entries: List[FolderEntry]
    cursor: str
    has_more: bool

    @classmethod
    def from_dict(cls, data: dict) -> "ListFolderResult":
        """Create from dictionary."""
        return cls(
            entries=[FolderEntry.from_dict(e) for e in data.get("entries", [])],
            cursor=data["cursor"],
            has_more=bool(data.get("has_more", False)),
        )


@dataclass
class LongPollResult:
    """
    Answer to a long-poll request.

    Attributes:
        changes: True if new changes can be fetched with the cursor
        backoff: Seconds to wait before the next long-poll (0 for none)
    """
    changes: bool
    backoff: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "LongPollResult":
        """Create from dictionary."""
        return cls(
            changes=bool(data["changes"]),
            backoff=int(data.get("backoff") or 0),
        )


@dataclass
class FolderChanges:
    """
    Changes produced by one reconciliation pass.

    Each list holds entry ids; look the current attributes up in the
    watcher's entry store. The three lists never share an id.
    """
    added: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.added or self.updated or self.removed)

    def __bool__(self) -> bool:
        return not self.is_empty()

    def __len__(self) -> int:
        return len(self.added) + len(self.updated) + len(self.removed)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "added": list(self.added),
            "updated": list(self.updated),
            "removed": list(self.removed),
        }

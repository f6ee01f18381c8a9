"""
Reading posts out of an extracted export

An export keeps its post metadata in one or more JSON files under
``your_instagram_activity/content``. Each file holds a list of posts and each
post a ``media`` list; every media entry becomes one ImportItem.
"""

import json
from dataclasses import asdict, dataclass
from logging import getLogger
from pathlib import Path
from typing import Any, Mapping, Optional

from importer.config import importer_setting
from importer.exceptions import MalformedSourceError, NoSourceFilesError

logger = getLogger(__name__)


@dataclass(frozen=True)
class ImportItem:
    source_uri: Optional[str]
    captured_at: Optional[int]
    caption: Optional[str]

    @classmethod
    def from_media(cls, media: Mapping[str, Any]) -> "ImportItem":
        """
        Project a media entry from a post file down to the fields we use
        """
        return cls(
            source_uri=media.get("uri"),
            captured_at=media.get("creation_timestamp"),
            caption=media.get("title"),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ImportItem":
        return cls(
            source_uri=data.get("source_uri"),
            captured_at=data.get("captured_at"),
            caption=data.get("caption"),
        )

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    def is_valid(self) -> bool:
        # An empty caption is acceptable, a missing one is not
        return (
            isinstance(self.source_uri, str)
            and bool(self.source_uri.strip())
            and isinstance(self.captured_at, int)
            and not isinstance(self.captured_at, bool)
            and isinstance(self.caption, str)
        )


def content_directory(export_root) -> Path:
    return Path(export_root) / importer_setting("CONTENT_DIRECTORY")


def discover(export_root) -> list[Path]:
    """
    Return the export's post files in a stable order

    Raises:
        NoSourceFilesError: if the content directory has no post files
    """
    directory = content_directory(export_root)
    paths = sorted(
        path
        for path in directory.glob(importer_setting("SOURCE_FILE_PATTERN"))
        if path.is_file()
    )
    if not paths:
        raise NoSourceFilesError(f"No post files found in {directory}")
    return paths


def parse_file(path) -> list[ImportItem]:
    """
    Decode one post file into ImportItems, in document order

    Entries missing a field are still returned; the item importer rejects
    them so that they are reported per item.

    Raises:
        MalformedSourceError: if the file cannot be read as a JSON list of posts
    """
    try:
        with open(path, "rb") as f:
            document = json.load(f)
    except (OSError, ValueError) as exc:
        raise MalformedSourceError(f"Unable to decode {path}: {exc}") from exc

    if not isinstance(document, list):
        raise MalformedSourceError(
            f"Expected a list of posts in {path}, found {type(document).__name__}"
        )

    items = []
    for post in document:
        if not isinstance(post, dict):
            raise MalformedSourceError(f"Unexpected post entry in {path}: {post!r}")
        media_entries = post.get("media") or []
        if not isinstance(media_entries, list):
            raise MalformedSourceError(f"Post media in {path} is not a list")
        for media in media_entries:
            if isinstance(media, dict):
                items.append(ImportItem.from_media(media))
            else:
                logger.warning("Ignoring non-object media entry %r in %s", media, path)

    logger.debug("Parsed %d items from %s", len(items), path)
    return items


def read_all_items(export_root) -> list[ImportItem]:
    items = []
    for path in discover(export_root):
        items.extend(parse_file(path))
    return items


def read_file_at(export_root, index: int) -> tuple[list[ImportItem], bool]:
    """
    Parse the post file at ``index`` and report whether more files follow

    Calling this for index 0, 1, 2... until ``has_more`` is False yields the
    same items in the same order as read_all_items.
    """
    paths = discover(export_root)
    if index < 0 or index >= len(paths):
        raise NoSourceFilesError(
            f"No post file at index {index}; the export has {len(paths)}"
        )
    return parse_file(paths[index]), index + 1 < len(paths)

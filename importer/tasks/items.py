"""
Importing a single media item into the content store
"""

import datetime
import re
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import Optional

from django.db import transaction
from django.utils.text import Truncator

from importer.exceptions import (
    AlreadyImportedError,
    InvalidItemError,
    SourceFileMissingError,
    StorageError,
)
from importer.fingerprint import fingerprint, is_imported, mark_imported
from importer.store import ContentStore
from photoblog.logging import PhotoblogLogger
from photoblog.models import Post

logger = getLogger(__name__)
structured_logger = PhotoblogLogger.get_logger(__name__)

HASHTAG_RE = re.compile(r"#\w+\s*")
SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")

TITLE_MAX_LENGTH = Post._meta.get_field("title").max_length


def derive_title(caption):
    """
    Build a post title from a caption: hashtags are removed and only the first
    sentence is kept

    >>> derive_title("Great sunset! #beach #vacation Second sentence.")
    'Great sunset!'
    """
    title = HASHTAG_RE.sub("", caption or "").strip()
    title = SENTENCE_END_RE.split(title, maxsplit=1)[0]
    return Truncator(title).chars(TITLE_MAX_LENGTH)


@dataclass(frozen=True)
class ImportOutcome:
    IMPORTED = "imported"
    SKIPPED = "skipped"
    FAILED = "failed"

    kind: str
    asset_id: Optional[int] = None
    post_id: Optional[int] = None
    reason: str = ""
    reason_code: str = ""

    @classmethod
    def imported(cls, asset_id, post_id=None):
        return cls(cls.IMPORTED, asset_id=asset_id, post_id=post_id)

    @classmethod
    def skipped(cls, reason, reason_code):
        return cls(cls.SKIPPED, reason=reason, reason_code=reason_code)

    @classmethod
    def failed(cls, reason, reason_code="storage_error"):
        return cls(cls.FAILED, reason=reason, reason_code=reason_code)

    @property
    def is_imported(self):
        return self.kind == self.IMPORTED


SKIP_REASON_CODES = {
    InvalidItemError: "invalid_item",
    AlreadyImportedError: "already_imported",
    SourceFileMissingError: "source_file_missing",
}


class ItemImporter:
    """
    Imports ImportItems from one export into the content store

    import_item() never raises for problems with an individual item: they are
    returned as a skipped or failed ImportOutcome. Any other exception means
    something is wrong beyond the item and is left to the caller.
    """

    def __init__(self, export_root, categories, store=None):
        self.export_root = Path(export_root)
        self.categories = list(categories or [])
        self.store = store or ContentStore()

    def import_item(self, item):
        try:
            return self._import(item)
        except (InvalidItemError, AlreadyImportedError, SourceFileMissingError) as exc:
            outcome = ImportOutcome.skipped(str(exc), SKIP_REASON_CODES[type(exc)])
        except StorageError as exc:
            outcome = ImportOutcome.failed(str(exc))

        structured_logger.warning(
            "Media item was not imported.",
            event_code=f"importer_item_{outcome.kind}",
            reason=outcome.reason,
            reason_code=outcome.reason_code,
            item=item,
        )
        return outcome

    def resolve_source(self, item):
        root = self.export_root.resolve()
        try:
            path = (root / item.source_uri).resolve()
        except (OSError, ValueError) as exc:
            raise InvalidItemError(f"Unusable source path {item.source_uri!r}") from exc
        if not path.is_relative_to(root):
            raise InvalidItemError(f"{item.source_uri} is outside the export directory")
        if not path.is_file():
            raise SourceFileMissingError(f"Media file {item.source_uri} does not exist")
        return path

    def _import(self, item):
        if not item.is_valid():
            raise InvalidItemError(
                "Item must have a source path, a capture timestamp and a caption"
            )

        try:
            published_on = datetime.datetime.fromtimestamp(
                item.captured_at, tz=datetime.timezone.utc
            )
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidItemError(
                f"Capture timestamp {item.captured_at} is out of range"
            ) from exc

        media_fingerprint = fingerprint(item)
        if is_imported(media_fingerprint, self.store):
            raise AlreadyImportedError(f"{item.source_uri} was already imported")

        path = self.resolve_source(item)

        with transaction.atomic():
            asset_id = self.store.create_asset(
                path, name=path.name, title=item.caption
            )
            try:
                mark_imported(asset_id, media_fingerprint, self.store)
            except StorageError:
                # The asset row is rolled back with this block; its file is not
                self.store.discard_asset_file(asset_id)
                raise

        # The asset counts as imported from here on; post problems are logged
        post_id = None
        try:
            post_id = self.store.create_content_record(
                title=derive_title(item.caption),
                body=item.caption,
                category_ids=self.categories,
                publish_date=published_on,
            )
            self.store.set_primary_media(post_id, asset_id)
        except StorageError as exc:
            structured_logger.error(
                "Imported media without a complete post.",
                event_code="importer_post_failed",
                reason=str(exc),
                reason_code="post_storage_error",
                item=item,
                asset_id=asset_id,
                post_id=post_id,
            )

        structured_logger.info(
            "Imported media item.",
            event_code="importer_item_imported",
            item=item,
            asset_id=asset_id,
            post_id=post_id,
        )
        return ImportOutcome.imported(asset_id, post_id)

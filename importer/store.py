"""
The importer's view of the photoblog content store

Every read and write the pipeline makes against photoblog models goes through
ContentStore so the rest of the importer never touches the ORM for content.
Storage-level failures (constraint violations, oversize values, unreadable
files) are raised as StorageError; anything else, such as the database being
unreachable, propagates unchanged.
"""

import os
from contextlib import contextmanager
from logging import getLogger

from django.core.exceptions import ValidationError
from django.core.files import File
from django.db import DataError, IntegrityError, transaction
from PIL import Image, UnidentifiedImageError

from importer.exceptions import StorageError
from photoblog.logging import PhotoblogLogger
from photoblog.models import AssetMetadata, Category, MediaAsset, Post

logger = getLogger(__name__)
structured_logger = PhotoblogLogger.get_logger(__name__)

STORAGE_ERRORS = (IntegrityError, DataError, ValidationError, OSError)


@contextmanager
def storage_errors(description):
    try:
        yield
    except STORAGE_ERRORS as exc:
        raise StorageError(f"{description}: {exc}") from exc


def probe_image_dimensions(path):
    """
    Return (width, height) for an image file or (None, None) for anything else
    """
    try:
        with Image.open(path) as image:
            return image.size
    except (UnidentifiedImageError, OSError):
        logger.debug("%s is not a readable image; dimensions not recorded", path)
        return None, None


class ContentStore:
    def create_asset(self, path, name, title, metadata=None):
        """
        Copy the file at ``path`` into asset storage and return the new asset id

        The asset row, its file and its metadata are created together: if any
        database write fails the stored file is removed again.
        """
        width, height = probe_image_dimensions(path)

        with storage_errors(f"Unable to store {name}"):
            size = os.path.getsize(path)
            with open(path, "rb") as f:
                asset = MediaAsset(
                    title=title or "",
                    original_name=name,
                    size=size,
                    width=width,
                    height=height,
                )
                asset.file.save(name, File(f, name=name), save=False)

            try:
                with transaction.atomic():
                    asset.full_clean(exclude=["file"])
                    asset.save()
                    for key, value in (metadata or {}).items():
                        AssetMetadata.objects.create(
                            asset=asset, key=key, value=str(value)
                        )
            except Exception:
                asset.file.delete(save=False)
                raise

        asset.logger.debug(
            "Stored media asset.", event_code="store_asset_created", size=size
        )
        return asset.pk

    def create_content_record(self, title, body, category_ids, publish_date):
        """
        Create a published post and return its id

        Category ids which no longer exist are dropped with a warning rather
        than failing the post.
        """
        category_ids = list(category_ids or [])
        categories = list(Category.objects.filter(pk__in=category_ids))
        missing = set(category_ids) - {category.pk for category in categories}
        if missing:
            structured_logger.warning(
                "Ignoring unknown categories for imported post.",
                event_code="store_categories_missing",
                reason=f"Categories {sorted(missing)} do not exist",
                reason_code="category_missing",
            )

        with storage_errors("Unable to create post"):
            with transaction.atomic():
                post = Post(
                    title=title,
                    body=body,
                    status=Post.Status.PUBLISH,
                    published_on=publish_date,
                )
                post.full_clean(exclude=["categories", "featured_asset"])
                post.save()
                post.categories.set(categories)

        return post.pk

    def set_primary_media(self, post_id, asset_id):
        with storage_errors(f"Unable to attach asset {asset_id} to post {post_id}"):
            updated = Post.objects.filter(pk=post_id).update(featured_asset_id=asset_id)
            if not updated:
                raise ValidationError(f"Post {post_id} does not exist")

    def discard_asset_file(self, asset_id):
        """
        Delete the stored file of an asset whose row is about to be rolled back
        """
        asset = MediaAsset.objects.filter(pk=asset_id).first()
        if asset is not None and asset.file:
            logger.info("Discarding file %s of asset %s", asset.file.name, asset_id)
            asset.file.delete(save=False)

    def get_metadata(self, asset_id, key):
        return (
            AssetMetadata.objects.filter(asset_id=asset_id, key=key)
            .values_list("value", flat=True)
            .first()
        )

    def set_metadata(self, asset_id, key, value):
        with storage_errors(f"Unable to set {key} on asset {asset_id}"):
            AssetMetadata.objects.update_or_create(
                asset_id=asset_id, key=key, defaults={"value": str(value)}
            )

    def query_metadata(self, key, value):
        """
        Return the id of an asset carrying ``key=value``, or None
        """
        return (
            AssetMetadata.objects.filter(key=key, value=value)
            .values_list("asset_id", flat=True)
            .first()
        )

    def delete_metadata(self, key):
        deleted, _ = AssetMetadata.objects.filter(key=key).delete()
        return deleted

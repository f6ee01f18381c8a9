from django.db import models
from django.utils.functional import cached_property

from photoblog.logging import PhotoblogLogger
from photoblog.storage import ASSET_STORAGE

structured_logger = PhotoblogLogger.get_logger(__name__)


class Category(models.Model):
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True, allow_unicode=True)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ("name",)
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name


class MediaAsset(models.Model):
    """
    A stored binary (usually an image) plus its store-level metadata
    """

    title = models.TextField(blank=True)
    original_name = models.CharField(
        max_length=255, help_text="Filename the binary had in its source"
    )
    size = models.PositiveBigIntegerField(default=0, help_text="Size in bytes")

    file = models.FileField(
        upload_to="assets/%Y/%m", storage=ASSET_STORAGE, max_length=255
    )

    width = models.PositiveIntegerField(null=True, blank=True)
    height = models.PositiveIntegerField(null=True, blank=True)

    created = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.original_name

    @cached_property
    def logger(self):
        return structured_logger.bind(asset=self)


class AssetMetadata(models.Model):
    """
    Key/value pairs attached to a MediaAsset

    The (key, value) index exists so lookups by value, such as the importer's
    duplicate detection, stay point queries.
    """

    asset = models.ForeignKey(
        MediaAsset, on_delete=models.CASCADE, related_name="metadata"
    )
    key = models.CharField(max_length=255)
    value = models.CharField(max_length=255, blank=True)

    class Meta:
        verbose_name_plural = "asset metadata"
        unique_together = (("asset", "key"),)
        indexes = [
            models.Index(fields=["key", "value"], name="asset_metadata_lookup_idx")
        ]

    def __str__(self):
        return f"{self.key}={self.value}"


class Post(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        PUBLISH = "publish", "Published"

    title = models.CharField(max_length=255, blank=True)
    body = models.TextField(blank=True)
    status = models.CharField(
        max_length=10, choices=Status.choices, default=Status.DRAFT, db_index=True
    )
    published_on = models.DateTimeField(null=True, blank=True, db_index=True)

    categories = models.ManyToManyField(Category, blank=True, related_name="posts")

    featured_asset = models.ForeignKey(
        MediaAsset,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="featured_in",
    )

    created = models.DateTimeField(auto_now_add=True)
    modified = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-published_on", "-pk")

    def __str__(self):
        return self.title

    @cached_property
    def logger(self):
        return structured_logger.bind(post=self)

import django.db.models.deletion
from django.db import migrations, models

import photoblog.storage


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Category",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=200)),
                (
                    "slug",
                    models.SlugField(allow_unicode=True, max_length=200, unique=True),
                ),
                ("description", models.TextField(blank=True)),
            ],
            options={
                "verbose_name_plural": "categories",
                "ordering": ("name",),
            },
        ),
        migrations.CreateModel(
            name="MediaAsset",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("title", models.TextField(blank=True)),
                (
                    "original_name",
                    models.CharField(
                        help_text="Filename the binary had in its source",
                        max_length=255,
                    ),
                ),
                (
                    "size",
                    models.PositiveBigIntegerField(
                        default=0, help_text="Size in bytes"
                    ),
                ),
                (
                    "file",
                    models.FileField(
                        max_length=255,
                        storage=photoblog.storage.ASSET_STORAGE,
                        upload_to="assets/%Y/%m",
                    ),
                ),
                ("width", models.PositiveIntegerField(blank=True, null=True)),
                ("height", models.PositiveIntegerField(blank=True, null=True)),
                ("created", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="AssetMetadata",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("key", models.CharField(max_length=255)),
                ("value", models.CharField(blank=True, max_length=255)),
                (
                    "asset",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="metadata",
                        to="photoblog.mediaasset",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "asset metadata",
                "unique_together": {("asset", "key")},
                "indexes": [
                    models.Index(
                        fields=["key", "value"], name="asset_metadata_lookup_idx"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Post",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("title", models.CharField(blank=True, max_length=255)),
                ("body", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("draft", "Draft"), ("publish", "Published")],
                        db_index=True,
                        default="draft",
                        max_length=10,
                    ),
                ),
                (
                    "published_on",
                    models.DateTimeField(blank=True, db_index=True, null=True),
                ),
                ("created", models.DateTimeField(auto_now_add=True)),
                ("modified", models.DateTimeField(auto_now=True)),
                (
                    "categories",
                    models.ManyToManyField(
                        blank=True, related_name="posts", to="photoblog.category"
                    ),
                ),
                (
                    "featured_asset",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="featured_in",
                        to="photoblog.mediaasset",
                    ),
                ),
            ],
            options={
                "ordering": ("-published_on", "-pk"),
            },
        ),
    ]

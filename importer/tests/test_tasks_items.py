import datetime
from unittest import mock

from django.db import OperationalError
from django.test import TestCase

from importer.config import FINGERPRINT_METADATA_KEY
from importer.exceptions import StorageError
from importer.fingerprint import fingerprint
from importer.store import ContentStore
from importer.tasks.items import ImportOutcome, ItemImporter, derive_title
from photoblog.models import MediaAsset, Post

from .utils import ExportDirectory, create_category, make_item


class DeriveTitleTests(TestCase):
    def test_hashtags_and_second_sentence_are_removed(self):
        self.assertEqual(
            derive_title("Great sunset! #beach #vacation Second sentence."),
            "Great sunset!",
        )

    def test_caption_without_sentence_break(self):
        self.assertEqual(
            derive_title("  Lunch with friends #food  "), "Lunch with friends"
        )

    def test_question_and_period(self):
        self.assertEqual(derive_title("Who knew? Not me."), "Who knew?")
        self.assertEqual(derive_title("Done. Really."), "Done.")

    def test_only_hashtags(self):
        self.assertEqual(derive_title("#nofilter #tbt"), "")

    def test_long_titles_are_truncated(self):
        title = derive_title("word " * 100)
        self.assertEqual(len(title), 255)
        self.assertTrue(title.endswith("…"))


class ItemImporterTests(TestCase):
    def setUp(self):
        self.export = ExportDirectory()
        self.addCleanup(self.export.cleanup)
        self.category = create_category()
        self.importer = ItemImporter(self.export.root, [self.category.pk])

    def test_import_item(self):
        self.export.write_media("media/a.jpg")
        item = make_item(
            uri="media/a.jpg",
            captured_at=1700000000,
            caption="Great sunset! #beach #vacation Second sentence.",
        )

        outcome = self.importer.import_item(item)

        self.assertEqual(outcome.kind, ImportOutcome.IMPORTED)
        self.assertTrue(outcome.is_imported)
        asset = MediaAsset.objects.get(pk=outcome.asset_id)
        self.assertEqual(asset.original_name, "a.jpg")
        self.assertEqual(
            ContentStore().get_metadata(asset.pk, FINGERPRINT_METADATA_KEY),
            fingerprint(item),
        )

        post = Post.objects.get(pk=outcome.post_id)
        self.assertEqual(post.title, "Great sunset!")
        self.assertEqual(post.body, item.caption)
        self.assertEqual(post.status, Post.Status.PUBLISH)
        self.assertEqual(post.featured_asset, asset)
        self.assertEqual(list(post.categories.all()), [self.category])
        self.assertEqual(
            post.published_on,
            datetime.datetime(2023, 11, 14, 22, 13, 20, tzinfo=datetime.timezone.utc),
        )

    def test_importing_twice_creates_one_asset_and_post(self):
        self.export.write_media("media/a.jpg")
        item = make_item(uri="media/a.jpg")

        first = self.importer.import_item(item)
        second = self.importer.import_item(item)

        self.assertEqual(first.kind, ImportOutcome.IMPORTED)
        self.assertEqual(second.kind, ImportOutcome.SKIPPED)
        self.assertEqual(second.reason_code, "already_imported")
        self.assertEqual(MediaAsset.objects.count(), 1)
        self.assertEqual(Post.objects.count(), 1)

    def test_invalid_items_are_skipped_before_any_side_effect(self):
        self.export.write_media("media/a.jpg")
        store = mock.MagicMock(spec=ContentStore)
        importer = ItemImporter(self.export.root, [], store=store)

        for item in (
            make_item(uri=None),
            make_item(captured_at=None),
            make_item(caption=None),
            make_item(captured_at=10**20),
        ):
            with self.subTest(item=item):
                outcome = importer.import_item(item)
                self.assertEqual(outcome.kind, ImportOutcome.SKIPPED)
                self.assertEqual(outcome.reason_code, "invalid_item")

        self.assertEqual(store.mock_calls, [])

    def test_paths_outside_the_export_are_invalid(self):
        for uri in ("../outside.jpg", "/etc/hostname"):
            with self.subTest(uri=uri):
                outcome = self.importer.import_item(make_item(uri=uri))
                self.assertEqual(outcome.kind, ImportOutcome.SKIPPED)
                self.assertEqual(outcome.reason_code, "invalid_item")

    def test_missing_file_is_skipped(self):
        outcome = self.importer.import_item(make_item(uri="media/missing.jpg"))

        self.assertEqual(outcome.kind, ImportOutcome.SKIPPED)
        self.assertEqual(outcome.reason_code, "source_file_missing")
        self.assertFalse(MediaAsset.objects.exists())
        self.assertFalse(Post.objects.exists())

    def test_storage_failure_is_reported_as_failed(self):
        self.export.write_media("media/a.jpg")

        with mock.patch.object(
            ContentStore, "create_asset", side_effect=StorageError("disk full")
        ):
            outcome = self.importer.import_item(make_item(uri="media/a.jpg"))

        self.assertEqual(outcome.kind, ImportOutcome.FAILED)
        self.assertIn("disk full", outcome.reason)
        self.assertFalse(Post.objects.exists())

    def test_fingerprint_failure_rolls_back_the_asset(self):
        self.export.write_media("media/a.jpg")
        stored_files = []
        create_asset = ContentStore.create_asset

        def record_stored_file(store, *args, **kwargs):
            asset_id = create_asset(store, *args, **kwargs)
            stored_files.append(MediaAsset.objects.get(pk=asset_id).file)
            return asset_id

        with mock.patch.object(
            ContentStore, "create_asset", autospec=True, side_effect=record_stored_file
        ):
            with mock.patch.object(
                ContentStore, "set_metadata", side_effect=StorageError("too long")
            ):
                outcome = self.importer.import_item(make_item(uri="media/a.jpg"))

        self.assertEqual(outcome.kind, ImportOutcome.FAILED)
        self.assertFalse(MediaAsset.objects.exists())
        self.assertEqual(len(stored_files), 1)
        stored = stored_files[0]
        self.assertFalse(stored.storage.exists(stored.name))

    def test_post_failure_keeps_the_asset(self):
        self.export.write_media("media/a.jpg")
        item = make_item(uri="media/a.jpg")

        with mock.patch.object(
            ContentStore,
            "create_content_record",
            side_effect=StorageError("bad post"),
        ):
            outcome = self.importer.import_item(item)

        self.assertEqual(outcome.kind, ImportOutcome.IMPORTED)
        self.assertIsNone(outcome.post_id)
        self.assertTrue(MediaAsset.objects.filter(pk=outcome.asset_id).exists())
        self.assertFalse(Post.objects.exists())

        # The asset still counts as imported
        again = self.importer.import_item(item)
        self.assertEqual(again.reason_code, "already_imported")

    def test_featured_asset_failure_reports_the_post(self):
        self.export.write_media("media/a.jpg")

        with mock.patch.object(
            ContentStore, "set_primary_media", side_effect=StorageError("locked")
        ):
            outcome = self.importer.import_item(make_item(uri="media/a.jpg"))

        self.assertEqual(outcome.kind, ImportOutcome.IMPORTED)
        post = Post.objects.get()
        self.assertEqual(outcome.post_id, post.pk)
        self.assertIsNone(post.featured_asset)
        self.assertTrue(MediaAsset.objects.filter(pk=outcome.asset_id).exists())

    def test_unclassified_errors_propagate(self):
        self.export.write_media("media/a.jpg")

        with mock.patch.object(
            ContentStore, "query_metadata", side_effect=OperationalError("gone")
        ):
            with self.assertRaises(OperationalError):
                self.importer.import_item(make_item(uri="media/a.jpg"))

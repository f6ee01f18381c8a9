"""
Start importing an extracted media export.

Usage:
    python manage.py start_import /srv/exports/instagram-2024 \
        --category 3 --category 7 \
        --archive /srv/uploads/instagram-2024.zip

The export directory must already be extracted. When ``--archive`` is given
the archive/directory pair is recorded so ``reset_import`` can remove the
extracted files afterwards.
"""

from argparse import ArgumentParser

from django.core.management.base import BaseCommand, CommandError

from importer.exceptions import MediaImportError
from importer.reset import record_extraction
from importer.tasks.chunks import AlreadyRunning, schedule_run
from photoblog.models import Category


class Command(BaseCommand):
    help = "Queue an import of an extracted media export"  # NOQA: A003

    def add_arguments(self, parser: ArgumentParser) -> None:
        parser.add_argument("export_root", help="Directory of the extracted export")
        parser.add_argument(
            "--category",
            dest="categories",
            action="append",
            type=int,
            default=[],
            help="Primary key of a category for the imported posts (repeatable)",
        )
        parser.add_argument(
            "--archive",
            default=None,
            help="Archive the export was extracted from, recorded for cleanup",
        )

    def handle(self, *, export_root, categories, archive, **options):
        if not categories:
            raise CommandError("Select at least one category with --category")

        missing = set(categories) - set(
            Category.objects.filter(pk__in=categories).values_list("pk", flat=True)
        )
        if missing:
            raise CommandError(
                "Unknown categories: %s" % ", ".join(map(str, sorted(missing)))
            )

        try:
            result = schedule_run(export_root, categories)
        except MediaImportError as exc:
            raise CommandError(str(exc)) from exc

        if isinstance(result, AlreadyRunning):
            raise CommandError(
                "An import is already running (%d chunks pending); "
                "wait for it to finish or run reset_import"
                % len(result.pending_task_ids)
            )

        if archive:
            record_extraction(archive, export_root)

        self.stdout.write(
            self.style.SUCCESS(
                "Queued run %s: %d items in %d chunks"
                % (result.run_id, result.total, result.chunk_count)
            )
        )

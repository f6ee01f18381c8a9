"""
Cancel the current media import and clear everything it left behind.

Pending chunks are canceled, recorded fingerprints are removed (so the export
can be imported again), the extracted export recorded by ``start_import
--archive`` is deleted and the import status goes back to "Not started".
Imported assets and posts are kept.
"""

from argparse import ArgumentParser

from django.core.management.base import BaseCommand, CommandError

from importer.reset import ResetController


class Command(BaseCommand):
    help = "Reset the media importer"  # NOQA: A003

    def add_arguments(self, parser: ArgumentParser) -> None:
        parser.add_argument(
            "--yes",
            action="store_true",
            help="Confirm the reset; nothing is changed without it",
        )

    def handle(self, *, yes, **options):
        if not yes:
            raise CommandError("Refusing to reset without --yes")

        report = ResetController().reset()

        for step in report.completed:
            self.stdout.write(f"{step}: ok")
        for step, error in report.failed.items():
            self.stderr.write(self.style.ERROR(f"{step}: {error}"))

        if not report.ok:
            raise CommandError("Reset finished with errors")
        self.stdout.write(self.style.SUCCESS("Importer reset"))

from django.core.management.base import BaseCommand

from importer.status import ProgressTracker


class Command(BaseCommand):
    help = "Show the state of the current media import"  # NOQA: A003

    def handle(self, **options):
        status = ProgressTracker().get_status()

        self.stdout.write(f"State: {status.get_state_display()}")
        self.stdout.write(f"Progress: {status.progress}/{status.total}")
        if status.started_at:
            self.stdout.write(f"Started: {status.started_at.isoformat()}")
        if status.completed_at:
            self.stdout.write(f"Completed: {status.completed_at.isoformat()}")
        if status.run_id:
            self.stdout.write(f"Run: {status.run_id}")
        if status.error:
            self.stdout.write(self.style.ERROR(f"Error: {status.error}"))
        if status.is_running:
            self.stdout.write(
                self.style.WARNING("Import in progress; use reset_import to stop it")
            )

"""
Durable progress tracking for import runs

ProgressTracker owns the single ImportStatus row. Every write is a merge:
fields that are not named are left as they are. Writes that belong to a
running import are filtered on its run id, so chunks left over from a run
that has since been reset cannot move the new record.
"""

from logging import getLogger

from django.db import transaction
from django.db.models import Case, CharField, F, Value, When
from django.utils.timezone import now

from importer.models import ImportStatus

logger = getLogger(__name__)

State = ImportStatus.State

# Once a run has reached one of these states late chunks must not move it
FINAL_STATES = (State.COMPLETED, State.FAILED)


class ProgressTracker:
    key = ImportStatus.DEFAULT_KEY

    def _queryset(self):
        return ImportStatus.objects.filter(key=self.key)

    def get_status(self):
        """
        Return the current status, or an unsaved ``none`` status if no run
        has ever been recorded
        """
        status = self._queryset().first()
        if status is None:
            status = ImportStatus(key=self.key)
        return status

    def update_status(self, **fields):
        """
        Merge ``fields`` into the stored status and return the saved row
        """
        unknown = set(fields) - {field.name for field in ImportStatus._meta.fields}
        if unknown:
            raise TypeError(f"Unknown status fields: {', '.join(sorted(unknown))}")

        with transaction.atomic():
            status, _ = ImportStatus.objects.select_for_update().get_or_create(
                key=self.key
            )
            for name, value in fields.items():
                setattr(status, name, value)
            status.save(update_fields={*fields, "modified"})
        return status

    def start_run(self, total):
        """
        Reset the record for a new run of ``total`` items and return its run id
        """
        run_id = ImportStatus.new_run_id()
        self.update_status(
            state=State.QUEUED,
            progress=0,
            total=total,
            started_at=now(),
            completed_at=None,
            error=None,
            run_id=run_id,
        )
        logger.info("Started import run %s with %d items", run_id, total)
        return run_id

    def is_current_run(self, run_id):
        return self._queryset().filter(run_id=run_id).exists()

    def advance(self, run_id, count):
        """
        Add ``count`` to the progress of run ``run_id`` in a single UPDATE

        The run moves to ``processing`` unless it has already completed or
        failed. Returns False if ``run_id`` is no longer the current run.
        """
        updated = (
            self._queryset()
            .filter(run_id=run_id)
            .update(
                progress=F("progress") + count,
                state=Case(
                    When(state__in=FINAL_STATES, then=F("state")),
                    default=Value(State.PROCESSING),
                    output_field=CharField(),
                ),
                modified=now(),
            )
        )
        if not updated:
            logger.warning("Ignoring progress for stale import run %s", run_id)
        return bool(updated)

    def complete(self, run_id):
        """
        Mark run ``run_id`` completed; a failed run stays failed
        """
        updated = (
            self._queryset()
            .filter(run_id=run_id)
            .exclude(state=State.FAILED)
            .update(state=State.COMPLETED, completed_at=now(), modified=now())
        )
        return bool(updated)

    def fail(self, run_id, message):
        updated = (
            self._queryset()
            .filter(run_id=run_id)
            .update(state=State.FAILED, error=message, modified=now())
        )
        return bool(updated)

    def clear(self):
        self.update_status(
            state=State.NONE,
            progress=0,
            total=0,
            started_at=None,
            completed_at=None,
            error=None,
            run_id=None,
        )

"""
Scheduling an import run and executing its chunks

schedule_run() reads the whole export up front, splits the items into chunks
and records one QueuedAction per chunk; each chunk is then imported by
process_chunk_task on whichever worker picks it up. The last chunk queues
complete_import_task.
"""

from dataclasses import dataclass, field
from logging import getLogger
from uuid import UUID

from celery import Task
from django.db import transaction

from configuration.utils import configuration_value, set_configuration_value
from importer.config import (
    CATEGORIES_KEY,
    COMPLETE_IMPORT_ACTION,
    EXPORT_ROOT_KEY,
    PROCESS_CHUNK_ACTION,
    importer_setting,
)
from importer.models import QueuedAction
from importer.queue import TaskQueue
from importer.source import ImportItem, read_all_items
from importer.status import ProgressTracker
from photoblog.celery import app
from photoblog.logging import PhotoblogLogger

from .decorators import update_task_status
from .items import ImportOutcome, ItemImporter

logger = getLogger(__name__)
structured_logger = PhotoblogLogger.get_logger(__name__)


@dataclass(frozen=True)
class RunAccepted:
    run_id: UUID
    total: int
    chunk_count: int
    task_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AlreadyRunning:
    pending_task_ids: list[str] = field(default_factory=list)


def partition(items, size):
    """
    Split ``items`` into consecutive lists of at most ``size`` items
    """
    if size < 1:
        raise ValueError("Chunk size must be at least 1")
    items = list(items)
    return [items[start : start + size] for start in range(0, len(items), size)]


def schedule_run(export_root, categories, queue=None, tracker=None):
    """
    Start importing the export at ``export_root`` into ``categories``

    Nothing is written if another run still has chunks pending, or if the
    export cannot be read: discovery and parsing errors propagate before any
    state changes. The Celery tasks are sent only after the run's rows have
    been committed.

    Returns:
        RunAccepted or AlreadyRunning
    """
    queue = queue or TaskQueue()
    tracker = tracker or ProgressTracker()

    if queue.is_pending(PROCESS_CHUNK_ACTION):
        pending = queue.list_pending(action_name=PROCESS_CHUNK_ACTION)
        logger.warning(
            "Not scheduling %s: %d chunks are still pending", export_root, len(pending)
        )
        return AlreadyRunning(pending_task_ids=pending)

    items = read_all_items(export_root)
    chunks = partition(items, importer_setting("CHUNK_SIZE"))
    group = importer_setting("TASK_GROUP")
    categories = [int(category) for category in categories or []]

    with transaction.atomic():
        set_configuration_value(EXPORT_ROOT_KEY, str(export_root))
        set_configuration_value(CATEGORIES_KEY, categories)
        run_id = tracker.start_run(len(items))

        if chunks:
            actions = [
                queue.enqueue(
                    PROCESS_CHUNK_ACTION,
                    {
                        "run_id": str(run_id),
                        "items": [item.as_dict() for item in chunk],
                        "chunk_index": chunk_index,
                        "total_chunks": len(chunks),
                    },
                    group=group,
                    dispatch=False,
                )
                for chunk_index, chunk in enumerate(chunks)
            ]
        else:
            # Nothing to import, so finish the run straight away
            actions = [
                queue.enqueue(
                    COMPLETE_IMPORT_ACTION,
                    {"run_id": str(run_id)},
                    group=group,
                    dispatch=False,
                )
            ]

    queue.dispatch(actions)

    logger.info(
        "Scheduled import run %s: %d items in %d chunks from %s",
        run_id,
        len(items),
        len(chunks),
        export_root,
    )
    return RunAccepted(
        run_id=run_id,
        total=len(items),
        chunk_count=len(chunks),
        task_ids=[str(action.task_id) for action in actions],
    )


def get_queued_action(action_pk):
    try:
        return QueuedAction.objects.get(pk=action_pk)
    except QueuedAction.DoesNotExist:
        # Reset purges canceled actions, so a revoked task may find nothing
        logger.warning("Queued action %s no longer exists; skipping", action_pk)
        return None


@app.task(bind=True, name=PROCESS_CHUNK_ACTION)
def process_chunk_task(self: Task, action_pk: int):
    action = get_queued_action(action_pk)
    if action is not None:
        return process_chunk(self, action)


@update_task_status
def process_chunk(self, action, tracker=None, queue=None):
    """
    Import the items of one chunk and advance the run's progress

    Problems with individual items are logged and counted; they never stop
    the chunk. Any other exception fails the whole run and is re-raised.

    Returns:
        dict: how many items were imported, skipped and failed
    """
    tracker = tracker or ProgressTracker()
    queue = queue or TaskQueue()

    payload = action.payload
    run_id = payload["run_id"]
    chunk_index = payload["chunk_index"]
    total_chunks = payload["total_chunks"]
    summary = {
        ImportOutcome.IMPORTED: 0,
        ImportOutcome.SKIPPED: 0,
        ImportOutcome.FAILED: 0,
    }

    if not tracker.is_current_run(run_id):
        structured_logger.warning(
            "Skipping chunk from an old import run.",
            event_code="importer_chunk_stale",
            reason=f"Run {run_id} is no longer the current import run",
            reason_code="stale_run",
            action=action,
        )
        return summary

    try:
        importer = ItemImporter(
            configuration_value(EXPORT_ROOT_KEY),
            configuration_value(CATEGORIES_KEY, []),
        )
        for item_data in payload["items"]:
            outcome = importer.import_item(ImportItem.from_mapping(item_data))
            summary[outcome.kind] += 1

        if tracker.advance(run_id, len(payload["items"])) and (
            chunk_index == total_chunks - 1
        ):
            queue.enqueue(
                COMPLETE_IMPORT_ACTION, {"run_id": run_id}, group=action.group
            )
    except Exception as exc:
        tracker.fail(run_id, str(exc))
        structured_logger.error(
            "Import chunk failed.",
            event_code="importer_chunk_failed",
            reason=str(exc),
            reason_code="chunk_exception",
            action=action,
            chunk_index=chunk_index,
        )
        raise

    logger.info(
        "Chunk %d/%d of run %s: %d imported, %d skipped, %d failed",
        chunk_index + 1,
        total_chunks,
        run_id,
        summary[ImportOutcome.IMPORTED],
        summary[ImportOutcome.SKIPPED],
        summary[ImportOutcome.FAILED],
    )
    return summary


@app.task(bind=True, name=COMPLETE_IMPORT_ACTION)
def complete_import_task(self: Task, action_pk: int):
    action = get_queued_action(action_pk)
    if action is not None:
        return complete_import(self, action)


@update_task_status
def complete_import(self, action, tracker=None):
    tracker = tracker or ProgressTracker()
    run_id = action.payload["run_id"]

    if tracker.complete(run_id):
        logger.info("Import run %s completed", run_id)
    else:
        structured_logger.warning(
            "Import run was not marked completed.",
            event_code="importer_complete_skipped",
            reason=f"Run {run_id} failed or is no longer the current import run",
            reason_code="run_not_completable",
            action=action,
        )

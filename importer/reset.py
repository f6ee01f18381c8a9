"""
Stopping an import run and returning the importer to a clean state
"""

import os
import shutil
from dataclasses import dataclass, field
from logging import getLogger

from configuration.utils import (
    configuration_value,
    delete_configuration_value,
    set_configuration_value,
)
from importer.config import (
    COMPLETE_IMPORT_ACTION,
    EXPORT_PATHS_KEY,
    EXPORT_ROOT_KEY,
    PROCESS_CHUNK_ACTION,
    importer_setting,
)
from importer.fingerprint import forget_imported
from importer.queue import TaskQueue
from importer.status import ProgressTracker
from importer.store import ContentStore
from photoblog.logging import PhotoblogLogger

logger = getLogger(__name__)
structured_logger = PhotoblogLogger.get_logger(__name__)


def record_extraction(archive_path, extraction_dir):
    """
    Remember where an export archive was extracted so reset can remove it
    """
    set_configuration_value(
        EXPORT_PATHS_KEY,
        {"archive": str(archive_path), "extraction_dir": str(extraction_dir)},
    )


@dataclass
class ResetReport:
    completed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self):
        return not self.failed


class ResetController:
    """
    Cancels pending work and clears everything an import run left behind

    Each step runs even if an earlier one failed; failures are logged and
    collected in the returned ResetReport. Resetting when nothing is running,
    or when the resources are already gone, is not an error.

    Recorded fingerprints are removed as well, so after a reset the same
    export can be imported again from scratch.
    """

    def __init__(self, queue=None, tracker=None, store=None):
        self.queue = queue or TaskQueue()
        self.tracker = tracker or ProgressTracker()
        self.store = store or ContentStore()

    def steps(self):
        return [
            ("cancel_pending", self.cancel_pending),
            ("purge_finished", self.purge_finished),
            ("forget_imported", self.forget_imported),
            ("remove_extraction", self.remove_extraction),
            ("clear_status", self.tracker.clear),
        ]

    def reset(self):
        report = ResetReport()
        for name, step in self.steps():
            try:
                step()
            except Exception as exc:
                structured_logger.error(
                    "Import reset step failed.",
                    event_code="importer_reset_step_failed",
                    reason=str(exc),
                    reason_code=name,
                )
                logger.exception("Reset step %s failed", name)
                report.failed[name] = str(exc)
            else:
                report.completed.append(name)

        structured_logger.info(
            "Import reset finished.",
            event_code="importer_reset",
            completed_steps=report.completed,
            failed_steps=sorted(report.failed) or None,
        )
        return report

    def cancel_pending(self):
        canceled = []
        # Chunks first so none of them can queue a completion after it is canceled
        for action_name in (PROCESS_CHUNK_ACTION, COMPLETE_IMPORT_ACTION):
            canceled.extend(self.queue.cancel_all(action_name))
        logger.info("Canceled %d pending import actions", len(canceled))

    def purge_finished(self):
        purged = self.queue.purge(importer_setting("TASK_GROUP"))
        logger.info("Purged %d finished import actions", purged)

    def forget_imported(self):
        removed = forget_imported(self.store)
        logger.info("Removed %d import fingerprints", removed)

    def remove_extraction(self):
        paths = configuration_value(EXPORT_PATHS_KEY, None) or {}
        extraction_dir = paths.get("extraction_dir")
        if extraction_dir and os.path.isdir(extraction_dir):
            shutil.rmtree(extraction_dir)
            logger.info("Removed extracted export at %s", extraction_dir)
        elif extraction_dir:
            logger.info("Extracted export %s was already removed", extraction_dir)

        delete_configuration_value(EXPORT_PATHS_KEY)
        delete_configuration_value(EXPORT_ROOT_KEY)

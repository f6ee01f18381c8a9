"""
Celery tasks for the media importer

See the importer package docstring for how the pieces fit together.
"""

from .chunks import (  # NOQA: F401
    AlreadyRunning,
    RunAccepted,
    complete_import_task,
    process_chunk_task,
    schedule_run,
)

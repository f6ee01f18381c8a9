"""
See the module-level docstring for implementation details
"""

import uuid
from logging import getLogger

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

logger = getLogger(__name__)


class TaskStatusModel(models.Model):
    created = models.DateTimeField(auto_now_add=True)
    modified = models.DateTimeField(auto_now=True)

    last_started = models.DateTimeField(
        help_text="Last time when a worker started processing this action",
        null=True,
        blank=True,
    )
    completed = models.DateTimeField(
        help_text="Time when the action completed without error",
        null=True,
        blank=True,
    )
    failed = models.DateTimeField(
        help_text="Time when the action failed due to an error", null=True, blank=True
    )
    canceled = models.DateTimeField(
        help_text="Time when the action was canceled before it could finish",
        null=True,
        blank=True,
    )

    status = models.TextField(
        help_text="Status message, if any, from the last worker", blank=True, default=""
    )

    task_id = models.UUIDField(
        help_text="UUID of the last Celery task to process this record",
        null=True,
        blank=True,
    )

    class Meta:
        abstract = True

    @property
    def is_pending(self):
        return self.completed is None and self.failed is None and self.canceled is None

    def update_status(self, status, do_save=True):
        self.status = status
        if do_save:
            self.save()


class QueuedActionQuerySet(models.QuerySet):
    def pending(self):
        return self.filter(
            completed__isnull=True, failed__isnull=True, canceled__isnull=True
        )

    def finished(self):
        return self.exclude(
            completed__isnull=True, failed__isnull=True, canceled__isnull=True
        )


class QueuedAction(TaskStatusModel):
    """
    A unit of work handed to Celery, recorded so it can be listed and canceled
    """

    action = models.CharField(
        max_length=100, db_index=True, help_text="Registered Celery task name"
    )
    group = models.CharField(max_length=100, blank=True, default="", db_index=True)
    payload = models.JSONField(encoder=DjangoJSONEncoder, default=dict)

    objects = QueuedActionQuerySet.as_manager()

    class Meta:
        ordering = ("created", "pk")

    def __str__(self):
        return "QueuedAction(action=%s, group=%s, task_id=%s)" % (
            self.action,
            self.group,
            self.task_id,
        )


class ImportStatus(models.Model):
    """
    The durable state of the current (or most recent) import run

    There is a single row, keyed ``default``; importer.status.ProgressTracker is
    the only code which writes to it.
    """

    DEFAULT_KEY = "default"

    class State(models.TextChoices):
        NONE = "none", "Not started"
        QUEUED = "queued", "Queued"
        PROCESSING = "processing", "Processing"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"

    key = models.CharField(max_length=50, unique=True, default=DEFAULT_KEY)
    state = models.CharField(max_length=20, choices=State.choices, default=State.NONE)
    progress = models.PositiveIntegerField(default=0)
    total = models.PositiveIntegerField(default=0)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    error = models.TextField(null=True, blank=True)
    run_id = models.UUIDField(
        null=True,
        blank=True,
        help_text="Identifies the run the queued chunks belong to",
    )
    modified = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "import status"

    def __str__(self):
        return "ImportStatus(state=%s, progress=%s/%s)" % (
            self.state,
            self.progress,
            self.total,
        )

    @property
    def is_running(self):
        return self.state in (self.State.QUEUED, self.State.PROCESSING)

    @staticmethod
    def new_run_id():
        return uuid.uuid4()

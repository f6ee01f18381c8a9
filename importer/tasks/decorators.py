from functools import wraps
from logging import getLogger

from django.utils.timezone import now

from photoblog.logging import PhotoblogLogger

logger = getLogger(__name__)
structured_logger = PhotoblogLogger.get_logger(__name__)


def update_task_status(f):
    """
    Decorator which causes any function which is passed a TaskStatusModel
    subclass object to update on entry and exit and populate the status field
    with an exception message if raised

    Assumes that all wrapped functions get the Celery task self value as the
    first parameter and the TaskStatusModel subclass object as the second.
    Objects which have already completed or were canceled are not processed
    again; the wrapped function is not called and None is returned.
    """

    @wraps(f)
    def inner(self, task_status_object, *args, **kwargs):
        # We'll do a sanity check to make sure that another process hasn't
        # finished or canceled the object in the meantime:
        model = task_status_object.__class__
        guard = (
            model._default_manager.filter(pk=task_status_object.pk)
            .values("completed", "canceled")
            .first()
        )
        if guard and (guard["completed"] or guard["canceled"]):
            reason = "completed" if guard["completed"] else "canceled"
            structured_logger.warning(
                "Task will not be run.",
                event_code="importer_task_guard_skipped",
                reason=f"Task was already {reason}",
                reason_code=f"already_{reason}",
                action=task_status_object,
            )
            return

        task_status_object.last_started = now()
        task_status_object.task_id = self.request.id or task_status_object.task_id
        task_status_object.save()
        try:
            result = f(self, task_status_object, *args, **kwargs)
            task_status_object.completed = now()
            task_status_object.failed = None
            task_status_object.update_status("Completed")
            return result
        except Exception as exc:
            new_status = "{}\n\nUnhandled exception: {}".format(
                task_status_object.status, exc
            ).strip()
            task_status_object.update_status(new_status, do_save=False)
            task_status_object.failed = now()
            task_status_object.save()
            logger.info("Task %s failed and will not be retried", task_status_object)
            raise

    return inner

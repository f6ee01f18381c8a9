"""
The importer's view of the task queue

Celery delivers the work; QueuedAction rows remember what was handed to it so
pending work can be listed and canceled. Actions are looked up by name in the
Celery task registry, which loads every importer task module on startup.
"""

import uuid
from logging import getLogger

from django.utils.timezone import now

from importer.models import QueuedAction
from photoblog.celery import app as celery_app

logger = getLogger(__name__)


class TaskQueue:
    def __init__(self, app=None):
        self.app = app or celery_app

    def enqueue(self, action_name, payload, group="", dispatch=True):
        """
        Record an action and, unless ``dispatch`` is False, send it to Celery

        Callers inside a transaction should pass ``dispatch=False`` and call
        dispatch() once the transaction has committed so a worker never picks
        up an action whose row it cannot see yet.
        """
        if action_name not in self.app.tasks:
            raise KeyError(f"No task registered for action {action_name}")

        action = QueuedAction.objects.create(
            action=action_name, group=group, payload=payload, task_id=uuid.uuid4()
        )
        if dispatch:
            self.dispatch([action])
        return action

    def dispatch(self, actions):
        for action in actions:
            task = self.app.tasks[action.action]
            task.apply_async((action.pk,), task_id=str(action.task_id))
            logger.debug("Dispatched %s", action)

    def is_pending(self, action_name):
        return QueuedAction.objects.pending().filter(action=action_name).exists()

    def list_pending(self, action_name=None, group=None):
        qs = QueuedAction.objects.pending()
        if action_name is not None:
            qs = qs.filter(action=action_name)
        if group is not None:
            qs = qs.filter(group=group)
        return [str(task_id) for task_id in qs.values_list("task_id", flat=True)]

    def cancel_all(self, action_name):
        """
        Cancel every pending action called ``action_name``

        The rows are marked canceled first, which is what stops the work: the
        task wrapper refuses to run a canceled action even if the Celery
        revoke below does not reach the broker.
        """
        task_ids = self.list_pending(action_name=action_name)
        if not task_ids:
            return []

        QueuedAction.objects.pending().filter(
            action=action_name, task_id__in=task_ids
        ).update(canceled=now(), status="Canceled", modified=now())

        try:
            self.app.control.revoke(task_ids)
        except Exception:
            logger.warning(
                "Unable to revoke %d %s tasks; they will be ignored when run",
                len(task_ids),
                action_name,
                exc_info=True,
            )

        logger.info("Canceled %d pending %s actions", len(task_ids), action_name)
        return task_ids

    def purge(self, group):
        """
        Delete the finished actions of ``group`` and return how many went
        """
        deleted, _ = QueuedAction.objects.finished().filter(group=group).delete()
        return deleted

import logging

from celery import current_task


class CeleryTaskIDFilter(logging.Filter):
    """
    Adds ``task_id`` (and ``task_name``) attributes for the ``task`` formatter

    Outside of a Celery task both attributes are empty strings so the format
    string never fails.
    """

    def filter(self, record):
        task = current_task
        if task and task.request.id:
            record.task_id = f"/[{task.request.id}]"
            record.task_name = task.name or ""
        else:
            record.task_id = ""
            record.task_name = ""
        # This just tells the logger to not discard this record
        return True

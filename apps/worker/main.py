"""Celery worker entrypoint.

Run the worker and the beat scheduler with:
    celery -A apps.worker.main:celery_app worker --loglevel=info
    celery -A apps.worker.main:celery_app beat --loglevel=info

Tasks are registered by importing quotary.tasks; there is no autodiscovery.
Each task binds request_id, task_name and task_id into the log context via
configure_task_logging().
"""

from celery.signals import worker_process_init

from quotary.celery import celery_app
from quotary.logging import configure_logging, get_logger
from quotary.tasks import rotate_daily_selection  # noqa: F401


@worker_process_init.connect
def setup_worker_logging(**kwargs):
    """Use the API's structured JSON logging in worker processes."""
    configure_logging()
    get_logger(__name__).info("celery_worker_started")


__all__ = ["celery_app"]

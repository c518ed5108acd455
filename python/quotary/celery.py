"""Celery application configuration.

Shared by the API (for enqueuing) and the worker (for executing tasks).
The beat schedule triggers the daily selection rotation at midnight of the
rotation calendar (20:00 UTC for the default UTC+4 offset).

Usage:
    from quotary.celery import celery_app

    celery_app.send_task("rotate_daily_selection")
"""

from celery import Celery
from celery.schedules import crontab

from quotary.config import get_settings

settings = get_settings()

celery_app = Celery("quotary")

celery_app.conf.broker_url = settings.effective_celery_broker_url
celery_app.conf.result_backend = settings.effective_celery_result_backend

celery_app.conf.task_serializer = "json"
celery_app.conf.result_serializer = "json"
celery_app.conf.accept_content = ["json"]
celery_app.conf.timezone = "UTC"
celery_app.conf.enable_utc = True

celery_app.conf.task_default_queue = "default"
celery_app.conf.task_always_eager = False

celery_app.conf.beat_schedule = {
    "rotate-daily-selection": {
        "task": "rotate_daily_selection",
        "schedule": crontab(hour=settings.daily_selection_rotate_cron_hour_utc, minute=0),
    },
}

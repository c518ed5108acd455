"""Celery tasks for Quotary.

Tasks are imported here explicitly to register them with Celery; there is
no autodiscovery.
"""

from quotary.tasks.rotate_daily_selection import rotate_daily_selection

__all__ = ["rotate_daily_selection"]

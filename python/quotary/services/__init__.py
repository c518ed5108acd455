"""Business logic services.

Services are called by route handlers and tasks, take an explicit Session,
and own their transactions.
"""

from quotary.services.bootstrap import ensure_user
from quotary.services.daily_selection import get_current, rotate_if_expired, select_new
from quotary.services.relations import RelationKind, toggle_relation

__all__ = [
    "ensure_user",
    "get_current",
    "select_new",
    "rotate_if_expired",
    "RelationKind",
    "toggle_relation",
]

"""Shared API dependencies: single import point for all routers.

Re-exports the database session and the subscription gate so that router
modules can import everything they need from one place::

    from royally_tuned.api.deps import get_db, require_subscription
"""

from royally_tuned.access.dependencies import AccessContext, require_subscription
from royally_tuned.database import get_db

__all__ = [
    "AccessContext",
    "get_db",
    "require_subscription",
]

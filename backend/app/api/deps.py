"""Shared API dependencies — single import point for all routers.

Re-exports database session, authentication and access-guard dependencies
so that router modules can import everything they need from one place::

    from app.api.deps import get_db, get_current_user, require_active_subscription
"""

from app.auth.dependencies import get_current_user, get_optional_user, require_admin
from app.billing.dependencies import require_active_subscription
from app.database import get_db
from app.security.rate_limit import rate_limit

__all__ = [
    "get_db",
    "get_current_user",
    "get_optional_user",
    "rate_limit",
    "require_active_subscription",
    "require_admin",
]

"""SQLAlchemy models for TubeShelf.

All models are imported here so that ``Base.metadata`` sees every table
before ``create_all`` runs. If you add a new model, import it in this file.
"""

from app.models.subscription import Subscription, SubscriptionStatus
from app.models.user import User, UserRole
from app.models.video import Video

__all__ = [
    "Subscription",
    "SubscriptionStatus",
    "User",
    "UserRole",
    "Video",
]

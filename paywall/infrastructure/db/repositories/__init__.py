"""
Repository Layer for the Paywall backend

Exports all repository classes for dependency injection.
"""

from paywall.infrastructure.db.repositories.base_repository import (
    BaseRepository,
    as_uuid,
)
from paywall.infrastructure.db.repositories.user_repository import UserRepository
from paywall.infrastructure.db.repositories.article_repository import ArticleRepository
from paywall.infrastructure.db.repositories.subscription_repository import (
    SubscriptionRepository,
)
from paywall.infrastructure.db.repositories.purchase_repository import PurchaseRepository
from paywall.infrastructure.db.repositories.webhook_event_repository import (
    WebhookEventRepository,
)


__all__ = [
    # Base
    "BaseRepository",
    "as_uuid",
    # Repositories
    "UserRepository",
    "ArticleRepository",
    "SubscriptionRepository",
    "PurchaseRepository",
    "WebhookEventRepository",
]

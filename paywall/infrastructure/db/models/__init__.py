"""
SQLModel ORM Models for the Paywall backend

Exports all database models for Alembic autogenerate and application use.
Import models here to register them with SQLModel.metadata.
"""

from paywall.infrastructure.db.models.base import (
    BaseModel,
    TimestampMixin,
    UUIDMixin,
    utcnow,
)
from paywall.infrastructure.db.models.user import User
from paywall.infrastructure.db.models.article import Article
from paywall.infrastructure.db.models.subscription import Subscription
from paywall.infrastructure.db.models.purchase import Purchase
from paywall.infrastructure.db.models.webhook_event import ProcessedWebhookEvent


__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    "UUIDMixin",
    "utcnow",
    # Entities
    "User",
    "Article",
    "Subscription",
    "Purchase",
    "ProcessedWebhookEvent",
]

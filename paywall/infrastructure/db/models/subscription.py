"""
Subscription Database Model

SQLModel table for recurring plan state, mirrored from Stripe webhooks.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import Column, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlmodel import Field

from paywall.domain.billing import SubscriptionStatus
from paywall.infrastructure.db.models.base import BaseModel


class Subscription(BaseModel, table=True):
    """
    One subscription per user, deleted along with the user.

    Maps to the 'subscriptions' table in PostgreSQL.
    """

    __tablename__ = "subscriptions"

    user_id: UUID = Field(
        sa_column=Column(
            PGUUID(as_uuid=True),
            ForeignKey("users.id", ondelete="CASCADE"),
            unique=True,
            index=True,
            nullable=False,
        )
    )

    # Stripe IDs
    stripe_subscription_id: str = Field(unique=True, index=True)
    price_id: str

    # Plan state
    level: str = Field(max_length=20)
    status: str = Field(default=SubscriptionStatus.INCOMPLETE.value, max_length=32)
    current_period_end: Optional[datetime] = Field(
        default=None,
        sa_type=DateTime(timezone=True),
    )
    cancel_at_period_end: bool = Field(default=False)

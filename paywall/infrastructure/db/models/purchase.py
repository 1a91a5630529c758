"""
Purchase Database Model

One-off article purchases, keyed by the Stripe payment intent.
"""

from uuid import UUID

from sqlalchemy import Column, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlmodel import Field

from paywall.domain.billing import PaymentStatus
from paywall.infrastructure.db.models.base import BaseModel


class Purchase(BaseModel, table=True):
    """A user buys a given article at most once."""

    __tablename__ = "purchases"
    __table_args__ = (
        UniqueConstraint("user_id", "article_id", name="uq_purchases_user_article"),
    )

    user_id: UUID = Field(
        sa_column=Column(
            PGUUID(as_uuid=True),
            ForeignKey("users.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        )
    )
    article_id: UUID = Field(
        sa_column=Column(
            PGUUID(as_uuid=True),
            ForeignKey("articles.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        )
    )

    payment_intent_id: str = Field(unique=True, index=True)
    payment_status: str = Field(
        default=PaymentStatus.REQUIRES_PAYMENT_METHOD.value,
        max_length=32,
    )
    amount: int = Field(ge=0)

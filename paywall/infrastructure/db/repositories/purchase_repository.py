"""
Purchase Repository

Data access layer for one-off article purchases.
"""

import logging
from typing import List, Optional, Union
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from paywall.domain.billing import PaymentStatus
from paywall.infrastructure.db.models.base import utcnow
from paywall.infrastructure.db.models.purchase import Purchase
from paywall.infrastructure.db.repositories.base_repository import (
    BaseRepository,
    as_uuid,
)


logger = logging.getLogger(__name__)


class PurchaseRepository(BaseRepository[Purchase]):
    """Repository for Purchase rows, written from payment intent events."""

    def __init__(self, session: AsyncSession):
        super().__init__(Purchase, session)

    async def get_by_user_and_article(
        self,
        user_id: Union[str, UUID],
        article_id: Union[str, UUID],
    ) -> Optional[Purchase]:
        """Get the purchase of an article by a user, or None."""
        stmt = select(Purchase).where(
            Purchase.user_id == as_uuid(user_id),
            Purchase.article_id == as_uuid(article_id),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_payment_intent_id(self, payment_intent_id: str) -> Optional[Purchase]:
        """Get a purchase by Stripe payment intent ID, or None."""
        stmt = select(Purchase).where(Purchase.payment_intent_id == payment_intent_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(
        self,
        user_id: Union[str, UUID],
        article_id: Union[str, UUID],
        payment_intent_id: str,
        payment_status: PaymentStatus,
        amount: int,
    ) -> Optional[Purchase]:
        """
        Create or update the purchase of an article by a user.

        The (user, article) pair is unique, so a retried checkout for the
        same article takes over the existing row with its new payment intent.
        """
        now = utcnow()
        values = {
            "id": uuid4(),
            "user_id": as_uuid(user_id),
            "article_id": as_uuid(article_id),
            "payment_intent_id": payment_intent_id,
            "payment_status": PaymentStatus(payment_status).value,
            "amount": amount,
            "created_at": now,
            "updated_at": now,
        }

        stmt = pg_insert(Purchase).values(**values)
        stmt = stmt.on_conflict_do_update(
            constraint="uq_purchases_user_article",
            set_={
                "payment_intent_id": stmt.excluded.payment_intent_id,
                "payment_status": stmt.excluded.payment_status,
                "amount": stmt.excluded.amount,
                "updated_at": now,
            },
        )

        await self.session.execute(stmt)
        await self.session.flush()

        logger.info(
            f"Upserted purchase {payment_intent_id} "
            f"(user={user_id}, article={article_id}, status={values['payment_status']})"
        )
        return await self.get_by_payment_intent_id(payment_intent_id)

    async def update_status(
        self,
        payment_intent_id: str,
        payment_status: PaymentStatus,
    ) -> bool:
        """
        Set the payment status of a purchase.

        Returns:
            True if a purchase with this payment intent exists
        """
        result = await self.session.execute(
            update(Purchase)
            .where(Purchase.payment_intent_id == payment_intent_id)
            .values(payment_status=PaymentStatus(payment_status).value, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount > 0

    async def list_by_user(self, user_id: Union[str, UUID]) -> List[Purchase]:
        """All purchases of a user."""
        stmt = select(Purchase).where(Purchase.user_id == as_uuid(user_id))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

"""
Subscription Repository

Data access layer for subscription persistence. Rows are written only
from Stripe webhook events and are never deleted here; they go away
with their user.
"""

import logging
from datetime import datetime
from typing import Optional, Union
from uuid import UUID, uuid4

from sqlalchemy import or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from paywall.domain.billing import SubscriptionLevel, SubscriptionStatus
from paywall.domain.entitlements import ENTITLED_SUBSCRIPTION_STATUSES
from paywall.infrastructure.db.models.base import utcnow
from paywall.infrastructure.db.models.subscription import Subscription
from paywall.infrastructure.db.repositories.base_repository import (
    BaseRepository,
    as_uuid,
)


logger = logging.getLogger(__name__)


class SubscriptionRepository(BaseRepository[Subscription]):
    """
    Repository for subscription data access.

    Upserts are idempotent: replaying the same Stripe event leaves the
    row unchanged.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(Subscription, session)

    # =========================================================================
    # Query Methods
    # =========================================================================

    async def get_by_user_id(self, user_id: Union[str, UUID]) -> Optional[Subscription]:
        """Get the subscription of a user, or None."""
        stmt = select(Subscription).where(Subscription.user_id == as_uuid(user_id))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_stripe_subscription_id(
        self,
        stripe_subscription_id: str,
    ) -> Optional[Subscription]:
        """Get a subscription by Stripe subscription ID, or None."""
        stmt = select(Subscription).where(
            Subscription.stripe_subscription_id == stripe_subscription_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    # =========================================================================
    # Command Methods
    # =========================================================================

    async def upsert(
        self,
        user_id: Union[str, UUID],
        stripe_subscription_id: str,
        price_id: str,
        level: SubscriptionLevel,
        status: SubscriptionStatus,
        current_period_end: Optional[datetime],
        cancel_at_period_end: bool,
    ) -> Optional[Subscription]:
        """
        Create or update the subscription of a user.

        A user holds one row. A new Stripe subscription takes the row over
        unless the stored one is still in good standing, so late events of
        an older subscription cannot overwrite a newer one.
        """
        user_uuid = as_uuid(user_id)
        now = utcnow()

        values = {
            "id": uuid4(),
            "user_id": user_uuid,
            "stripe_subscription_id": stripe_subscription_id,
            "price_id": price_id,
            "level": SubscriptionLevel(level).value,
            "status": SubscriptionStatus(status).value,
            "current_period_end": current_period_end,
            "cancel_at_period_end": cancel_at_period_end,
            "created_at": now,
            "updated_at": now,
        }

        stmt = pg_insert(Subscription).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={
                "stripe_subscription_id": stmt.excluded.stripe_subscription_id,
                "price_id": stmt.excluded.price_id,
                "level": stmt.excluded.level,
                "status": stmt.excluded.status,
                "current_period_end": stmt.excluded.current_period_end,
                "cancel_at_period_end": stmt.excluded.cancel_at_period_end,
                "updated_at": now,
            },
            where=or_(
                Subscription.stripe_subscription_id == stmt.excluded.stripe_subscription_id,
                Subscription.status.notin_(sorted(s.value for s in ENTITLED_SUBSCRIPTION_STATUSES)),
            ),
        )

        result = await self.session.execute(stmt)
        await self.session.flush()

        if result.rowcount == 0:
            logger.warning(
                f"Kept current subscription of user {user_uuid}, "
                f"ignored {stripe_subscription_id} ({values['status']})"
            )
        else:
            logger.info(
                f"Upserted subscription {stripe_subscription_id} for user {user_uuid}, "
                f"level={values['level']}, status={values['status']}"
            )
        return await self.get_by_user_id(user_uuid)

    async def mark_canceled(self, stripe_subscription_id: str) -> bool:
        """
        Mark a subscription as canceled by Stripe subscription ID.

        Returns:
            True if a stored subscription was updated
        """
        result = await self.session.execute(
            update(Subscription)
            .where(Subscription.stripe_subscription_id == stripe_subscription_id)
            .values(status=SubscriptionStatus.CANCELED.value, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount > 0

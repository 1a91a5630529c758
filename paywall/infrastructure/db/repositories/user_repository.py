"""
User Repository

User store used by the billing service: lookups plus the Stripe
customer id write-back.
"""

import logging
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paywall.infrastructure.db.models.base import utcnow
from paywall.infrastructure.db.models.user import User
from paywall.infrastructure.db.repositories.base_repository import (
    BaseRepository,
    as_uuid,
)


logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User lookups and customer id persistence."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_user_by_id(self, user_id: Union[str, UUID]) -> Optional[User]:
        """Get a user by id, or None."""
        return await self.get_by_id(user_id)

    async def update_user_customer_id(
        self,
        user_id: Union[str, UUID],
        customer_id: str,
    ) -> None:
        """Unconditionally store the Stripe customer id on the user."""
        user_uuid = as_uuid(user_id)
        stmt = (
            update(User)
            .where(User.id == user_uuid)
            .values(customer_id=customer_id, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        await self.session.flush()
        await self._reload(user_uuid)

    async def set_customer_id_if_absent(
        self,
        user_id: Union[str, UUID],
        customer_id: str,
    ) -> bool:
        """
        Store the Stripe customer id only if the user has none yet.

        The check and the write happen in a single UPDATE, so two
        concurrent provisioning calls cannot both succeed. Either way the
        user loaded in this session reflects the stored id afterwards.

        Returns:
            True if this call stored the id, False if one was already set
        """
        user_uuid = as_uuid(user_id)
        stmt = (
            update(User)
            .where(User.id == user_uuid, User.customer_id.is_(None))
            .values(customer_id=customer_id, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        stored = result.rowcount == 1

        # The cached row is stale either way: ours or a concurrent id was written
        await self._reload(user_uuid)

        if stored:
            return True

        logger.warning(f"User {user_id} already has a customer id, kept existing")
        return False

    async def _reload(self, user_uuid: UUID) -> Optional[User]:
        result = await self.session.execute(
            select(User)
            .where(User.id == user_uuid)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

"""
Webhook Event Repository

DB-backed idempotency for Stripe webhook deliveries (survives restarts).
"""

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from paywall.infrastructure.db.models.base import utcnow
from paywall.infrastructure.db.models.webhook_event import ProcessedWebhookEvent


class WebhookEventRepository:
    """Records which Stripe events have been handled."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def is_event_processed(self, event_id: str) -> bool:
        """Check if a webhook event has already been processed."""
        result = await self._session.execute(
            select(ProcessedWebhookEvent.event_id).where(
                ProcessedWebhookEvent.event_id == event_id
            )
        )
        return result.scalar_one_or_none() is not None

    async def mark_event_processed(self, event_id: str, event_type: str) -> None:
        """Record a processed webhook event."""
        stmt = pg_insert(ProcessedWebhookEvent).values(
            event_id=event_id,
            event_type=event_type,
            processed_at=utcnow(),
        )
        await self._session.execute(stmt.on_conflict_do_nothing(index_elements=["event_id"]))
        await self._session.flush()

"""
Dependency Injection Providers for the Paywall backend

Provides FastAPI dependencies for database sessions and repositories.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from paywall.infrastructure.db.database import get_session
from paywall.infrastructure.db.repositories import (
    ArticleRepository,
    PurchaseRepository,
    SubscriptionRepository,
    UserRepository,
    WebhookEventRepository,
)


# Type alias for session dependency
SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_user_repository(
    session: SessionDep,
) -> AsyncGenerator[UserRepository, None]:
    """
    Dependency provider for UserRepository.

    Usage:
        @router.get("/me")
        async def me(repo: UserRepository = Depends(get_user_repository)):
            ...
    """
    yield UserRepository(session)


async def get_article_repository(
    session: SessionDep,
) -> AsyncGenerator[ArticleRepository, None]:
    """Dependency provider for ArticleRepository."""
    yield ArticleRepository(session)


async def get_subscription_repository(
    session: SessionDep,
) -> AsyncGenerator[SubscriptionRepository, None]:
    """Dependency provider for SubscriptionRepository."""
    yield SubscriptionRepository(session)


async def get_purchase_repository(
    session: SessionDep,
) -> AsyncGenerator[PurchaseRepository, None]:
    """Dependency provider for PurchaseRepository."""
    yield PurchaseRepository(session)


async def get_webhook_event_repository(
    session: SessionDep,
) -> AsyncGenerator[WebhookEventRepository, None]:
    """Dependency provider for WebhookEventRepository."""
    yield WebhookEventRepository(session)


# Type aliases for repository dependencies
UserRepoDep = Annotated[UserRepository, Depends(get_user_repository)]
ArticleRepoDep = Annotated[ArticleRepository, Depends(get_article_repository)]
SubscriptionRepoDep = Annotated[
    SubscriptionRepository,
    Depends(get_subscription_repository)
]
PurchaseRepoDep = Annotated[PurchaseRepository, Depends(get_purchase_repository)]
WebhookEventRepoDep = Annotated[
    WebhookEventRepository,
    Depends(get_webhook_event_repository)
]

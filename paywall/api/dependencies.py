"""
API Dependencies

FastAPI dependency injection for authentication and the billing service.

Bearer tokens are HS256 JWTs issued by the web frontend; the ``sub``
claim is the user id.
"""

import logging
from functools import lru_cache
from typing import Annotated, Optional
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from paywall.config.settings import get_settings
from paywall.infrastructure.db.dependencies import UserRepoDep
from paywall.infrastructure.payments.stripe_service import (
    BillingConfig,
    BillingService,
)


logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Extract and verify the user ID from a bearer JWT.

    Returns:
        Authenticated user ID (``sub`` claim).

    Raises:
        HTTPException 401: token missing, expired, or invalid.
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    settings = get_settings()
    if not settings.jwt_secret:
        logger.error("JWT_SECRET is not configured, rejecting authenticated request")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication is not configured",
        )

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        logger.warning("JWT verification failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or unverifiable token",
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing user ID",
        )

    try:
        UUID(user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: malformed user ID",
        )

    return user_id


async def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """
    Optionally extract user ID from JWT token.

    Returns ``None`` if no valid token is provided (for public endpoints).
    """
    if not credentials:
        return None

    try:
        return await get_current_user_id(credentials)
    except HTTPException:
        return None


@lru_cache
def get_billing_config() -> BillingConfig:
    """Billing configuration derived from the cached settings."""
    return BillingConfig.from_settings(get_settings())


async def get_billing_service(
    users: UserRepoDep,
    config: BillingConfig = Depends(get_billing_config),
) -> BillingService:
    """Per-request billing service bound to the request's user store."""
    return BillingService(config, users)


CurrentUserDep = Annotated[str, Depends(get_current_user_id)]
OptionalUserDep = Annotated[Optional[str], Depends(get_optional_user_id)]
BillingServiceDep = Annotated[BillingService, Depends(get_billing_service)]


# =============================================================================
# Re-export DB dependencies for a single import source
# Routers should import from api.dependencies, not db.dependencies directly.
# =============================================================================
from paywall.infrastructure.db.dependencies import (  # noqa: E402, F401
    SessionDep,
    ArticleRepoDep,
    SubscriptionRepoDep,
    PurchaseRepoDep,
    WebhookEventRepoDep,
)

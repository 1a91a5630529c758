"""
Article Entitlement Rules

Decides whether a user may read an article from their subscription and
purchase records. Pure functions, no I/O.
"""

from datetime import datetime, timezone
from typing import Optional, Protocol

from paywall.domain.billing import (
    ArticleAccessLevel,
    PaymentStatus,
    SubscriptionLevel,
    SubscriptionStatus,
)


class _ArticleLike(Protocol):
    access_level: ArticleAccessLevel


class _SubscriptionLike(Protocol):
    level: SubscriptionLevel
    status: SubscriptionStatus
    current_period_end: Optional[datetime]


class _PurchaseLike(Protocol):
    payment_status: PaymentStatus


ENTITLED_SUBSCRIPTION_STATUSES = {
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.TRIALING,
}

# Authorized but not yet captured still counts as bought
ENTITLED_PAYMENT_STATUSES = {
    PaymentStatus.REQUIRES_CAPTURE,
    PaymentStatus.SUCCEEDED,
}

LEVEL_COVERAGE = {
    SubscriptionLevel.PREMIUM: {ArticleAccessLevel.PREMIUM, ArticleAccessLevel.STANDARD},
    SubscriptionLevel.STANDARD: {ArticleAccessLevel.STANDARD},
}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_subscription_entitled(
    subscription: Optional[_SubscriptionLike],
    now: Optional[datetime] = None,
) -> bool:
    """Check the subscription is in good standing for its current period."""
    if subscription is None:
        return False
    if SubscriptionStatus(subscription.status) not in ENTITLED_SUBSCRIPTION_STATUSES:
        return False
    if subscription.current_period_end is None:
        return True
    now = _as_utc(now or datetime.now(timezone.utc))
    return _as_utc(subscription.current_period_end) > now


def can_read_article(
    article: _ArticleLike,
    subscription: Optional[_SubscriptionLike] = None,
    purchase: Optional[_PurchaseLike] = None,
    now: Optional[datetime] = None,
) -> bool:
    """
    Decide whether an article is readable.

    Args:
        article: The article being opened
        subscription: The reader's subscription, if any
        purchase: The reader's purchase of this article, if any
        now: Reference time for period checks (defaults to current UTC)

    Returns:
        True if the article is free, covered by the plan, or bought
    """
    level = ArticleAccessLevel(article.access_level)
    if level == ArticleAccessLevel.FREE:
        return True

    if is_subscription_entitled(subscription, now):
        covered = LEVEL_COVERAGE.get(SubscriptionLevel(subscription.level), set())
        if level in covered:
            return True

    if purchase is not None:
        return PaymentStatus(purchase.payment_status) in ENTITLED_PAYMENT_STATUSES

    return False

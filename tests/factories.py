"""
Stand-in rows for tests.

Services and routes only read attributes from ORM rows, so plain
namespaces are enough.
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Optional
from uuid import uuid4


USER_ID = "00000000-0000-0000-0000-000000000001"
ARTICLE_ID = "00000000-0000-0000-0000-0000000000a1"


def make_user(customer_id: Optional[str] = None, user_id: str = USER_ID):
    """Stand-in for a User row."""
    return SimpleNamespace(
        id=user_id,
        email="reader@example.com",
        name="Reader",
        customer_id=customer_id,
    )


def make_article(access_level: str = "Premium", article_id: str = ARTICLE_ID, title: str = "T"):
    """Stand-in for an Article row."""
    return SimpleNamespace(
        id=article_id,
        title=title,
        content="Full article body",
        image=None,
        access_level=access_level,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def make_subscription(
    level: str = "Premium",
    status: str = "active",
    current_period_end: Optional[datetime] = None,
):
    """Stand-in for a Subscription row."""
    return SimpleNamespace(
        id=uuid4(),
        level=level,
        status=status,
        current_period_end=current_period_end,
    )


def make_purchase(payment_status: str = "succeeded", article_id: str = ARTICLE_ID):
    """Stand-in for a Purchase row."""
    return SimpleNamespace(
        article_id=article_id,
        payment_status=payment_status,
    )


"""
Article Routes

Article listing and reading behind the paywall. Content is only returned
to readers entitled to it.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from paywall.domain.billing import (
    ARTICLE_PRICES,
    ArticleAccessLevel,
    ArticleResponse,
)
from paywall.domain.entitlements import can_read_article
from paywall.api.dependencies import (
    ArticleRepoDep,
    OptionalUserDep,
    PurchaseRepoDep,
    SubscriptionRepoDep,
)


logger = logging.getLogger(__name__)

router = APIRouter()


def _article_to_response(article, has_access: bool, include_content: bool) -> ArticleResponse:
    level = ArticleAccessLevel(article.access_level)
    return ArticleResponse(
        id=str(article.id),
        title=article.title,
        image=article.image,
        access_level=level,
        price=ARTICLE_PRICES.get(level),
        has_access=has_access,
        content=article.content if (has_access and include_content) else None,
        created_at=article.created_at,
    )


@router.get("/articles", response_model=List[ArticleResponse])
async def list_articles(
    user_id: OptionalUserDep,
    articles: ArticleRepoDep,
    subscriptions: SubscriptionRepoDep,
    purchases: PurchaseRepoDep,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    access_level: Optional[ArticleAccessLevel] = None,
):
    """List articles with the reader's access to each (content omitted)."""
    items = await articles.list_recent(
        skip=skip,
        limit=limit,
        access_level=access_level.value if access_level else None,
    )

    subscription = None
    purchased = {}
    if user_id:
        subscription = await subscriptions.get_by_user_id(user_id)
        purchased = {p.article_id: p for p in await purchases.list_by_user(user_id)}

    return [
        _article_to_response(
            article,
            can_read_article(article, subscription, purchased.get(article.id)),
            include_content=False,
        )
        for article in items
    ]


@router.get("/articles/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: str,
    user_id: OptionalUserDep,
    articles: ArticleRepoDep,
    subscriptions: SubscriptionRepoDep,
    purchases: PurchaseRepoDep,
):
    """
    Read an article.

    Returns 402 with the article summary when the reader is not entitled.
    """
    article = await articles.get_by_id(article_id)
    if article is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Article not found",
        )

    subscription = None
    purchase = None
    if user_id:
        subscription = await subscriptions.get_by_user_id(user_id)
        purchase = await purchases.get_by_user_and_article(user_id, article.id)

    has_access = can_read_article(article, subscription, purchase)
    response = _article_to_response(article, has_access, include_content=True)

    if not has_access:
        logger.debug(f"Paywall hit on article {article_id} by user {user_id}")
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail=response.model_dump(mode="json"),
        )

    return response

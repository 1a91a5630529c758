"""
Database Infrastructure Package for the Paywall backend

Exports database utilities, models, and repositories.
"""

from paywall.infrastructure.db.database import (
    DatabaseManager,
    get_db_manager,
    get_session,
    init_db,
    close_db,
)

from paywall.infrastructure.db.dependencies import (
    SessionDep,
    get_user_repository,
    get_article_repository,
    get_subscription_repository,
    get_purchase_repository,
    get_webhook_event_repository,
    UserRepoDep,
    ArticleRepoDep,
    SubscriptionRepoDep,
    PurchaseRepoDep,
    WebhookEventRepoDep,
)


__all__ = [
    # Database management
    "DatabaseManager",
    "get_db_manager",
    "get_session",
    "init_db",
    "close_db",
    # Dependencies
    "SessionDep",
    "get_user_repository",
    "get_article_repository",
    "get_subscription_repository",
    "get_purchase_repository",
    "get_webhook_event_repository",
    "UserRepoDep",
    "ArticleRepoDep",
    "SubscriptionRepoDep",
    "PurchaseRepoDep",
    "WebhookEventRepoDep",
]

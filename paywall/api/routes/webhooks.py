"""
Stripe Webhook Handler

Reconciles Subscription and Purchase rows from Stripe events.
Implements idempotent event processing backed by the database (survives restarts).

Handled Events:
- customer.subscription.created / updated: Upsert the user's subscription
- customer.subscription.deleted: Mark the subscription canceled
- payment_intent.amount_capturable_updated: Record the purchase, capture funds
- payment_intent.succeeded: Mark the purchase paid
- payment_intent.canceled / payment_failed: Record the failed purchase

Correlation relies on the ``userId`` / ``articleId`` metadata that checkout
attaches to subscriptions and payment intents.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Request, HTTPException, status

from paywall.domain.billing import (
    PaymentStatus,
    SubscriptionStatus,
    get_level_from_metadata,
)
from paywall.infrastructure.db.repositories import (
    PurchaseRepository,
    SubscriptionRepository,
)
from paywall.infrastructure.payments.stripe_service import BillingService
from paywall.api.dependencies import (
    BillingServiceDep,
    PurchaseRepoDep,
    SessionDep,
    SubscriptionRepoDep,
    WebhookEventRepoDep,
)


logger = logging.getLogger(__name__)

router = APIRouter()


def _timestamp(value: Optional[int]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


# =============================================================================
# Webhook Endpoint
# =============================================================================

@router.post("/webhooks/stripe")
async def stripe_webhook(
    request: Request,
    session: SessionDep,
    billing: BillingServiceDep,
    events: WebhookEventRepoDep,
    subscriptions: SubscriptionRepoDep,
    purchases: PurchaseRepoDep,
):
    """
    Handle Stripe webhook events.

    Verifies signature and reconciles subscription and purchase rows.
    Returns 200 OK to acknowledge receipt (Stripe will retry on failure).
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    if not signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Stripe signature"
        )

    verified = billing.verify_webhook_signature(payload, signature)
    if not verified.is_ok:
        logger.error(f"Webhook signature verification failed: {verified.error}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid signature"
        )

    event = verified.value
    event_id = event.get("id")
    event_type = event.get("type")

    if await events.is_event_processed(event_id):
        logger.info(f"Event {event_id} already processed, skipping")
        return {"status": "already_processed"}

    logger.info(f"Processing webhook event: {event_type} ({event_id})")
    data_object = event["data"]["object"]

    try:
        # Savepoint: a failing handler leaves no partial writes behind
        async with session.begin_nested():
            if event_type in (
                "customer.subscription.created",
                "customer.subscription.updated",
            ):
                await handle_subscription_changed(data_object, billing, subscriptions)

            elif event_type == "customer.subscription.deleted":
                await handle_subscription_deleted(data_object, subscriptions)

            elif event_type == "payment_intent.amount_capturable_updated":
                await handle_payment_authorized(data_object, billing, purchases)

            elif event_type == "payment_intent.succeeded":
                await handle_payment_succeeded(data_object, purchases)

            elif event_type in (
                "payment_intent.canceled",
                "payment_intent.payment_failed",
            ):
                await handle_payment_not_completed(data_object, event_type, purchases)

            else:
                logger.debug(f"Unhandled event type: {event_type}")

            await events.mark_event_processed(event_id, event_type)

        return {"status": "success"}

    except Exception as e:
        logger.error(f"Error processing webhook {event_type} ({event_id}): {e}")
        # Return 200 to prevent Stripe retries for non-recoverable errors
        return {"status": "error", "message": str(e)}


# =============================================================================
# Subscription Handlers
# =============================================================================

async def handle_subscription_changed(
    subscription_data: dict,
    billing: BillingService,
    subscriptions: SubscriptionRepository,
):
    """
    Sync a created or updated Stripe subscription.

    The event payload does not expand the price product, so the
    subscription is fetched again to read the plan level metadata.
    """
    subscription_id = subscription_data.get("id")
    user_id = (subscription_data.get("metadata") or {}).get("userId")

    if not user_id:
        logger.error(f"Subscription {subscription_id} has no userId in metadata")
        return

    stripe_subscription = (await billing.retrieve_subscription(subscription_id)).unwrap()
    item = stripe_subscription["items"]["data"][0]
    price = item["price"]
    level = get_level_from_metadata(price["product"].get("metadata"))

    # Newer API versions report the period on the item
    period_end = item.get("current_period_end") or stripe_subscription.get("current_period_end")

    await subscriptions.upsert(
        user_id=user_id,
        stripe_subscription_id=subscription_id,
        price_id=price["id"],
        level=level,
        status=SubscriptionStatus(stripe_subscription["status"]),
        current_period_end=_timestamp(period_end),
        cancel_at_period_end=bool(stripe_subscription.get("cancel_at_period_end")),
    )
    logger.info(f"Synced {level.value} subscription {subscription_id} for user {user_id}")


async def handle_subscription_deleted(
    subscription_data: dict,
    subscriptions: SubscriptionRepository,
):
    """Mark a subscription that ended in Stripe as canceled."""
    subscription_id = subscription_data.get("id")

    if await subscriptions.mark_canceled(subscription_id):
        logger.info(f"Subscription {subscription_id} canceled")
    else:
        logger.warning(f"Deleted subscription {subscription_id} was not stored")


# =============================================================================
# Purchase Handlers
# =============================================================================

def _purchase_metadata(payment_intent: dict):
    metadata = payment_intent.get("metadata") or {}
    return metadata.get("userId"), metadata.get("articleId")


async def handle_payment_authorized(
    payment_intent: dict,
    billing: BillingService,
    purchases: PurchaseRepository,
):
    """
    Record an authorized article purchase and capture its funds.

    Purchase checkouts use manual capture, so Stripe reports the
    authorization first; capturing triggers payment_intent.succeeded.
    """
    payment_intent_id = payment_intent.get("id")
    user_id, article_id = _purchase_metadata(payment_intent)

    if not user_id or not article_id:
        logger.info(f"Payment intent {payment_intent_id} is not an article purchase, skipping")
        return

    await purchases.upsert(
        user_id=user_id,
        article_id=article_id,
        payment_intent_id=payment_intent_id,
        payment_status=PaymentStatus.REQUIRES_CAPTURE,
        amount=payment_intent.get("amount_capturable") or payment_intent.get("amount") or 0,
    )

    captured = (await billing.capture_payment_intent(payment_intent_id)).unwrap()
    await purchases.update_status(payment_intent_id, PaymentStatus(captured["status"]))


async def handle_payment_succeeded(
    payment_intent: dict,
    purchases: PurchaseRepository,
):
    """Mark an article purchase as paid."""
    payment_intent_id = payment_intent.get("id")
    user_id, article_id = _purchase_metadata(payment_intent)

    if not user_id or not article_id:
        logger.info(f"Payment intent {payment_intent_id} is not an article purchase, skipping")
        return

    await purchases.upsert(
        user_id=user_id,
        article_id=article_id,
        payment_intent_id=payment_intent_id,
        payment_status=PaymentStatus.SUCCEEDED,
        amount=payment_intent.get("amount_received") or payment_intent.get("amount") or 0,
    )
    logger.info(f"Purchase {payment_intent_id} succeeded (user={user_id}, article={article_id})")


async def handle_payment_not_completed(
    payment_intent: dict,
    event_type: str,
    purchases: PurchaseRepository,
):
    """Record a canceled or failed article payment."""
    payment_intent_id = payment_intent.get("id")

    if event_type == "payment_intent.canceled":
        payment_status = PaymentStatus.CANCELED
    else:
        payment_status = PaymentStatus.REQUIRES_PAYMENT_METHOD

    if await purchases.update_status(payment_intent_id, payment_status):
        logger.warning(f"Purchase {payment_intent_id} is now {payment_status.value}")
    else:
        logger.debug(f"No purchase stored for payment intent {payment_intent_id}")

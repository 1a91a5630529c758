"""
Billing API Routes

REST endpoints for Stripe customer provisioning, checkout, and the
billing portal. Service errors come back as Results and are unwrapped
here; the app-level PaywallError handler turns them into responses.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter

from paywall.domain.billing import (
    CheckoutResponse,
    CustomerResponse,
    PaymentStatus,
    PortalResponse,
    PortalSessionRequest,
    PriceResponse,
    PurchaseCheckoutRequest,
    ShippingResponse,
    SubscriptionCheckoutRequest,
    get_level_from_metadata,
)
from paywall.domain.entitlements import ENTITLED_PAYMENT_STATUSES
from paywall.api.dependencies import (
    ArticleRepoDep,
    BillingServiceDep,
    CurrentUserDep,
    PurchaseRepoDep,
    UserRepoDep,
)
from paywall.infrastructure.exceptions import (
    AlreadyPurchasedError,
    InvalidMetadataError,
    MissingCustomerError,
    NotFoundError,
)


logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Helpers
# =============================================================================

async def _customer_id_of(user_id: str, users) -> str:
    """Customer id of an existing, provisioned user."""
    user = await users.get_user_by_id(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} does not exist", resource="user", resource_id=user_id)
    if not user.customer_id:
        raise MissingCustomerError(user_id)
    return user.customer_id


def _price_to_response(price) -> PriceResponse:
    product = price.get("product")
    recurring = price.get("recurring")

    product_name = None
    level = None
    if product is not None and not isinstance(product, str):
        product_name = product.get("name")
        try:
            level = get_level_from_metadata(product.get("metadata"))
        except InvalidMetadataError:
            logger.warning(f"Product of price {price.get('id')} has no plan level metadata")

    return PriceResponse(
        id=price.get("id"),
        lookup_key=price.get("lookup_key"),
        unit_amount=price.get("unit_amount"),
        currency=price.get("currency"),
        interval=recurring.get("interval") if recurring else None,
        product_name=product_name,
        level=level,
    )


# =============================================================================
# Customer & Prices
# =============================================================================

@router.post("/billing/customer", response_model=CustomerResponse)
async def provision_customer(
    user_id: CurrentUserDep,
    billing: BillingServiceDep,
):
    """Provision the Stripe customer of the current user (idempotent)."""
    result = await billing.create_customer_id(user_id)
    return CustomerResponse(customer_id=result.unwrap())


@router.get("/billing/prices", response_model=List[PriceResponse])
async def list_prices(billing: BillingServiceDep):
    """List the premium and standard subscription prices."""
    result = await billing.get_stripe_prices()
    return [_price_to_response(price) for price in result.unwrap()]


# =============================================================================
# Checkout Endpoints
# =============================================================================

@router.post("/billing/checkout/subscription", response_model=CheckoutResponse)
async def create_subscription_checkout(
    request: SubscriptionCheckoutRequest,
    user_id: CurrentUserDep,
    billing: BillingServiceDep,
):
    """
    Create a Stripe Checkout session for a subscription.

    Provisions the Stripe customer first if the user has none.
    """
    (await billing.create_customer_id(user_id)).unwrap()

    result = await billing.get_subscription_checkout_url(user_id, request.price_id)
    return CheckoutResponse(checkout_url=result.unwrap())


@router.post("/billing/checkout/purchase", response_model=CheckoutResponse)
async def create_purchase_checkout(
    request: PurchaseCheckoutRequest,
    user_id: CurrentUserDep,
    billing: BillingServiceDep,
    articles: ArticleRepoDep,
    purchases: PurchaseRepoDep,
):
    """Create a Stripe Checkout session for a one-off article purchase."""
    article = await articles.get_by_id(request.article_id)
    if article is None:
        raise NotFoundError(
            f"Article {request.article_id} does not exist",
            resource="article",
            resource_id=request.article_id,
        )

    existing = await purchases.get_by_user_and_article(user_id, article.id)
    if existing and PaymentStatus(existing.payment_status) in ENTITLED_PAYMENT_STATUSES:
        raise AlreadyPurchasedError(user_id, str(article.id))

    (await billing.create_customer_id(user_id)).unwrap()

    result = await billing.get_purchase_checkout_url(user_id, article)
    return CheckoutResponse(checkout_url=result.unwrap())


# =============================================================================
# Portal & Shipping
# =============================================================================

@router.post("/billing/portal", response_model=PortalResponse)
async def create_portal_session(
    request: PortalSessionRequest,
    user_id: CurrentUserDep,
    billing: BillingServiceDep,
    users: UserRepoDep,
):
    """Create a Stripe Billing Portal session for the current user."""
    customer_id = await _customer_id_of(user_id, users)

    result = await billing.get_billing_portal_url(customer_id, request.return_path)
    return PortalResponse(portal_url=result.unwrap())


@router.get("/billing/shipping", response_model=Optional[ShippingResponse])
async def get_shipping(
    user_id: CurrentUserDep,
    billing: BillingServiceDep,
    users: UserRepoDep,
):
    """Get the shipping details Stripe collected for the current user."""
    customer_id = await _customer_id_of(user_id, users)

    shipping = (await billing.get_shipping_by_customer_id(customer_id)).unwrap()
    if shipping is None:
        return None
    return ShippingResponse.model_validate(dict(shipping))

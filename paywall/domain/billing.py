"""
Billing Domain Models

Enums, DTOs, and pricing rules for the billing bounded context.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional
from pydantic import BaseModel, Field

from paywall.infrastructure.exceptions import (
    ArticleNotPurchasableError,
    InvalidMetadataError,
)


class ArticleAccessLevel(str, Enum):
    """Who may read an article without buying it."""
    PREMIUM = "Premium"
    STANDARD = "Standard"
    FREE = "Free"


class SubscriptionLevel(str, Enum):
    """Recurring plan levels."""
    PREMIUM = "Premium"
    STANDARD = "Standard"


class SubscriptionStatus(str, Enum):
    """Stripe subscription lifecycle status."""
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    PAUSED = "paused"


class PaymentStatus(str, Enum):
    """Stripe payment intent status, as tracked on purchases."""
    REQUIRES_PAYMENT_METHOD = "requires_payment_method"
    REQUIRES_CAPTURE = "requires_capture"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    CANCELED = "canceled"


# =============================================================================
# Pricing (Business Logic)
# =============================================================================

# One-off article prices, in the smallest unit of the checkout currency (JPY)
PREMIUM_PRICE = 500
STANDARD_PRICE = 300

ARTICLE_PRICES = {
    ArticleAccessLevel.PREMIUM: PREMIUM_PRICE,
    ArticleAccessLevel.STANDARD: STANDARD_PRICE,
}

# Lookup keys of the two standing recurring prices in Stripe
PRICE_LOOKUP_KEYS = ["premium", "standard"]


def get_article_price(article_id: str, access_level: ArticleAccessLevel) -> int:
    """
    Get the one-off purchase price for an article.

    Free articles have no price and cannot go through checkout.

    Raises:
        ArticleNotPurchasableError: for any level without a price
    """
    try:
        level = ArticleAccessLevel(access_level)
    except ValueError:
        raise ArticleNotPurchasableError(str(article_id), str(access_level))

    price = ARTICLE_PRICES.get(level)
    if price is None:
        raise ArticleNotPurchasableError(str(article_id), level.value)
    return price


def get_level_from_metadata(metadata: Optional[Mapping[str, Any]]) -> SubscriptionLevel:
    """
    Map the ``level`` tag registered on a Stripe product to a plan level.

    Only "Premium" and "Standard" are accepted. There is no fallback tier.

    Raises:
        InvalidMetadataError: when the tag is missing or unrecognized
    """
    level = (metadata or {}).get("level")
    if level == SubscriptionLevel.PREMIUM.value:
        return SubscriptionLevel.PREMIUM
    if level == SubscriptionLevel.STANDARD.value:
        return SubscriptionLevel.STANDARD
    raise InvalidMetadataError(metadata)


# =============================================================================
# Request/Response DTOs
# =============================================================================

class SubscriptionCheckoutRequest(BaseModel):
    """Request DTO for a subscription checkout session."""
    price_id: str = Field(..., min_length=1, description="Stripe recurring price ID")


class PurchaseCheckoutRequest(BaseModel):
    """Request DTO for a one-off article purchase."""
    article_id: str = Field(..., description="Article to purchase")


class PortalSessionRequest(BaseModel):
    """Request DTO for creating a billing portal session."""
    return_path: str = Field(
        default="/",
        description="Path relative to the app origin to return to",
    )


class CheckoutResponse(BaseModel):
    """Response DTO for checkout session creation."""
    checkout_url: str


class PortalResponse(BaseModel):
    """Response DTO for portal session creation."""
    portal_url: str


class CustomerResponse(BaseModel):
    """Response DTO for customer provisioning."""
    customer_id: str


class PriceResponse(BaseModel):
    """A standing recurring price with its product."""
    id: str
    lookup_key: Optional[str] = None
    unit_amount: Optional[int] = None
    currency: str
    interval: Optional[str] = None
    product_name: Optional[str] = None
    level: Optional[SubscriptionLevel] = None


class ShippingAddress(BaseModel):
    """Address part of a Stripe shipping record."""
    city: Optional[str] = None
    country: Optional[str] = None
    line1: Optional[str] = None
    line2: Optional[str] = None
    postal_code: Optional[str] = None
    state: Optional[str] = None


class ShippingResponse(BaseModel):
    """Response DTO for a customer's shipping details."""
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[ShippingAddress] = None


class ArticleResponse(BaseModel):
    """Article as seen by the current user."""
    id: str
    title: str
    image: Optional[str] = None
    access_level: ArticleAccessLevel
    price: Optional[int] = Field(default=None, description="One-off price, if purchasable")
    has_access: bool
    content: Optional[str] = Field(default=None, description="Withheld without access")
    created_at: Optional[datetime] = None

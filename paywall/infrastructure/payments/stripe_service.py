"""
Stripe Billing Service

Infrastructure service for Stripe payment processing.
Handles customer provisioning, hosted Checkout (subscriptions and one-off
article purchases), the customer Billing Portal, and the Stripe calls the
webhook handlers need.

Every public operation returns a Result: Ok(value) or Err(error) with one
of the typed errors from paywall.infrastructure.exceptions. Nothing is
retried; a failed Stripe call comes back as PaymentProviderError.
"""

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Protocol, Union
from urllib.parse import urlencode, urljoin, urlsplit, urlunsplit
from uuid import UUID

import stripe
from stripe import StripeError

from paywall.config.settings import Settings
from paywall.domain.billing import PRICE_LOOKUP_KEYS, get_article_price
from paywall.domain.result import Err, Ok, Result
from paywall.infrastructure.exceptions import (
    CustomerDeletedError,
    MissingCustomerError,
    NotFoundError,
    PaymentProviderError,
    PaywallError,
)


logger = logging.getLogger(__name__)

PURCHASE_PRODUCT_NAME = "{title} の記事"


@dataclass(frozen=True)
class BillingConfig:
    """Explicit configuration for BillingService, built once from Settings."""
    app_url: str
    api_key: Optional[str] = None
    webhook_secret: Optional[str] = None
    test_clock_id: Optional[str] = None
    is_production: bool = False
    locale: str = "ja"
    currency: str = "jpy"
    shipping_countries: List[str] = field(default_factory=lambda: ["JP"])

    @classmethod
    def from_settings(cls, settings: Settings) -> "BillingConfig":
        return cls(
            app_url=settings.app_url,
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            test_clock_id=settings.stripe_test_clock_id,
            is_production=settings.is_production,
            locale=settings.checkout_locale,
            currency=settings.checkout_currency,
            shipping_countries=list(settings.shipping_allowed_countries),
        )


class UserStore(Protocol):
    """Persistence accessors the billing service needs."""

    async def get_user_by_id(self, user_id: Union[str, UUID]) -> Optional[Any]:
        ...

    async def set_customer_id_if_absent(
        self,
        user_id: Union[str, UUID],
        customer_id: str,
    ) -> bool:
        ...


def returns_result(operation: str) -> Callable:
    """
    Wrap a service coroutine so it returns a Result.

    Typed paywall errors become Err as they are; Stripe SDK errors are
    logged and wrapped into PaymentProviderError.
    """
    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Result]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Result:
            try:
                return Ok(await func(*args, **kwargs))
            except PaywallError as e:
                logger.warning(f"{operation} failed: {e.message}")
                return Err(e)
            except StripeError as e:
                logger.error(f"Stripe error during {operation}: {e}")
                return Err(PaymentProviderError(
                    f"Failed to {operation}: {e.user_message or e}",
                    operation=operation,
                    original_error=e,
                ))
        return wrapper
    return decorator


class BillingService:
    """
    Stripe payment processing service.

    Stateless apart from its configuration and user store; one instance
    per request is cheap.
    """

    def __init__(self, config: BillingConfig, users: UserStore):
        self._config = config
        self._users = users

    @property
    def config(self) -> BillingConfig:
        return self._config

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _require_user(self, user_id: str):
        user = await self._users.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError(
                f"User {user_id} does not exist",
                resource="user",
                resource_id=str(user_id),
            )
        return user

    async def _require_customer_id(self, user_id: str) -> str:
        user = await self._require_user(user_id)
        if not user.customer_id:
            raise MissingCustomerError(str(user_id))
        return user.customer_id

    def _app_url(self, path: str) -> str:
        return f"{self._config.app_url}{path}"

    def resolve_return_url(self, return_path: str) -> str:
        """
        Resolve a path against the app origin into an absolute URL.

        Scheme and host in ``return_path`` are dropped, so the portal can
        only send the customer back to this app.
        """
        parts = urlsplit(return_path)
        relative = urlunsplit(("", "", parts.path, parts.query, parts.fragment))
        return urljoin(self._config.app_url + "/", relative)

    # =========================================================================
    # Customer Management
    # =========================================================================

    @returns_result("create customer")
    async def create_customer_id(self, user_id: str) -> Optional[str]:
        """
        Provision a Stripe customer for a user, once.

        A user that already has a customer is left untouched. When two
        requests race, the loser deletes the customer it just created.

        Args:
            user_id: Internal user ID (stored in customer metadata)

        Returns:
            The user's Stripe customer ID
        """
        user = await self._require_user(user_id)
        if user.customer_id:
            return user.customer_id

        params = {
            "email": user.email,
            "name": user.name,
            "preferred_locales": [self._config.locale],
            "metadata": {"userId": str(user_id)},
        }
        if not self._config.is_production and self._config.test_clock_id:
            params["test_clock"] = self._config.test_clock_id

        customer = stripe.Customer.create(api_key=self._config.api_key, **params)

        if await self._users.set_customer_id_if_absent(user_id, customer.id):
            logger.info(f"Created Stripe customer {customer.id} for user {user_id}")
            return customer.id

        # Lost the race: keep the id that was stored first
        stripe.Customer.delete(customer.id, api_key=self._config.api_key)
        logger.warning(f"Deleted duplicate Stripe customer {customer.id} for user {user_id}")
        user = await self._require_user(user_id)
        return user.customer_id

    @returns_result("retrieve shipping")
    async def get_shipping_by_customer_id(self, customer_id: str) -> Optional[Any]:
        """
        Get the shipping details stored on a Stripe customer.

        Returns:
            The customer's shipping object, or None if never collected

        Raises (as Err):
            CustomerDeletedError: the customer was deleted in Stripe
        """
        customer = stripe.Customer.retrieve(customer_id, api_key=self._config.api_key)
        if customer.get("deleted"):
            raise CustomerDeletedError(customer_id)
        return customer.get("shipping")

    # =========================================================================
    # Price Catalog
    # =========================================================================

    @returns_result("list prices")
    async def get_stripe_prices(self) -> List[stripe.Price]:
        """Get the standing premium and standard prices, products expanded."""
        prices = stripe.Price.list(
            api_key=self._config.api_key,
            lookup_keys=PRICE_LOOKUP_KEYS,
            expand=["data.product"],
        )
        return list(prices.data)

    # =========================================================================
    # Checkout Sessions
    # =========================================================================

    @returns_result("create subscription checkout")
    async def get_subscription_checkout_url(self, user_id: str, price_id: str) -> str:
        """
        Create a hosted Checkout session for a recurring price.

        ``userId`` is attached to the session and to the subscription it
        creates, so webhook events can be mapped back to the user.

        Returns:
            Checkout URL to redirect the user to
        """
        customer_id = await self._require_customer_id(user_id)

        session = stripe.checkout.Session.create(
            api_key=self._config.api_key,
            success_url=self._app_url("/success"),
            cancel_url=self._app_url("/checkout"),
            payment_method_types=["card"],
            mode="subscription",
            customer=customer_id,
            line_items=[{"price": price_id, "quantity": 1}],
            billing_address_collection="auto",
            shipping_address_collection={
                "allowed_countries": list(self._config.shipping_countries),
            },
            metadata={"userId": str(user_id)},
            subscription_data={
                "metadata": {"userId": str(user_id)},
            },
        )

        logger.info(f"Created subscription checkout {session.id} for user {user_id}, price={price_id}")
        return session.url

    @returns_result("create purchase checkout")
    async def get_purchase_checkout_url(self, user_id: str, article: Any) -> str:
        """
        Create a hosted Checkout session for a one-off article purchase.

        Funds are only authorized at checkout (manual capture); the
        payment intent carries ``userId`` and ``articleId`` so the webhook
        handler can record and capture the purchase.

        Args:
            user_id: Buyer
            article: Article with ``id``, ``title`` and ``access_level``

        Returns:
            Checkout URL to redirect the user to
        """
        customer_id = await self._require_customer_id(user_id)
        article_id = str(article.id)
        unit_amount = get_article_price(article_id, article.access_level)

        metadata = {"userId": str(user_id), "articleId": article_id}
        session = stripe.checkout.Session.create(
            api_key=self._config.api_key,
            success_url=self._app_url("/success?" + urlencode({"article_id": article_id})),
            cancel_url=self._app_url("/checkout"),
            payment_method_types=["card"],
            mode="payment",
            customer=customer_id,
            billing_address_collection="auto",
            line_items=[
                {
                    "price_data": {
                        "currency": self._config.currency,
                        "product_data": {
                            "name": PURCHASE_PRODUCT_NAME.format(title=article.title),
                        },
                        "unit_amount": unit_amount,
                    },
                    "quantity": 1,
                }
            ],
            metadata=metadata,
            payment_intent_data={
                "metadata": dict(metadata),
                "capture_method": "manual",
            },
        )

        logger.info(
            f"Created purchase checkout {session.id} for user {user_id}, "
            f"article={article_id}, amount={unit_amount}"
        )
        return session.url

    # =========================================================================
    # Customer Portal
    # =========================================================================

    @returns_result("create portal session")
    async def get_billing_portal_url(self, customer_id: str, return_path: str) -> str:
        """
        Create a Billing Portal session for self-service management.

        Args:
            customer_id: Stripe customer ID
            return_path: Path on the app to return to afterwards

        Returns:
            Portal URL
        """
        session = stripe.billing_portal.Session.create(
            api_key=self._config.api_key,
            customer=customer_id,
            return_url=self.resolve_return_url(return_path),
        )

        logger.info(f"Created portal session for customer {customer_id}")
        return session.url

    # =========================================================================
    # Webhook Support
    # =========================================================================

    def verify_webhook_signature(self, payload: bytes, signature: str) -> Result:
        """
        Verify webhook signature and construct event.

        Returns:
            Ok(stripe.Event) if valid, Err(PaymentProviderError) otherwise
        """
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                self._config.webhook_secret,
            )
            return Ok(event)
        except ValueError as e:
            return Err(PaymentProviderError(f"Invalid payload: {e}", operation="verify webhook"))
        except stripe.SignatureVerificationError as e:
            return Err(PaymentProviderError(f"Invalid signature: {e}", operation="verify webhook"))

    @returns_result("retrieve subscription")
    async def retrieve_subscription(self, subscription_id: str) -> stripe.Subscription:
        """Retrieve a subscription with the product of each price expanded."""
        return stripe.Subscription.retrieve(
            subscription_id,
            api_key=self._config.api_key,
            expand=["items.data.price.product"],
        )

    @returns_result("capture payment")
    async def capture_payment_intent(self, payment_intent_id: str) -> stripe.PaymentIntent:
        """Capture the authorized funds of a manual-capture payment intent."""
        payment_intent = stripe.PaymentIntent.capture(
            payment_intent_id,
            api_key=self._config.api_key,
        )
        logger.info(f"Captured payment intent {payment_intent_id}")
        return payment_intent

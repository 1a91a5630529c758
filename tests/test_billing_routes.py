"""
Integration Tests for Billing Routes

Verifies:
- Checkout provisions the customer before creating a session
- Service errors map to HTTP status codes
- Portal and shipping require a provisioned customer
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from paywall.api.dependencies import get_billing_service
from paywall.domain.result import Err, Ok
from paywall.infrastructure.db.dependencies import (
    get_article_repository,
    get_purchase_repository,
    get_user_repository,
)
from paywall.infrastructure.exceptions import (
    CustomerDeletedError,
    MissingCustomerError,
    PaymentProviderError,
)

from tests.factories import ARTICLE_ID, USER_ID, make_article, make_purchase, make_user


@pytest.fixture
def mock_billing(app):
    billing = MagicMock()
    billing.create_customer_id = AsyncMock(return_value=Ok("cus_1"))
    billing.get_stripe_prices = AsyncMock(return_value=Ok([]))
    billing.get_subscription_checkout_url = AsyncMock(return_value=Ok("https://checkout.stripe.com/c/cs_1"))
    billing.get_purchase_checkout_url = AsyncMock(return_value=Ok("https://checkout.stripe.com/c/cs_2"))
    billing.get_billing_portal_url = AsyncMock(return_value=Ok("https://billing.stripe.com/p/1"))
    billing.get_shipping_by_customer_id = AsyncMock(return_value=Ok(None))
    app.dependency_overrides[get_billing_service] = lambda: billing
    return billing


@pytest.fixture
def mock_users(app):
    users = AsyncMock()
    users.get_user_by_id.return_value = make_user(customer_id="cus_1")
    app.dependency_overrides[get_user_repository] = lambda: users
    return users


@pytest.fixture
def mock_articles(app):
    articles = AsyncMock()
    articles.get_by_id.return_value = make_article("Premium")
    app.dependency_overrides[get_article_repository] = lambda: articles
    return articles


@pytest.fixture
def mock_purchases(app):
    purchases = AsyncMock()
    purchases.get_by_user_and_article.return_value = None
    app.dependency_overrides[get_purchase_repository] = lambda: purchases
    return purchases


class TestPrices:

    def test_lists_prices(self, client, mock_billing):
        mock_billing.get_stripe_prices.return_value = Ok([
            {
                "id": "price_premium",
                "lookup_key": "premium",
                "unit_amount": 980,
                "currency": "jpy",
                "recurring": {"interval": "month"},
                "product": {"name": "Premium plan", "metadata": {"level": "Premium"}},
            },
            {
                "id": "price_odd",
                "lookup_key": "standard",
                "unit_amount": 480,
                "currency": "jpy",
                "recurring": None,
                "product": {"name": "Untagged", "metadata": {}},
            },
        ])

        response = client.get("/api/billing/prices")

        assert response.status_code == 200
        body = response.json()
        assert body[0]["level"] == "Premium"
        assert body[0]["interval"] == "month"
        assert body[1]["level"] is None

    def test_provider_failure(self, client, mock_billing):
        mock_billing.get_stripe_prices.return_value = Err(
            PaymentProviderError("Stripe unavailable", operation="list prices")
        )

        response = client.get("/api/billing/prices")

        assert response.status_code == 502
        assert response.json()["error"] == "PaymentProviderError"


class TestSubscriptionCheckout:

    def test_returns_checkout_url(self, client, auth_headers, mock_billing):
        response = client.post(
            "/api/billing/checkout/subscription",
            json={"price_id": "price_premium"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"checkout_url": "https://checkout.stripe.com/c/cs_1"}
        mock_billing.create_customer_id.assert_awaited_once_with(USER_ID)
        mock_billing.get_subscription_checkout_url.assert_awaited_once_with(USER_ID, "price_premium")

    def test_provisioning_failure_stops_checkout(self, client, auth_headers, mock_billing):
        mock_billing.create_customer_id.return_value = Err(PaymentProviderError("down"))

        response = client.post(
            "/api/billing/checkout/subscription",
            json={"price_id": "price_premium"},
            headers=auth_headers,
        )

        assert response.status_code == 502
        mock_billing.get_subscription_checkout_url.assert_not_awaited()

    def test_missing_customer_is_conflict(self, client, auth_headers, mock_billing):
        mock_billing.get_subscription_checkout_url.return_value = Err(MissingCustomerError(USER_ID))

        response = client.post(
            "/api/billing/checkout/subscription",
            json={"price_id": "price_premium"},
            headers=auth_headers,
        )

        assert response.status_code == 409
        assert response.json()["details"] == {"user_id": USER_ID}


class TestPurchaseCheckout:

    def test_returns_checkout_url(self, client, auth_headers, mock_billing, mock_articles, mock_purchases):
        response = client.post(
            "/api/billing/checkout/purchase",
            json={"article_id": ARTICLE_ID},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["checkout_url"] == "https://checkout.stripe.com/c/cs_2"
        article = mock_billing.get_purchase_checkout_url.await_args.args[1]
        assert article.id == ARTICLE_ID

    def test_unknown_article(self, client, auth_headers, mock_billing, mock_articles, mock_purchases):
        mock_articles.get_by_id.return_value = None

        response = client.post(
            "/api/billing/checkout/purchase",
            json={"article_id": ARTICLE_ID},
            headers=auth_headers,
        )

        assert response.status_code == 404
        mock_billing.create_customer_id.assert_not_awaited()

    def test_already_purchased(self, client, auth_headers, mock_billing, mock_articles, mock_purchases):
        mock_purchases.get_by_user_and_article.return_value = make_purchase("succeeded")

        response = client.post(
            "/api/billing/checkout/purchase",
            json={"article_id": ARTICLE_ID},
            headers=auth_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"] == "AlreadyPurchasedError"
        assert response.json()["details"] == {"user_id": USER_ID, "article_id": ARTICLE_ID}
        mock_billing.create_customer_id.assert_not_awaited()
        mock_billing.get_purchase_checkout_url.assert_not_awaited()

    def test_failed_purchase_can_be_retried(self, client, auth_headers, mock_billing, mock_articles, mock_purchases):
        mock_purchases.get_by_user_and_article.return_value = make_purchase("canceled")

        response = client.post(
            "/api/billing/checkout/purchase",
            json={"article_id": ARTICLE_ID},
            headers=auth_headers,
        )

        assert response.status_code == 200


class TestPortalAndShipping:

    def test_portal_url(self, client, auth_headers, mock_billing, mock_users):
        response = client.post(
            "/api/billing/portal",
            json={"return_path": "/mypage"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"portal_url": "https://billing.stripe.com/p/1"}
        mock_billing.get_billing_portal_url.assert_awaited_once_with("cus_1", "/mypage")

    def test_portal_without_customer(self, client, auth_headers, mock_billing, mock_users):
        mock_users.get_user_by_id.return_value = make_user()

        response = client.post("/api/billing/portal", json={}, headers=auth_headers)

        assert response.status_code == 409
        mock_billing.get_billing_portal_url.assert_not_awaited()

    def test_shipping(self, client, auth_headers, mock_billing, mock_users):
        mock_billing.get_shipping_by_customer_id.return_value = Ok({
            "name": "Reader",
            "phone": None,
            "address": {"country": "JP", "postal_code": "100-0001", "city": "Chiyoda"},
        })

        response = client.get("/api/billing/shipping", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["address"]["postal_code"] == "100-0001"

    def test_no_shipping(self, client, auth_headers, mock_billing, mock_users):
        response = client.get("/api/billing/shipping", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() is None

    def test_deleted_customer(self, client, auth_headers, mock_billing, mock_users):
        mock_billing.get_shipping_by_customer_id.return_value = Err(CustomerDeletedError("cus_1"))

        response = client.get("/api/billing/shipping", headers=auth_headers)

        assert response.status_code == 410

"""
Test configuration and fixtures for the Paywall backend.

Provides shared fixtures for unit and API tests. Environment variables
are set before any paywall module is imported, since settings load at
import time.
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("APP_URL", "https://paywall.example")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_dummy")
os.environ.setdefault("STRIPE_TEST_CLOCK_ID", "clock_test_123")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
from fastapi.testclient import TestClient

from tests.factories import USER_ID, make_user


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app():
    """Get the FastAPI application, with overrides reset after each test."""
    from paywall.main import app
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Get synchronous test client."""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Bearer headers for USER_ID signed with the test secret."""
    token = jwt.encode(
        {"sub": USER_ID, "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
        os.environ["JWT_SECRET"],
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def billing_config():
    """Billing configuration as used outside production."""
    from paywall.infrastructure.payments.stripe_service import BillingConfig

    return BillingConfig(
        app_url="https://paywall.example",
        api_key="sk_test_dummy",
        webhook_secret="whsec_dummy",
        test_clock_id="clock_test_123",
        is_production=False,
    )


@pytest.fixture
def mock_user_store():
    """Mock for the user store (UserRepository)."""
    store = MagicMock()
    store.get_user_by_id = AsyncMock(return_value=make_user())
    store.set_customer_id_if_absent = AsyncMock(return_value=True)
    return store

"""
Unit tests for Dependency Injection providers.

Validates that:
- Billing configuration is built once from settings via @lru_cache
- BillingService is a plain class bound per request to a user store
"""

import pytest
from unittest.mock import MagicMock

from paywall.api.dependencies import get_billing_config, get_billing_service
from paywall.infrastructure.payments.stripe_service import BillingService


class TestDIProviders:
    """Tests for DI provider functions."""

    def test_billing_config_is_cached(self):
        get_billing_config.cache_clear()

        assert get_billing_config() is get_billing_config()

    def test_billing_config_from_settings(self):
        get_billing_config.cache_clear()
        config = get_billing_config()

        assert config.app_url == "https://paywall.example"
        assert config.api_key == "sk_test_dummy"
        assert config.test_clock_id == "clock_test_123"
        assert config.is_production is False

    def test_billing_service_no_singleton_pattern(self):
        """BillingService should NOT have __new__ singleton override."""
        assert BillingService.__new__ is object.__new__

    @pytest.mark.asyncio
    async def test_billing_service_per_store(self, billing_config):
        first = await get_billing_service(MagicMock(), billing_config)
        second = await get_billing_service(MagicMock(), billing_config)

        assert first is not second

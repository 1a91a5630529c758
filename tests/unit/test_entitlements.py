"""
Unit tests for article entitlement rules.
"""

from datetime import datetime, timedelta, timezone

import pytest

from paywall.domain.entitlements import can_read_article, is_subscription_entitled

from tests.factories import make_article, make_purchase, make_subscription


NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


class TestSubscriptionEntitlement:

    def test_no_subscription(self):
        assert is_subscription_entitled(None, NOW) is False

    @pytest.mark.parametrize("status", ["active", "trialing"])
    def test_good_standing(self, status):
        sub = make_subscription(status=status, current_period_end=NOW + timedelta(days=3))
        assert is_subscription_entitled(sub, NOW) is True

    @pytest.mark.parametrize("status", ["past_due", "canceled", "unpaid", "incomplete"])
    def test_bad_standing(self, status):
        sub = make_subscription(status=status, current_period_end=NOW + timedelta(days=3))
        assert is_subscription_entitled(sub, NOW) is False

    def test_period_over(self):
        sub = make_subscription(current_period_end=NOW - timedelta(seconds=1))
        assert is_subscription_entitled(sub, NOW) is False

    def test_naive_period_end_is_utc(self):
        sub = make_subscription(current_period_end=datetime(2026, 6, 2))
        assert is_subscription_entitled(sub, NOW) is True


class TestCanReadArticle:

    def test_free_article_for_anyone(self):
        assert can_read_article(make_article("Free"), now=NOW) is True

    def test_paid_article_needs_something(self):
        assert can_read_article(make_article("Standard"), now=NOW) is False

    @pytest.mark.parametrize("access_level", ["Premium", "Standard"])
    def test_premium_plan_reads_everything(self, access_level):
        sub = make_subscription(level="Premium")
        assert can_read_article(make_article(access_level), sub, now=NOW) is True

    def test_standard_plan_reads_standard(self):
        sub = make_subscription(level="Standard")
        assert can_read_article(make_article("Standard"), sub, now=NOW) is True

    def test_standard_plan_does_not_read_premium(self):
        sub = make_subscription(level="Standard")
        assert can_read_article(make_article("Premium"), sub, now=NOW) is False

    def test_purchase_grants_access(self):
        purchase = make_purchase("succeeded")
        assert can_read_article(make_article("Premium"), None, purchase, now=NOW) is True

    def test_authorized_purchase_grants_access(self):
        purchase = make_purchase("requires_capture")
        assert can_read_article(make_article("Premium"), None, purchase, now=NOW) is True

    @pytest.mark.parametrize("status", ["canceled", "requires_payment_method", "processing"])
    def test_unpaid_purchase(self, status):
        assert can_read_article(make_article("Premium"), None, make_purchase(status), now=NOW) is False

    def test_purchase_covers_lapsed_subscription(self):
        sub = make_subscription(level="Premium", status="canceled")
        purchase = make_purchase("succeeded")
        assert can_read_article(make_article("Premium"), sub, purchase, now=NOW) is True

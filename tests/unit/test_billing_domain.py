"""
Unit tests for billing domain rules.

Covers plan level mapping from Stripe metadata and article pricing.
"""

import pytest

from paywall.domain.billing import (
    PREMIUM_PRICE,
    STANDARD_PRICE,
    ArticleAccessLevel,
    SubscriptionLevel,
    get_article_price,
    get_level_from_metadata,
)
from paywall.infrastructure.exceptions import (
    ArticleNotPurchasableError,
    InvalidMetadataError,
)


class TestGetLevelFromMetadata:

    def test_premium(self):
        assert get_level_from_metadata({"level": "Premium"}) == SubscriptionLevel.PREMIUM

    def test_standard(self):
        assert get_level_from_metadata({"level": "Standard"}) == SubscriptionLevel.STANDARD

    @pytest.mark.parametrize("metadata", [
        {},
        None,
        {"level": ""},
        {"level": None},
        {"level": "premium"},
        {"level": "Free"},
        {"tier": "Premium"},
    ])
    def test_rejects_anything_else(self, metadata):
        """There is no fallback tier."""
        with pytest.raises(InvalidMetadataError):
            get_level_from_metadata(metadata)

    def test_error_carries_metadata(self):
        with pytest.raises(InvalidMetadataError) as exc_info:
            get_level_from_metadata({"level": "Gold"})

        assert exc_info.value.details == {"metadata": {"level": "Gold"}}


class TestGetArticlePrice:

    def test_premium_price(self):
        assert get_article_price("a1", ArticleAccessLevel.PREMIUM) == PREMIUM_PRICE

    def test_standard_price(self):
        assert get_article_price("a1", "Standard") == STANDARD_PRICE

    def test_free_is_not_purchasable(self):
        with pytest.raises(ArticleNotPurchasableError) as exc_info:
            get_article_price("a1", ArticleAccessLevel.FREE)

        assert exc_info.value.details == {"article_id": "a1", "access_level": "Free"}

    def test_unknown_level_is_not_purchasable(self):
        with pytest.raises(ArticleNotPurchasableError) as exc_info:
            get_article_price("a1", "Gold")

        assert exc_info.value.details == {"article_id": "a1", "access_level": "Gold"}

    def test_premium_costs_more(self):
        assert PREMIUM_PRICE > STANDARD_PRICE > 0

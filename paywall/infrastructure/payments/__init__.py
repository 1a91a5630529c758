"""
Payments Infrastructure Module

Stripe customer, checkout, portal and webhook support services.
"""

from paywall.infrastructure.payments.stripe_service import (
    BillingConfig,
    BillingService,
    UserStore,
)

__all__ = ["BillingConfig", "BillingService", "UserStore"]

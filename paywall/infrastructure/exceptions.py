"""
Custom Exceptions for the Paywall backend

Hierarchical exception classes for proper error handling across layers.
"""

from typing import Optional, Dict, Any


class PaywallError(Exception):
    """Base exception for all Paywall errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(PaywallError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if resource:
            details["resource"] = resource
        if resource_id:
            details["id"] = resource_id
        super().__init__(message, details, original_error)


class MissingCustomerError(PaywallError):
    """Raised when an operation needs a Stripe customer the user does not have yet."""

    def __init__(self, user_id: str):
        super().__init__(
            f"No Stripe customer provisioned for user {user_id}",
            {"user_id": user_id},
        )


class InvalidMetadataError(PaywallError):
    """Raised when Stripe metadata carries no recognized plan level."""

    def __init__(self, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(
            "Metadata has no valid subscription level",
            {"metadata": dict(metadata or {})},
        )


class CustomerDeletedError(PaywallError):
    """Raised when the Stripe customer was deleted on the Stripe side."""

    def __init__(self, customer_id: str):
        super().__init__(
            f"Stripe customer {customer_id} has been deleted",
            {"customer_id": customer_id},
        )


class ArticleNotPurchasableError(PaywallError):
    """Raised when a one-off purchase is requested for an article with no price."""

    def __init__(self, article_id: str, access_level: str):
        super().__init__(
            f"Article {article_id} ({access_level}) cannot be purchased",
            {"article_id": article_id, "access_level": access_level},
        )


class AlreadyPurchasedError(PaywallError):
    """Raised when a user starts checkout for an article they already own."""

    def __init__(self, user_id: str, article_id: str):
        super().__init__(
            f"Article {article_id} already purchased by user {user_id}",
            {"user_id": user_id, "article_id": article_id},
        )


class PaymentProviderError(PaywallError):
    """Raised when a Stripe API call fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details, original_error)


class ConfigurationError(PaywallError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(message, details, original_error)

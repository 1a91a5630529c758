"""
HTTP mapping for service errors.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from paywall.infrastructure.exceptions import (
    AlreadyPurchasedError,
    ArticleNotPurchasableError,
    ConfigurationError,
    CustomerDeletedError,
    InvalidMetadataError,
    MissingCustomerError,
    NotFoundError,
    PaymentProviderError,
    PaywallError,
)


ERROR_STATUS_CODES = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    MissingCustomerError: status.HTTP_409_CONFLICT,
    AlreadyPurchasedError: status.HTTP_409_CONFLICT,
    ArticleNotPurchasableError: status.HTTP_400_BAD_REQUEST,
    InvalidMetadataError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    CustomerDeletedError: status.HTTP_410_GONE,
    PaymentProviderError: status.HTTP_502_BAD_GATEWAY,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_code_for(error: PaywallError) -> int:
    """HTTP status for an error, falling back through its base classes."""
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def paywall_error_handler(request: Request, exc: PaywallError) -> JSONResponse:
    """Translate any PaywallError into a JSON error response."""
    return JSONResponse(
        status_code=status_code_for(exc),
        content=exc.to_dict(),
    )

# API Routes Module
from paywall.api.routes import (
    articles,
    billing,
    webhooks,
)

__all__ = [
    "articles",
    "billing",
    "webhooks",
]

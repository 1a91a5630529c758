"""
User Database Model

Root entity of the paywall: owns its subscription and purchases.
"""

from typing import Optional

from sqlmodel import Field

from paywall.infrastructure.db.models.base import BaseModel


class User(BaseModel, table=True):
    """
    Reader account.

    ``customer_id`` is the Stripe customer, assigned lazily on the first
    checkout and never replaced afterwards.
    """

    __tablename__ = "users"

    email: str = Field(unique=True, index=True, max_length=320)
    name: Optional[str] = Field(default=None, max_length=255)
    image: Optional[str] = Field(default=None)
    hashed_password: Optional[str] = Field(default=None)

    customer_id: Optional[str] = Field(default=None, unique=True, index=True)

"""
Article Database Model
"""

from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import Field

from paywall.domain.billing import ArticleAccessLevel
from paywall.infrastructure.db.models.base import BaseModel


class Article(BaseModel, table=True):
    """Paywalled article. The access level decides its price tier."""

    __tablename__ = "articles"

    title: str = Field(max_length=255)
    content: str = Field(sa_column=Column(Text, nullable=False))
    image: Optional[str] = Field(default=None)
    access_level: str = Field(default=ArticleAccessLevel.FREE.value, max_length=20, index=True)

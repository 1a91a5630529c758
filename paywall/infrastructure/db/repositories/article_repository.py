"""
Article Repository
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paywall.infrastructure.db.models.article import Article
from paywall.infrastructure.db.repositories.base_repository import BaseRepository


class ArticleRepository(BaseRepository[Article]):
    """Repository for Article reads."""

    def __init__(self, session: AsyncSession):
        super().__init__(Article, session)

    async def list_recent(
        self,
        skip: int = 0,
        limit: int = 50,
        access_level: Optional[str] = None,
    ) -> List[Article]:
        """List articles newest first, optionally filtered by access level."""
        stmt = select(Article)
        if access_level:
            stmt = stmt.where(Article.access_level == access_level)
        stmt = stmt.order_by(Article.created_at.desc()).offset(skip).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

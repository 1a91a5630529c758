"""
Base Repository for the Paywall backend

Generic async repository holding the session and the primary key
lookup shared by every entity repository.
"""

from typing import TypeVar, Generic, Optional, Type, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel


ModelType = TypeVar("ModelType", bound=SQLModel)


def as_uuid(value: Union[str, UUID]) -> UUID:
    """Coerce string ids (as echoed back in Stripe metadata) to UUID."""
    return UUID(value) if isinstance(value, str) else value


class BaseRepository(Generic[ModelType]):
    """
    Generic async repository.

    Repositories flush but never commit; the request session decides
    the transaction.

    Args:
        model: The SQLModel class to operate on
        session: Async database session
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self._model = model
        self._session = session

    @property
    def session(self) -> AsyncSession:
        """Get the current session."""
        return self._session

    async def get_by_id(self, id: Union[str, UUID]) -> Optional[ModelType]:
        """
        Get a single record by its primary key.

        Args:
            id: UUID primary key (string form accepted)

        Returns:
            Model instance or None if not found
        """
        try:
            key = as_uuid(id)
        except ValueError:
            return None
        return await self._session.get(self._model, key)

"""Repository for interacting with user persistence models."""

from __future__ import annotations

from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Concrete repository for lookups on ``User`` entities."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)


__all__ = ["UserRepository"]

"""
Base service class.
Services own the business rules and share one request session across their repositories.
"""

import logging
from abc import ABC
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.services.client_scope import ClientScope, resolve_client_scope

logger = logging.getLogger(__name__)


class BaseService(ABC):
    """Base service class for all services."""

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    async def commit(self, action: str) -> None:
        """Commit the session, logging and rolling back when the write fails."""
        try:
            await self.session.commit()
        except SQLAlchemyError:
            logger.exception(f"Failed to {action}")
            await self.session.rollback()
            raise

    async def client_scope(self, user: User) -> ClientScope:
        return await resolve_client_scope(self.session, user)

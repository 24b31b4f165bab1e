"""
Row visibility for users who may not see every client.
"""

from typing import Optional
from uuid import UUID
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import can_view_all_clients, is_client
from app.db.repositories.client_repository import ClientRepository
from app.models.user import User


class ClientScope(BaseModel):
    """
    unrestricted: the user sees every record.
    Otherwise only records of client_id (portal users) or created_by (internal users).
    A portal user whose email matches no client sees nothing.
    """
    unrestricted: bool = False
    client_id: Optional[UUID] = None
    created_by: Optional[UUID] = None

    @property
    def sees_nothing(self) -> bool:
        return not self.unrestricted and self.client_id is None and self.created_by is None

    def allows(self, client_id: Optional[UUID], created_by: Optional[UUID] = None) -> bool:
        if self.unrestricted:
            return True
        if self.client_id is not None:
            return client_id == self.client_id
        return self.created_by is not None and created_by == self.created_by


async def resolve_client_scope(session: AsyncSession, user: User) -> ClientScope:
    if is_client(user):
        client = await ClientRepository(session).get_by_email(user.email)
        return ClientScope(client_id=client.id if client else None)
    if can_view_all_clients(user):
        return ClientScope(unrestricted=True)
    return ClientScope(created_by=user.id)

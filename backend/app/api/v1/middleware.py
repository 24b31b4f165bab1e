"""
Authentication dependency for the protected billing routes.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token, user_id_from_claims
from app.db.session import get_db
from app.db.repositories.user_repository import UserRepository
from app.models.user import User

security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_authentication(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to an active User.

    Attached to every protected router; endpoints that need the caller
    declare it again and FastAPI resolves it once per request.

    Raises:
        HTTPException: 401 for a bad token or unknown user, 403 for a deactivated account
    """
    claims = decode_access_token(credentials.credentials)
    if not claims:
        raise _unauthorized("Invalid authentication token")

    user_id = user_id_from_claims(claims)
    if user_id is None:
        raise _unauthorized("Token missing user ID")

    user = await UserRepository(db).get(user_id)
    if not user:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is not active",
        )
    return user

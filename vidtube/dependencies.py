import logging
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from vidtube.db.session import get_db
from vidtube.db.repositories.user_repo import get_user_by_id
from vidtube.services.auth_service import decode_access_token
from vidtube.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def _user_from_token(db: AsyncSession, token: str) -> User | None:
    payload = decode_access_token(token)
    if not payload or "sub" not in payload:
        return None
    try:
        uid = UUID(str(payload["sub"]))
    except ValueError:
        return None
    return await get_user_by_id(db, uid)


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authentication token, access denied",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = await _user_from_token(db, credentials.credentials)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not valid",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    db: AsyncSession = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User | None:
    """Like ``get_current_user`` but an absent or bad token just means anonymous."""
    if not credentials or not credentials.credentials:
        return None
    user = await _user_from_token(db, credentials.credentials)
    if not user:
        logger.debug("Ignoring invalid bearer token on public endpoint")
    return user

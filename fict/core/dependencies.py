"""
Dependency injection for FastAPI.
"""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from fict.infrastructure.database.base import get_db
from fict.infrastructure.database.models import Session, User
from fict.repositories.session import SessionRepository

bearer_scheme = HTTPBearer(auto_error=False)

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def parse_session_token(raw: str) -> Optional[int]:
    """Parse a bearer credential into a 64-bit session token, or None."""
    try:
        token = int(raw)
    except ValueError:
        return None
    if token < INT64_MIN or token > INT64_MAX:
        return None
    return token


async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Session:
    """
    Get the session named by the request's bearer token.

    Raises:
        HTTPException: If the token is missing, malformed, or unknown
        StorageError: If the sessions table cannot be queried
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    token = parse_session_token(credentials.credentials)
    if token is None:
        raise _unauthorized("Could not validate credentials")

    session = await SessionRepository(db).validate(token)
    if session is None:
        raise _unauthorized("Could not validate credentials")

    return session


async def get_current_user(
    session: Session = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get current authenticated user from their session.

    Args:
        session: Session resolved from the bearer token
        db: Database session

    Returns:
        Current user
    """
    return await SessionRepository(db).get_user(session)

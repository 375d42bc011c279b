"""
Session repository: create and look up active user sessions.
"""
import secrets
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fict.core.exceptions import StorageError
from fict.infrastructure.database.models import Session, User
from fict.repositories.base import BaseRepository

logger = structlog.get_logger(__name__)

# Attempts at drawing an unused token before giving up.
MAX_TOKEN_ATTEMPTS = 3


def generate_session_token() -> int:
    """Draw a random signed 64-bit bearer token."""
    return int.from_bytes(secrets.token_bytes(8), "big", signed=True)


class SessionRepository(BaseRepository[Session]):
    """Session repository."""

    def __init__(self, db: AsyncSession):
        super().__init__(Session, db)

    async def assign(self, user: User) -> Session:
        """
        Assign a new session to a newly logged-in user.

        Args:
            user: Persisted user; an unsaved user is a programming error

        Returns:
            The created session, carrying its bearer token

        Raises:
            StorageError: If the session row cannot be inserted
        """
        assert user.id is not None, "Session.assign requires a persisted user"
        # A rollback expires `user`; reading it afterwards would reload lazily.
        user_id = user.id

        for attempt in range(1, MAX_TOKEN_ATTEMPTS + 1):
            try:
                session = await self.create({
                    "token": generate_session_token(),
                    "user_id": user_id,
                })
            except IntegrityError:
                await self.db.rollback()
                logger.warning("session_token_collision", user_id=user_id, attempt=attempt)
                continue
            except SQLAlchemyError as e:
                await self.db.rollback()
                logger.error("session_assign_failed", user_id=user_id, error=str(e))
                raise StorageError(f"Unable to create session: {e.__class__.__name__}", operation="assign")

            logger.info("session_assigned", session_id=session.id, user_id=user_id)
            return session

        raise StorageError("Unable to allocate a unique session token", operation="assign")

    async def validate(self, token: int) -> Optional[Session]:
        """
        Given an API token from a request, attempt to locate the created session.

        Returns:
            The session if one matches, ``None`` if no session has this token

        Raises:
            StorageError: If there's some problem checking the database
        """
        try:
            stmt = select(Session).where(Session.token == token)
            result = await self.db.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("session_validate_failed", error=str(e))
            raise StorageError(f"Unable to validate session: {e.__class__.__name__}", operation="validate")

    async def get_user(self, session: Session) -> User:
        """Access the user corresponding to this session."""
        try:
            stmt = select(User).where(User.id == session.user_id)
            result = await self.db.execute(stmt)
            return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error("session_user_lookup_failed", session_id=session.id, error=str(e))
            raise StorageError(f"Unable to load session owner: {e.__class__.__name__}", operation="get_user")

"""
User repository.
"""
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fict.core.exceptions import StorageError
from fict.infrastructure.database.models import User
from fict.repositories.base import BaseRepository

logger = structlog.get_logger(__name__)


class UserRepository(BaseRepository[User]):
    """User repository."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_email(
        self,
        email: str,
    ) -> Optional[User]:
        """
        Get user by email.

        Args:
            email: User email

        Returns:
            User if found
        """
        stmt = select(User).where(User.email == email)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_or_create(self, email: str, name: str) -> User:
        """
        Discover an existing user by email address, or create and persist one.

        An existing user whose stored name differs from ``name`` has the name
        updated. Concurrent logins for the same new email race on the unique
        index; the loser rolls back and returns the winner's row.

        Args:
            email: Email address reported by the identity provider
            name: Display name reported by the identity provider

        Returns:
            Persisted user (``id`` is always set)

        Raises:
            StorageError: If the database cannot be queried
        """
        try:
            user = await self.get_by_email(email)
            if user is None:
                try:
                    user = await self.create({"email": email, "name": name})
                except IntegrityError:
                    await self.db.rollback()
                    logger.info("user_create_raced", email=email)
                    user = await self.get_by_email(email)
                    if user is None:
                        raise StorageError("User vanished after concurrent insert", operation="find_or_create")
                else:
                    logger.info("user_created", user_id=user.id, email=email)
                    return user

            if user.name != name:
                logger.info("user_name_updated", user_id=user.id)
                user = await self.update(user, {"name": name})

            return user

        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("user_find_or_create_failed", error=str(e))
            raise StorageError(f"Unable to resolve user: {e.__class__.__name__}", operation="find_or_create")

"""
Database models for Fict users and their login sessions.
"""
from sqlalchemy import BigInteger, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from fict.infrastructure.database.base import Base

# BIGINT identity on PostgreSQL; SQLite only autoincrements INTEGER primary keys.
Identity = BigInteger().with_variant(Integer(), "sqlite")


class User(Base):
    """Participant in the collaborative storytelling process. Created on first OAuth login."""
    __tablename__ = "users"

    id = Column(Identity, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True, index=True)

    sessions = relationship(
        "Session",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"User(id={self.id!r} email={self.email!r})"


class Session(Base):
    """An active bearer session issued after a completed OAuth handshake."""
    __tablename__ = "sessions"

    id = Column(Identity, primary_key=True, autoincrement=True)
    token = Column(BigInteger, nullable=False, unique=True, index=True)
    user_id = Column(
        Identity,
        ForeignKey("users.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )

    user = relationship("User", back_populates="sessions")

    def __repr__(self) -> str:
        # The token is a credential; keep it out of logs.
        return f"Session(id={self.id!r} user_id={self.user_id!r} token=[..])"

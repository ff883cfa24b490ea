"""
SQLAlchemy models for users and identity providers.

Only the columns the authentication core reads and writes are mapped here.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for all persistence models."""

    pass


class IdentityProvider(Base):
    """
    Identity provider reference row.

    Seeded once with the fixed provider set and never modified afterwards.
    """

    __tablename__ = "provider"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, nullable=False)
    modified_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<IdentityProvider(id={self.id}, name={self.name})>"


class UserAccount(Base):
    """
    Platform user account.

    Usernames are unique across all providers. Externally provisioned accounts
    store empty password hash and salt.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Credentials (empty for externally provisioned users)
    password_hash: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    salt: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    provider_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("provider.id"), nullable=False, index=True
    )
    provider: Mapped[Optional[IdentityProvider]] = relationship(lazy="raise")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, nullable=False)
    modified_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<UserAccount(id={self.id}, username={self.username})>"

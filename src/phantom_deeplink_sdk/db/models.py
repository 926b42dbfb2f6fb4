"""SQLAlchemy ORM models for persisted deep-link sessions."""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(AsyncAttrs, DeclarativeBase):
    pass


class StoredSession(Base):
    """Key pair and session of the active connection, one row per slot."""

    __tablename__ = "deeplink_sessions"

    slot: Mapped[str] = mapped_column(String(64), primary_key=True)
    state: Mapped[str] = mapped_column(String(32), nullable=False, default="disconnected")

    # base58; the shared secret is re-derived from these and never stored
    dapp_secret_key: Mapped[str | None] = mapped_column(String(64), nullable=True)
    phantom_encryption_public_key: Mapped[str | None] = mapped_column(String(64), nullable=True)
    nonce: Mapped[str | None] = mapped_column(String(64), nullable=True)
    wallet_public_key: Mapped[str | None] = mapped_column(String(64), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

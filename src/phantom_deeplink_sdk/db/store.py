"""Durable storage for session snapshots across redirect-induced restarts."""

from __future__ import annotations

import logging
from dataclasses import replace

from sqlalchemy import delete, select

from ..session import SessionContext
from ..types import ConnectionState, SessionSnapshot
from .models import StoredSession
from .sqlalchemy_manager import SQLAlchemyManager

logger = logging.getLogger(__name__)


class SessionStore:
    """Interface for session snapshot persistence."""

    async def load(self) -> SessionSnapshot | None:
        raise NotImplementedError

    async def save(self, snapshot: SessionSnapshot) -> None:
        raise NotImplementedError

    async def clear(self) -> None:
        raise NotImplementedError

    async def persist(self, context: SessionContext) -> None:
        """Save the context's current snapshot; storage failures are logged."""
        try:
            if context.key_pair is None:
                await self.clear()
            else:
                await self.save(context.snapshot())
        except Exception as e:
            logger.error(f"Failed to persist session state: {e}", exc_info=True)


class MemorySessionStore(SessionStore):
    """Process-wide store; survives re-creation of the app object, not of the process."""

    def __init__(self) -> None:
        self._snapshot: SessionSnapshot | None = None

    async def load(self) -> SessionSnapshot | None:
        return replace(self._snapshot) if self._snapshot else None

    async def save(self, snapshot: SessionSnapshot) -> None:
        self._snapshot = replace(snapshot)

    async def clear(self) -> None:
        self._snapshot = None


_process_store = MemorySessionStore()


def get_process_store() -> MemorySessionStore:
    """The process-wide in-memory store used when no database is configured."""
    return _process_store


class SQLAlchemySessionStore(SessionStore):
    """Stores the snapshot in a single row keyed by ``slot``."""

    def __init__(self, manager: SQLAlchemyManager, slot: str = "default") -> None:
        self.manager = manager
        self.slot = slot

    async def load(self) -> SessionSnapshot | None:
        async with self.manager.get_session() as session:
            result = await session.execute(
                select(StoredSession).where(StoredSession.slot == self.slot)
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            try:
                state = ConnectionState(row.state)
            except ValueError:
                logger.warning(f"⚠️ Unknown persisted state '{row.state}', treating as disconnected")
                state = ConnectionState.DISCONNECTED
            return SessionSnapshot(
                state=state,
                dapp_secret_key=row.dapp_secret_key,
                phantom_encryption_public_key=row.phantom_encryption_public_key,
                nonce=row.nonce,
                wallet_public_key=row.wallet_public_key,
            )

    async def save(self, snapshot: SessionSnapshot) -> None:
        async with self.manager.get_session() as session:
            await session.merge(
                StoredSession(
                    slot=self.slot,
                    state=snapshot.state.value,
                    dapp_secret_key=snapshot.dapp_secret_key,
                    phantom_encryption_public_key=snapshot.phantom_encryption_public_key,
                    nonce=snapshot.nonce,
                    wallet_public_key=snapshot.wallet_public_key,
                )
            )

    async def clear(self) -> None:
        async with self.manager.get_session() as session:
            await session.execute(delete(StoredSession).where(StoredSession.slot == self.slot))

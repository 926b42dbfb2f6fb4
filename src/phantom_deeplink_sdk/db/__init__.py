from .models import Base, StoredSession
from .sqlalchemy_manager import SQLAlchemyManager, get_db_manager, init_db, set_db_manager
from .store import (
    MemorySessionStore,
    SessionStore,
    SQLAlchemySessionStore,
    get_process_store,
)

__all__ = [
    "Base",
    "StoredSession",
    "SQLAlchemyManager",
    "get_db_manager",
    "set_db_manager",
    "init_db",
    "SessionStore",
    "MemorySessionStore",
    "SQLAlchemySessionStore",
    "get_process_store",
]

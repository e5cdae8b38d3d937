from .connection import (
    async_session_maker,
    close_db,
    configure_sqlite_transactions,
    engine,
    get_db,
    get_db_context,
    init_db,
)
from .models.base import Base

__all__ = [
    "Base",
    "engine",
    "async_session_maker",
    "configure_sqlite_transactions",
    "get_db",
    "get_db_context",
    "init_db",
    "close_db",
]

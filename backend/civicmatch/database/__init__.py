# backend/civicmatch/database/__init__.py

"""Database package exports."""

from civicmatch.database.connection import (
    Base,
    engine,
    SessionLocal,
    get_db,
    init_db,
    drop_db,
    check_database_health,
    get_table_names,
    close_database_connections,
)

from civicmatch.database.models import UnmappedTerm

__all__ = [
    # Connection
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
    "drop_db",
    "check_database_health",
    "get_table_names",
    "close_database_connections",

    # Models
    "UnmappedTerm",
]

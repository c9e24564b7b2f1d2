"""
Database Module
"""
from .connection import init_database, close_database, get_db
from .models import Base, WATCHED_TABLES
from .notifications import ChangeFeed, ChangeNotification, PostgresChangeListener

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "Base",
    "WATCHED_TABLES",
    "ChangeFeed",
    "ChangeNotification",
    "PostgresChangeListener",
]

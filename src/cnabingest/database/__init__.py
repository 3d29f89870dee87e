"""Database layer for cnabingest."""

from cnabingest.database.base import Database, UnitOfWork
from cnabingest.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "UnitOfWork", "create_database", "create_sqlite_database"]

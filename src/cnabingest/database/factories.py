"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from cnabingest.database.sqlalchemy_db import SQLAlchemyDatabase


def create_database(database_url: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a database instance from a SQLAlchemy URL.

    Args:
        database_url: SQLAlchemy URL. If None, checks the CNAB_DB_URL
            environment variable, then defaults to a SQLite file at
            ~/.cnabingest/cnabingest.db

    Returns:
        SQLAlchemyDatabase instance
    """
    if database_url is None:
        database_url = os.environ.get("CNAB_DB_URL")

    if database_url is None:
        return create_sqlite_database()

    return SQLAlchemyDatabase(database_url)


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. Defaults to
            ~/.cnabingest/cnabingest.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        db_dir = Path.home() / ".cnabingest"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "cnabingest.db")

    return SQLAlchemyDatabase(f"sqlite:///{database_path}")

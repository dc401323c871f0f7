"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``) and applying migrations on application start
(``init_db``).  SQLite stands in for the document store: list‑valued
fields (images, datasets, authors) are kept as JSON text and decoded
by the services.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import PACKAGE_ROOT, Settings


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            hashed_password TEXT NOT NULL,
            salt TEXT NOT NULL,
            access_token TEXT UNIQUE,
            email_notifications INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT,
            location TEXT,
            start_date TIMESTAMP,
            end_date TIMESTAMP,
            homepage TEXT,
            owner INTEGER,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(owner) REFERENCES users(id) ON DELETE SET NULL
        );

        CREATE TABLE IF NOT EXISTS applications (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT,
            text TEXT,
            homepage TEXT,
            download_url TEXT,
            connected_event INTEGER,
            published INTEGER NOT NULL DEFAULT 0,
            datasets TEXT,
            images TEXT,
            authors TEXT,
            owner INTEGER,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(owner) REFERENCES users(id) ON DELETE SET NULL
        );
        """,
    ),
    # Migration 2: indices for notification lookups
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_applications_connected_event ON applications(connected_event);
        CREATE INDEX IF NOT EXISTS idx_events_owner ON events(owner);
        """,
    ),
]


def get_database_path(settings: Settings) -> str:
    """Compute the path to the SQLite database file.

    Uses the test database when ``settings.test_mode`` is set.  Absolute
    paths are returned unchanged; relative ones are resolved against the
    package directory.
    """
    db_url = settings.active_database_url
    if os.path.isabs(db_url):
        return db_url
    return str((PACKAGE_ROOT / db_url).resolve())


def get_connection(settings: Settings) -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Foreign key enforcement is switched on for the connection.
    """
    conn = sqlite3.connect(get_database_path(settings))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor(settings: Settings) -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection(settings)
    try:
        yield conn.cursor()
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(settings: Settings) -> None:
    """Initialise the database and apply pending migrations.

    In test mode the database file is removed first so that every run
    starts from an empty store.
    """
    logger = logging.getLogger(__name__)
    db_path = Path(get_database_path(settings))
    if settings.test_mode and db_path.exists():
        logger.info("Test mode: dropping database %s", db_path)
        db_path.unlink()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_cursor(settings) as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                logger.info("Applying migration %s", version)
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version

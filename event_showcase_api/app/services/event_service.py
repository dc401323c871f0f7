"""
Business logic for events.

Events are plain CRUD records.  The only field with meaning for the
rest of the system is ``owner``: the user who created the event and
who gets notified about new applications to it.
"""

import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from ..core.config import Settings
from ..core.db import get_connection
from ..schemas.event import EventCreate, EventRead


EVENT_COLUMNS = "id, title, description, location, start_date, end_date, homepage, owner"


def _to_db(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _row_to_event(row: sqlite3.Row) -> EventRead:
    return EventRead(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        location=row["location"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        homepage=row["homepage"],
        owner=row["owner"],
    )


class EventService:
    """Service for managing events."""

    @classmethod
    async def create_event(cls, settings: Settings, data: EventCreate, owner: Optional[int]) -> EventRead:
        """Create a new event owned by ``owner`` (may be anonymous)."""
        logger = logging.getLogger(__name__)
        conn = get_connection(settings)
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO events (title, description, location, start_date, end_date, homepage, owner)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.title,
                    data.description,
                    data.location,
                    _to_db(data.start_date),
                    _to_db(data.end_date),
                    data.homepage,
                    owner,
                ),
            )
            event_id = cursor.lastrowid
            conn.commit()
            logger.info("User %s created event %s '%s'", owner, event_id, data.title)
            row = cursor.execute(
                f"SELECT {EVENT_COLUMNS} FROM events WHERE id = ?", (event_id,)
            ).fetchone()
            return _row_to_event(row)
        finally:
            conn.close()

    @classmethod
    async def list_events(cls, settings: Settings, limit: int = 100, offset: int = 0) -> List[EventRead]:
        conn = get_connection(settings)
        try:
            rows = conn.execute(
                f"SELECT {EVENT_COLUMNS} FROM events ORDER BY id ASC LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
            return [_row_to_event(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_event(cls, settings: Settings, event_id: int) -> EventRead:
        """Retrieve a single event by ID.

        Raises ``ValueError`` if the event does not exist.
        """
        conn = get_connection(settings)
        try:
            row = conn.execute(
                f"SELECT {EVENT_COLUMNS} FROM events WHERE id = ?", (event_id,)
            ).fetchone()
            if not row:
                raise ValueError(f"Event {event_id} not found")
            return _row_to_event(row)
        finally:
            conn.close()

    @classmethod
    async def update_event(cls, settings: Settings, event_id: int, updates: dict) -> EventRead:
        """Update fields of an existing event.

        Only keys present in ``updates`` are written.  Raises
        ``ValueError`` if the event does not exist.
        """
        logger = logging.getLogger(__name__)
        conn = get_connection(settings)
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT id FROM events WHERE id = ?", (event_id,)).fetchone()
            if not row:
                raise ValueError(f"Event {event_id} not found")
            if updates:
                fields = [f"{key} = ?" for key in updates]
                values = [_to_db(value) for value in updates.values()] + [event_id]
                sql = f"UPDATE events SET {', '.join(fields)}, updated_at = CURRENT_TIMESTAMP WHERE id = ?"
                cursor.execute(sql, tuple(values))
                conn.commit()
                logger.info("Updated event %s", event_id)
            event_row = cursor.execute(
                f"SELECT {EVENT_COLUMNS} FROM events WHERE id = ?", (event_id,)
            ).fetchone()
            return _row_to_event(event_row)
        finally:
            conn.close()

    @classmethod
    async def delete_event(cls, settings: Settings, event_id: int) -> None:
        """Delete an event.

        Applications keep their ``connected_event`` value; it simply no
        longer resolves.  Raises ``ValueError`` if the event does not
        exist.
        """
        logger = logging.getLogger(__name__)
        conn = get_connection(settings)
        try:
            cursor = conn.cursor()
            exists = cursor.execute("SELECT id FROM events WHERE id = ?", (event_id,)).fetchone()
            if not exists:
                raise ValueError(f"Event {event_id} not found")
            cursor.execute("DELETE FROM events WHERE id = ?", (event_id,))
            conn.commit()
            logger.info("Deleted event %s", event_id)
        finally:
            conn.close()

"""
Business logic for applications.

This service performs the base create/read/update/delete operations
on the ``applications`` table.  Datasets, authors and images are kept
as JSON text.  The base write only stores images that already have a
permanent URL (``src``); uploaded images are added afterwards by the
promotion hook in ``application_hooks`` through ``set_images``.
"""

import json
import logging
import sqlite3
from typing import List, Optional

from ..core.config import Settings
from ..core.db import get_connection
from ..schemas.application import ApplicationCreate, ApplicationRead, ApplicationUpdate, ImageRef


APPLICATION_COLUMNS = (
    "id, title, text, homepage, download_url, connected_event, published, "
    "datasets, images, authors, owner"
)

# Columns holding JSON‑encoded lists.
JSON_COLUMNS = {"datasets", "images", "authors"}


def _loads(value: Optional[str]) -> list:
    return json.loads(value) if value else []


def _row_to_application(row: sqlite3.Row) -> ApplicationRead:
    return ApplicationRead(
        id=row["id"],
        title=row["title"],
        text=row["text"],
        homepage=row["homepage"],
        download_url=row["download_url"],
        connected_event=row["connected_event"],
        published=bool(row["published"]),
        datasets=_loads(row["datasets"]),
        images=_loads(row["images"]),
        authors=_loads(row["authors"]),
        owner=row["owner"],
    )


def _permanent_sources(images: List[ImageRef]) -> List[str]:
    return [image.src for image in images if image.src]


class ApplicationService:
    """Service for managing applications."""

    @classmethod
    async def create_application(
        cls,
        settings: Settings,
        data: ApplicationCreate,
        owner: Optional[int],
    ) -> ApplicationRead:
        logger = logging.getLogger(__name__)
        conn = get_connection(settings)
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO applications (title, text, homepage, download_url, connected_event,
                                          published, datasets, images, authors, owner)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.title,
                    data.text,
                    data.homepage,
                    data.download_url,
                    data.connected_event,
                    int(data.published),
                    json.dumps([d.model_dump() for d in data.datasets]),
                    json.dumps(_permanent_sources(data.images)),
                    json.dumps([a.model_dump() for a in data.authors]),
                    owner,
                ),
            )
            application_id = cursor.lastrowid
            conn.commit()
            logger.info(
                "Application %s submitted to event %s by user %s",
                application_id,
                data.connected_event,
                owner,
            )
            row = cursor.execute(
                f"SELECT {APPLICATION_COLUMNS} FROM applications WHERE id = ?",
                (application_id,),
            ).fetchone()
            return _row_to_application(row)
        finally:
            conn.close()

    @classmethod
    async def list_applications(
        cls,
        settings: Settings,
        connected_event: Optional[int] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ApplicationRead]:
        """Return applications, optionally only those of one event."""
        conn = get_connection(settings)
        try:
            query = f"SELECT {APPLICATION_COLUMNS} FROM applications"
            params: list = []
            if connected_event is not None:
                query += " WHERE connected_event = ?"
                params.append(connected_event)
            query += " ORDER BY id ASC LIMIT ? OFFSET ?"
            params.extend([limit, offset])
            rows = conn.execute(query, tuple(params)).fetchall()
            return [_row_to_application(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_application(cls, settings: Settings, application_id: int) -> ApplicationRead:
        """Retrieve a single application.

        Raises ``ValueError`` if the application does not exist.
        """
        conn = get_connection(settings)
        try:
            row = conn.execute(
                f"SELECT {APPLICATION_COLUMNS} FROM applications WHERE id = ?",
                (application_id,),
            ).fetchone()
            if not row:
                raise ValueError(f"Application {application_id} not found")
            return _row_to_application(row)
        finally:
            conn.close()

    @classmethod
    async def update_application(
        cls,
        settings: Settings,
        application_id: int,
        data: ApplicationUpdate,
    ) -> ApplicationRead:
        """Update the fields present in ``data``.

        When ``images`` is given, only its ``src`` entries are written
        here; uploaded entries are added by the promotion hook.
        """
        logger = logging.getLogger(__name__)
        updates = data.model_dump(exclude_unset=True)
        if "images" in updates:
            updates["images"] = _permanent_sources(data.images or [])
        if "published" in updates:
            if updates["published"] is None:
                del updates["published"]
            else:
                updates["published"] = int(updates["published"])
        for key in JSON_COLUMNS & set(updates):
            updates[key] = json.dumps(updates[key] or [])
        conn = get_connection(settings)
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT id FROM applications WHERE id = ?", (application_id,)).fetchone()
            if not row:
                raise ValueError(f"Application {application_id} not found")
            if updates:
                fields = [f"{key} = ?" for key in updates]
                values = list(updates.values()) + [application_id]
                sql = f"UPDATE applications SET {', '.join(fields)}, updated_at = CURRENT_TIMESTAMP WHERE id = ?"
                cursor.execute(sql, tuple(values))
                conn.commit()
                logger.info("Updated application %s", application_id)
            updated = cursor.execute(
                f"SELECT {APPLICATION_COLUMNS} FROM applications WHERE id = ?",
                (application_id,),
            ).fetchone()
            return _row_to_application(updated)
        finally:
            conn.close()

    @classmethod
    async def set_images(cls, settings: Settings, application_id: int, images: List[str]) -> None:
        """Overwrite the stored image list of an application.

        Raises ``ValueError`` if the application no longer exists.
        """
        conn = get_connection(settings)
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE applications SET images = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (json.dumps(images), application_id),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Application {application_id} not found")
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def delete_application(cls, settings: Settings, application_id: int) -> None:
        """Delete an application.  Raises ``ValueError`` if it does not exist."""
        logger = logging.getLogger(__name__)
        conn = get_connection(settings)
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM applications WHERE id = ?", (application_id,))
            if cursor.rowcount == 0:
                raise ValueError(f"Application {application_id} not found")
            conn.commit()
            logger.info("Deleted application %s", application_id)
        finally:
            conn.close()

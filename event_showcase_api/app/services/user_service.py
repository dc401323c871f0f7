"""
Business logic for users.

``UserService`` owns every write to the ``users`` table.  Create and
update payloads go through ``before_save_user``, which keeps only the
allow‑listed fields and turns a plain password into a fresh salt and
hash.  ``login`` checks credentials and issues a new access token,
replacing any previous one, so a user has at most one active session.
"""

import logging
import sqlite3
from typing import Optional

from pydantic import ValidationError

from ..core.config import Settings
from ..core.db import get_connection
from ..core.errors import PersistenceError
from ..core.security import CredentialHasher
from ..schemas.user import UserRead, UserWrite


# Fields a client may send for a user record.  ``id`` is accepted so
# that clients can echo back what they read, but it is never written.
ALLOWED_FIELDS = ("email", "password", "id", "emailNotifications")


def _row_to_user(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        email=row["email"],
        email_notifications=bool(row["email_notifications"]),
    )


class UserService:
    """Service for user accounts and credentials."""

    @classmethod
    def before_save_user(
        cls,
        body: dict,
        hasher: CredentialHasher,
        require_password: bool,
    ) -> dict:
        """Filter a user payload and attach salt and hash.

        Unknown fields are dropped without complaint.  When a password
        is present, a new salt is generated and ``hashed_password`` is
        derived from it; without one the stored credentials stay
        untouched, unless ``require_password`` is set (user creation),
        in which case ``ValueError`` is raised.

        Returns
        -------
        dict
            Column values ready to be written to the ``users`` table.
        """
        logger = logging.getLogger(__name__)
        filtered = {key: value for key, value in body.items() if key in ALLOWED_FIELDS}
        dropped = sorted(set(body) - set(filtered))
        if dropped:
            logger.debug("Ignoring disallowed user fields: %s", ", ".join(dropped))
        try:
            data = UserWrite.model_validate(filtered)
        except ValidationError as e:
            raise ValueError("Invalid user payload") from e

        columns: dict = {}
        if data.email is not None:
            columns["email"] = data.email
        if data.email_notifications is not None:
            columns["email_notifications"] = int(data.email_notifications)
        if data.password:
            salt = hasher.generate_salt()
            columns["salt"] = salt
            columns["hashed_password"] = hasher.hash(data.password, salt)
        elif require_password:
            raise ValueError("Password is required")
        return columns

    @classmethod
    async def create_user(cls, settings: Settings, hasher: CredentialHasher, body: dict) -> UserRead:
        """Register a new user.

        Raises ``ValueError`` when the email or password is missing or
        the email is already taken.
        """
        logger = logging.getLogger(__name__)
        columns = cls.before_save_user(body, hasher, require_password=True)
        if not columns.get("email"):
            raise ValueError("Email is required")
        conn = get_connection(settings)
        try:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO users (email, hashed_password, salt, email_notifications) VALUES (?, ?, ?, ?)",
                (
                    columns["email"],
                    columns["hashed_password"],
                    columns["salt"],
                    columns.get("email_notifications", 0),
                ),
            )
            user_id = cursor.lastrowid
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise ValueError("Email already registered") from e
        finally:
            conn.close()
        logger.info("Registered user %s (%s)", user_id, columns["email"])
        return UserRead(
            id=user_id,
            email=columns["email"],
            email_notifications=bool(columns.get("email_notifications", 0)),
        )

    @classmethod
    async def update_user(
        cls,
        settings: Settings,
        hasher: CredentialHasher,
        user_id: int,
        body: dict,
    ) -> UserRead:
        """Apply an allow‑listed update to a user.

        Raises ``ValueError`` if the user does not exist or the new
        email belongs to someone else.
        """
        logger = logging.getLogger(__name__)
        columns = cls.before_save_user(body, hasher, require_password=False)
        conn = get_connection(settings)
        try:
            cursor = conn.cursor()
            row = cursor.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone()
            if not row:
                raise ValueError(f"User {user_id} not found")
            if columns:
                fields = [f"{key} = ?" for key in columns]
                values = list(columns.values()) + [user_id]
                sql = f"UPDATE users SET {', '.join(fields)}, updated_at = CURRENT_TIMESTAMP WHERE id = ?"
                try:
                    cursor.execute(sql, tuple(values))
                except sqlite3.IntegrityError as e:
                    raise ValueError("Email already registered") from e
                conn.commit()
                logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(columns)))
            updated = cursor.execute(
                "SELECT id, email, email_notifications FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
            return _row_to_user(updated)
        finally:
            conn.close()

    @classmethod
    async def get_user(cls, settings: Settings, user_id: int) -> Optional[UserRead]:
        """Retrieve a user by ID."""
        conn = get_connection(settings)
        try:
            row = conn.execute(
                "SELECT id, email, email_notifications FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
            return _row_to_user(row) if row else None
        finally:
            conn.close()

    @classmethod
    async def login(
        cls,
        settings: Settings,
        hasher: CredentialHasher,
        email: Optional[str],
        password: Optional[str],
    ) -> Optional[str]:
        """Check credentials and issue a new access token.

        Returns ``None`` for an unknown email and for a wrong password
        alike.  The token column is unique; when a freshly generated
        token collides with an existing one, a new token is drawn, up to
        ``settings.token_retry_attempts`` times.
        """
        logger = logging.getLogger(__name__)
        if not email or password is None:
            return None
        conn = get_connection(settings)
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                "SELECT id, hashed_password, salt FROM users WHERE email = ?",
                (email,),
            ).fetchone()
            if not row or not hasher.verify(password, row["salt"], row["hashed_password"]):
                logger.info("Failed login for %s", email)
                return None
            for _ in range(settings.token_retry_attempts):
                token = hasher.generate_token()
                try:
                    cursor.execute(
                        "UPDATE users SET access_token = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                        (token, row["id"]),
                    )
                    conn.commit()
                except sqlite3.IntegrityError:
                    conn.rollback()
                    logger.warning("Access token collision for user %s, retrying", row["id"])
                    continue
                logger.info("User %s logged in", row["id"])
                return token
            raise PersistenceError(f"Could not issue a unique access token for user {row['id']}")
        finally:
            conn.close()

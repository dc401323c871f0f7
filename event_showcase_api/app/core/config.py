"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields.  A
single instance is built at startup (see ``Settings.from_env``) and
handed to the application factory, which stores it on
``app.state.settings``.  Everything that needs configuration (the
credential hasher, the database helpers, the mailer) receives that
instance explicitly instead of importing a module‑level global.
"""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

# event_showcase_api/
PACKAGE_ROOT = Path(__file__).resolve().parent.parent.parent


def _default_upload_dir() -> str:
    return os.path.join(tempfile.gettempdir(), "event_showcase_uploads")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


@dataclass
class Settings:
    """Application settings."""

    project_name: str = "Event Showcase API"
    api_version: str = "1.0.0"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Shared secret mixed into every password hash.  Changing it
    # invalidates all stored passwords.
    secret_key: str = "change_me"

    # Path or connection string for the SQLite database.  Relative paths
    # are resolved against the package directory by ``core.db``.
    database_url: str = "event_showcase.db"
    test_database_url: str = "event_showcase_test.db"
    test_mode: bool = False

    # Maximum accepted upload size in bytes.
    file_upload_limit: int = 10 * 1024 * 1024

    # Public base URL used when building links to promoted images.
    rest_uri: str = "http://localhost:8000"
    static_dir: str = str(PACKAGE_ROOT / "static")
    # Only files written by ``POST /images`` should live here.
    upload_tmp_dir: str = field(default_factory=_default_upload_dir)

    # Outgoing mail.  When ``smtp_host`` is empty notifications are
    # logged and skipped.
    smtp_host: str = ""
    smtp_port: int = 25
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_sender: str = "noreply@localhost"
    smtp_starttls: bool = False

    # How many times login regenerates a token that collides with an
    # existing one before giving up.
    token_retry_attempts: int = 5

    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @property
    def active_database_url(self) -> str:
        return self.test_database_url if self.test_mode else self.database_url

    @property
    def images_dir(self) -> Path:
        return Path(self.static_dir) / "images"

    @classmethod
    def from_env(cls, test_mode: bool = False) -> "Settings":
        """Build settings from environment variables.

        Call this once at process start; environment changes made
        afterwards are not picked up.
        """
        return cls(
            project_name=os.getenv("PROJECT_NAME", "Event Showcase API"),
            api_version=os.getenv("API_VERSION", "1.0.0"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            secret_key=os.getenv("SECRET_KEY", "change_me"),
            database_url=os.getenv("DATABASE_URL", "event_showcase.db"),
            test_database_url=os.getenv("TEST_DATABASE_URL", "event_showcase_test.db"),
            test_mode=test_mode,
            file_upload_limit=int(os.getenv("FILE_UPLOAD_LIMIT", str(10 * 1024 * 1024))),
            rest_uri=os.getenv("REST_URI", "http://localhost:8000").rstrip("/"),
            static_dir=os.getenv("STATIC_DIR", str(PACKAGE_ROOT / "static")),
            upload_tmp_dir=os.getenv("UPLOAD_TMP_DIR") or _default_upload_dir(),
            smtp_host=os.getenv("SMTP_HOST", ""),
            smtp_port=int(os.getenv("SMTP_PORT", "25")),
            smtp_user=os.getenv("SMTP_USER", ""),
            smtp_password=os.getenv("SMTP_PASSWORD", ""),
            smtp_sender=os.getenv("SMTP_SENDER", "noreply@localhost"),
            smtp_starttls=_env_bool("SMTP_STARTTLS"),
            token_retry_attempts=int(os.getenv("TOKEN_RETRY_ATTEMPTS", "5")),
            cors_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
        )

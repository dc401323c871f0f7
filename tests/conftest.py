from pathlib import Path
from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from event_showcase_api.app.core.config import Settings
from event_showcase_api.app.main import create_app


PASSWORD = "password123"


class RecordingMailer:
    """Stands in for the SMTP mailer and remembers every recipient."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, Optional[str], Optional[str]]] = []

    async def send_notification(self, address, application_title=None, event_title=None) -> bool:
        self.sent.append((address, application_title, event_title))
        return True

    @property
    def recipients(self) -> List[str]:
        return [address for address, _, _ in self.sent]


@pytest.fixture
def password() -> str:
    """Password ``make_user`` registers accounts with."""
    return PASSWORD


@pytest.fixture
def bearer():
    """Build an ``Authorization`` header for a token."""

    def _bearer(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    return _bearer


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        secret_key="test-secret",
        database_url=str(tmp_path / "production.db"),
        test_database_url=str(tmp_path / "test.db"),
        test_mode=True,
        static_dir=str(tmp_path / "static"),
        upload_tmp_dir=str(tmp_path / "uploads"),
        rest_uri="http://testserver",
        file_upload_limit=1024,
    )


@pytest.fixture
def app(settings: Settings):
    app = create_app(settings)
    app.state.mailer = RecordingMailer()
    return app


@pytest.fixture
def mailer(app) -> RecordingMailer:
    return app.state.mailer


@pytest.fixture
def client(app):
    # The context manager runs the startup handler (database migrations).
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_user(client):
    """Register a user, log in and return ``(user_id, token)``."""

    def _make_user(email: str, password: str = PASSWORD, notifications: bool = False):
        res = client.post(
            "/users",
            json={"email": email, "password": password, "emailNotifications": notifications},
        )
        assert res.status_code == 201, res.text
        user_id = res.json()["id"]
        res_login = client.post("/login", json={"email": email, "password": password})
        assert res_login.status_code == 200, res_login.text
        return user_id, res_login.text

    return _make_user

import asyncio
import tempfile
from pathlib import Path

import pytest

from event_showcase_api.app.core.config import Settings
from event_showcase_api.app.core.errors import NotificationError
from event_showcase_api.app.schemas.application import ImageRef
from event_showcase_api.app.services.image_store import ImageStore


EXTERNAL = "http://cdn.example.com/logo.png"
# Well-formed upload name that was never handed out.
MISSING_UPLOAD = "0" * 32 + ".png"


@pytest.fixture
def event_id(client, make_user, bearer):
    """An event whose owner wants e‑mail notifications."""
    _, token = make_user("owner@example.com", notifications=True)
    res = client.post("/events", headers=bearer(token), json={"title": "Hack Day"})
    assert res.status_code == 201
    return res.json()["id"]


def upload(client, content: bytes = b"\x89PNG fake image", filename: str = "photo.png") -> str:
    res = client.post("/images", files={"file": (filename, content, "image/png")})
    assert res.status_code == 200, res.text
    return res.text


# -- notifications -------------------------------------------------------


def test_unpublished_application_notifies_owner_once(client, mailer, event_id):
    res = client.post(
        "/applications",
        json={"title": "Air quality map", "connectedEvent": event_id, "published": False},
    )
    assert res.status_code == 201, res.text
    assert mailer.sent == [("owner@example.com", "Air quality map", "Hack Day")]


def test_published_application_does_not_notify(client, mailer, event_id):
    res = client.post("/applications", json={"connectedEvent": event_id, "published": True})
    assert res.status_code == 201
    assert mailer.sent == []


def test_missing_event_does_not_notify(client, mailer):
    res = client.post("/applications", json={"connectedEvent": 4242})
    assert res.status_code == 201
    assert mailer.sent == []


def test_owner_without_notifications_is_not_mailed(client, mailer, make_user, bearer):
    _, token = make_user("quiet@example.com", notifications=False)
    quiet_event = client.post("/events", headers=bearer(token), json={"title": "Quiet"}).json()["id"]
    client.post("/applications", json={"connectedEvent": quiet_event})
    assert mailer.sent == []


def test_event_without_owner_is_not_notified(client, mailer):
    orphan_event = client.post("/events", json={"title": "Orphan"}).json()["id"]
    assert client.post("/applications", json={"connectedEvent": orphan_event}).status_code == 201
    assert mailer.sent == []


def test_update_does_not_notify(client, mailer, event_id):
    application_id = client.post(
        "/applications", json={"connectedEvent": event_id, "published": True}
    ).json()["id"]
    client.put(f"/applications/{application_id}", json={"published": False})
    assert mailer.sent == []


def test_mail_failure_does_not_affect_response(client, app, event_id):
    class FailingMailer:
        async def send_notification(self, *args, **kwargs):
            raise NotificationError("smtp down")

    app.state.mailer = FailingMailer()
    tmp_name = upload(client)
    res = client.post(
        "/applications",
        json={"connectedEvent": event_id, "images": [{"tmpName": tmp_name, "name": "a.png"}]},
    )
    assert res.status_code == 201
    application_id = res.json()["id"]
    # Promotion still ran after the failed notification.
    images = client.get(f"/applications/{application_id}").json()["images"]
    assert images == [f"http://testserver/static/images/{application_id}/a.png"]


# -- image promotion -----------------------------------------------------


def test_upload_and_promote(client, settings):
    content = b"\x89PNG real bytes"
    tmp_name = upload(client, content)
    tmp_path = Path(settings.upload_tmp_dir) / tmp_name
    assert tmp_name.endswith(".png")
    assert tmp_path.read_bytes() == content

    res = client.post(
        "/applications",
        json={
            "title": "With pictures",
            "images": [{"src": EXTERNAL}, {"tmpName": tmp_name, "name": "screenshot.png"}],
        },
    )
    assert res.status_code == 201, res.text
    application_id = res.json()["id"]

    stored = client.get(f"/applications/{application_id}").json()
    assert stored["images"] == [
        EXTERNAL,
        f"http://testserver/static/images/{application_id}/screenshot.png",
    ]
    assert not tmp_path.exists()
    permanent = Path(settings.static_dir) / "images" / str(application_id) / "screenshot.png"
    assert permanent.read_bytes() == content

    served = client.get(f"/static/images/{application_id}/screenshot.png")
    assert served.status_code == 200
    assert served.content == content
    assert served.headers["cache-control"] == "public, max-age=86400"


def test_put_promotes_new_uploads(client):
    application_id = client.post("/applications", json={"images": [{"src": EXTERNAL}]}).json()["id"]
    tmp_name = upload(client)
    res = client.put(
        f"/applications/{application_id}",
        json={"images": [{"src": EXTERNAL}, {"tmpName": tmp_name, "name": "second.png"}]},
    )
    assert res.status_code == 200
    assert client.get(f"/applications/{application_id}").json()["images"] == [
        EXTERNAL,
        f"http://testserver/static/images/{application_id}/second.png",
    ]


def test_promotion_is_idempotent_for_permanent_images(client):
    tmp_name = upload(client)
    application_id = client.post(
        "/applications",
        json={"images": [{"src": EXTERNAL}, {"tmpName": tmp_name, "name": "one.png"}]},
    ).json()["id"]
    images = client.get(f"/applications/{application_id}").json()["images"]

    res = client.put(
        f"/applications/{application_id}",
        json={"images": [{"src": src} for src in images]},
    )
    assert res.status_code == 200
    assert client.get(f"/applications/{application_id}").json()["images"] == images


def test_put_without_images_keeps_them(client):
    application_id = client.post("/applications", json={"images": [{"src": EXTERNAL}]}).json()["id"]
    client.put(f"/applications/{application_id}", json={"title": "Renamed"})
    stored = client.get(f"/applications/{application_id}").json()
    assert stored["title"] == "Renamed"
    assert stored["images"] == [EXTERNAL]


def test_missing_upload_is_dropped_and_logged(client, caplog):
    tmp_name = upload(client)
    with caplog.at_level("ERROR"):
        application_id = client.post(
            "/applications",
            json={
                "images": [
                    {"tmpName": MISSING_UPLOAD, "name": "lost.png"},
                    {"tmpName": tmp_name, "name": "kept.png"},
                ]
            },
        ).json()["id"]
    assert client.get(f"/applications/{application_id}").json()["images"] == [
        f"http://testserver/static/images/{application_id}/kept.png"
    ]
    assert "lost.png" in caplog.text


@pytest.mark.parametrize(
    "image",
    [
        {"tmpName": MISSING_UPLOAD, "name": "../escape.png"},
        {"tmpName": "../../etc/passwd", "name": "ok.png"},
        {"tmpName": "passwd", "name": "ok.png"},
        {"tmpName": MISSING_UPLOAD.upper(), "name": "ok.png"},
        {"tmpName": MISSING_UPLOAD},
        {},
    ],
)
def test_invalid_image_entries_are_rejected(client, image):
    assert client.post("/applications", json={"images": [image]}).status_code == 422


def test_upload_too_large(client, settings):
    res = client.post("/images", files={"file": ("big.png", b"x" * 2048, "image/png")})
    assert res.status_code == 413
    assert list(Path(settings.upload_tmp_dir).iterdir()) == []


def test_delete_removes_images(client, settings):
    tmp_name = upload(client)
    application_id = client.post(
        "/applications", json={"images": [{"tmpName": tmp_name, "name": "gone.png"}]}
    ).json()["id"]
    folder = Path(settings.static_dir) / "images" / str(application_id)
    assert folder.exists()

    assert client.delete(f"/applications/{application_id}").status_code == 204
    assert not folder.exists()
    assert client.get(f"/applications/{application_id}").status_code == 404


def test_application_fields_round_trip(client, make_user, bearer):
    user_id, token = make_user("author@example.com")
    res = client.post(
        "/applications",
        headers=bearer(token),
        json={
            "title": "Transit app",
            "text": "Realtime departures",
            "downloadUrl": "http://example.com/app.zip",
            "datasets": [{"url": "http://data.example.com", "description": "GTFS"}],
            "authors": [{"name": "Ada", "email": "ada@example.com"}],
        },
    )
    body = res.json()
    assert body["owner"] == user_id
    assert body["downloadUrl"] == "http://example.com/app.zip"
    assert body["datasets"] == [{"url": "http://data.example.com", "description": "GTFS"}]
    assert body["authors"] == [{"name": "Ada", "email": "ada@example.com"}]
    assert body["published"] is False


def test_list_by_event(client, event_id):
    client.post("/applications", json={"connectedEvent": event_id, "published": True})
    client.post("/applications", json={"published": True})
    listed = client.get("/applications", params={"connectedEvent": event_id}).json()
    assert [a["connectedEvent"] for a in listed] == [event_id]
    assert len(client.get("/applications").json()) == 2


def test_promote_all_keeps_submitted_order(settings):
    store = ImageStore(settings)
    store.tmp_dir.mkdir(parents=True, exist_ok=True)
    for name in ("a", "b", "c"):
        (store.tmp_dir / (name * 32)).write_bytes(name.encode())
    images = [
        ImageRef(tmp_name="c" * 32, name="c.png"),
        ImageRef(src=EXTERNAL),
        ImageRef(tmp_name="a" * 32, name="a.png"),
        ImageRef(tmp_name="b" * 32, name="b.png"),
    ]
    urls = asyncio.run(store.promote_all(7, images))
    assert urls == [
        "http://testserver/static/images/7/c.png",
        EXTERNAL,
        "http://testserver/static/images/7/a.png",
        "http://testserver/static/images/7/b.png",
    ]
    assert (store.application_dir(7) / "b.png").read_bytes() == b"b"


def test_duplicate_upload_names_are_rejected(client, settings):
    first = upload(client, b"first")
    second = upload(client, b"second")
    images = [{"tmpName": first, "name": "x.png"}, {"tmpName": second, "name": "x.png"}]

    assert client.post("/applications", json={"images": images}).status_code == 422

    application_id = client.post("/applications", json={}).json()["id"]
    assert client.put(f"/applications/{application_id}", json={"images": images}).status_code == 422
    # Nothing was promoted, both uploads are still waiting.
    assert (Path(settings.upload_tmp_dir) / first).exists()
    assert (Path(settings.upload_tmp_dir) / second).exists()


def test_upload_never_overwrites_a_stored_image(client, settings):
    first = upload(client, b"first")
    application_id = client.post(
        "/applications", json={"images": [{"tmpName": first, "name": "x.png"}]}
    ).json()["id"]
    stored = client.get(f"/applications/{application_id}").json()["images"]

    second = upload(client, b"second")
    client.put(
        f"/applications/{application_id}",
        json={"images": [{"src": stored[0]}, {"tmpName": second, "name": "x.png"}]},
    )
    assert client.get(f"/applications/{application_id}").json()["images"] == [
        f"http://testserver/static/images/{application_id}/x.png",
        f"http://testserver/static/images/{application_id}/x-1.png",
    ]
    folder = Path(settings.static_dir) / "images" / str(application_id)
    assert (folder / "x.png").read_bytes() == b"first"
    assert (folder / "x-1.png").read_bytes() == b"second"


def test_stray_temp_files_cannot_be_published(client, settings):
    stray = Path(settings.upload_tmp_dir) / "secrets.txt"
    stray.write_text("not an upload")
    res = client.post("/applications", json={"images": [{"tmpName": "secrets.txt", "name": "x.txt"}]})
    assert res.status_code == 422
    assert stray.exists()


def test_default_upload_dir_is_dedicated():
    assert Path(Settings().upload_tmp_dir).name == "event_showcase_uploads"
    assert Path(Settings().upload_tmp_dir) != Path(tempfile.gettempdir())


def test_upload_suffix_is_normalised(client):
    assert upload(client, filename="Photo.JPG").endswith(".jpg")
    odd = upload(client, filename="photo.pég")
    assert "." not in odd
    assert len(odd) == 32

"""Pytest configuration: in-memory database, app client and fake vendors."""
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from closecircle.api.deps import get_google_oauth, get_mailer, get_media_host
from closecircle.domain.common.errors import UpstreamError
from closecircle.domain.identity.models import FederatedProfile
from closecircle.domain.media.models import ImageUpload, StoredImage
from closecircle.infra.db.base import Database
from closecircle.main import app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeMediaHost:
    """Keeps uploads in memory; fail_uploads makes every upload an UpstreamError."""

    def __init__(self):
        self.images: dict[str, StoredImage] = {}
        self.deleted: list[str] = []
        self.fail_uploads = False
        self._counter = 0

    async def upload(
        self,
        upload: ImageUpload,
        folder: str,
        public_id: Optional[str] = None,
        transformation: Optional[str] = None,
    ) -> StoredImage:
        if self.fail_uploads:
            raise UpstreamError("media host", "upload failed")
        self._counter += 1
        full_id = f"{folder}/{public_id or f'img{self._counter}'}"
        stored = StoredImage(url=f"https://res.cloudinary.test/image/upload/{full_id}.png", public_id=full_id)
        self.images[full_id] = stored
        return stored

    async def delete(self, public_id: str) -> bool:
        self.deleted.append(public_id)
        return self.images.pop(public_id, None) is not None


class FakeMailer:
    """Captures password reset mails."""

    def __init__(self):
        self.sent: list[dict] = []

    async def send_password_reset(self, to_email: str, name: str, reset_url: str) -> None:
        self.sent.append({"to": to_email, "name": name, "url": reset_url})


class FakeGoogle:
    """Stands in for the Google OAuth client; returns whatever profile the test sets."""

    configured = True

    def __init__(self):
        self.profile = FederatedProfile(
            provider="google",
            subject="google-sub-1",
            email="jane.doe@gmail.com",
            display_name="Jane Doe",
            picture="https://lh3.googleusercontent.test/jane.png",
        )
        self.codes: list[str] = []

    def authorization_url(self, state: str) -> str:
        return f"https://accounts.google.test/o/oauth2/v2/auth?state={state}"

    async def fetch_profile(self, code: str) -> FederatedProfile:
        self.codes.append(code)
        return self.profile


@pytest.fixture
async def database():
    """In-memory SQLite database with the full schema."""
    db = Database(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db.connect()
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def media_host():
    return FakeMediaHost()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def google():
    return FakeGoogle()


@pytest.fixture
async def client(database, media_host, mailer, google):
    """HTTP client for the app with the database and vendors overridden."""
    previous = getattr(app.state, "database", None)
    app.state.database = database
    app.dependency_overrides[get_media_host] = lambda: media_host
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_google_oauth] = lambda: google
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()
    app.state.database = previous


async def register_user(client: AsyncClient, username: str, password: str = "secret123", name: Optional[str] = None) -> dict:
    """Register a user and return {id, username, headers, tokens}."""
    r = await client.post(
        "/api/auth/register",
        json={
            "name": name or username.title(),
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
        },
    )
    assert r.status_code == 201, r.text
    body = r.json()
    return {
        "id": body["user"]["id"],
        "username": body["user"]["username"],
        "headers": {"Authorization": f"Bearer {body['access_token']}"},
        "access_token": body["access_token"],
        "refresh_token": body["refresh_token"],
    }


async def befriend(client: AsyncClient, a: dict, b: dict) -> None:
    """a sends, b accepts."""
    r = await client.post("/api/friend-requests/send", json={"to_user_id": b["id"]}, headers=a["headers"])
    assert r.status_code == 201, r.text
    r = await client.post(f"/api/friend-requests/accept/{r.json()['id']}", headers=b["headers"])
    assert r.status_code == 200, r.text


async def create_journal(
    client: AsyncClient,
    user: dict,
    journal_date: str,
    visibility: str = "private",
    title: str = "Today",
    content: str = "Wrote something.",
    is_anonymous: bool = False,
    image: Optional[bytes] = None,
):
    """POST /api/journals as multipart; returns the response."""
    data = {
        "title": title,
        "content": content,
        "journal_date": journal_date,
        "visibility": visibility,
        "is_anonymous": "true" if is_anonymous else "false",
    }
    files = {"image": ("photo.png", image, "image/png")} if image is not None else None
    return await client.post("/api/journals", data=data, files=files, headers=user["headers"])


@pytest.fixture
async def alice(client):
    return await register_user(client, "alice")


@pytest.fixture
async def bob(client):
    return await register_user(client, "bob")


@pytest.fixture
async def carol(client):
    return await register_user(client, "carol")

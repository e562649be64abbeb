import smtplib
import sys
from pathlib import Path
from typing import AsyncIterator, Dict, List, Tuple

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.config import Settings
from app.services import Mailer

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Admin@123"


class FakeMailer(Mailer):
    """Mailer that records messages instead of talking SMTP."""

    def __init__(self, settings: Settings):
        super().__init__(settings, backoff=0)
        self.outbox: List = []
        self.otps: List[Tuple[str, str]] = []
        self.fail = False

    def _deliver(self, msg) -> None:
        if self.fail:
            raise smtplib.SMTPAuthenticationError(535, b"auth failed")
        self.outbox.append(msg)

    async def send_otp(self, email, otp, ttl_minutes=10):
        self.otps.append((email, otp))
        return await super().send_otp(email, otp, ttl_minutes)


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = dict(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        auto_migrate=True,
        jwt_secret="test-secret",
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        email_user="bot@example.com",
        email_pass="app-password",
        mail_retries=0,
        upload_dir=str(tmp_path / "uploads"),
        inquiry_rate_limit=("minute", 1000),
        cors_origins=["http://localhost:5173", "https://*.vercel.app"],
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture()
def mailer(settings: Settings) -> FakeMailer:
    return FakeMailer(settings)


@pytest.fixture()
def app(settings: Settings, mailer: FakeMailer):
    from app.main import create_app
    return create_app(settings, mailer=mailer)


@pytest_asyncio.fixture()
async def client(app) -> AsyncIterator[AsyncClient]:
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac


@pytest_asyncio.fixture()
async def engine(settings: Settings, client: AsyncClient) -> AsyncIterator[AsyncEngine]:
    """Direct access to the test database, opened after the schema exists."""
    db_engine = create_async_engine(settings.database_url)
    yield db_engine
    await db_engine.dispose()


async def login(client: AsyncClient, mailer: FakeMailer) -> str:
    resp = await client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    otp = mailer.otps[-1][1]
    resp = await client.post("/api/auth/verify-otp", json={"email": ADMIN_EMAIL, "otp": otp})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


@pytest_asyncio.fixture()
async def auth_headers(client: AsyncClient, mailer: FakeMailer) -> Dict[str, str]:
    token = await login(client, mailer)
    return {"Authorization": f"Bearer {token}"}

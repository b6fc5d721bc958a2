import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from freedomgate.config import Settings
from freedomgate.database import Base
from freedomgate.main import create_app
from freedomgate.core.security import hash_password
from freedomgate.models import AdminUser

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_SECRET = "test-secret-key"

USER_PASSWORD = "Passw0rd!"
ADMIN_PASSWORD = "Adm1nPass!"


def make_settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL": TEST_DATABASE_URL,
        "SECRET_KEY": TEST_SECRET,
        "EXPIRY_SWEEP_INTERVAL_MINUTES": 0,
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest_asyncio.fixture
async def app():
    app = create_app(make_settings())
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield app
    await app.state.engine.dispose()


@pytest_asyncio.fixture
async def session_factory(app):
    return app.state.sessionmaker


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


async def signup(client, name="Alice Smith", email="alice@example.com", password=USER_PASSWORD) -> dict:
    r = await client.post("/api/auth/signup", json={
        "name": name,
        "email": email,
        "password": password,
        "confirmPassword": password,
    })
    assert r.status_code == 201, r.text
    return r.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def user(client):
    """Signed-up user; ``user["token"]`` authenticates as them."""
    body = await signup(client)
    client.cookies.clear()
    return body


@pytest_asyncio.fixture
async def admin_token(client, session_factory):
    async with session_factory() as db:
        db.add(AdminUser(
            email="ops@freedomgate.com",
            name="Ops",
            password_hash=hash_password(ADMIN_PASSWORD),
            role="admin",
        ))
        await db.commit()
    r = await client.post("/api/admin/login", json={"email": "ops@freedomgate.com", "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    client.cookies.clear()
    return r.json()["token"]

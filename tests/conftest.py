# tests/conftest.py
import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.pool import StaticPool

from hr_api.config import Settings
from hr_api.database import Database
from hr_api.main import create_app
from hr_api.models import Role, User
from hr_api.store import SqlEventStore

API_KEY = "test-api-key"


@pytest.fixture
def settings():
    return Settings(database_url="sqlite+aiosqlite://", jwt_secret="test-secret", log_level="WARNING")


@pytest_asyncio.fixture
async def database(settings):
    """Database SQLite in-memory; StaticPool supaya semua session berbagi satu koneksi"""
    db = Database(settings.database_url, poolclass=StaticPool)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database):
    async with database.session() as s:
        yield s


@pytest_asyncio.fixture
async def project(database):
    async with database.session() as s:
        return await SqlEventStore(s).create_project("Test Project", API_KEY)


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api") as c:
        yield c


async def register(client, email="hr@company.com", password="SecurePassword123"):
    resp = await client.post("/auth/register", json={
        "email": email,
        "password": password,
        "firstName": "Jane",
        "lastName": "Doe",
    })
    assert resp.status_code == 201
    return {"Authorization": f"Bearer {resp.json()['accessToken']}"}


@pytest_asyncio.fixture
async def auth_headers(client):
    return await register(client)


@pytest_asyncio.fixture
async def admin_headers(client, database):
    await register(client, email="admin@company.com")
    async with database.session() as s:
        admin = (await s.execute(
            select(User).where(User.email == "admin@company.com")
        )).scalar_one()
        admin.role = Role.ADMIN
        await s.commit()
    resp = await client.post("/auth/login", json={
        "email": "admin@company.com", "password": "SecurePassword123",
    })
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['accessToken']}"}

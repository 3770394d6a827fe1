import os
import tempfile

# Settings are read at import time, so the environment must be ready first
_DB_DIR = tempfile.mkdtemp(prefix="invoicing-tests-")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["OVERDUE_CHECK_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import httpx
import pytest

from app.database import async_session_factory, drop_db, engine, init_db
from app.main import app
from app.schemas.auth import SignupRequest
from app.services.auth_service import AuthService


PASSWORD = "s3cret-pass"


@pytest.fixture
async def database():
    await drop_db()
    await init_db()
    yield
    await drop_db()
    await engine.dispose()


@pytest.fixture
async def db(database):
    async with async_session_factory() as session:
        yield session


@pytest.fixture
async def client(database):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def signup(client, email="owner@acme.in", company_name="Acme Supplies", **extra):
    payload = {
        "name": "Asha Rao",
        "email": email,
        "password": PASSWORD,
        "password_confirm": PASSWORD,
        "company_name": company_name,
        "company_address": "12 MG Road, Pune",
        **extra,
    }
    response = await client.post("/api/v1/auth/signup", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def auth_headers(client, email="owner@acme.in", **extra):
    body = await signup(client, email=email, **extra)
    return {"Authorization": f"Bearer {body['access_token']}"}


@pytest.fixture
async def headers(client):
    return await auth_headers(client)


@pytest.fixture
async def user(db):
    return await AuthService(db).signup(SignupRequest(
        name="Asha Rao",
        email="owner@acme.in",
        password=PASSWORD,
        password_confirm=PASSWORD,
        company_name="Acme Supplies",
    ))


def invoice_payload(**overrides):
    payload = {
        "client_name": "Globex Traders",
        "client_email": "accounts@globex.in",
        "client_address": "4 Park Street, Kolkata",
        "items": [
            {"id": "line-1", "description": "Consulting hours", "quantity": 2, "unit_price": 100},
        ],
        "igst": 18,
    }
    payload.update(overrides)
    return payload

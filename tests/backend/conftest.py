import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from matrix_mock.core import db as db_module
from matrix_mock.core.bootstrap import seed_user
from matrix_mock.main import app
from matrix_mock.models.user import User
from matrix_mock.services import identifiers


TEST_DB_URL = "sqlite://:memory:"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

SERVER_ID = "s1"
BASE = f"/{SERVER_ID}/_matrix/client/r0"


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """
    Fresh database without an HTTP client, for service-level tests.
    """
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client():
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    await _init_test_db()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_user():
    """
    Factory fixture to seed users directly (registration is not part of the API).
    """

    async def _create_user(
        user_id: str | None = None,
        password: str = "UserPass!23",
        server_id: str = SERVER_ID,
        display_name: str | None = None,
        avatar_url: str | None = None,
    ) -> tuple[User, str]:
        user = await seed_user(
            server_id,
            user_id or f"user_{uuid.uuid4().hex[:6]}",
            password,
            display_name=display_name,
            avatar_url=avatar_url,
        )
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(user_id: str, password: str, server_id: str = SERVER_ID) -> dict[str, str]:
        resp = await client.post(
            f"/{server_id}/_matrix/client/r0/login",
            json={
                "type": "m.login.password",
                "identifier": {"type": "m.id.user", "user": user_id},
                "password": password,
            },
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers


@pytest.fixture
def frozen_clock(monkeypatch):
    """
    Freeze the room ID clock. Returns a setter to move it.
    """
    state = {"now": 1_700_000_000}
    monkeypatch.setattr(identifiers, "current_timestamp", lambda: state["now"])

    def _set(value: int) -> None:
        state["now"] = value

    return _set

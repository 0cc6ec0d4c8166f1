import pytest
from httpx import ASGITransport, AsyncClient

import hisaab.models  # noqa: F401
from hisaab.core.config import Settings
from hisaab.db.session import Base
from hisaab.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        DB_ISOLATION_LEVEL=None,
        JWT_SECRET="test-secret-key-with-enough-length-for-hs256",
        BCRYPT_ROUNDS=4,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
async def app(settings):
    app = create_app(settings)
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield app
    await app.state.engine.dispose()


@pytest.fixture
async def db(app):
    async with app.state.sessionmaker() as session:
        yield session


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def register(client):
    """Sign up a user and return (user_id, auth headers)."""

    async def _register(name, email, password="secret123"):
        res = await client.post(
            "/api/v1/users/register",
            json={"name": name, "email": email, "password": password},
        )
        assert res.status_code == 201, res.text
        body = res.json()
        return body["user"]["id"], {"Authorization": f"Bearer {body['access_token']}"}

    return _register

import pytest
from fastapi.testclient import TestClient

from codegen_copilot.config import Settings
from codegen_copilot.database import Database
from codegen_copilot.errors import GenerationError
from codegen_copilot.main import create_app

TEST_SECRET = "test-secret"


class FakeGenerator:
    def __init__(self, reply="print('hello')", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def generate(self, language, prompt):
        self.calls.append((language, prompt))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret=TEST_SECRET,
        openai_api_key="test-key",
        bcrypt_rounds=4,
    )


@pytest.fixture
async def database(settings):
    db = Database.from_settings(settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session() as s:
        yield s


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def failing_generator():
    return FakeGenerator(error=GenerationError("model unavailable"))


@pytest.fixture
def client(settings, generator):
    app = create_app(settings, generator=generator)
    with TestClient(app) as c:
        yield c


def signup(client, name="Alice", email="alice@example.com", password="password123"):
    response = client.post(
        "/api/v1/auth/signup",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}

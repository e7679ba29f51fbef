import pytest
from fastapi.testclient import TestClient

from restlab.config import Settings
from restlab.db.memory import MemoryStore
from restlab.main import create_app

TOKEN = "test-token-12345"


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "bearer_token": TOKEN,
        "database_url": f"sqlite:///{tmp_path / 'test.db'}",
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture(params=["sql", "memory"])
def client(request, tmp_path):
    settings = make_settings(tmp_path, store_backend=request.param)
    app = create_app(settings=settings)
    return TestClient(app)


@pytest.fixture()
def auth():
    return {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture()
def memory_store():
    return MemoryStore()

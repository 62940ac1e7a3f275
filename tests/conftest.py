import pytest
from fastapi.testclient import TestClient

from matchverse.storage import Store


@pytest.fixture
def store(tmp_path):
    """A store backed by a fresh SQLite file."""
    return Store(f"sqlite:///{tmp_path / 'matchverse.db'}")


@pytest.fixture
def make_users(store):
    """Return a helper creating one user per name and returning the ids."""

    def _make(*names, points=0):
        return [store.create_user(name, rank_points=points).user_id for name in names]

    return _make


@pytest.fixture
def client(store):
    from matchverse.api import app
    from matchverse.services.state import get_store

    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()

import pytest
from fastapi.testclient import TestClient

import main
from database import JsonCollectionStore


@pytest.fixture
def store(tmp_path):
    db = JsonCollectionStore(str(tmp_path / "data"))
    db.initialize(seed=False)
    return db


@pytest.fixture
def client(store):
    main.app.dependency_overrides[main.get_store] = lambda: store
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()

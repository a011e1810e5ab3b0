import pytest
from fastapi.testclient import TestClient

from logistics.application.container import build_container
from logistics.core_settings import Settings
from logistics.infrastructure.db import init_models, make_engine, make_session_factory
from logistics.main import create_app

class FakeClock:
    def __init__(self, start: int = 1000):
        self.current = start

    def now(self) -> int:
        self.current += 1
        return self.current

class SequentialIds:
    def __init__(self):
        self.count = 0

    def new_id(self) -> str:
        self.count += 1
        return f"id-{self.count:04d}"

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def ids():
    return SequentialIds()

@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    init_models(engine)
    yield engine
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)

@pytest.fixture
def settings():
    return Settings(DATABASE_URL="sqlite://")

@pytest.fixture
def container(session_factory, settings, clock, ids):
    return build_container(session_factory, settings, clock=clock, ids=ids)

@pytest.fixture
def client(settings, clock, ids):
    with TestClient(create_app(settings, clock=clock, ids=ids)) as client:
        yield client

@pytest.fixture
def two_users(container):
    """Users A at (0, 0) and B at (0, 0.09), roughly 10 km apart."""
    a = container.users.create({"username": "alice", "type": "customer"})
    b = container.users.create({"username": "bob", "type": "customer"})
    container.locations.create({"user_id": a.id, "location": {"lat": 0, "lng": 0}})
    container.locations.create({"user_id": b.id, "location": {"lat": 0, "lng": 0.09}})
    return a, b

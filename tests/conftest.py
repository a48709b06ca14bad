import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
from deps import get_db
from main import app
from Location_module.Location_events import LocationEventBus, set_event_bus
from Login_module.Utils import Security


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def bus():
    bus = LocationEventBus()
    set_event_bus(bus)
    yield bus
    set_event_bus(None)


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_headers():
    def _make(user_id=1, role="viewer"):
        token = Security.create_access_token({"sub": str(user_id), "email": "farmer@example.com", "role": role})
        return {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture()
def auth_headers(make_headers):
    return make_headers()


@pytest.fixture()
def admin_headers(make_headers):
    return make_headers(user_id=99, role="admin")

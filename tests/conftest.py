import os

# Must be set before bailbond.database creates its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from bailbond import rate_limiter  # noqa: E402
from bailbond.database import Base, SessionLocal, engine  # noqa: E402
from bailbond.domain.checkins.router import rate_limit_check_ins  # noqa: E402
from bailbond.main import app  # noqa: E402


@pytest.fixture
def db_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(db_tables):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def api(db_tables):
    app.dependency_overrides[rate_limit_check_ins] = lambda: None
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    rate_limiter.memory_cache.clear()
    yield
    rate_limiter.memory_cache.clear()


@pytest.fixture
def registered_client(api):
    response = api.post("/api/clients", json={"fullName": "Kaimana Akana", "phoneNumber": "808-555-0142"})
    assert response.status_code == 201
    return response.json()

import os

# keep the app's own engine off disk; tests use the engine below
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# 1) Import your app and the real get_db
from social_chat.main     import app
from social_chat.database import Base, get_db
from social_chat.auth     import create_access_token
from social_chat.config   import get_settings
from social_chat.schemas  import UserCreate
from social_chat          import user_service

# 2) Build a *test* engine & session factory, one shared in-memory database
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

# 3) Fresh schema for every test
@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

# 4) Provide the raw SQLAlchemy session to tests
@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

# 5) Override FastAPI's get_db to use *this* session
@pytest.fixture()
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

# 6) Seed users straight through the service layer
@pytest.fixture()
def make_user(db_session):
    def _make(username, email=None, password="secret123", name="", **extra):
        payload = UserCreate(
            username=username,
            email=email or f"{username.lower()}@example.com",
            password=password,
            name=name,
            **extra,
        )
        return user_service.create_user(db_session, payload)
    return _make

@pytest.fixture()
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": user.id})
        return {"Authorization": f"Bearer {token}"}
    return _headers

@pytest.fixture()
def media_root(tmp_path, monkeypatch):
    monkeypatch.setattr(get_settings(), "MEDIA_ROOT", tmp_path)
    return tmp_path

@pytest.fixture()
def session_factory():
    """Sessions on the shared test database, for code that opens its own."""
    return TestingSessionLocal

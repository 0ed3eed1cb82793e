import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portal import models  # noqa: F401
from portal.database import Base, get_db
from portal.features import seed_feature_flags
from portal.main import app
from portal.models import User
from portal.schemas import UserRole
from portal.security import create_access_token, hash_password


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_feature_flags(session)
    yield session
    session.close()


@pytest.fixture
def client(session_factory, db):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(username: str, role: UserRole = UserRole.REGISTERED, password: str = "password123", **fields) -> User:
        user = User(
            username=username,
            password_hash=hash_password(password),
            email=f"{username}@example.com",
            full_name=username.title(),
            role=role.value,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


def auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def headers_for():
    return auth


@pytest.fixture
def admin(make_user):
    return make_user("admin", UserRole.ADMIN)


@pytest.fixture
def moderator(make_user):
    return make_user("moderator", UserRole.MODERATOR)


@pytest.fixture
def resident(make_user):
    return make_user("resident")

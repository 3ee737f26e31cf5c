import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')
os.environ.setdefault('BCRYPT_ROUNDS', '4')

from userdesk.database import Base, get_db  # noqa: E402
from userdesk.main import app  # noqa: E402
from userdesk.models.user import User  # noqa: E402
from userdesk.services import user_service  # noqa: E402

DEFAULT_PASSWORD = 'correct-horse'


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=[User.__table__])
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=[User.__table__])
        engine.dispose()


@pytest.fixture
def db_session(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    def _make_user(email: str, role: str = 'user', password: str = DEFAULT_PASSWORD) -> User:
        return user_service.create_user(db_session, email, password, role)

    return _make_user


@pytest.fixture
def login_as(client):
    def _login_as(email: str, password: str = DEFAULT_PASSWORD):
        response = client.post(
            '/login',
            data={'email': email, 'password': password},
            follow_redirects=False,
        )
        assert response.status_code == 303
        return response

    return _login_as

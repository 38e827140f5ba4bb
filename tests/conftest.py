import os
import tempfile
from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = f"sqlite:///{tempfile.gettempdir()}/storefront-tests.db"
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-storefront-suite")

import storefront.models  # noqa: F401
from storefront.core.security import create_access_token, hash_password
from storefront.db.base_class import Base
from storefront.db.session import enable_sqlite_foreign_keys, get_db
from storefront.main import app
from storefront.models.user import User, UserRole

TEST_PASSWORD = "StrongPass1"


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    db_file = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    db_file.close()

    engine = create_engine(
        f"sqlite:///{db_file.name}",
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        os.unlink(db_file.name)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    def _make_user(username: str, role: UserRole = UserRole.CUSTOMER, **kwargs) -> User:
        user = User(
            username=username,
            email=kwargs.pop("email", f"{username}@example.com"),
            password_hash=hash_password(kwargs.pop("password", TEST_PASSWORD)),
            role=role,
            **kwargs,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


def auth_headers(user: User) -> dict:
    token = create_access_token(user.id, user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def headers_for() -> Callable[[User], dict]:
    return auth_headers


@pytest.fixture()
def customer(make_user) -> User:
    return make_user("customer_one")


@pytest.fixture()
def admin(make_user) -> User:
    return make_user("store_admin", role=UserRole.ADMIN)


@pytest.fixture()
def customer_headers(customer: User) -> dict:
    return auth_headers(customer)


@pytest.fixture()
def admin_headers(admin: User) -> dict:
    return auth_headers(admin)

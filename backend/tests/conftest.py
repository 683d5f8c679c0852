"""
Test configuration and fixtures.

Each test gets its own SQLite file and upload directory, an app built with
create_app() around them, and helpers to create users and bearer headers.
"""
import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pytest")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from seoreport.database import Database
from seoreport.main import create_app
from seoreport.models.database import Customer, User
from seoreport.models.enums import Role
from seoreport.services.auth_service import create_access_token, hash_password
from seoreport.services.upload_service import FileStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32
DEFAULT_PASSWORD = "pw"


@pytest.fixture()
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture()
def file_store(tmp_path):
    return FileStore(tmp_path / "public")


@pytest.fixture()
def app(database, file_store):
    return create_app(database=database, file_store=file_store)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def db_session(database):
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


class UserFactory:
    def __init__(self, session):
        self.session = session
        self.counter = 0

    def __call__(self, role=Role.CUSTOMER, email=None, name=None, password=DEFAULT_PASSWORD,
                 domain=None, seo_dev=None, with_profile=True):
        self.counter += 1
        user = User(
            name=name or f"{role.value.title()} {self.counter}",
            email=email or f"{role.value.lower()}{self.counter}@example.com",
            hashed_password=hash_password(password),
            role=role,
        )
        self.session.add(user)
        self.session.flush()
        if role == Role.CUSTOMER and with_profile:
            self.session.add(Customer(
                name=f"{user.name} Co",
                domain=domain or f"customer{self.counter}.example.com",
                user_id=user.id,
                seo_dev_id=seo_dev.id if seo_dev else None,
            ))
        self.session.commit()
        self.session.refresh(user)
        return user


@pytest.fixture()
def make_user(db_session):
    return UserFactory(db_session)


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture()
def admin(make_user):
    return make_user(Role.ADMIN, name="Admin")


@pytest.fixture()
def seo_dev(make_user):
    return make_user(Role.SEO_DEV, name="SEO Dev")


@pytest.fixture()
def customer_user(make_user):
    return make_user(Role.CUSTOMER, name="Acme", domain="acme.com")

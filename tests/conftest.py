from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from reviewuplift.domain import FeedbackIntake
from reviewuplift.infrastructure.config import get_settings
from reviewuplift.infrastructure.persistence import Database, init_database


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    # Ensure env is set before settings are first read
    monkeypatch.setenv("DATABASE_FILE", str(tmp_path / "test.db"))
    monkeypatch.setenv("FEEDBACK_SUBMIT_DELAY", "0")
    monkeypatch.setenv("IDENTITY_PROVIDER", "local")
    monkeypatch.setenv("REVIEW_LINK_BASE", "https://go.reviewuplift.com/")
    monkeypatch.setenv("MAX_IMAGE_BYTES", "1024")
    monkeypatch.setenv("SECRET_KEY", "test-secret-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def db(tmp_path) -> Database:
    return init_database(tmp_path / "repo.db")


@pytest.fixture()
def intake() -> FeedbackIntake:
    return FeedbackIntake(delay_seconds=0)


@pytest.fixture()
def web():
    from reviewuplift.web import app as web_module
    return web_module


@pytest.fixture()
def client(web) -> Iterator[TestClient]:
    with TestClient(web.app) as c:
        yield c


def signup(client, email="owner@donerhut.com", username="owner", password="secret123"):
    return client.post(
        "/signup",
        data={"email": email, "username": username, "password": password},
        follow_redirects=False,
    )


def login(client, identifier, password):
    return client.post("/login", data={"email": identifier, "password": password}, follow_redirects=False)


@pytest.fixture()
def owner(client, web):
    """Signed-in owner of "Doner Hut"."""
    signup(client)
    client.post(
        "/business-form",
        data={
            "name": "Doner Hut",
            "business_type": "Restaurant",
            "contact_email": "owner@donerhut.com",
            "contact_phone": "+923001234567",
            "branch_count": "2",
            "description": "Kebabs and wraps",
        },
        follow_redirects=False,
    )
    return web.db.get_user_by_username("owner")


@pytest.fixture()
def admin_credentials(client, web):
    auth = web.identity.sign_up("admin@reviewuplift.com", "adminpass")
    web.db.create_user(auth.uid, "admin@reviewuplift.com", "admin", role="admin")
    return "admin", "adminpass"

import json
import os
import sys

import pytest

# Ensure project root is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from config import Config
from app import create_app
from app.models import db, User
from delivery import DeliveryClient, SecretProvider


class TestConfig(Config):
    __test__ = False

    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False
    LALAMOVE_API_KEY = "test-key"
    LALAMOVE_API_SECRET = "test-secret"
    ADMIN_EMAIL = ""
    ADMIN_PASSWORD = ""


TEST_SECRETS = {"LALAMOVE_API_KEY": "test-key", "LALAMOVE_API_SECRET": "test-secret"}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload or {})


class FakeSession:
    """Stands in for ``requests.Session``; replies from a queue and records calls."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        reply = self.responses.pop(0) if self.responses else FakeResponse(200, {"data": {}})
        if isinstance(reply, Exception):
            raise reply
        return reply

    def sent_json(self, index=-1):
        return json.loads(self.calls[index]["data"])


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def upstream(monkeypatch, fake_session):
    """Route every proxy call through ``fake_session``."""
    monkeypatch.setattr(
        "app.proxy.routes.build_client",
        lambda: DeliveryClient(SecretProvider(TEST_SECRETS), session=fake_session),
    )
    return fake_session


def seed_admin(app, email="admin@example.com", password="Password!12345", is_admin=True):
    with app.app_context():
        user = User(email=email, name="Admin", is_admin=is_admin, is_active=True)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user.id


@pytest.fixture
def admin_client(app, client):
    seed_admin(app)
    resp = client.post(
        "/api/admin/login",
        json={"email": "admin@example.com", "password": "Password!12345"},
    )
    assert resp.status_code == 200
    return client

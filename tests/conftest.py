"""
Pytest configuration and shared fixtures for the studio backend tests.
"""

import os

os.environ.setdefault("TESTING", "True")
os.environ.setdefault("FLASK_ENV", "testing")

import pytest  # noqa: E402

from main import create_app  # noqa: E402
from studio.extensions import db as database  # noqa: E402


class RecordingDispatcher:
    """Stands in for NotificationDispatcher and remembers every call."""

    public_key = "test-public-key"

    def __init__(self):
        self.tags = []
        self.untags = []
        self.broadcasts = []
        self.subscriptions = []
        self.fail = False

    def register_subscription(self, subscription):
        if any(s.endpoint == subscription.endpoint for s in self.subscriptions):
            return False
        self.subscriptions.append(subscription)
        return True

    def broadcast(self, title, body):
        self.broadcasts.append((title, body))
        return [{"endpoint": s.endpoint, "ok": True} for s in self.subscriptions]

    def send_inactive_client_notification(self, client_name):
        return self.broadcast("We miss you!", f"Hi {client_name}!")

    def tag_appointment_reminder(self, appointment_id, date_time, user_id):
        if self.fail:
            raise RuntimeError("provider down")
        self.tags.append((appointment_id, date_time, user_id))

    def untag_appointment_reminder(self, appointment_id, user_id):
        if self.fail:
            raise RuntimeError("provider down")
        self.untags.append((appointment_id, user_id))


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def app(tmp_path, dispatcher):
    """A fresh app on its own SQLite file for every test."""
    app = create_app(
        "testing",
        overrides={
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.sqlite'}",
            "VAPID_FILE": str(tmp_path / "vapid.json"),
            "SUBSCRIPTIONS_FILE": str(tmp_path / "subs.json"),
        },
        notifier=dispatcher,
    )
    yield app

    with app.app_context():
        database.session.remove()
        database.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


def register(client, email="a@x.com", password="secret1"):
    response = client.post("/api/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.get_json()
    return {"Authorization": f"Bearer {response.get_json()['token']}"}


@pytest.fixture
def auth_headers(client):
    return register(client)


@pytest.fixture
def other_headers(client):
    """A second studio user, for tenant isolation checks."""
    return register(client, email="b@x.com", password="secret2")


@pytest.fixture
def sample_client(client, auth_headers):
    response = client.post(
        "/api/clientes",
        json={"name": "Maria", "phone": "11999999999"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.get_json()


@pytest.fixture
def sample_service(client, auth_headers):
    response = client.post(
        "/api/servicos",
        json={"name": "Manicure", "price": 35.0, "duration": 45},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.get_json()


@pytest.fixture
def make_appointment(client, auth_headers, sample_client, sample_service):
    def _make(status="pending", date_time="2030-01-15T14:00:00Z", notes=None, headers=None):
        body = {
            "client_id": sample_client["id"],
            "service_id": sample_service["id"],
            "date_time": date_time,
            "status": status,
        }
        if notes is not None:
            body["notes"] = notes
        response = client.post("/api/agendamentos", json=body, headers=headers or auth_headers)
        assert response.status_code == 201, response.get_json()
        return response.get_json()

    return _make

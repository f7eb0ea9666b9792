# tests/conftest.py
import os
import tempfile

# Point the app at a throwaway SQLite file before anything imports app.db
_DB_DIR = tempfile.mkdtemp(prefix="churchconnect-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["TZ"] = "UTC"
os.environ["API_KEY_PEPPER"] = "test-pepper"
os.environ.pop("SMTP_HOST", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.db import Base, SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402

Base.metadata.create_all(bind=engine)


class RecordingNotifier:
    """Captures outbound messages; set fail=True to simulate a dead mail server."""

    def __init__(self):
        self.emails = []
        self.sms = []
        self.fail = False

    def send_email(self, to_addrs, subject, body):
        if self.fail:
            raise ConnectionError("smtp down")
        self.emails.append((list(to_addrs), subject, body))

    def send_sms(self, phone, message):
        if self.fail:
            raise ConnectionError("sms gateway down")
        self.sms.append((phone, message))


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    recorder = RecordingNotifier()
    previous = getattr(app.state, "notifier", None)
    app.state.notifier = recorder
    yield recorder
    app.state.notifier = previous


def _bootstrap(name, email, subdomain=None):
    client = TestClient(app)
    r = client.post(
        "/api/churches",
        json={"name": name, "subdomain": subdomain, "admin_email": email, "admin_display_name": "Admin"},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    return body["church"]["id"], {"X-API-Key": body["admin"]["api_key"]}


@pytest.fixture
def church():
    """(church_id, admin headers) for a fresh tenant."""
    return _bootstrap("Grace Chapel", "admin@grace.local", "grace")


@pytest.fixture
def admin(church):
    return church[1]


@pytest.fixture
def other_church():
    return _bootstrap("Hope Church", "admin@hope.local", "hope")


@pytest.fixture
def make_member(admin):
    client = TestClient(app)

    def _make(first="John", surname="Doe", headers=None, **fields):
        payload = {
            "first_name": first,
            "surname": surname,
            "gender": "male",
            "age_group": "adult",
            "phone": "+1 555 0100",
        }
        payload.update(fields)
        r = client.post("/api/members", json=payload, headers=headers or admin)
        assert r.status_code == 201, r.text
        return r.json()

    return _make

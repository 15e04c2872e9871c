import os
import sys
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

# --- path to backend ---
BASE_DIR = os.path.dirname(os.path.dirname(__file__))
BACKEND_DIR = os.path.join(BASE_DIR, "backend")
sys.path.insert(0, BACKEND_DIR)

from clock import Clock  # noqa: E402
from config import Settings  # noqa: E402
from database import Database  # noqa: E402

TZ = ZoneInfo("Europe/Tirane")

# Monday, 10:00 in the shop
MONDAY_10 = datetime(2026, 10, 19, 10, 0, tzinfo=TZ)


class FixedClock(Clock):
    def __init__(self, now: datetime):
        super().__init__("Europe/Tirane")
        self.current = now

    def now(self) -> datetime:
        return self.current

    def set(self, now: datetime):
        self.current = now


# ------------------ settings ------------------
@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        CLEANUP_ENABLED=False,
        SESSION_SECRET="test-secret",
        ADMIN_USER="admin",
        ADMIN_PASS="admin123",
        TELEGRAM_BOT_TOKEN="",
        TELEGRAM_CHAT_ID="",
        TWILIO_SID="",
        MAIL_USERNAME="",
        ADMIN_EMAIL="",
    )


@pytest.fixture
def clock():
    return FixedClock(MONDAY_10)


# ------------------ database ------------------
@pytest.fixture
def db(settings):
    database = Database(settings.DATABASE_URL)
    database.open()
    session = database.session()
    yield session
    session.close()
    database.close()


# ------------------ client ------------------
@pytest.fixture
def client(settings, clock):
    from main import create_app

    app = create_app(settings, clock)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client(client):
    response = client.post("/api/admin/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 200
    return client

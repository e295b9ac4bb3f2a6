import os
import re
import shutil
import sys
import pathlib

import pytest

root = pathlib.Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from schedule_app import create_app
from schedule_app.models import Appointment, Schedule
from schedule_app.services.errors import ScheduleNotFound, StoreError
from schedule_app.services.store import ScheduleStore


@pytest.fixture(scope="session")
def _template_db(tmp_path_factory):
    """Build a migrated DB once per test session; each ``app`` copies it."""
    db_path = tmp_path_factory.mktemp("template") / "app.db"
    old_db = os.environ.get("SCHEDULE_DB_PATH")
    old_key = os.environ.get("SCHEDULE_SECRET_KEY")
    os.environ["SCHEDULE_DB_PATH"] = str(db_path)
    os.environ["SCHEDULE_SECRET_KEY"] = "test-secret"
    try:
        _app = create_app()
        with _app.app_context():
            pass
    finally:
        if old_db is None:
            os.environ.pop("SCHEDULE_DB_PATH", None)
        else:
            os.environ["SCHEDULE_DB_PATH"] = old_db
        if old_key is None:
            os.environ.pop("SCHEDULE_SECRET_KEY", None)
        else:
            os.environ["SCHEDULE_SECRET_KEY"] = old_key
    return db_path


@pytest.fixture
def app(tmp_path, monkeypatch, _template_db):
    db_path = tmp_path / "app.db"
    shutil.copy2(_template_db, db_path)
    monkeypatch.setenv("SCHEDULE_DB_PATH", str(db_path))
    monkeypatch.setenv("SCHEDULE_SECRET_KEY", "test-secret")
    monkeypatch.setenv("SCHEDULE_AUTO_MIGRATE", "0")
    app = create_app()
    app.config.update(TESTING=True, WTF_CSRF_ENABLED=True)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_schedule(app):
    counter = {"n": 0}

    def _make(title: str = "Team Sync", icon: str = "📅", schedule_id: str | None = None) -> str:
        counter["n"] += 1
        sid = schedule_id or f"test-schedule-{counter['n']}"
        with app.app_context():
            ScheduleStore().create_schedule(sid, title, icon)
        return sid

    return _make


def _extract_csrf(response) -> str:
    match = re.search(r'name="csrf_token" value="([^"]+)"', response.data.decode("utf-8"))
    assert match, "CSRF token not found"
    return match.group(1)


@pytest.fixture
def get_csrf_token():
    return _extract_csrf


@pytest.fixture
def csrf_token(client):
    return _extract_csrf(client.get("/"))


class FakeStore:
    """In-memory stand-in for ScheduleStore with switchable failures."""

    def __init__(self, schedules=None, appointments=None):
        self.schedules = {s.id: s for s in (schedules or [])}
        self.appointments = list(appointments or [])
        self.fail = set()
        self.calls = []
        self._next = 0

    def _maybe_fail(self, op):
        self.calls.append(op)
        if op in self.fail:
            raise StoreError(f"{op}_failed")

    def fetch_schedule(self, schedule_id):
        self._maybe_fail("fetch_schedule")
        if schedule_id not in self.schedules:
            raise ScheduleNotFound(schedule_id)
        return self.schedules[schedule_id]

    def fetch_appointments(self, schedule_id):
        self._maybe_fail("fetch_appointments")
        return [a for a in self.appointments if a.schedule_id == schedule_id]

    def create_appointment(self, schedule_id, name, start, end):
        self._maybe_fail("create_appointment")
        self._next += 1
        appt = Appointment(id=f"appt-{self._next:03d}", schedule_id=schedule_id, name=name, start=start, end=end)
        self.appointments.append(appt)
        return appt

    def delete_all_appointments(self, schedule_id):
        self._maybe_fail("delete_all_appointments")
        self.appointments = [a for a in self.appointments if a.schedule_id != schedule_id]

    def delete_schedule(self, schedule_id):
        self._maybe_fail("delete_schedule")
        self.schedules.pop(schedule_id, None)


class DictPreferences:
    def __init__(self):
        self.data = {}

    def get_preference(self, schedule_id, key, default=None):
        return self.data.get(schedule_id, {}).get(key, default)

    def set_preference(self, schedule_id, key, value):
        self.data.setdefault(schedule_id, {})[key] = value

    def clear(self, schedule_id):
        self.data.pop(schedule_id, None)


@pytest.fixture
def fake_store():
    return FakeStore(schedules=[Schedule(id="demo", title="Demo", icon="🗓")])


@pytest.fixture
def prefs():
    return DictPreferences()

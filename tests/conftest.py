import copy
import os
from types import SimpleNamespace

import pytest
from bson import ObjectId

os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("GOAL_TIMEZONE", "UTC")

from fastapi import Header  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.main import app  # noqa: E402
from app.controllers import goal_controller, notification_controller  # noqa: E402
from app.services import notify  # noqa: E402
from app.utils.auth_utils import get_current_user  # noqa: E402


# ============================================================================
# In-memory stand-in for the slice of the Motor collection API the app uses
# ============================================================================

def _lookup(doc, dotted):
    value = doc
    for part in dotted.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _matches(doc, filt):
    for key, cond in (filt or {}).items():
        value = _lookup(doc, key)
        if isinstance(cond, dict) and "$ne" in cond:
            if value == cond["$ne"]:
                return False
        elif value != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs.sort(key=lambda d: (d.get(key) is not None, d.get(key)), reverse=direction < 0)
        return self

    def skip(self, n):
        self._docs = self._docs[n:]
        return self

    def limit(self, n):
        self._docs = self._docs[:n]
        return self

    async def __aiter__(self):
        for doc in self._docs:
            yield doc


class FakeCollection:
    def __init__(self, docs=None):
        self.docs = [copy.deepcopy(d) for d in (docs or [])]

    async def insert_one(self, doc):
        doc = copy.deepcopy(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, filt=None, projection=None):
        for doc in self.docs:
            if _matches(doc, filt):
                return copy.deepcopy(doc)
        return None

    def find(self, filt=None):
        return FakeCursor([copy.deepcopy(d) for d in self.docs if _matches(d, filt)])

    async def update_one(self, filt, update):
        for doc in self.docs:
            if _matches(doc, filt):
                for key, value in update.get("$set", {}).items():
                    doc[key] = copy.deepcopy(value)
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def delete_one(self, filt):
        for i, doc in enumerate(self.docs):
            if _matches(doc, filt):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def delete_many(self, filt):
        keep = [d for d in self.docs if not _matches(d, filt)]
        deleted = len(self.docs) - len(keep)
        self.docs = keep
        return SimpleNamespace(deleted_count=deleted)

    async def create_index(self, *args, **kwargs):
        return "ok"


# ============================================================================
# Fixtures
# ============================================================================

RECIPIENT_ID = str(ObjectId())
GIVER_ID = str(ObjectId())
STRANGER_ID = str(ObjectId())


@pytest.fixture
def users():
    return FakeCollection([
        {"_id": ObjectId(RECIPIENT_ID), "name": "Rita"},
        {"_id": ObjectId(GIVER_ID), "name": "Gabe"},
        {"_id": ObjectId(STRANGER_ID), "name": "Sam"},
    ])


@pytest.fixture
def goals():
    return FakeCollection()


@pytest.fixture
def notifications():
    return FakeCollection()


@pytest.fixture
def sent(monkeypatch):
    """Notifications the goal controller dispatched, recorded instead of scheduled."""
    calls = []

    def _record(user_id, type, title, message="", data=None, clearable=True):
        if user_id:
            calls.append(SimpleNamespace(
                user_id=user_id, type=type, title=title, message=message,
                data=data or {}, clearable=clearable,
            ))

    monkeypatch.setattr(notify, "notify_user_bg", _record)
    return calls


@pytest.fixture
def client(monkeypatch, users, goals, notifications, sent):
    monkeypatch.setattr(goal_controller, "goals_collection", goals)
    monkeypatch.setattr(goal_controller, "users_collection", users)
    monkeypatch.setattr(notification_controller, "notifications_collection", notifications)

    async def _header_user(x_test_user: str = Header(...)):
        return {"_id": ObjectId(x_test_user)}

    app.dependency_overrides[get_current_user] = _header_user
    yield TestClient(app)
    app.dependency_overrides.clear()


def as_user(user_id):
    return {"X-Test-User": user_id}

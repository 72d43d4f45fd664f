# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.

FakeSupabase keeps tables in memory and answers the subset of the
supabase-py query builder the services use (select/eq/in_/order/limit/
offset/insert/update/upsert/delete/execute).
"""

import copy
import itertools
import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, Mock

from tarl_access.main import app as fastapi_app
from tarl_access.core.dependencies import get_current_user_id
from tarl_access.database.supabase_client import get_supabase, get_service_supabase
from tarl_access.modules.auth.service import clear_auth_cache


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.on_conflict = ""
        self.filters = []
        self.order_by = None
        self.limit_n = None
        self.offset_n = 0

    # builder
    def select(self, *columns):
        self.op = "select"
        return self

    def insert(self, data):
        self.op, self.payload = "insert", data
        return self

    def update(self, data):
        self.op, self.payload = "update", data
        return self

    def upsert(self, data, on_conflict=""):
        self.op, self.payload, self.on_conflict = "upsert", data, on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def offset(self, n):
        self.offset_n = n
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        if (self.table, self.op) in self.db.failures:
            raise Exception(f"simulated {self.op} failure on {self.table}")
        self.db.calls.append((self.table, self.op))
        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "select":
            result = [row for row in rows if self._matches(row)]
            if self.order_by:
                column, desc = self.order_by
                result.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
            end = None if self.limit_n is None else self.offset_n + self.limit_n
            return FakeResponse(copy.deepcopy(result[self.offset_n:end]))

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            return FakeResponse([copy.deepcopy(self.db.add(self.table, item)) for item in items])

        if self.op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return FakeResponse(updated)

        if self.op == "upsert":
            keys = [k.strip() for k in self.on_conflict.split(",") if k.strip()] or ["id"]
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            out = []
            for item in items:
                existing = next((r for r in rows if all(r.get(k) == item.get(k) for k in keys)), None)
                if existing is not None:
                    existing.update(copy.deepcopy(item))
                    out.append(copy.deepcopy(existing))
                else:
                    out.append(copy.deepcopy(self.db.add(self.table, item)))
            return FakeResponse(out)

        if self.op == "delete":
            removed = [row for row in rows if self._matches(row)]
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return FakeResponse(copy.deepcopy(removed))

        raise AssertionError(f"unsupported op {self.op}")


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.failures = set()
        self.calls = []
        self._ids = itertools.count(1000)
        self._clock = datetime(2024, 1, 1)
        self.auth = MagicMock()

    def table(self, name):
        return FakeQuery(self, name)

    def add(self, table, item):
        row = copy.deepcopy(item)
        row.setdefault("id", next(self._ids))
        self._clock += timedelta(seconds=1)
        row.setdefault("created_at", self._clock.isoformat())
        self.tables.setdefault(table, []).append(row)
        return row

    def seed(self, table, rows):
        for row in rows:
            self.add(table, row)

    def fail(self, table, op):
        self.failures.add((table, op))

    def rows(self, table, **match):
        return [r for r in self.tables.get(table, []) if all(r.get(k) == v for k, v in match.items())]

    def writes(self, table):
        return [op for t, op in self.calls if t == table and op != "select"]


ROLES = [
    {"id": 1, "name": "admin"},
    {"id": 2, "name": "director"},
    {"id": 3, "name": "partner"},
    {"id": 4, "name": "teacher"},
    {"id": 5, "name": "coordinator"},
    {"id": 6, "name": "collector"},
    {"id": 7, "name": "intern"},
]

PAGES = [
    {"id": 1, "page_name": "Dashboard", "page_path": "/dashboard"},
    {"id": 2, "page_name": "Schools", "page_path": "/schools"},
    {"id": 3, "page_name": "Users", "page_path": "/users"},
    {"id": 4, "page_name": "Reports", "page_path": "/reports"},
]

PROFILES = [
    {"id": "admin-user", "email": "admin@example.com", "full_name": "Admin User", "role": "admin", "school_id": None},
    {"id": "director-user", "email": "director@example.com", "full_name": "Dara Director", "role": "director", "school_id": 10},
    {"id": "teacher-user", "email": "teacher@example.com", "full_name": "Sok Teacher", "role": "teacher", "school_id": 10},
    {"id": "far-teacher", "email": "far@example.com", "full_name": "Far Teacher", "role": "teacher", "school_id": 11},
    {"id": "intern-user", "email": "intern@example.com", "full_name": "Ina Intern", "role": "intern", "school_id": None},
]


@pytest.fixture
def fake_db():
    db = FakeSupabase()
    db.seed("roles", ROLES)
    db.seed("pages", PAGES)
    db.seed("user_profiles", PROFILES)
    db.seed("zones", [{"id": 1, "name": "Zone North"}, {"id": 2, "name": "Zone South"}])
    db.seed("provinces", [{"id": 3, "name": "Battambang"}, {"id": 4, "name": "Kampot"}])
    db.seed("districts", [{"id": 5, "name": "Sangkae"}, {"id": 6, "name": "Chhuk"}])
    db.seed("schools", [
        {"id": 10, "name": "Wat Kor Primary", "zone_id": 1, "province_id": 3, "district_id": 5},
        {"id": 11, "name": "Ek Phnom Primary", "zone_id": 2, "province_id": 4, "district_id": 6},
    ])
    db.seed("user_hierarchy_assignments", [
        {"user_id": "director-user", "assignment_type": "school", "assignment_id": 10, "is_active": True},
    ])
    db.calls.clear()
    return db


@pytest.fixture
def app(fake_db):
    fastapi_app.dependency_overrides[get_supabase] = lambda: fake_db
    fastapi_app.dependency_overrides[get_service_supabase] = lambda: fake_db
    yield fastapi_app
    fastapi_app.dependency_overrides = {}


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login_as(app, fake_db):
    """Pretend the bearer token belongs to the given profile id."""
    def _login(user_id):
        profile = next((p for p in PROFILES if p["id"] == user_id), {"email": f"{user_id}@example.com"})
        app.dependency_overrides[get_current_user_id] = lambda: {
            "id": user_id,
            "email": profile["email"],
            "user_metadata": {},
            "app_metadata": {},
        }
    return _login


@pytest.fixture(autouse=True)
def reset_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()


@pytest.fixture
def mock_created_auth_user(fake_db):
    """Make auth.admin.create_user return a fresh user id."""
    fake_db.auth.admin.create_user.return_value = Mock(user=Mock(id="new-user-id"))
    return fake_db.auth.admin.create_user

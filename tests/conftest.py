"""
Shared fixtures: an in-memory Supabase client and a TestClient wired to it.

The fake implements the subset of the supabase-py query builder the services
use. Filters are applied in Python; embedded selects such as
``property_images(*)`` are resolved through ``EMBEDS``.
"""

import copy
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.auth.service import clear_auth_cache
from app.modules.autosave import registry

# embed name -> (kind, foreign key)
EMBEDS = {
    "property_images": ("many", "property_id"),
    "properties": ("one", "property_id"),
    "leads": ("one", "lead_id"),
}


class FakeResult:
    def __init__(self, data: Any, count: Optional[int] = None):
        self.data = data
        self.count = count


def _ilike(value: Any, pattern: str) -> bool:
    if value is None:
        return False
    needle = pattern.strip("%").lower()
    return needle in str(value).lower()


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.columns = "*"
        self.want_count = False
        self.payload: Any = None
        self.on_conflict: Optional[str] = None
        self.filters: List = []
        self.orders: List = []
        self.offset = 0
        self.max_rows: Optional[int] = None
        self.single_mode: Optional[str] = None

    # -- actions -----------------------------------------------------------

    def select(self, columns: str = "*", count: Optional[str] = None):
        self.columns = columns
        self.want_count = count is not None
        return self

    def insert(self, payload):
        self.action, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.action, self.payload = "update", payload
        return self

    def upsert(self, payload, on_conflict: str = "id"):
        self.action, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self):
        self.action = "delete"
        return self

    # -- filters -----------------------------------------------------------

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) <= value)
        return self

    def is_(self, column, value):
        if value == "null":
            self.filters.append(lambda row: row.get(column) is None)
        else:
            self.filters.append(lambda row: row.get(column) is value)
        return self

    def ilike(self, column, pattern):
        self.filters.append(lambda row: _ilike(row.get(column), pattern))
        return self

    def or_(self, expression: str):
        clauses = []
        for part in expression.split(","):
            column, op, value = part.split(".", 2)
            clauses.append((column, op, value))

        def match(row):
            for column, op, value in clauses:
                if op == "ilike" and _ilike(row.get(column), value):
                    return True
                if op == "eq" and str(row.get(column)) == value:
                    return True
                if op == "is" and value == "null" and row.get(column) is None:
                    return True
            return False

        self.filters.append(match)
        return self

    def order(self, column, desc: bool = False, nullsfirst: Optional[bool] = None):
        self.orders.append((column, desc))
        return self

    def range(self, start: int, end: int):
        self.offset = start
        self.max_rows = end - start + 1
        return self

    def limit(self, n: int):
        self.max_rows = n
        return self

    def single(self):
        self.single_mode = "single"
        return self

    def maybe_single(self):
        self.single_mode = "maybe"
        return self

    # -- execution ---------------------------------------------------------

    def _matches(self, row) -> bool:
        return all(f(row) for f in self.filters)

    def _embed(self, row: Dict[str, Any]) -> Dict[str, Any]:
        row = copy.deepcopy(row)
        for name, (kind, key) in EMBEDS.items():
            if f"{name}(" not in self.columns or name in row:
                continue
            rows = self.db.tables.get(name, [])
            if kind == "many":
                row[name] = [copy.deepcopy(r) for r in rows if r.get(key) == row.get("id")]
            else:
                found = next((r for r in rows if r.get("id") == row.get(key)), None)
                row[name] = copy.deepcopy(found) if found else None
        return row

    def execute(self):
        self.db.calls.append((self.table_name, self.action))
        failure = self.db.failures.get((self.table_name, self.action))
        if failure is not None:
            raise failure
        rows = self.db.tables.setdefault(self.table_name, [])

        if self.action == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in items:
                row = {"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc).isoformat(), **item}
                rows.append(row)
                created.append(copy.deepcopy(row))
            return FakeResult(created)

        if self.action == "upsert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            stored = []
            for item in items:
                existing = next((r for r in rows if r.get(self.on_conflict) == item.get(self.on_conflict)), None)
                if existing is not None:
                    existing.update(item)
                    stored.append(copy.deepcopy(existing))
                else:
                    row = {"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc).isoformat(), **item}
                    rows.append(row)
                    stored.append(copy.deepcopy(row))
            return FakeResult(stored)

        matched = [r for r in rows if self._matches(r)]

        if self.action == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResult([copy.deepcopy(r) for r in matched])

        if self.action == "delete":
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResult([copy.deepcopy(r) for r in matched])

        for column, desc in reversed(self.orders):
            present = [r for r in matched if r.get(column) is not None]
            missing = [r for r in matched if r.get(column) is None]
            matched = sorted(present, key=lambda r: r[column], reverse=desc) + missing
        total = len(matched)
        if self.max_rows is not None:
            matched = matched[self.offset:self.offset + self.max_rows]
        data = [self._embed(r) for r in matched]

        if self.single_mode == "maybe":
            if not data:
                return None
            return FakeResult(data[0])
        if self.single_mode == "single":
            if len(data) != 1:
                raise Exception("JSON object requested, multiple (or no) rows returned")
            return FakeResult(data[0])
        return FakeResult(data, count=total if self.want_count else None)


class FakeBucket:
    def __init__(self, db: "FakeSupabase", name: str):
        self.db = db
        self.name = name

    def upload(self, path, content, options=None):
        self.db.files[(self.name, path)] = content
        return {"Key": path}

    def get_public_url(self, path):
        return f"https://storage.test/{self.name}/{path}"

    def remove(self, paths):
        for path in paths:
            self.db.files.pop((self.name, path), None)
        return []


class FakeAuthAdmin:
    def __init__(self):
        self.updates = []

    def update_user_by_id(self, user_id, attributes):
        self.updates.append((user_id, attributes))


class FakeAuth:
    def __init__(self):
        self.users: Dict[str, SimpleNamespace] = {}
        self.admin = FakeAuthAdmin()

    def get_user(self, jwt=None):
        user = self.users.get(jwt)
        if user is None:
            raise Exception("invalid JWT")
        return SimpleNamespace(user=user)

    def sign_up(self, credentials):
        if any(u.email == credentials["email"] for u in self.users.values()):
            raise Exception("User already registered")
        user = SimpleNamespace(
            id=str(uuid.uuid4()), email=credentials["email"],
            user_metadata=credentials.get("options", {}).get("data", {}), app_metadata={},
        )
        self.users[f"token-{user.id}"] = user
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, credentials):
        for token, user in self.users.items():
            if user.email == credentials["email"] and credentials["password"] == "correct-horse":
                return SimpleNamespace(user=user, session=SimpleNamespace(access_token=token, refresh_token="r"))
        raise Exception("Invalid login credentials")

    def sign_out(self):
        return None


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failures: Dict[tuple, Exception] = {}
        self.calls: List[tuple] = []
        self.files: Dict[tuple, bytes] = {}
        self.auth = FakeAuth()
        self.storage = SimpleNamespace(from_=lambda name: FakeBucket(self, name))

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, *rows: Dict[str, Any]) -> List[Dict[str, Any]]:
        stored = []
        for row in rows:
            row = {"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc).isoformat(), **row}
            self.tables.setdefault(table, []).append(row)
            stored.append(row)
        return stored

    def add_user(self, token: str, user_id: str, email: str, role: Optional[str] = None, with_profile: bool = True):
        app_metadata = {"role": role} if role else {}
        self.auth.users[token] = SimpleNamespace(
            id=user_id, email=email, user_metadata={}, app_metadata=app_metadata
        )
        if with_profile:
            self.seed("profiles", {
                "id": user_id, "email": email, "role": role or "user", "is_active": True,
            })


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def client(fake_db):
    app.dependency_overrides[get_supabase] = lambda: fake_db
    app.dependency_overrides[get_service_supabase] = lambda: fake_db
    clear_auth_cache()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    registry.clear()
    clear_auth_cache()


ADMIN_ID = "00000000-0000-0000-0000-0000000000a1"
SUPER_ADMIN_ID = "00000000-0000-0000-0000-0000000000s1"
USER_ID = "00000000-0000-0000-0000-0000000000u1"


@pytest.fixture
def admin_headers(fake_db):
    fake_db.add_user("admin-token", ADMIN_ID, "admin@covialvi.pt", role="admin")
    return {"Authorization": "Bearer admin-token"}


@pytest.fixture
def super_admin_headers(fake_db):
    fake_db.add_user("super-token", SUPER_ADMIN_ID, "super@covialvi.pt", role="super_admin")
    return {"Authorization": "Bearer super-token"}


@pytest.fixture
def user_headers(fake_db):
    fake_db.add_user("user-token", USER_ID, "cliente@example.com")
    return {"Authorization": "Bearer user-token"}

# tests/fakes.py

"""
In-memory stand-in for the Supabase client.

Covers the slice of the PostgREST query builder, GoTrue admin API and
storage API the routers use. Select column lists (including embedded
relations) are ignored; every row comes back whole.
"""

import fnmatch
import itertools
import re
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional


# Primary key generated on insert when the row does not carry one
ID_COLUMNS = {
    "appointments": "appointment_id",
    "property_reservations": "reservation_id",
    "reservation_transactions": "transaction_id",
    "property_contracts": "contract_id",
    "contract_payment_schedules": "schedule_id",
    "contract_transfer_history": "transfer_id",
    "contract_payment_transactions": "transaction_id",
    "client_inquiries": "inquiry_id",
    "otp_verifications": "otp_id",
    "role": "role_id",
}

INTEGER_IDS = {"role"}


class FakeAPIError(Exception):
    """Shaped like postgrest.APIError: carries `.message`."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================
# Query builder
# ============================================================
_OR_TERM = re.compile(r'(\w+)\.eq\.(?:"([^"]*)"|([^,]*))')


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List[Callable[[dict], bool]] = []
        self.orders: List[tuple] = []
        self.row_limit: Optional[int] = None
        self.row_range: Optional[tuple] = None
        self.count_mode: Optional[str] = None

    # --- operations ---
    def select(self, columns: str = "*", count: Optional[str] = None):
        self.count_mode = count
        return self

    def insert(self, rows):
        self.op = "insert"
        self.payload = rows
        return self

    def update(self, changes: dict):
        self.op = "update"
        self.payload = changes
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- filters ---
    def _where(self, predicate):
        self.filters.append(predicate)
        return self

    def eq(self, column, value):
        return self._where(lambda r: r.get(column) == value)

    def neq(self, column, value):
        return self._where(lambda r: r.get(column) != value)

    def in_(self, column, values):
        values = list(values)
        return self._where(lambda r: r.get(column) in values)

    def gt(self, column, value):
        return self._where(lambda r: r.get(column) is not None and r.get(column) > value)

    def gte(self, column, value):
        return self._where(lambda r: r.get(column) is not None and r.get(column) >= value)

    def lt(self, column, value):
        return self._where(lambda r: r.get(column) is not None and r.get(column) < value)

    def lte(self, column, value):
        return self._where(lambda r: r.get(column) is not None and r.get(column) <= value)

    def ilike(self, column, pattern):
        glob = pattern.replace("%", "*").replace("_", "?").lower()
        return self._where(
            lambda r: r.get(column) is not None and fnmatch.fnmatchcase(str(r.get(column)).lower(), glob)
        )

    def or_(self, expression: str):
        terms = [(col, quoted if quoted else bare) for col, quoted, bare in _OR_TERM.findall(expression)]
        return self._where(lambda r: any(str(r.get(col)) == value for col, value in terms))

    # --- modifiers ---
    def order(self, column, desc: bool = False):
        self.orders.append((column, desc))
        return self

    def limit(self, n: int):
        self.row_limit = n
        return self

    def range(self, start: int, end: int):
        self.row_range = (start, end)
        return self

    # --- execution ---
    def _matches(self, row: dict) -> bool:
        return all(f(row) for f in self.filters)

    def execute(self):
        self.db.calls.append((self.table, self.op))
        failure = self.db.failures.get((self.table, self.op))
        if failure:
            raise FakeAPIError(failure)

        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "insert":
            batch = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [self.db._stamp(self.table, dict(r)) for r in batch]
            rows.extend(created)
            return SimpleNamespace(data=[dict(r) for r in created], count=None)

        if self.op == "update":
            changed = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    changed.append(dict(row))
            return SimpleNamespace(data=changed, count=None)

        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=[dict(r) for r in removed], count=None)

        selected = [dict(r) for r in rows if self._matches(r)]
        for column, desc in reversed(self.orders):
            selected.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)

        total = len(selected)
        if self.row_range is not None:
            start, end = self.row_range
            selected = selected[start:end + 1]
        if self.row_limit is not None:
            selected = selected[:self.row_limit]

        return SimpleNamespace(data=selected, count=total if self.count_mode else None)


class FakeRPC:
    def __init__(self, db: "FakeSupabase", name: str, params: dict):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        handler = self.db.rpcs.get(self.name)
        if handler is None:
            raise FakeAPIError(f"function {self.name} does not exist")
        return SimpleNamespace(data=handler(self.params))


# ============================================================
# Auth (GoTrue)
# ============================================================
def make_user(email: str, user_metadata: Optional[dict] = None, user_id: Optional[str] = None):
    return SimpleNamespace(
        id=user_id or str(uuid.uuid4()),
        email=email,
        user_metadata=user_metadata or {},
        created_at=_now_iso(),
        updated_at=None,
        last_sign_in_at=None,
        email_confirmed_at=_now_iso(),
        banned_until=None,
    )


class FakeAuthAdmin:
    def __init__(self):
        self.users: Dict[str, SimpleNamespace] = {}

    def list_users(self):
        return list(self.users.values())

    def get_user_by_id(self, user_id):
        user = self.users.get(user_id)
        if user is None:
            raise FakeAPIError("User not found")
        return SimpleNamespace(user=user)

    def create_user(self, attributes: dict):
        email = attributes["email"]
        if any(u.email == email for u in self.users.values()):
            raise FakeAPIError("User already registered")
        user = make_user(email, dict(attributes.get("user_metadata") or {}))
        self.users[user.id] = user
        return SimpleNamespace(user=user)

    def update_user_by_id(self, user_id, attributes: dict):
        user = self.users.get(user_id)
        if user is None:
            raise FakeAPIError("User not found")
        user.user_metadata = {**user.user_metadata, **(attributes.get("user_metadata") or {})}
        if attributes.get("email"):
            user.email = attributes["email"]
        return SimpleNamespace(user=user)

    def delete_user(self, user_id):
        if self.users.pop(user_id, None) is None:
            raise FakeAPIError("User not found")


class FakeAuth:
    def __init__(self):
        self.admin = FakeAuthAdmin()
        self.tokens: Dict[str, str] = {}

    def get_user(self, token):
        user_id = self.tokens.get(token)
        if user_id is None or user_id not in self.admin.users:
            raise FakeAPIError("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=self.admin.users[user_id])


# ============================================================
# Storage
# ============================================================
class FakeBucket:
    def __init__(self, name: str, objects: Dict[str, bytes]):
        self.name = name
        self.objects = objects

    def upload(self, path, content, file_options=None):
        if path in self.objects:
            raise FakeAPIError("The resource already exists")
        self.objects[path] = content
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://storage.test/{self.name}/{path}"

    def remove(self, paths):
        for path in paths:
            self.objects.pop(path, None)
        return [{"name": p} for p in paths]


class FakeStorage:
    def __init__(self):
        self.buckets: Dict[str, Dict[str, bytes]] = {}

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(bucket, self.buckets.setdefault(bucket, {}))


# ============================================================
# Client
# ============================================================
class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[dict]] = {}
        self.failures: Dict[tuple, str] = {}
        self.calls: List[tuple] = []
        self.rpcs: Dict[str, Callable[[dict], Any]] = {}
        self.rpc_calls: List[tuple] = []
        self.auth = FakeAuth()
        self.storage = FakeStorage()
        self._ints = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Optional[dict] = None) -> FakeRPC:
        return FakeRPC(self, name, params or {})

    # --- test helpers ---
    def _stamp(self, table: str, row: dict) -> dict:
        id_column = ID_COLUMNS.get(table, "id")
        if row.get(id_column) is None:
            row[id_column] = next(self._ints) if table in INTEGER_IDS else str(uuid.uuid4())
        row.setdefault("created_at", _now_iso())
        return row

    def seed(self, table: str, *rows: dict) -> List[dict]:
        stored = [self._stamp(table, dict(r)) for r in rows]
        self.tables.setdefault(table, []).extend(stored)
        return [dict(r) for r in stored]

    def rows(self, table: str) -> List[dict]:
        return [dict(r) for r in self.tables.get(table, [])]

    def fail_on(self, table: str, op: str, message: str = "connection reset by peer"):
        self.failures[(table, op)] = message

    def add_user(self, email: str, role: Optional[str] = None, token: Optional[str] = None, **metadata):
        if role is not None:
            metadata["role"] = role
        user = make_user(email, metadata)
        self.auth.admin.users[user.id] = user
        if token:
            self.auth.tokens[token] = user.id
        return user


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}

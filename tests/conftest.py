"""
Pytest fixtures for the STEMify dashboard test suite.

Provides:
- In-memory and file-backed price override stores
- Raw teacher / enrollment / student rows shaped like the Supabase tables
- A fake Supabase client that records the query chain it receives
"""

from types import SimpleNamespace

import pytest

from stemify_dashboard.overrides import MemoryPriceOverrideStore, PriceOverrideStore


# ---------------------------------------------------------------------------
# Override stores
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_store():
    return MemoryPriceOverrideStore()


@pytest.fixture
def file_store(tmp_path):
    return PriceOverrideStore(tmp_path / "overrides.json")


# ---------------------------------------------------------------------------
# Raw rows
# ---------------------------------------------------------------------------

@pytest.fixture
def teacher_rows():
    return [
        {
            "id": 1, "user_id": "t-amal", "name": "Amal Hassan", "email": "amal@example.com",
            "school": "Nile", "subject": "Physics", "price_per_student": 25,
            "created_at": "2025-09-01T08:00:00+00:00",
        },
        {
            "id": 2, "user_id": None, "name": "Omar Fathy", "email": None,
            "school": "Delta", "subject": "Maths", "price_per_student": None,
            "created_at": "2025-10-01T08:00:00+00:00",
        },
        {
            "id": 3, "user_id": "t-salma", "name": None, "email": None,
            "school": None, "subject": None, "price_per_student": 0,
            "created_at": None,
        },
    ]


@pytest.fixture
def enrollment_rows():
    return [
        {"id": 1, "teacher_id": "t-amal", "teacher_name": "Amal Hassan", "student_id": "S1",
         "month_number": 1, "grade": 9, "created_at": "2025-09-02T10:00:00Z"},
        {"id": 2, "teacher_id": "t-amal", "teacher_name": "Amal Hassan", "student_id": "S2",
         "month_number": 1, "grade": 10, "created_at": "2025-09-05T10:00:00Z"},
        {"id": 3, "teacher_id": "t-amal", "teacher_name": "Amal Hassan", "student_id": "S1",
         "month_number": 2, "grade": 9, "created_at": "2025-10-02T10:00:00Z"},
        {"id": 4, "teacher_id": "2", "teacher_name": "Omar Fathy", "student_id": "S1",
         "month_number": 2, "grade": "A", "created_at": "2025-10-03T10:00:00Z"},
        {"id": 5, "teacher_id": "t-salma", "teacher_name": None, "student_id": "S3",
         "month_number": 3, "grade": None, "created_at": None},
    ]


@pytest.fixture
def student_rows():
    return [
        {"id": 10, "student_id": "S1", "user_id": "u1", "name": "Hana Saleh",
         "created_at": "2025-09-01T00:00:00Z"},
        {"id": 11, "student_id": None, "user_id": "u2", "name": None,
         "created_at": "2025-09-03T00:00:00Z"},
    ]


# ---------------------------------------------------------------------------
# Fake Supabase client
# ---------------------------------------------------------------------------

class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.calls = []
        self.filters = []
        self.any_of = []
        self.payload = None
        self._limit = None

    def select(self, columns="*"):
        self.calls.append(("select", columns))
        return self

    def eq(self, column, value):
        self.calls.append(("eq", column, value))
        self.filters.append((column, value))
        return self

    def or_(self, expression):
        self.calls.append(("or", expression))
        group = []
        for clause in expression.split(","):
            column, _, value = clause.split(".", 2)
            group.append((column, value))
        self.any_of.append(group)
        return self

    def order(self, column, desc=False):
        self.calls.append(("order", column, desc))
        return self

    def limit(self, n):
        self.calls.append(("limit", n))
        self._limit = n
        return self

    def update(self, payload):
        self.calls.append(("update", payload))
        self.payload = payload
        return self

    def _matches(self, row):
        if not all(str(row.get(col)) == str(val) for col, val in self.filters):
            return False
        return all(
            any(str(row.get(col)) == str(val) for col, val in group)
            for group in self.any_of
        )

    def execute(self):
        self.client.executed.append(self)
        if self.table in self.client.failures:
            raise self.client.failures[self.table]
        rows = [row for row in self.client.tables.get(self.table, []) if self._matches(row)]
        if self._limit is not None:
            rows = rows[: self._limit]
        return SimpleNamespace(data=rows)


class FakeClient:
    def __init__(self, tables=None, failures=None):
        self.tables = tables or {}
        self.failures = failures or {}
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_client_factory():
    return FakeClient

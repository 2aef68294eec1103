import pytest

from stemify_dashboard import sources
from stemify_dashboard.sources import (
    LoadGuard,
    fetch_dashboard_snapshot,
    fetch_enrollments,
    fetch_students,
    fetch_teacher,
    load_snapshot,
    simulated_snapshot,
    update_teacher_price,
)


@pytest.fixture
def clients(fake_client_factory, teacher_rows, enrollment_rows, student_rows):
    students = fake_client_factory(tables={"students": student_rows})
    teachers = fake_client_factory(
        tables={"teachers": teacher_rows, "teacher_month_students": enrollment_rows}
    )
    return students, teachers


# ---------------------------------------------------------------------------
# Single-collection fetches
# ---------------------------------------------------------------------------

def test_fetch_students_newest_first(clients):
    students, _ = clients
    rows = fetch_students(students)
    assert len(rows) == 2
    assert ("order", "created_at", True) in students.executed[0].calls


def test_fetch_enrollments_filters(clients):
    _, teachers = clients
    assert len(fetch_enrollments(teachers)) == 5
    assert len(fetch_enrollments(teachers, teacher_id="t-amal")) == 3
    assert len(fetch_enrollments(teachers, teacher_id="t-amal", month_number=1)) == 2
    assert len(fetch_enrollments(teachers, student_id="S1")) == 3

    query = teachers.executed[-1]
    assert query.table == "teacher_month_students"
    assert query.filters == [("student_id", "S1")]


def test_fetch_teacher_by_user_id(clients):
    _, teachers = clients
    row = fetch_teacher(teachers, "t-amal")
    assert row["name"] == "Amal Hassan"
    assert len(teachers.executed) == 1


def test_fetch_teacher_falls_back_to_row_id(clients):
    _, teachers = clients
    row = fetch_teacher(teachers, "2")
    assert row["name"] == "Omar Fathy"
    assert [q.filters for q in teachers.executed] == [[("user_id", "2")], [("id", "2")]]


def test_fetch_teacher_unknown_id(clients):
    _, teachers = clients
    assert fetch_teacher(teachers, "nobody") is None
    assert [q.filters for q in teachers.executed] == [[("user_id", "nobody")], [("id", "nobody")]]
    assert fetch_teacher(teachers, "") is None


def test_fetch_teacher_by_non_numeric_row_id(fake_client_factory):
    uuid = "5f0c8a3e-2b7d-4c1a-9e6f-0d4b2a7c9e11"
    client = fake_client_factory(
        tables={"teachers": [{"id": uuid, "user_id": None, "name": "Rana Adel"}]}
    )
    assert fetch_teacher(client, uuid)["name"] == "Rana Adel"


def test_update_price_matches_user_id_or_row_id(fake_client_factory, teacher_rows):
    client = fake_client_factory(tables={"teachers": teacher_rows})
    rows = update_teacher_price(client, "t-amal", 18.0)

    query = client.executed[0]
    assert query.payload == {"price_per_student": 18.0}
    assert ("or", "user_id.eq.t-amal,id.eq.t-amal") in query.calls
    assert [row["id"] for row in rows] == [1]


def test_update_price_by_numeric_id(fake_client_factory, teacher_rows):
    client = fake_client_factory(tables={"teachers": teacher_rows})
    rows = update_teacher_price(client, "2", 18.0)
    assert ("or", "user_id.eq.2,id.eq.2") in client.executed[0].calls
    assert [row["name"] for row in rows] == ["Omar Fathy"]


def test_update_price_by_non_numeric_row_id(fake_client_factory):
    uuid = "5f0c8a3e-2b7d-4c1a-9e6f-0d4b2a7c9e11"
    client = fake_client_factory(tables={"teachers": [{"id": uuid, "user_id": None}]})
    assert len(update_teacher_price(client, uuid, 18.0)) == 1


def test_update_price_without_match_returns_no_rows(fake_client_factory, teacher_rows):
    client = fake_client_factory(tables={"teachers": teacher_rows})
    assert update_teacher_price(client, "nobody", 18.0) == []


def test_update_price_propagates_errors(fake_client_factory):
    client = fake_client_factory(failures={"teachers": RuntimeError("offline")})
    with pytest.raises(RuntimeError):
        update_teacher_price(client, "t-amal", 18.0)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

def test_snapshot_loads_every_collection(clients):
    students, teachers = clients
    snapshot = fetch_dashboard_snapshot(students, teachers)

    assert snapshot.errors == []
    assert snapshot.error is None
    assert snapshot.source == "supabase"
    assert len(snapshot.students) == 2
    assert len(snapshot.teachers) == 3
    assert len(snapshot.enrollments) == 5


def test_snapshot_keeps_partial_results_on_failure(fake_client_factory, clients):
    students, _ = clients
    teachers = fake_client_factory(
        tables={"teachers": [{"user_id": "a"}]},
        failures={"teacher_month_students": RuntimeError("timeout")},
    )
    snapshot = fetch_dashboard_snapshot(students, teachers)

    assert snapshot.errors == ["monthly_records: timeout"]
    assert snapshot.error == "monthly_records: timeout"
    assert len(snapshot.teachers) == 1
    assert len(snapshot.students) == 2
    assert snapshot.enrollments.empty


def test_snapshot_reports_unconfigured_sources(clients):
    _, teachers = clients
    snapshot = fetch_dashboard_snapshot(None, teachers)

    assert snapshot.errors == ["students: data source not configured"]
    assert snapshot.students.empty
    assert len(snapshot.teachers) == 3

    both_missing = fetch_dashboard_snapshot(None, None)
    assert len(both_missing.errors) == 3
    assert "; " in both_missing.error


def test_cancelled_load_is_discarded(clients):
    students, teachers = clients
    guard = LoadGuard()
    guard.cancel()

    assert guard.cancelled
    assert fetch_dashboard_snapshot(students, teachers, guard=guard) is None


def test_simulated_snapshot():
    snapshot = simulated_snapshot()
    assert snapshot.source == "simulated"
    assert snapshot.errors == []
    assert not snapshot.teachers.empty
    assert not snapshot.enrollments.empty
    assert not snapshot.students.empty


def test_load_snapshot_uses_simulator_without_configuration(monkeypatch):
    monkeypatch.setattr(sources, "create_clients", lambda: (None, None))
    snapshot = load_snapshot()
    assert snapshot.source == "simulated"


def test_load_snapshot_uses_configured_clients(monkeypatch, clients):
    monkeypatch.setattr(sources, "create_clients", lambda: clients)
    snapshot = load_snapshot()
    assert snapshot.source == "supabase"
    assert len(snapshot.enrollments) == 5


def test_create_clients_skips_unconfigured_projects(monkeypatch):
    created = []
    monkeypatch.setattr(sources, "create_client", lambda url, key: created.append(url) or url)
    monkeypatch.setattr(sources, "SUPABASE_STUDENTS_URL", "")
    monkeypatch.setattr(sources, "SUPABASE_STUDENTS_KEY", "")
    monkeypatch.setattr(sources, "SUPABASE_TEACHERS_URL", "https://teachers.example.co")
    monkeypatch.setattr(sources, "SUPABASE_TEACHERS_KEY", "anon-key")

    students, teachers = sources.create_clients()

    assert students is None
    assert teachers == "https://teachers.example.co"
    assert created == ["https://teachers.example.co"]

"""
Supabase data sources.

Students live in one Supabase project; teachers and their monthly
enrollment records live in another. Each fetch returns raw rows; the
loaders turn them into DataFrames. ``fetch_dashboard_snapshot`` fans the
three collections out concurrently and always hands back whatever it
managed to load, with failures reported as messages.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import pandas as pd
from supabase import Client, create_client

from .config import (
    FETCH_WORKERS,
    SUPABASE_STUDENTS_KEY,
    SUPABASE_STUDENTS_URL,
    SUPABASE_TEACHERS_KEY,
    SUPABASE_TEACHERS_URL,
    TABLES,
)
from .loaders import build_dim_student, build_dim_teacher, build_fact_enrollment
from .simulator import generate_snapshot_tables

logger = logging.getLogger(__name__)


def create_clients() -> tuple[Client | None, Client | None]:
    """Return (students_client, teachers_client); None where not configured."""
    students = None
    teachers = None
    if SUPABASE_STUDENTS_URL and SUPABASE_STUDENTS_KEY:
        students = create_client(SUPABASE_STUDENTS_URL, SUPABASE_STUDENTS_KEY)
    else:
        logger.warning("Students Supabase project is not configured")
    if SUPABASE_TEACHERS_URL and SUPABASE_TEACHERS_KEY:
        teachers = create_client(SUPABASE_TEACHERS_URL, SUPABASE_TEACHERS_KEY)
    else:
        logger.warning("Teachers Supabase project is not configured")
    return students, teachers


# ---------------------------------------------------------------------------
# Single-collection fetches
# ---------------------------------------------------------------------------

def _rows(response) -> list[dict]:
    data = getattr(response, "data", None)
    return list(data) if data else []


def fetch_teachers(client: Client) -> list[dict]:
    return _rows(client.table(TABLES["teachers"]).select("*").execute())


def fetch_students(client: Client) -> list[dict]:
    return _rows(
        client.table(TABLES["students"]).select("*").order("created_at", desc=True).execute()
    )


def fetch_enrollments(
    client: Client,
    teacher_id: str | None = None,
    month_number: int | None = None,
    student_id: str | None = None,
    columns: str = "*",
) -> list[dict]:
    """Fetch monthly records, optionally filtered by teacher, month, student."""
    query = client.table(TABLES["monthly_records"]).select(columns)
    if teacher_id is not None:
        query = query.eq("teacher_id", teacher_id)
    if month_number is not None:
        query = query.eq("month_number", month_number)
    if student_id is not None:
        query = query.eq("student_id", student_id)
    return _rows(query.execute())


def fetch_teacher(client: Client, teacher_id: str) -> dict | None:
    """Fetch one teacher, matching ``user_id`` first and then row ``id``.

    The row-id lookup only runs when the ``user_id`` match found no
    named row.
    """
    if not teacher_id:
        return None

    table = TABLES["teachers"]
    found = _rows(client.table(table).select("*").eq("user_id", teacher_id).limit(1).execute())
    row = found[0] if found else None

    if row is None or not row.get("name"):
        by_id = _rows(client.table(table).select("*").eq("id", teacher_id).limit(1).execute())
        if by_id:
            row = by_id[0]
    return row


def update_teacher_price(client: Client, teacher_id: str, value: float) -> list[dict]:
    """Set ``price_per_student`` on the row whose user_id or id matches.

    Returns the updated rows; an empty list means no row matched.
    """
    rows = _rows(
        client.table(TABLES["teachers"])
        .update({"price_per_student": value})
        .or_(f"user_id.eq.{teacher_id},id.eq.{teacher_id}")
        .execute()
    )
    if rows:
        logger.info("Updated price for teacher %s to %s (%d rows)", teacher_id, value, len(rows))
    else:
        logger.warning("Price update for teacher %s matched no rows", teacher_id)
    return rows


# ---------------------------------------------------------------------------
# Dashboard snapshot
# ---------------------------------------------------------------------------

class LoadGuard:
    """Cancellation flag for an in-flight load.

    A consumer that goes away calls ``cancel()``; a load that completes
    afterwards discards its result instead of publishing stale data.
    """

    def __init__(self):
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


@dataclass
class DashboardSnapshot:
    """Normalised tables for one page view plus any fetch errors."""

    teachers: pd.DataFrame = field(default_factory=lambda: build_dim_teacher(None))
    enrollments: pd.DataFrame = field(default_factory=lambda: build_fact_enrollment(None))
    students: pd.DataFrame = field(default_factory=lambda: build_dim_student(None))
    errors: list[str] = field(default_factory=list)
    source: str = "supabase"

    @property
    def error(self) -> str | None:
        """All fetch errors as one human-readable message."""
        return "; ".join(self.errors) if self.errors else None


def fetch_dashboard_snapshot(
    students_client: Client | None,
    teachers_client: Client | None,
    guard: LoadGuard | None = None,
) -> DashboardSnapshot | None:
    """Load students, teachers and monthly records concurrently.

    Waits for every fetch. A failed or unconfigured collection is replaced
    by an empty table and reported in ``errors``. Returns None when the
    guard was cancelled while the fetches were running.
    """
    jobs = {
        "students": (fetch_students, students_client),
        "teachers": (fetch_teachers, teachers_client),
        "monthly_records": (fetch_enrollments, teachers_client),
    }

    raw: dict[str, list[dict]] = {}
    errors: list[str] = []
    with ThreadPoolExecutor(max_workers=FETCH_WORKERS) as pool:
        futures = {}
        for name, (fetch, client) in jobs.items():
            if client is None:
                errors.append(f"{name}: data source not configured")
                raw[name] = []
                continue
            futures[name] = pool.submit(fetch, client)

        for name, future in futures.items():
            try:
                raw[name] = future.result()
            except Exception as exc:
                logger.warning("Failed to load %s: %s", name, exc)
                errors.append(f"{name}: {exc}")
                raw[name] = []

    if guard is not None and guard.cancelled:
        logger.info("Load cancelled; discarding snapshot")
        return None

    return DashboardSnapshot(
        teachers=build_dim_teacher(raw["teachers"]),
        enrollments=build_fact_enrollment(raw["monthly_records"]),
        students=build_dim_student(raw["students"]),
        errors=errors,
    )


def simulated_snapshot(seed: int = 42) -> DashboardSnapshot:
    """Snapshot built from simulator rows, for offline runs and demos."""
    teachers, enrollments, students = generate_snapshot_tables(seed)
    return DashboardSnapshot(
        teachers=teachers,
        enrollments=enrollments,
        students=students,
        source="simulated",
    )


def load_snapshot(guard: LoadGuard | None = None) -> DashboardSnapshot | None:
    """Load from Supabase when configured, otherwise from the simulator."""
    students_client, teachers_client = create_clients()
    if students_client is None and teachers_client is None:
        logger.warning("No Supabase project configured; using simulated data")
        return simulated_snapshot()
    return fetch_dashboard_snapshot(students_client, teachers_client, guard)

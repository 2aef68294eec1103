"""
Loader for the teachers table (teachers Supabase project).

Each raw row carries a numeric row ``id`` and an optional external
``user_id``. The external id is the stable key used by the monthly
enrollment records, so it wins whenever it is present.
"""

import logging
from typing import Any, Iterable

import pandas as pd

from .utils import coerce_id, first_present, normalise_date, safe_float

logger = logging.getLogger(__name__)

TEACHER_COLUMNS = [
    "teacher_id",
    "row_id",
    "user_id",
    "name",
    "email",
    "school",
    "subject",
    "price_per_student",
    "created_at",
]


def teacher_key(row: dict[str, Any]) -> str:
    """Derive the teacher id: ``user_id`` if set, else ``id`` as a string."""
    return coerce_id(first_present(row.get("user_id"), row.get("id")))


def iter_rows(rows: Iterable[dict] | pd.DataFrame | None) -> list[dict]:
    """Return raw rows as a list of dicts whatever container they came in."""
    if rows is None:
        return []
    if isinstance(rows, pd.DataFrame):
        return rows.to_dict("records")
    return [r for r in rows if isinstance(r, dict)]


def build_dim_teacher(rows: Iterable[dict] | pd.DataFrame | None) -> pd.DataFrame:
    """Normalise raw teacher rows into the teacher dimension table.

    Parameters
    ----------
    rows : Raw rows as returned by the teachers table (list of dicts or a
           DataFrame). None is treated as an empty collection.

    Returns
    -------
    dim_teacher DataFrame with columns:
        teacher_id, row_id, user_id, name, email, school, subject,
        price_per_student, created_at

    Input order is preserved; chart series built from this table stay
    aligned with it.
    """
    records = []
    for row in iter_rows(rows):
        records.append({
            "teacher_id": teacher_key(row),
            "row_id": coerce_id(row.get("id")),
            "user_id": coerce_id(row.get("user_id")),
            "name": first_present(row.get("name")),
            "email": first_present(row.get("email")),
            "school": first_present(row.get("school")),
            "subject": first_present(row.get("subject")),
            "price_per_student": safe_float(row.get("price_per_student")),
            "created_at": normalise_date(row.get("created_at")),
        })

    df = pd.DataFrame(records, columns=TEACHER_COLUMNS)
    df["price_per_student"] = pd.to_numeric(df["price_per_student"], errors="coerce")
    df["created_at"] = pd.to_datetime(df["created_at"], utc=True)

    logger.info("Built dim_teacher with %d rows", len(df))
    return df


def find_teacher(dim_teacher: pd.DataFrame, teacher_id: str) -> dict | None:
    """Look a teacher up by ``user_id`` first, then by row ``id``."""
    if dim_teacher is None or dim_teacher.empty or not teacher_id:
        return None

    for column in ("user_id", "row_id"):
        matches = dim_teacher[dim_teacher[column] == teacher_id]
        if not matches.empty:
            return matches.iloc[0].to_dict()
    return None

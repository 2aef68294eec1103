"""Loader for the students table (students Supabase project)."""

import logging
from typing import Iterable

import pandas as pd

from .teachers import iter_rows
from .utils import coerce_id, first_present, normalise_date

logger = logging.getLogger(__name__)

STUDENT_COLUMNS = [
    "student_key",
    "row_id",
    "student_id",
    "user_id",
    "name",
    "number",
    "parent_name",
    "parent_number",
    "email",
    "school",
    "created_at",
    "updated_at",
]


def build_dim_student(rows: Iterable[dict] | pd.DataFrame | None) -> pd.DataFrame:
    """Normalise raw student rows.

    ``student_key`` is the id used to link a student to their monthly
    records: ``student_id`` when present, else the row ``id``.
    """
    records = []
    for row in iter_rows(rows):
        records.append({
            "student_key": coerce_id(first_present(row.get("student_id"), row.get("id"))),
            "row_id": coerce_id(row.get("id")),
            "student_id": coerce_id(row.get("student_id")),
            "user_id": coerce_id(row.get("user_id")),
            "name": first_present(row.get("name")),
            "number": first_present(row.get("number")),
            "parent_name": first_present(row.get("parent_name")),
            "parent_number": first_present(row.get("parent_number")),
            "email": first_present(row.get("email")),
            "school": first_present(row.get("school")),
            "created_at": normalise_date(row.get("created_at")),
            "updated_at": normalise_date(row.get("updated_at")),
        })

    df = pd.DataFrame(records, columns=STUDENT_COLUMNS)
    df["created_at"] = pd.to_datetime(df["created_at"], utc=True)
    df["updated_at"] = pd.to_datetime(df["updated_at"], utc=True)

    logger.info("Built dim_student with %d rows", len(df))
    return df

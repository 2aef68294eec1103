"""
Loader for the monthly enrollment records (``teacher_month_students``).

One row is one student enrolled with one teacher for one month. Rows with
a missing teacher id or month are kept (under "" and 0) so that malformed
source data stays visible in the reports.
"""

import logging
from typing import Iterable

import pandas as pd

from .teachers import iter_rows
from .utils import coerce_id, coerce_month, first_present, normalise_date

logger = logging.getLogger(__name__)

ENROLLMENT_COLUMNS = [
    "record_id",
    "teacher_id",
    "teacher_name",
    "student_id",
    "month_number",
    "grade",
    "created_at",
]


def build_fact_enrollment(rows: Iterable[dict] | pd.DataFrame | None) -> pd.DataFrame:
    """Normalise raw monthly records into the enrollment fact table.

    Assumptions
    -----------
    - ``teacher_id`` is opaque; it is coerced to a string but otherwise
      left untouched (it may contain any characters).
    - ``month_number`` is a small integer; unparseable values become 0.
    - ``grade`` is free-form (text or number) and passed through.
    - Duplicate rows are kept: each one counts as a student.

    Returns
    -------
    fact_enrollment DataFrame with columns:
        record_id, teacher_id, teacher_name, student_id, month_number,
        grade, created_at
    """
    records = []
    for row in iter_rows(rows):
        records.append({
            "record_id": coerce_id(row.get("id")),
            "teacher_id": coerce_id(row.get("teacher_id")),
            "teacher_name": first_present(row.get("teacher_name")),
            "student_id": coerce_id(row.get("student_id")),
            "month_number": coerce_month(row.get("month_number")),
            "grade": first_present(row.get("grade")),
            "created_at": normalise_date(row.get("created_at")),
        })

    df = pd.DataFrame(records, columns=ENROLLMENT_COLUMNS)
    df["month_number"] = df["month_number"].astype("int64")
    df["created_at"] = pd.to_datetime(df["created_at"], utc=True)

    logger.info("Built fact_enrollment with %d rows", len(df))
    return df

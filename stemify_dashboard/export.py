"""
CSV export of the teachers and students tables.

Files are UTF-8 with a byte-order mark so spreadsheet tools pick up the
encoding; dates are written as YYYY-MM-DD.
"""

import logging
from datetime import date

import pandas as pd

from .config import STUDENT_EXPORT_COLUMNS, TEACHER_EXPORT_COLUMNS

logger = logging.getLogger(__name__)

BOM = "\ufeff"


def _export_frame(df: pd.DataFrame, columns: dict[str, str]) -> pd.DataFrame:
    out = pd.DataFrame(index=df.index)
    for header, source in columns.items():
        if source not in df.columns:
            out[header] = ""
            continue
        col = df[source]
        if pd.api.types.is_datetime64_any_dtype(col):
            col = col.dt.strftime("%Y-%m-%d")
        out[header] = col.astype(object).where(col.notna(), "")
    return out


def to_csv(df: pd.DataFrame, columns: dict[str, str]) -> str:
    """Render the selected columns as CSV text (BOM included)."""
    text = _export_frame(df, columns).to_csv(index=False, lineterminator="\n")
    return BOM + text


def teachers_csv(teachers_table: pd.DataFrame) -> str:
    """Export a get_teachers_table() result."""
    logger.info("Exporting %d teachers", len(teachers_table))
    return to_csv(teachers_table, TEACHER_EXPORT_COLUMNS)


def students_csv(dim_student: pd.DataFrame) -> str:
    logger.info("Exporting %d students", len(dim_student))
    return to_csv(dim_student, STUDENT_EXPORT_COLUMNS)


def export_filename(kind: str, today: date | None = None) -> str:
    """e.g. export_filename("teachers") -> "teachers-2026-02-14.csv"."""
    today = today or date.today()
    return f"{kind}-{today.isoformat()}.csv"

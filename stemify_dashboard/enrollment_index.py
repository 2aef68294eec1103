"""
Enrollment index: grouping structures over the enrollment fact table.

Three views answer three different questions and must not be mixed up:

- pair counts: records per (teacher_id, month_number), the revenue basis;
- slots: the distinct (teacher_id, month_number) pairs, regardless of how
  many records each holds;
- month counts: records per month across all teachers (headcount),
  duplicates included.

Composite keys are plain ``(teacher_id, month_number)`` tuples.
"""

import logging
from typing import Iterable

import pandas as pd

from .loaders import ENROLLMENT_COLUMNS, build_fact_enrollment
from .loaders.utils import coerce_id, coerce_month

logger = logging.getLogger(__name__)


def as_enrollment_frame(enrollments: Iterable[dict] | pd.DataFrame | None) -> pd.DataFrame:
    """Return a normalised fact_enrollment table for any accepted input.

    A frame already in fact_enrollment shape is reused, with its key
    columns re-coerced so gaps group under "" and 0.
    """
    if isinstance(enrollments, pd.DataFrame) and list(enrollments.columns) == ENROLLMENT_COLUMNS:
        df = enrollments.copy()
        df["teacher_id"] = df["teacher_id"].map(coerce_id)
        df["month_number"] = df["month_number"].map(coerce_month).astype("int64")
        return df
    return build_fact_enrollment(enrollments)


class EnrollmentIndex:
    """Grouped counts over a snapshot of enrollment records.

    Parameters
    ----------
    enrollments : fact_enrollment DataFrame, or raw rows (normalised on
                  the way in). None is an empty snapshot.
    """

    def __init__(self, enrollments: Iterable[dict] | pd.DataFrame | None):
        df = as_enrollment_frame(enrollments)

        pair_sizes = df.groupby(["teacher_id", "month_number"], sort=True).size()
        self.pair_counts: dict[tuple[str, int], int] = {
            (str(teacher_id), int(month)): int(n)
            for (teacher_id, month), n in pair_sizes.items()
        }

        month_sizes = df.groupby("month_number", sort=True).size()
        self.month_counts: dict[int, int] = {
            int(month): int(n) for month, n in month_sizes.items()
        }

        self.record_count = len(df)
        logger.debug(
            "Indexed %d records into %d slots over %d months",
            self.record_count, len(self.pair_counts), len(self.month_counts),
        )

    @property
    def slots(self) -> set[tuple[str, int]]:
        """Distinct (teacher_id, month_number) pairs."""
        return set(self.pair_counts)

    @property
    def slot_count(self) -> int:
        return len(self.pair_counts)

    @property
    def months(self) -> list[int]:
        """Months with any activity, ascending."""
        return sorted(self.month_counts)

    def counts_for_teacher(self, teacher_id: str) -> dict[int, int]:
        """Records per month for one teacher, ascending by month."""
        return {
            month: n
            for (tid, month), n in sorted(self.pair_counts.items(), key=lambda kv: kv[0][1])
            if tid == teacher_id
        }


def group_by_teacher_and_month(enrollments) -> dict[tuple[str, int], int]:
    return EnrollmentIndex(enrollments).pair_counts


def distinct_teacher_month_pairs(enrollments) -> set[tuple[str, int]]:
    return EnrollmentIndex(enrollments).slots


def count_by_month(enrollments) -> dict[int, int]:
    return EnrollmentIndex(enrollments).month_counts

"""
Dashboard-ready output functions.

These are the entry points for the Streamlit front end. Each function
takes the normalised tables of one snapshot and returns plain dicts or
DataFrames suitable for rendering cards, charts and tables.
"""

import logging

import pandas as pd

from .config import MISSING_LABEL, MONTH_LABELS
from .loaders import build_dim_student, find_teacher
from .loaders.utils import is_valid_price, safe_float
from .overrides import PriceOverrideStore
from .pricing import PriceResolver, has_authoritative_price
from .revenue import RevenueSummary, aggregate, as_teacher_frame, teacher_month_revenue
from .enrollment_index import EnrollmentIndex, as_enrollment_frame
from .sources import update_teacher_price

logger = logging.getLogger(__name__)


def month_label(month_number: int) -> str:
    """Ordinal label ("1st" ... "12th"), "Month N" outside 1-12."""
    return MONTH_LABELS.get(month_number, f"Month {month_number}")


def get_available_months(fact_enrollment: pd.DataFrame) -> list[int]:
    """Return sorted list of months with records, for UI dropdowns."""
    if fact_enrollment is None or fact_enrollment.empty:
        return []
    return sorted(int(m) for m in fact_enrollment["month_number"].unique())


def get_home_overview(
    dim_teacher: pd.DataFrame,
    fact_enrollment: pd.DataFrame,
    dim_student: pd.DataFrame | None = None,
    store: PriceOverrideStore | None = None,
) -> dict:
    """Single entry point the home page calls to populate cards and charts.

    Returns
    -------
    Dict with structure:
    {
        "student_count": 120,
        "teacher_count": 6,
        "month_count": 31,         # distinct (teacher, month) slots
        "total_revenue": 4280.0,
        "revenue_by_month": DataFrame[month_number, label, revenue],
        "revenue_by_teacher": DataFrame[teacher_id, teacher_name, revenue],
        "students_per_month": DataFrame[month_number, label, students],
        "summary": RevenueSummary,
    }
    """
    dim_teacher = as_teacher_frame(dim_teacher)
    fact_enrollment = as_enrollment_frame(fact_enrollment)
    if dim_student is None:
        dim_student = build_dim_student(None)

    summary = aggregate(dim_teacher, fact_enrollment, store=store)

    revenue_by_month = pd.DataFrame(
        {
            "month_number": list(summary.revenue_by_month),
            "label": [f"Month {m}" for m in summary.revenue_by_month],
            "revenue": list(summary.revenue_by_month.values()),
        },
        columns=["month_number", "label", "revenue"],
    )

    names = [n if isinstance(n, str) and n else MISSING_LABEL for n in dim_teacher["name"]]
    revenue_by_teacher = pd.DataFrame(
        {
            "teacher_id": summary.teacher_ids,
            "teacher_name": names,
            "revenue": summary.revenue_by_teacher,
        },
        columns=["teacher_id", "teacher_name", "revenue"],
    )

    students_per_month = pd.DataFrame(
        {
            "month_number": list(summary.count_by_month),
            "label": [f"Month {m}" for m in summary.count_by_month],
            "students": list(summary.count_by_month.values()),
        },
        columns=["month_number", "label", "students"],
    )

    return {
        "student_count": len(dim_student),
        "teacher_count": len(dim_teacher),
        "month_count": summary.slot_count,
        "total_revenue": summary.total_revenue,
        "revenue_by_month": revenue_by_month,
        "revenue_by_teacher": revenue_by_teacher,
        "students_per_month": students_per_month,
        "summary": summary,
    }


def get_revenue_by_month_table(summary: RevenueSummary) -> pd.DataFrame:
    """Month/revenue table with a trailing Total row (empty without data)."""
    if not summary.revenue_by_month:
        return pd.DataFrame(columns=["month", "revenue"])

    rows = [
        {"month": f"Month {m}", "revenue": rev}
        for m, rev in sorted(summary.revenue_by_month.items())
    ]
    rows.append({"month": "Total", "revenue": summary.total_revenue})
    return pd.DataFrame(rows)


def get_teachers_table(
    dim_teacher: pd.DataFrame,
    store: PriceOverrideStore | None = None,
) -> pd.DataFrame:
    """Teachers list, newest first, with the price actually used for revenue.

    Returns
    -------
    dim_teacher columns plus ``display_price``, sorted by created_at
    descending with undated teachers last.
    """
    dim_teacher = as_teacher_frame(dim_teacher)
    resolver = PriceResolver(store)
    overrides = resolver.overrides()

    df = dim_teacher.copy()
    df["display_price"] = [
        resolver.resolve(tid, price, overrides)
        for tid, price in zip(df["teacher_id"], df["price_per_student"])
    ]
    return df.sort_values(
        "created_at", ascending=False, na_position="last", kind="stable"
    ).reset_index(drop=True)


def _teacher_price(
    dim_teacher: pd.DataFrame,
    teacher_id: str,
    store: PriceOverrideStore | None,
) -> tuple[dict | None, float]:
    teacher = find_teacher(dim_teacher, teacher_id)
    authoritative = teacher.get("price_per_student") if teacher else None
    return teacher, PriceResolver(store).resolve(teacher_id, authoritative)


def get_teacher_months(
    dim_teacher: pd.DataFrame,
    fact_enrollment: pd.DataFrame,
    teacher_id: str,
    store: PriceOverrideStore | None = None,
) -> dict:
    """Months a teacher has students in, with per-month revenue.

    Returns
    -------
    Dict with keys teacher_id, teacher_name, price and months, where
    months is a DataFrame with columns:
        month_number, label, teacher_name, students, revenue
    """
    dim_teacher = as_teacher_frame(dim_teacher)
    fact_enrollment = as_enrollment_frame(fact_enrollment)
    teacher, price = _teacher_price(dim_teacher, teacher_id, store)

    records = fact_enrollment[fact_enrollment["teacher_id"] == teacher_id]
    counts = EnrollmentIndex(records).counts_for_teacher(teacher_id)
    revenue = teacher_month_revenue(counts, price)
    names_by_month = records.groupby("month_number")["teacher_name"].first()

    months = pd.DataFrame(
        {
            "month_number": list(counts),
            "label": [f"Month {m}" for m in counts],
            "teacher_name": [names_by_month.get(m) for m in counts],
            "students": list(counts.values()),
            "revenue": list(revenue.values()),
        },
        columns=["month_number", "label", "teacher_name", "students", "revenue"],
    )

    name = teacher.get("name") if teacher else None
    if not name:
        name = f"Teacher {teacher_id}" if teacher_id else "Teacher"

    return {
        "teacher_id": teacher_id,
        "teacher_name": name,
        "price": price,
        "months": months,
    }


def get_month_detail(
    dim_teacher: pd.DataFrame,
    fact_enrollment: pd.DataFrame,
    teacher_id: str,
    month_number: int,
    store: PriceOverrideStore | None = None,
) -> dict:
    """Students of one teacher in one month.

    Returns
    -------
    Dict with keys teacher_id, month_number, teacher_name, price,
    student_count, revenue and records (newest first).
    """
    dim_teacher = as_teacher_frame(dim_teacher)
    fact_enrollment = as_enrollment_frame(fact_enrollment)
    _, price = _teacher_price(dim_teacher, teacher_id, store)

    mask = (fact_enrollment["teacher_id"] == teacher_id) & (
        fact_enrollment["month_number"] == month_number
    )
    records = (
        fact_enrollment[mask]
        .sort_values("created_at", ascending=False, na_position="last", kind="stable")
        .reset_index(drop=True)
    )

    name = None
    if not records.empty:
        name = records["teacher_name"].iloc[0]
    if not isinstance(name, str) or not name:
        name = f"Teacher {teacher_id}"

    student_count = len(records)
    return {
        "teacher_id": teacher_id,
        "month_number": month_number,
        "teacher_name": name,
        "price": price,
        "student_count": student_count,
        "revenue": student_count * price,
        "records": records,
    }


def get_student_subscriptions(
    dim_student: pd.DataFrame,
    fact_enrollment: pd.DataFrame,
    student_id: str,
) -> dict:
    """Teachers and months a student is subscribed with, ordered by month."""
    fact_enrollment = as_enrollment_frame(fact_enrollment)

    name = None
    if dim_student is not None and not dim_student.empty:
        match = dim_student[dim_student["student_key"] == student_id]
        if not match.empty:
            name = match["name"].iloc[0]
    if not isinstance(name, str) or not name:
        name = f"Student {student_id}" if student_id else "Student"

    subs = fact_enrollment[fact_enrollment["student_id"] == student_id].sort_values(
        "month_number", kind="stable"
    )
    subs = subs[["teacher_id", "teacher_name", "month_number", "grade", "created_at"]].copy()
    subs.insert(3, "month_label", [month_label(int(m)) for m in subs["month_number"]])

    return {
        "student_id": student_id,
        "student_name": name,
        "subscriptions": subs.reset_index(drop=True),
    }


def commit_teacher_price(
    dim_teacher: pd.DataFrame,
    teacher_id: str,
    value,
    store: PriceOverrideStore | None = None,
    client=None,
) -> tuple[pd.DataFrame, str | None]:
    """Commit a price edit for one teacher.

    Invalid values (non-numeric, negative) are ignored and the table is
    returned unchanged. For a teacher without a price of their own the
    value is also written to the override store. When a client is given
    the teachers table is updated remotely; a failure there, or an update
    that matches no row, is returned as a message rather than raised.

    Returns
    -------
    (updated dim_teacher, error message or None)
    """
    dim_teacher = as_teacher_frame(dim_teacher)
    price = safe_float(value)
    if not teacher_id or price is None or not is_valid_price(price):
        logger.debug("Ignoring invalid price %r for teacher %r", value, teacher_id)
        return dim_teacher, None

    teacher = find_teacher(dim_teacher, teacher_id)
    if store is not None and not has_authoritative_price(teacher):
        store.set(teacher_id, price)

    updated = dim_teacher.copy()
    updated.loc[updated["teacher_id"] == teacher_id, "price_per_student"] = price

    if client is not None:
        try:
            saved = update_teacher_price(client, teacher_id, price)
        except Exception as exc:
            logger.warning("Could not save price for teacher %s: %s", teacher_id, exc)
            return updated, f"Could not save price: {exc}"
        if not saved:
            return updated, f"Could not save price: no teacher row matches {teacher_id}"

    return updated, None

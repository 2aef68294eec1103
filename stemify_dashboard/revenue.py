"""
Revenue aggregation: pure functions with no side effects.

Joins the enrollment index against resolved teacher prices and derives
the month-level, teacher-level and total figures shown on the dashboard.
Everything is recomputed from scratch on each call.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable

import pandas as pd

from .config import DEFAULT_PRICE
from .enrollment_index import EnrollmentIndex
from .loaders import TEACHER_COLUMNS, build_dim_teacher
from .loaders.utils import coerce_id
from .overrides import PriceOverrideStore
from .pricing import PriceResolver

logger = logging.getLogger(__name__)


@dataclass
class RevenueSummary:
    """Aggregates handed to the display layer.

    revenue_by_teacher is parallel to teacher_ids (the input teacher
    order); months without revenue still appear in revenue_by_month
    with 0.0 when they have records.
    """

    revenue_by_month: dict[int, float] = field(default_factory=dict)
    revenue_by_teacher: list[float] = field(default_factory=list)
    count_by_month: dict[int, int] = field(default_factory=dict)
    total_revenue: float = 0.0
    distinct_month_count: int = 0
    slot_count: int = 0
    teacher_ids: list[str] = field(default_factory=list)


def as_teacher_frame(teachers: Iterable[dict] | pd.DataFrame | None) -> pd.DataFrame:
    """Return a normalised dim_teacher table for any accepted input.

    A frame already in dim_teacher shape is reused, with ``teacher_id``
    re-coerced so gaps become "".
    """
    if isinstance(teachers, pd.DataFrame) and list(teachers.columns) == TEACHER_COLUMNS:
        df = teachers.copy()
        df["teacher_id"] = df["teacher_id"].map(coerce_id)
        return df
    return build_dim_teacher(teachers)


def aggregate(
    teachers: Iterable[dict] | pd.DataFrame | None,
    enrollments: Iterable[dict] | pd.DataFrame | None,
    store: PriceOverrideStore | None = None,
    default_price: float = DEFAULT_PRICE,
    resolver: PriceResolver | None = None,
) -> RevenueSummary:
    """Compute revenue per month, per teacher and in total.

    Rules
    -----
    - revenue of a (teacher, month) slot = record count x resolved price
    - a record whose teacher_id matches no teacher (including records with
      no teacher id) counts towards count_by_month but earns no revenue
    - when a teacher id is listed twice, the first row carries the revenue
      and later rows report 0.0, so the per-teacher series still sums to
      the total

    Parameters
    ----------
    teachers : dim_teacher DataFrame or raw teacher rows.
    enrollments : fact_enrollment DataFrame or raw monthly records.
    store : Override store used as the second pricing tier.
    default_price : Third pricing tier.
    resolver : Prebuilt resolver; takes precedence over store/default_price.

    Returns
    -------
    RevenueSummary. Empty or malformed inputs give zero-valued aggregates.
    """
    dim_teacher = as_teacher_frame(teachers)
    index = EnrollmentIndex(enrollments)
    if resolver is None:
        resolver = PriceResolver(store, default_price)
    prices = resolver.price_table(dim_teacher)

    revenue_by_month = {month: 0.0 for month in index.months}
    revenue_by_id: dict[str, float] = {}
    total = 0.0
    unmatched = 0

    for (teacher_id, month), count in sorted(index.pair_counts.items()):
        price = prices.get(teacher_id)
        if price is None:
            unmatched += count
            continue
        revenue = count * price
        revenue_by_month[month] += revenue
        revenue_by_id[teacher_id] = revenue_by_id.get(teacher_id, 0.0) + revenue
        total += revenue

    if unmatched:
        logger.warning(
            "%d enrollment records have no matching teacher; counted without revenue",
            unmatched,
        )

    teacher_ids = [str(tid) for tid in dim_teacher["teacher_id"]]
    revenue_by_teacher = []
    seen: set[str] = set()
    for teacher_id in teacher_ids:
        if teacher_id and teacher_id not in seen:
            revenue_by_teacher.append(revenue_by_id.get(teacher_id, 0.0))
            seen.add(teacher_id)
        else:
            revenue_by_teacher.append(0.0)

    summary = RevenueSummary(
        revenue_by_month=revenue_by_month,
        revenue_by_teacher=revenue_by_teacher,
        count_by_month=dict(index.month_counts),
        total_revenue=total,
        distinct_month_count=len(index.month_counts),
        slot_count=index.slot_count,
        teacher_ids=teacher_ids,
    )
    logger.info(
        "Aggregated %d records over %d months: total revenue %.2f",
        index.record_count, summary.distinct_month_count, total,
    )
    return summary


def totals_consistent(summary: RevenueSummary, rel_tol: float = 1e-9, abs_tol: float = 1e-6) -> bool:
    """Check total == sum(by month) == sum(by teacher) within tolerance."""
    by_month = math.fsum(summary.revenue_by_month.values())
    by_teacher = math.fsum(summary.revenue_by_teacher)
    return (
        math.isclose(summary.total_revenue, by_month, rel_tol=rel_tol, abs_tol=abs_tol)
        and math.isclose(summary.total_revenue, by_teacher, rel_tol=rel_tol, abs_tol=abs_tol)
    )


def teacher_month_revenue(counts_by_month: dict[int, int], price: float) -> dict[int, float]:
    """Revenue per month for a single teacher at one price."""
    return {month: count * price for month, count in counts_by_month.items()}

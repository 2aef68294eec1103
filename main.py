"""
STEMify — End-to-end reporting pipeline.

Loads both data sources (Supabase when configured, simulated data
otherwise), aggregates revenue and enrollment, and prints smoke-test
summaries.

Usage:
    python main.py
"""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from stemify_dashboard.config import PLATFORM_NAME
from stemify_dashboard.dashboard import (
    get_home_overview,
    get_revenue_by_month_table,
    get_teacher_months,
    get_teachers_table,
)
from stemify_dashboard.overrides import PriceOverrideStore
from stemify_dashboard.revenue import aggregate, totals_consistent
from stemify_dashboard.sources import load_snapshot

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run the full reporting pipeline and print smoke-test outputs."""

    print("=" * 70)
    print(f"  {PLATFORM_NAME.upper()} — Admin Reporting Dashboard")
    print("  Reporting Pipeline Smoke Test")
    print("=" * 70)
    print()

    # ------------------------------------------------------------------
    # 1. Load source data
    # ------------------------------------------------------------------
    print("[ 1 ] LOADING SOURCE DATA")
    print("-" * 40)

    snapshot = load_snapshot()
    if snapshot is None:
        logger.error("Load was cancelled")
        return 1

    print(f"\nSource: {snapshot.source}")
    if snapshot.error:
        print(f"Load errors: {snapshot.error}")
    print(f"Teachers: {len(snapshot.teachers)} rows")
    print(f"Enrollment records: {len(snapshot.enrollments)} rows")
    print(f"Students: {len(snapshot.students)} rows")

    store = PriceOverrideStore()
    print(f"Price overrides ({store.path}): {store.get_all()}")

    # ------------------------------------------------------------------
    # 2. Dashboard outputs
    # ------------------------------------------------------------------
    print("\n")
    print("[ 2 ] DASHBOARD OUTPUTS")
    print("-" * 40)

    overview = get_home_overview(
        snapshot.teachers, snapshot.enrollments, snapshot.students, store=store
    )
    print(f"\n  Students      | {overview['student_count']}")
    print(f"  Teachers      | {overview['teacher_count']}")
    print(f"  Months        | {overview['month_count']}")
    print(f"  Total revenue | {overview['total_revenue']:,.2f}")

    print("\nRevenue by month:")
    print(get_revenue_by_month_table(overview["summary"]).to_string(index=False))

    print("\nRevenue by teacher:")
    print(overview["revenue_by_teacher"].to_string(index=False))

    print("\nStudents per month:")
    print(overview["students_per_month"].to_string(index=False))

    teachers_table = get_teachers_table(snapshot.teachers, store=store)
    print("\nTeachers:")
    if not teachers_table.empty:
        print(teachers_table[["teacher_id", "name", "price_per_student", "display_price"]].to_string(index=False))

        first_id = teachers_table["teacher_id"].iloc[0]
        detail = get_teacher_months(snapshot.teachers, snapshot.enrollments, first_id, store=store)
        print(f"\nMonths by {detail['teacher_name']} (price {detail['price']:g}):")
        print(detail["months"].to_string(index=False))

    # ------------------------------------------------------------------
    # 3. Invariant checks
    # ------------------------------------------------------------------
    print("\n")
    print("[ 3 ] CONSISTENCY CHECKS")
    print("-" * 40)

    summary = overview["summary"]
    check1 = totals_consistent(summary)
    print(f"\n  [{'PASS' if check1 else 'FAIL'}] total == sum(by month) == sum(by teacher)")

    check2 = summary.distinct_month_count == len(summary.count_by_month)
    print(f"  [{'PASS' if check2 else 'FAIL'}] {summary.distinct_month_count} distinct months")

    check3 = len(summary.revenue_by_teacher) == len(snapshot.teachers)
    print(f"  [{'PASS' if check3 else 'FAIL'}] revenue series aligned with {len(snapshot.teachers)} teachers")

    again = aggregate(snapshot.teachers, snapshot.enrollments, store=store)
    check4 = again == summary
    print(f"  [{'PASS' if check4 else 'FAIL'}] aggregation is repeatable")

    print("\n" + "=" * 70)
    print("  Pipeline complete.")
    print("=" * 70)
    return 0 if all((check1, check2, check3, check4)) else 1


if __name__ == "__main__":
    sys.exit(main())

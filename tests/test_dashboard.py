import pandas as pd
import pytest

from stemify_dashboard.dashboard import (
    commit_teacher_price,
    get_available_months,
    get_home_overview,
    get_month_detail,
    get_revenue_by_month_table,
    get_student_subscriptions,
    get_teacher_months,
    get_teachers_table,
    month_label,
)
from stemify_dashboard.loaders import build_dim_student, build_dim_teacher, build_fact_enrollment
from stemify_dashboard.overrides import MemoryPriceOverrideStore


@pytest.fixture
def tables(teacher_rows, enrollment_rows, student_rows):
    return (
        build_dim_teacher(teacher_rows),
        build_fact_enrollment(enrollment_rows),
        build_dim_student(student_rows),
    )


def test_month_label():
    assert month_label(1) == "1st"
    assert month_label(12) == "12th"
    assert month_label(13) == "Month 13"
    assert month_label(0) == "Month 0"


def test_available_months(tables):
    _, fact, _ = tables
    assert get_available_months(fact) == [1, 2, 3]
    assert get_available_months(build_fact_enrollment(None)) == []


def test_home_overview(tables):
    dim, fact, students = tables
    overview = get_home_overview(dim, fact, students, store=MemoryPriceOverrideStore())

    assert overview["student_count"] == 2
    assert overview["teacher_count"] == 3
    assert overview["month_count"] == 4  # (amal,1) (amal,2) (2,2) (salma,3)
    assert overview["total_revenue"] == 95.0

    rbt = overview["revenue_by_teacher"]
    assert rbt["teacher_name"].tolist() == ["Amal Hassan", "Omar Fathy", "—"]
    assert rbt["revenue"].tolist() == [75.0, 20.0, 0.0]

    spm = overview["students_per_month"]
    assert spm["label"].tolist() == ["Month 1", "Month 2", "Month 3"]
    assert spm["students"].tolist() == [2, 2, 1]


def test_home_overview_without_data():
    overview = get_home_overview(None, None)
    assert overview["student_count"] == 0
    assert overview["teacher_count"] == 0
    assert overview["total_revenue"] == 0.0
    assert overview["revenue_by_month"].empty
    assert list(overview["revenue_by_month"].columns) == ["month_number", "label", "revenue"]


def test_revenue_by_month_table_has_total_row(tables):
    dim, fact, _ = tables
    overview = get_home_overview(dim, fact)
    table = get_revenue_by_month_table(overview["summary"])

    assert table["month"].tolist() == ["Month 1", "Month 2", "Month 3", "Total"]
    assert table["revenue"].iloc[-1] == 95.0


def test_teachers_table_sorted_newest_first_with_display_price(tables):
    dim, _, _ = tables
    store = MemoryPriceOverrideStore({"2": 14})
    table = get_teachers_table(dim, store=store)

    assert table["teacher_id"].tolist() == ["2", "t-amal", "t-salma"]
    assert table["display_price"].tolist() == [14.0, 25.0, 0.0]


def test_teacher_months(tables):
    dim, fact, _ = tables
    detail = get_teacher_months(dim, fact, "t-amal")

    assert detail["teacher_name"] == "Amal Hassan"
    assert detail["price"] == 25.0
    months = detail["months"]
    assert months["month_number"].tolist() == [1, 2]
    assert months["students"].tolist() == [2, 1]
    assert months["revenue"].tolist() == [50.0, 25.0]


def test_teacher_months_for_unknown_teacher(tables):
    dim, fact, _ = tables
    detail = get_teacher_months(dim, fact, "nobody", store=MemoryPriceOverrideStore({"nobody": 9}))

    assert detail["teacher_name"] == "Teacher nobody"
    assert detail["price"] == 9
    assert detail["months"].empty


def test_month_detail_newest_first(tables):
    dim, fact, _ = tables
    detail = get_month_detail(dim, fact, "t-amal", 1)

    assert detail["student_count"] == 2
    assert detail["revenue"] == 50.0
    assert detail["records"]["student_id"].tolist() == ["S2", "S1"]
    assert detail["teacher_name"] == "Amal Hassan"


def test_month_detail_name_fallback(tables):
    dim, fact, _ = tables
    detail = get_month_detail(dim, fact, "t-salma", 3)
    assert detail["teacher_name"] == "Teacher t-salma"
    assert detail["price"] == 0.0
    assert detail["revenue"] == 0.0

    empty = get_month_detail(dim, fact, "t-amal", 9)
    assert empty["student_count"] == 0
    assert empty["records"].empty


def test_student_subscriptions(tables):
    _, fact, students = tables
    subs = get_student_subscriptions(students, fact, "S1")

    assert subs["student_name"] == "Hana Saleh"
    table = subs["subscriptions"]
    assert table["month_number"].tolist() == [1, 2, 2]
    assert table["month_label"].tolist() == ["1st", "2nd", "2nd"]


def test_student_subscriptions_unknown_student(tables):
    _, fact, students = tables
    subs = get_student_subscriptions(students, fact, "S404")
    assert subs["student_name"] == "Student S404"
    assert subs["subscriptions"].empty


# ---------------------------------------------------------------------------
# price commits
# ---------------------------------------------------------------------------

def test_invalid_price_is_ignored(tables):
    dim, _, _ = tables
    store = MemoryPriceOverrideStore()
    for bad in (-1, "abc", None, float("nan")):
        updated, error = commit_teacher_price(dim, "2", bad, store=store)
        assert error is None
        assert updated["price_per_student"].equals(dim["price_per_student"])
    assert store.get_all() == {}


def test_price_for_teacher_without_own_price_is_cached(tables):
    dim, _, _ = tables
    store = MemoryPriceOverrideStore()
    updated, error = commit_teacher_price(dim, "2", "18", store=store)

    assert error is None
    assert store.get_all() == {"2": 18.0}
    assert updated.loc[updated["teacher_id"] == "2", "price_per_student"].iloc[0] == 18.0
    assert pd.isna(dim.loc[dim["teacher_id"] == "2", "price_per_student"].iloc[0])


def test_price_for_teacher_with_own_price_skips_cache(tables):
    dim, _, _ = tables
    store = MemoryPriceOverrideStore()
    updated, _ = commit_teacher_price(dim, "t-amal", 40, store=store)

    assert store.get_all() == {}
    assert updated.loc[updated["teacher_id"] == "t-amal", "price_per_student"].iloc[0] == 40.0


def test_price_commit_updates_remote_row(tables, teacher_rows, fake_client_factory):
    dim, _, _ = tables
    client = fake_client_factory(tables={"teachers": teacher_rows})
    _, error = commit_teacher_price(dim, "2", 30, client=client)

    assert error is None
    query = client.executed[0]
    assert query.table == "teachers"
    assert query.payload == {"price_per_student": 30.0}
    assert ("or", "user_id.eq.2,id.eq.2") in query.calls


def test_price_commit_reports_unmatched_remote_row(fake_client_factory):
    uuid = "5f0c8a3e-2b7d-4c1a-9e6f-0d4b2a7c9e11"
    dim = build_dim_teacher([{"id": uuid, "user_id": None, "name": "Rana Adel"}])
    matched = fake_client_factory(tables={"teachers": [{"id": uuid, "user_id": None}]})
    _, error = commit_teacher_price(dim, uuid, 12, client=matched)
    assert error is None

    empty = fake_client_factory(tables={"teachers": []})
    updated, error = commit_teacher_price(dim, uuid, 12, client=empty)
    assert error == f"Could not save price: no teacher row matches {uuid}"
    assert updated["price_per_student"].iloc[0] == 12.0


def test_price_commit_reports_remote_failure(tables, fake_client_factory):
    dim, _, _ = tables
    client = fake_client_factory(failures={"teachers": RuntimeError("permission denied")})
    store = MemoryPriceOverrideStore()
    updated, error = commit_teacher_price(dim, "2", 30, store=store, client=client)

    assert error == "Could not save price: permission denied"
    assert store.get("2") == 30
    assert updated.loc[updated["teacher_id"] == "2", "price_per_student"].iloc[0] == 30.0

"""
STEMify — Interactive Admin Dashboard

Run with:  streamlit run app.py
"""

import sys
from pathlib import Path

import plotly.graph_objects as go
import streamlit as st

sys.path.insert(0, str(Path(__file__).resolve().parent))

from stemify_dashboard.config import MISSING_LABEL, PLATFORM_NAME
from stemify_dashboard.dashboard import (
    commit_teacher_price,
    get_available_months,
    get_home_overview,
    get_month_detail,
    get_revenue_by_month_table,
    get_student_subscriptions,
    get_teacher_months,
    get_teachers_table,
)
from stemify_dashboard.export import export_filename, students_csv, teachers_csv
from stemify_dashboard.overrides import PriceOverrideStore
from stemify_dashboard.sources import create_clients, load_snapshot

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title=f"{PLATFORM_NAME} Admin Dashboard",
    layout="wide",
    initial_sidebar_state="expanded",
)

CHART_COLORS = ["#0ea5e9", "#8b5cf6", "#10b981", "#f59e0b"]


# ---------------------------------------------------------------------------
# Data loading (cached)
# ---------------------------------------------------------------------------
@st.cache_data
def load_all_data():
    return load_snapshot()


@st.cache_resource
def get_teachers_client():
    return create_clients()[1]


snapshot = load_all_data()
if snapshot is None:
    st.stop()

store = PriceOverrideStore()
if "teachers" not in st.session_state:
    st.session_state["teachers"] = snapshot.teachers
teachers = st.session_state["teachers"]
enrollments = snapshot.enrollments
students = snapshot.students

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title(PLATFORM_NAME)
st.sidebar.markdown("Admin Dashboard")
st.sidebar.divider()

page = st.sidebar.radio(
    "Navigate",
    ["Home", "Teachers", "Teacher Months", "Month Detail", "Students", "Student Subscriptions"],
)

st.sidebar.divider()
st.sidebar.caption(f"Data: {snapshot.source}")
if st.sidebar.button("Reload data"):
    load_all_data.clear()
    st.session_state.pop("teachers", None)
    st.rerun()

if snapshot.error:
    st.error(snapshot.error)


def bar_chart(x, y, name: str, color: str, height: int = 280) -> go.Figure:
    fig = go.Figure(go.Bar(x=x, y=y, name=name, marker_color=color))
    fig.update_layout(
        height=height,
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=10, r=10, t=10, b=40),
    )
    return fig


def teacher_options() -> dict[str, str]:
    """teacher_id -> display label for select boxes."""
    options = {}
    for tid, name in zip(teachers["teacher_id"], teachers["name"]):
        if tid:
            options[tid] = f"{name or MISSING_LABEL} ({tid})"
    return options


def price_editor(teacher_id: str, current: float, key: str) -> None:
    """Number input plus save button committing a price for one teacher."""
    value = st.number_input("Price per student", min_value=0.0, step=1.0, value=float(current), key=key)
    if st.button("Save price", key=f"{key}-save"):
        updated, error = commit_teacher_price(
            teachers, teacher_id, value, store=store, client=get_teachers_client()
        )
        st.session_state["teachers"] = updated
        if error:
            st.error(error)
        else:
            st.success("Price saved")
        st.rerun()


# ===========================================================================
# PAGE: Home
# ===========================================================================
if page == "Home":
    st.title(f"{PLATFORM_NAME} Admin Dashboard")

    overview = get_home_overview(teachers, enrollments, students, store=store)

    cols = st.columns(4)
    cols[0].metric("Students", f"{overview['student_count']:,}")
    cols[1].metric("Months", f"{overview['month_count']:,}")
    cols[2].metric("Teachers", f"{overview['teacher_count']:,}")
    cols[3].metric("Total revenue", f"{overview['total_revenue']:,.2f}")

    st.info(
        "Set the price per student for each teacher on the Teachers page. "
        "A month's revenue is its number of students times the teacher's price; "
        "total revenue is the sum over months."
    )

    st.subheader("Revenue by month")
    table = get_revenue_by_month_table(overview["summary"])
    if table.empty:
        st.caption("No month data yet")
    else:
        st.dataframe(table, use_container_width=True, hide_index=True)

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Revenue by teacher")
        rbt = overview["revenue_by_teacher"]
        st.plotly_chart(
            bar_chart(rbt["teacher_name"], rbt["revenue"], "Revenue", CHART_COLORS[0]),
            use_container_width=True,
        )
    with col2:
        st.subheader("Students per month")
        spm = overview["students_per_month"]
        st.plotly_chart(
            bar_chart(spm["label"], spm["students"], "Students", CHART_COLORS[1]),
            use_container_width=True,
        )


# ===========================================================================
# PAGE: Teachers
# ===========================================================================
elif page == "Teachers":
    st.title("Teachers")
    st.caption(
        "Price per one student for each teacher. Revenue for a month = "
        "number of students x this price."
    )

    table = get_teachers_table(teachers, store=store)
    st.download_button(
        "Download CSV",
        data=teachers_csv(table),
        file_name=export_filename("teachers"),
        mime="text/csv",
        disabled=table.empty,
    )

    if table.empty:
        st.warning("No teachers. Check read access on the teachers project.")
    else:
        display_cols = ["name", "email", "school", "subject", "display_price", "created_at"]
        st.dataframe(table[display_cols], use_container_width=True, hide_index=True)

        options = teacher_options()
        selected = st.selectbox("Edit price for", list(options), format_func=options.get)
        if selected:
            current = table.loc[table["teacher_id"] == selected, "display_price"].iloc[0]
            price_editor(selected, current, key=f"price-{selected}")


# ===========================================================================
# PAGE: Teacher Months
# ===========================================================================
elif page == "Teacher Months":
    options = teacher_options()
    if not options:
        st.warning("No teachers available.")
    else:
        selected = st.sidebar.selectbox("Teacher", list(options), format_func=options.get)
        detail = get_teacher_months(teachers, enrollments, selected, store=store)

        st.title(f"{detail['teacher_name']} — Months")
        price_editor(selected, detail["price"], key=f"months-price-{selected}")

        months = detail["months"]
        if months.empty:
            st.caption("No months")
        else:
            st.dataframe(months, use_container_width=True, hide_index=True)
            st.plotly_chart(
                bar_chart(months["label"], months["revenue"], "Revenue", CHART_COLORS[2]),
                use_container_width=True,
            )


# ===========================================================================
# PAGE: Month Detail
# ===========================================================================
elif page == "Month Detail":
    options = teacher_options()
    available = get_available_months(enrollments)
    if not options or not available:
        st.warning("No month data available.")
    else:
        selected = st.sidebar.selectbox("Teacher", list(options), format_func=options.get)
        month = st.sidebar.selectbox("Month", available)
        detail = get_month_detail(teachers, enrollments, selected, month, store=store)

        st.title(f"Month {month} — {detail['teacher_name']}")
        cols = st.columns(3)
        cols[0].metric("Students", detail["student_count"])
        cols[1].metric("Price per student", f"{detail['price']:,.2f}")
        cols[2].metric("Total", f"{detail['revenue']:,.2f}")
        price_editor(selected, detail["price"], key=f"month-price-{selected}")

        st.subheader(f"Students in Month {month}")
        records = detail["records"]
        if records.empty:
            st.caption("No records")
        else:
            st.dataframe(
                records[["student_id", "teacher_name", "grade", "created_at"]],
                use_container_width=True,
                hide_index=True,
            )


# ===========================================================================
# PAGE: Students
# ===========================================================================
elif page == "Students":
    st.title("Students")

    st.download_button(
        "Download CSV",
        data=students_csv(students),
        file_name=export_filename("students"),
        mime="text/csv",
        disabled=students.empty,
    )

    if students.empty:
        st.caption("No students")
    else:
        ordered = students.sort_values("created_at", ascending=False, na_position="last")
        display_cols = [
            "student_key", "name", "number", "parent_name",
            "parent_number", "email", "school", "created_at",
        ]
        st.dataframe(ordered[display_cols], use_container_width=True, hide_index=True)


# ===========================================================================
# PAGE: Student Subscriptions
# ===========================================================================
elif page == "Student Subscriptions":
    keys = [k for k in students["student_key"] if k]
    if not keys:
        st.warning("No students available.")
    else:
        names = dict(zip(students["student_key"], students["name"]))
        selected = st.sidebar.selectbox(
            "Student", keys, format_func=lambda k: f"{names.get(k) or MISSING_LABEL} ({k})"
        )
        subs = get_student_subscriptions(students, enrollments, selected)

        st.title(f"{subs['student_name']} — Subscriptions")
        st.caption("Teachers this student is subscribed with and the month for each subscription.")
        table = subs["subscriptions"]
        if table.empty:
            st.caption("No subscriptions found for this student.")
        else:
            st.dataframe(table, use_container_width=True, hide_index=True)
            per_teacher = table.groupby("teacher_name", dropna=False).size().reset_index(name="months")
            per_teacher["teacher_name"] = per_teacher["teacher_name"].fillna(MISSING_LABEL)
            st.plotly_chart(
                bar_chart(per_teacher["teacher_name"], per_teacher["months"], "Months", CHART_COLORS[3]),
                use_container_width=True,
            )

"""
Simulated data generator for the STEMify dashboard.

Produces raw rows shaped exactly like the Supabase tables (teachers,
students, teacher_month_students) so they run through the same loaders
as live data. All values are synthetic.
"""

import numpy as np
import pandas as pd

from .loaders import build_dim_student, build_dim_teacher, build_fact_enrollment

_SEED = 42

# ---------------------------------------------------------------------------
# Teacher roster: (user_id, name, school, subject, price_per_student)
# A price of None means the teacher has not set one yet.
# ---------------------------------------------------------------------------
_TEACHERS = [
    ("t-amal", "Amal Hassan", "Nile STEM School", "Physics", 25.0),
    ("t-omar", "Omar Fathy", "Nile STEM School", "Mathematics", 20.0),
    ("t-salma", "Salma Adel", "Delta Academy", "Chemistry", None),
    ("t-karim", "Karim Nabil", "Delta Academy", "Biology", 18.0),
    ("t-nour", "Nour Samir", "Cairo Science Hub", "Robotics", 30.0),
    ("t-youssef", "Youssef Ali", "Cairo Science Hub", "Computer Science", None),
]

_SCHOOLS = ["Nile STEM School", "Delta Academy", "Cairo Science Hub"]

_FIRST_NAMES = [
    "Ahmed", "Mariam", "Hana", "Mostafa", "Laila", "Ziad", "Farida",
    "Yara", "Adam", "Malak", "Seif", "Jana", "Ali", "Habiba", "Tarek",
]
_LAST_NAMES = ["Mahmoud", "Ibrahim", "Saleh", "Fouad", "Kamal", "Zaki", "Gaber"]


def generate_teachers(start: str = "2025-09-01") -> list[dict]:
    """Generate raw teacher rows."""
    created = pd.date_range(start, periods=len(_TEACHERS), freq="7D")
    rows = []
    for row_id, ((user_id, name, school, subject, price), ts) in enumerate(
        zip(_TEACHERS, created), start=1
    ):
        rows.append({
            "id": row_id,
            "user_id": user_id,
            "name": name,
            "email": f"{user_id.removeprefix('t-')}@stemify.example",
            "school": school,
            "subject": subject,
            "price_per_student": price,
            "created_at": ts.isoformat(),
        })
    return rows


def generate_students(
    n_students: int = 40,
    start: str = "2025-09-01",
    rng: np.random.Generator | None = None,
) -> list[dict]:
    """Generate raw student rows with parent contact details."""
    rng = rng if rng is not None else np.random.default_rng(_SEED)
    rows = []
    for i in range(1, n_students + 1):
        first = _FIRST_NAMES[int(rng.integers(len(_FIRST_NAMES)))]
        last = _LAST_NAMES[int(rng.integers(len(_LAST_NAMES)))]
        created = pd.Timestamp(start) + pd.Timedelta(days=int(rng.integers(0, 120)))
        rows.append({
            "id": i,
            "student_id": f"S{i:04d}",
            "user_id": f"u-{i:04d}",
            "name": f"{first} {last}",
            "number": f"010{int(rng.integers(10_000_000, 99_999_999))}",
            "parent_name": f"{_FIRST_NAMES[int(rng.integers(len(_FIRST_NAMES)))]} {last}",
            "parent_number": f"011{int(rng.integers(10_000_000, 99_999_999))}",
            "email": f"s{i:04d}@students.stemify.example",
            "school": _SCHOOLS[int(rng.integers(len(_SCHOOLS)))],
            "created_at": created.isoformat(),
        })
    return rows


def generate_enrollments(
    teachers: list[dict],
    students: list[dict],
    n_months: int = 6,
    subscribe_prob: float = 0.35,
    rng: np.random.Generator | None = None,
) -> list[dict]:
    """Generate monthly enrollment records.

    Each student subscribes to each teacher for each month with
    probability ``subscribe_prob``; later months lose a few students.
    """
    rng = rng if rng is not None else np.random.default_rng(_SEED)
    rows = []
    record_id = 1
    for month in range(1, n_months + 1):
        retention = 1.0 - 0.04 * (month - 1)
        for teacher in teachers:
            for student in students:
                if rng.random() >= subscribe_prob * retention:
                    continue
                created = pd.Timestamp(student["created_at"]) + pd.Timedelta(days=30 * (month - 1))
                rows.append({
                    "id": record_id,
                    "teacher_id": teacher["user_id"],
                    "teacher_name": teacher["name"],
                    "student_id": student["student_id"],
                    "month_number": month,
                    "grade": int(rng.integers(7, 13)),
                    "created_at": created.isoformat(),
                })
                record_id += 1
    return rows


def generate_snapshot_tables(seed: int = _SEED) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """Return (dim_teacher, fact_enrollment, dim_student) from simulated rows."""
    rng = np.random.default_rng(seed)
    teachers = generate_teachers()
    students = generate_students(rng=rng)
    enrollments = generate_enrollments(teachers, students, rng=rng)
    return (
        build_dim_teacher(teachers),
        build_fact_enrollment(enrollments),
        build_dim_student(students),
    )

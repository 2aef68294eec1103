"""
Configuration: data source settings, table names, pricing constants.

Supabase credentials are read from the environment so that nothing secret
lives in the repository. When a pair is missing the dashboard runs on
simulated data instead.
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Data sources: two independent Supabase projects
# ---------------------------------------------------------------------------
SUPABASE_STUDENTS_URL = os.environ.get("SUPABASE_STUDENTS_URL")
SUPABASE_STUDENTS_KEY = os.environ.get("SUPABASE_STUDENTS_KEY")
SUPABASE_TEACHERS_URL = os.environ.get("SUPABASE_TEACHERS_URL")
SUPABASE_TEACHERS_KEY = os.environ.get("SUPABASE_TEACHERS_KEY")

# Table names: must match the Supabase schema
TABLES: dict[str, str] = {
    "students": "students",
    "teachers": "teachers",
    "monthly_records": "teacher_month_students",
}

# Number of concurrent fetches issued when loading a dashboard snapshot
FETCH_WORKERS = 3

# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------
DEFAULT_PRICE = 20.0

# Namespace of the single durable slot holding manual price overrides
OVERRIDE_NAMESPACE = "stemify_price_per_teacher"
OVERRIDE_DIR = Path(
    os.environ.get("STEMIFY_STATE_DIR", Path.home() / ".stemify_dashboard")
)
OVERRIDE_FILE = Path(
    os.environ.get("STEMIFY_OVERRIDE_FILE", OVERRIDE_DIR / f"{OVERRIDE_NAMESPACE}.json")
)

# ---------------------------------------------------------------------------
# Display labels
# ---------------------------------------------------------------------------
PLATFORM_NAME = "STEMify"
MISSING_LABEL = "—"

MONTH_LABELS: dict[int, str] = {
    1: "1st",
    2: "2nd",
    3: "3rd",
    4: "4th",
    5: "5th",
    6: "6th",
    7: "7th",
    8: "8th",
    9: "9th",
    10: "10th",
    11: "11th",
    12: "12th",
}

# ---------------------------------------------------------------------------
# CSV export columns: header -> source column
# ---------------------------------------------------------------------------
TEACHER_EXPORT_COLUMNS: dict[str, str] = {
    "Name": "name",
    "Email": "email",
    "School": "school",
    "Subject": "subject",
    "Price/month": "display_price",
    "Created": "created_at",
}

STUDENT_EXPORT_COLUMNS: dict[str, str] = {
    "Student ID": "student_id",
    "User ID": "user_id",
    "Name": "name",
    "Number": "number",
    "Parent name": "parent_name",
    "Parent number": "parent_number",
    "Email": "email",
    "School": "school",
    "Created": "created_at",
}

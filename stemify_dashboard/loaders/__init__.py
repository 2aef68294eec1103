"""Row normalisation for the teachers, enrollment and students tables."""

from .enrollments import ENROLLMENT_COLUMNS, build_fact_enrollment
from .students import STUDENT_COLUMNS, build_dim_student
from .teachers import TEACHER_COLUMNS, build_dim_teacher, find_teacher, teacher_key

__all__ = [
    "ENROLLMENT_COLUMNS",
    "STUDENT_COLUMNS",
    "TEACHER_COLUMNS",
    "build_dim_student",
    "build_dim_teacher",
    "build_fact_enrollment",
    "find_teacher",
    "teacher_key",
]

from .gpa import (
    GPACalculator,
    compute_cumulative_score,
    compute_period_score,
    grade_points,
    is_complete,
)

__all__ = [
    "GPACalculator",
    "compute_cumulative_score",
    "compute_period_score",
    "grade_points",
    "is_complete",
]

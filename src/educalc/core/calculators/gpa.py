"""
GPA CALCULATOR - Semester GPA and cumulative CGPA on the 10-point scale

CALCULATION TYPES:
✅ Semester GPA: credit-weighted mean of grade points, 2 decimals
✅ Cumulative CGPA: unweighted mean of the first N semester GPAs, 2 decimals

GRADE MAPPING:
O = 10, A+ = 9, A = 8, B+ = 7, B = 6, C = 5, RA = 0
"-" (unset) = 0 and contributes no credits

EDGE CASES HANDLED:
- Empty subject list or zero total credits: GPA is 0 (defined, not an error)
- Unset grades: excluded from both points and credits
- Incomplete selections: callers gate on is_complete() before calculating
- Summation uses math.fsum, so input order never changes the rounded result
"""

import logging
import math
from typing import Iterable, List, Optional, Sequence, Union

from ..models import (
    GRADE_POINTS,
    MAX_PERIODS_COVERED,
    MIN_PERIODS_COVERED,
    CumulativeResult,
    Grade,
    PeriodResult,
    ScoredSubject,
)

logger = logging.getLogger(__name__)


def grade_points(grade: Union[Grade, str]) -> int:
    """Point value of a grade symbol"""
    return GRADE_POINTS[Grade(grade)]


def compute_period_score(subjects: Iterable[ScoredSubject]) -> float:
    """
    Credit-weighted GPA for one semester

    Args:
        subjects: Scored subjects with non-negative credits

    Returns:
        GPA rounded to 2 decimals, or 0.0 when no credits are graded
    """
    graded = [s for s in subjects if s.is_graded]
    total_credits = math.fsum(s.credits for s in graded)
    if total_credits <= 0:
        return 0.0

    total_points = math.fsum(grade_points(s.grade) * s.credits for s in graded)
    return round(total_points / total_credits, 2)


def is_complete(subjects: Sequence[ScoredSubject]) -> bool:
    """True iff there is at least one subject and every subject has a grade"""
    return len(subjects) > 0 and all(s.is_graded for s in subjects)


def compute_cumulative_score(period_scores: Sequence[float], periods_covered: int) -> float:
    """
    CGPA over the first `periods_covered` semester GPAs

    Args:
        period_scores: Semester GPAs in semester order
        periods_covered: Number of semesters to average (2-10)

    Returns:
        Mean rounded to 2 decimals, or 0.0 if no scores fall in range
    """
    if not MIN_PERIODS_COVERED <= periods_covered <= MAX_PERIODS_COVERED:
        raise ValueError(
            f"periods_covered must be {MIN_PERIODS_COVERED}-{MAX_PERIODS_COVERED}, got: {periods_covered}"
        )

    effective = list(period_scores[:periods_covered])
    if not effective:
        return 0.0
    return round(math.fsum(effective) / len(effective), 2)


class GPACalculator:
    """Build semester and cumulative results and keep a log of each calculation"""

    def __init__(self):
        self.calculation_log: List[str] = []

    def calculate_period_result(
        self,
        stream: str,
        period: int,
        subjects: Sequence[ScoredSubject],
        record_id: Optional[str] = None,
    ) -> PeriodResult:
        """
        Calculate a semester GPA and wrap it in a PeriodResult

        Args:
            stream: Stream identifier the subjects belong to
            period: Semester number
            subjects: Graded subjects (callers check is_complete first)
            record_id: Reuse an id instead of generating one

        Returns:
            PeriodResult with score and the subjects that produced it
        """
        self.calculation_log = []
        self.calculation_log.append(f"📊 Calculating GPA for {stream} semester {period}")

        for subject in subjects:
            if not subject.is_graded:
                self.calculation_log.append(f"⚠️ {subject.code} has no grade - excluded")
                continue
            self.calculation_log.append(
                f"   {subject.code}: {subject.grade} ({subject.points} pts) x {subject.credits:g} credits"
            )

        score = compute_period_score(subjects)
        total_credits = math.fsum(s.credits for s in subjects if s.is_graded)
        if total_credits == 0:
            self.calculation_log.append("ℹ️ No graded credits - GPA defined as 0")

        self.calculation_log.append(f"✅ GPA: {score:.2f} over {total_credits:g} credits")
        logger.debug(f"GPA {score:.2f} for {stream} semester {period}")

        fields = dict(period=period, stream=stream, score=score, subjects=list(subjects))
        if record_id is not None:
            fields["id"] = record_id
        return PeriodResult(**fields)

    def calculate_cumulative_result(
        self, period_scores: Sequence[float], periods_covered: int
    ) -> CumulativeResult:
        """
        Calculate CGPA over the first `periods_covered` semesters

        Args:
            period_scores: Semester GPAs, semester 1 first
            periods_covered: Number of semesters to average (2-10)

        Returns:
            CumulativeResult with score and coverage
        """
        self.calculation_log = []
        self.calculation_log.append(f"📊 Calculating CGPA over {periods_covered} semesters")

        for number, value in enumerate(period_scores[:periods_covered], start=1):
            self.calculation_log.append(f"   Semester {number}: {value:.2f}")

        score = compute_cumulative_score(period_scores, periods_covered)
        self.calculation_log.append(f"✅ CGPA: {score:.2f}")
        logger.debug(f"CGPA {score:.2f} over {periods_covered} semesters")

        return CumulativeResult(score=score, periods_covered=periods_covered)

    def get_calculation_log(self) -> List[str]:
        """Get detailed calculation log for debugging"""
        return self.calculation_log


__all__ = [
    "grade_points",
    "compute_period_score",
    "is_complete",
    "compute_cumulative_score",
    "GPACalculator",
]

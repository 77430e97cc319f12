"""Pydantic data models shared by the calculators, flows and services"""

from .grades import GRADE_POINTS, RECOGNIZED_GRADES, Grade, ScoredSubject, Stream, Subject
from .calculations import (
    MAX_PERIODS_COVERED,
    MIN_PERIODS_COVERED,
    CumulativeResult,
    History,
    PeriodResult,
    new_record_id,
)
from .extraction import NormalizedExtraction, RawExtraction, RawResultRow
from .records import FeedbackRecord, UserRecord

__all__ = [
    "Grade",
    "GRADE_POINTS",
    "RECOGNIZED_GRADES",
    "Subject",
    "ScoredSubject",
    "Stream",
    "MIN_PERIODS_COVERED",
    "MAX_PERIODS_COVERED",
    "new_record_id",
    "PeriodResult",
    "CumulativeResult",
    "History",
    "RawResultRow",
    "RawExtraction",
    "NormalizedExtraction",
    "UserRecord",
    "FeedbackRecord",
]

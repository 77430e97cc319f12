"""
CALCULATION MODELS - Period (semester) results, cumulative results and history

Results are immutable once created; History is replaced, never edited in place.
"""

from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .grades import ScoredSubject

MIN_PERIODS_COVERED = 2
MAX_PERIODS_COVERED = 10


def new_record_id() -> str:
    """Short random identifier for history entries"""
    return uuid4().hex[:9]


class PeriodResult(BaseModel):
    """GPA for one semester"""

    id: str = Field(default_factory=new_record_id, description="Record identifier")
    period: int = Field(..., ge=1, description="Semester number (1-based)")
    stream: str = Field(..., description="Department / stream identifier")
    score: float = Field(..., ge=0.0, le=10.0, description="Credit-weighted GPA, 2 decimals")
    subjects: List[ScoredSubject] = Field(default_factory=list, description="Subjects that produced the score")
    created_at: datetime = Field(default_factory=datetime.now, description="When the result was computed")

    model_config = ConfigDict(frozen=True)

    @property
    def total_credits(self) -> float:
        return sum(s.credits for s in self.subjects if s.is_graded)


class CumulativeResult(BaseModel):
    """CGPA across the first N semesters"""

    id: str = Field(default_factory=new_record_id, description="Record identifier")
    score: float = Field(..., ge=0.0, le=10.0, description="Mean of semester GPAs, 2 decimals")
    periods_covered: int = Field(
        ..., ge=MIN_PERIODS_COVERED, le=MAX_PERIODS_COVERED, description="Number of semesters averaged"
    )
    created_at: datetime = Field(default_factory=datetime.now, description="When the result was computed")

    model_config = ConfigDict(frozen=True)


class History(BaseModel):
    """A user's saved results, both sequences newest-first"""

    period_results: List[PeriodResult] = Field(default_factory=list)
    cumulative_results: List[CumulativeResult] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        return not self.period_results and not self.cumulative_results

    def get_period_result(self, period: int) -> Optional[PeriodResult]:
        for record in self.period_results:
            if record.period == period:
                return record
        return None


__all__ = [
    "MIN_PERIODS_COVERED",
    "MAX_PERIODS_COVERED",
    "new_record_id",
    "PeriodResult",
    "CumulativeResult",
    "History",
]

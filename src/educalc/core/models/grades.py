"""
GRADE MODELS - Grade symbols, point table, subjects and scored subjects

GRADE SCALE (10-point):
O = 10, A+ = 9, A = 8, B+ = 7, B = 6, C = 5, RA = 0
"-" (unset) = 0 and never counts toward credits

VALIDATION RULES:
- Subject codes are stripped and upper-cased
- Credits must be non-negative (zero-credit subjects are dropped at catalog load)
- Grades must come from the closed Grade set
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum


class Grade(str, Enum):
    """Closed set of per-subject outcomes"""
    O = "O"
    A_PLUS = "A+"
    A = "A"
    B_PLUS = "B+"
    B = "B"
    C = "C"
    RA = "RA"  # Re-appear (fail)
    UNSET = "-"


# Never changes at runtime
GRADE_POINTS: Dict[Grade, int] = {
    Grade.O: 10,
    Grade.A_PLUS: 9,
    Grade.A: 8,
    Grade.B_PLUS: 7,
    Grade.B: 6,
    Grade.C: 5,
    Grade.RA: 0,
    Grade.UNSET: 0,
}

# Symbols an extracted row may legitimately carry
RECOGNIZED_GRADES = frozenset(g.value for g in Grade if g is not Grade.UNSET)


class Subject(BaseModel):
    """One course in a stream's curriculum for a given semester"""

    code: str = Field(..., min_length=1, description="Subject code, unique within a semester")
    name: str = Field(..., description="Display name")
    credits: float = Field(..., ge=0.0, description="Credit weight in the GPA average")

    model_config = ConfigDict(frozen=True)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v):
        return v.strip().upper()

    @property
    def counts_toward_gpa(self) -> bool:
        """Non-credit courses do not participate in GPA"""
        return self.credits > 0


class ScoredSubject(Subject):
    """A subject with an assigned grade"""

    grade: Grade = Field(Grade.UNSET, validate_default=True, description="Assigned grade symbol")
    verified: bool = Field(True, description="False when the code was not found in the catalog")

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    @property
    def points(self) -> int:
        return GRADE_POINTS[Grade(self.grade)]

    @property
    def is_graded(self) -> bool:
        return self.grade != Grade.UNSET.value

    def with_grade(self, grade: Grade) -> "ScoredSubject":
        return self.model_copy(update={"grade": Grade(grade).value})


class Stream(BaseModel):
    """A department / programme track with its per-semester curriculum"""

    id: str = Field(..., min_length=1, description="Stream identifier (e.g. CSE)")
    name: str = Field(..., description="Stream display name")
    semesters: Dict[int, List[Subject]] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def normalize_id(cls, v):
        return v.strip().upper()

    @property
    def periods(self) -> List[int]:
        return sorted(self.semesters)


__all__ = [
    "Grade",
    "GRADE_POINTS",
    "RECOGNIZED_GRADES",
    "Subject",
    "ScoredSubject",
    "Stream",
]

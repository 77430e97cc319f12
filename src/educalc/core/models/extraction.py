"""
EXTRACTION MODELS - Raw AI extraction payload and its normalized form

The raw payload is untrusted: every field is coerced leniently so that one odd
row does not reject the whole scan. Structural problems (not a mapping, results
not a list) still fail validation.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .grades import ScoredSubject


class RawResultRow(BaseModel):
    """One marksheet row as returned by the extraction service"""

    code: str = Field("", description="Subject code as read from the image")
    grade: str = Field("", description="Grade label as read from the image")

    @field_validator("code", "grade", mode="before")
    @classmethod
    def coerce_text(cls, v):
        if v is None:
            return ""
        if isinstance(v, (int, float)):
            return str(v)
        return v


class RawExtraction(BaseModel):
    """Whole extraction service reply"""

    detected_department: str = Field("", alias="detectedDepartment")
    detected_semester: Optional[int] = Field(None, alias="detectedSemester")
    results: List[RawResultRow] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("detected_department", mode="before")
    @classmethod
    def coerce_department(cls, v):
        return "" if v is None else str(v)

    @field_validator("detected_semester", mode="before")
    @classmethod
    def coerce_semester(cls, v: Any):
        """Accept 3, 3.0, "3", "Semester 3"; anything else means undetected"""
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, (int, float)):
            return int(v) if float(v).is_integer() else None
        if isinstance(v, str):
            digits = "".join(ch for ch in v if ch.isdigit())
            return int(digits) if digits else None
        return None


class NormalizedExtraction(BaseModel):
    """Extraction result ready for scoring"""

    stream: str
    stream_matched: bool = Field(..., description="False when the default stream was assumed")
    period: int = Field(..., ge=1)
    subjects: List[ScoredSubject]

    @property
    def unverified_codes(self) -> List[str]:
        return [s.code for s in self.subjects if not s.verified]


__all__ = ["RawResultRow", "RawExtraction", "NormalizedExtraction"]

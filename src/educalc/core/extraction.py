"""
EXTRACTION NORMALIZER - Turn untrusted AI marksheet output into scored subjects

NORMALIZATION STEPS:
1. Stream resolution: exact id/name match, then substring match either way,
   else the configured default stream
2. Semester resolution: undetected -> 1; outside the stream's range -> rejected
3. Code cleanup: upper-case, keep only A-Z and 0-9 ("cs-301!!" -> "CS301")
4. Curriculum lookup: catalog code/name/credits win over the AI's reading;
   unknown codes are kept as "Unverified Subject" with 3 credits
5. Grade cleanup: anything outside O, A+, A, B+, B, C, RA becomes RA
6. Filtering: codes shorter than 4 characters are noise and dropped
7. Rejection: nothing left -> NothingRecognizedError

Every ambiguity resolves toward "keep it and let the user review it",
except an empty result.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from ..config import Settings, settings as default_settings
from .catalog import CurriculumCatalog
from .errors import MalformedExtractionError, NothingRecognizedError, PeriodMismatchError
from .models import (
    RECOGNIZED_GRADES,
    Grade,
    NormalizedExtraction,
    RawExtraction,
    ScoredSubject,
    Stream,
)

logger = logging.getLogger(__name__)

UNVERIFIED_SUBJECT_NAME = "Unverified Subject"
UNVERIFIED_SUBJECT_CREDITS = 3.0
MIN_CODE_LENGTH = 4
DEFAULT_PERIOD = 1

_NON_CODE_CHARS = re.compile(r"[^A-Z0-9]")


def normalize_code(raw_code: str) -> str:
    """Upper-case and strip everything outside A-Z / 0-9"""
    return _NON_CODE_CHARS.sub("", (raw_code or "").upper())


def normalize_grade(raw_grade: str) -> Grade:
    """Recognized grade symbol, or RA for anything ambiguous"""
    label = (raw_grade or "").strip()
    if label in RECOGNIZED_GRADES:
        return Grade(label)
    return Grade.RA


def parse_raw_extraction(payload: Union[RawExtraction, Dict[str, Any]]) -> RawExtraction:
    """Validate the service reply structure"""
    if isinstance(payload, RawExtraction):
        return payload
    try:
        return RawExtraction.model_validate(payload)
    except ValidationError as e:
        raise MalformedExtractionError(f"Unexpected extraction structure: {e}") from e


class ExtractionNormalizer:
    """Normalize extraction payloads against a curriculum catalog"""

    def __init__(self, catalog: CurriculumCatalog, settings: Optional[Settings] = None):
        self.catalog = catalog
        self.settings = settings or default_settings

    def resolve_stream(self, detected: str) -> Tuple[str, bool]:
        """
        Match a free-text department label to a catalog stream

        Returns:
            (stream id, matched) - matched is False when the default was assumed
        """
        label = (detected or "").strip().lower()
        if label:
            for stream in self.catalog.streams:
                if label in (stream.id.lower(), stream.name.lower()):
                    return stream.id, True

            for stream in self.catalog.streams:
                if _contains_either_way(label, stream):
                    return stream.id, True

        fallback = self.settings.DEFAULT_STREAM.upper()
        logger.warning(f"⚠️ Stream '{detected}' not recognized - assuming {fallback}")
        return fallback, False

    def resolve_period(self, stream_id: str, detected: Optional[int]) -> int:
        """Detected semester, defaulting to 1; rejects semesters the stream does not have"""
        if detected is None:
            return DEFAULT_PERIOD

        max_periods = self.settings.max_periods(stream_id)
        if not 1 <= detected <= max_periods:
            raise PeriodMismatchError(stream_id, detected, max_periods)
        return detected

    def normalize(self, payload: Union[RawExtraction, Dict[str, Any]]) -> NormalizedExtraction:
        """
        Normalize a raw extraction into scored subjects

        Raises:
            MalformedExtractionError: payload structure is wrong
            PeriodMismatchError: detected semester does not exist for the stream
            NothingRecognizedError: no row survived filtering
        """
        raw = parse_raw_extraction(payload)
        stream_id, matched = self.resolve_stream(raw.detected_department)
        period = self.resolve_period(stream_id, raw.detected_semester)

        subjects: List[ScoredSubject] = []
        seen_codes = set()
        for row in raw.results:
            code = normalize_code(row.code)
            if len(code) < MIN_CODE_LENGTH:
                logger.debug(f"Dropped noise row {row.code!r}")
                continue
            if code in seen_codes:
                logger.warning(f"⚠️ Duplicate row for {code} ignored")
                continue
            seen_codes.add(code)
            subjects.append(self._score_row(stream_id, period, code, row.grade))

        if not subjects:
            raise NothingRecognizedError()

        unverified = sum(1 for s in subjects if not s.verified)
        logger.info(
            f"✅ Normalized {len(subjects)} subjects for {stream_id} semester {period}"
            f" ({unverified} unverified)"
        )
        return NormalizedExtraction(
            stream=stream_id, stream_matched=matched, period=period, subjects=subjects
        )

    def _score_row(self, stream_id: str, period: int, code: str, raw_grade: str) -> ScoredSubject:
        grade = normalize_grade(raw_grade)
        if grade is Grade.RA and raw_grade.strip() != Grade.RA.value:
            logger.warning(f"⚠️ Grade {raw_grade!r} for {code} not recognized - set to RA")

        subject = self.catalog.find_subject(stream_id, period, code)
        if subject is None:
            return ScoredSubject(
                code=code,
                name=UNVERIFIED_SUBJECT_NAME,
                credits=UNVERIFIED_SUBJECT_CREDITS,
                grade=grade,
                verified=False,
            )
        return ScoredSubject(code=subject.code, name=subject.name, credits=subject.credits, grade=grade)


def _contains_either_way(label: str, stream: Stream) -> bool:
    for candidate in (stream.id.lower(), stream.name.lower()):
        if candidate and (candidate in label or label in candidate):
            return True
    return False


__all__ = [
    "UNVERIFIED_SUBJECT_NAME",
    "UNVERIFIED_SUBJECT_CREDITS",
    "MIN_CODE_LENGTH",
    "normalize_code",
    "normalize_grade",
    "parse_raw_extraction",
    "ExtractionNormalizer",
]

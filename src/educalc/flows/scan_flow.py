"""
SCAN DRAFT - Semester GPA from a photographed marksheet

PIPELINE:
1. Extraction service reads the image (one call, bounded by a timeout)
2. ExtractionNormalizer checks the reply against the curriculum catalog
3. GPACalculator scores the normalized subjects
4. The user may correct any grade; the GPA is recomputed each time
5. confirm_ownership() then save() commits the result to History

A failed scan leaves the previous draft untouched so the user can retry. The
draft is kept in the session store like the manual GPA draft; reset()
discards it.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel

from ..core.calculators import GPACalculator
from ..core.errors import IncompleteSelectionError, OwnershipNotConfirmedError
from ..core.extraction import ExtractionNormalizer
from ..core.models import Grade, NormalizedExtraction, PeriodResult, ScoredSubject, UserRecord
from ..services.extraction_service import ExtractionClient
from ..services.imaging import read_image
from ..services.local_store import SCAN_DRAFT_KEY, SessionStore
from .account import AccountService, SaveOutcome

logger = logging.getLogger(__name__)


class ScanDraftState(BaseModel):
    """Serializable part of a scan draft"""

    extraction: Optional[NormalizedExtraction] = None
    result: Optional[PeriodResult] = None
    saved: bool = False


class ScanDraft:
    """Scanned marksheet awaiting review"""

    def __init__(
        self,
        client: ExtractionClient,
        normalizer: ExtractionNormalizer,
        calculator: Optional[GPACalculator] = None,
        session_store: Optional[SessionStore] = None,
    ):
        self.client = client
        self.normalizer = normalizer
        self.calculator = calculator or GPACalculator()
        self.session_store = session_store or SessionStore()
        self.ownership_confirmed = False

        stored = self.session_store.get(SCAN_DRAFT_KEY)
        self.state = ScanDraftState.model_validate(stored) if stored else ScanDraftState()

    @property
    def extraction(self) -> Optional[NormalizedExtraction]:
        return self.state.extraction

    @property
    def result(self) -> Optional[PeriodResult]:
        return self.state.result

    @property
    def saved(self) -> bool:
        return self.state.saved

    @property
    def subjects(self) -> List[ScoredSubject]:
        return self.state.result.subjects if self.state.result else []

    @property
    def can_save(self) -> bool:
        return self.state.result is not None and self.ownership_confirmed and not self.state.saved

    async def scan(self, image_bytes: bytes) -> PeriodResult:
        """
        Extract, normalize and score a marksheet image

        Raises:
            ExtractionTimeoutError: the extraction call timed out
            ExtractionServiceError: the extraction call failed
            ExtractionRejectedError: the reply was unusable (nothing recognized,
                wrong semester, malformed)
        """
        raw = await self.client.extract(image_bytes)
        extraction = self.normalizer.normalize(raw)

        if not extraction.stream_matched:
            logger.warning(f"⚠️ Department not recognized; scored against {extraction.stream}")
        if extraction.unverified_codes:
            logger.warning(f"⚠️ Not in curriculum: {', '.join(extraction.unverified_codes)}")

        result = self.calculator.calculate_period_result(
            extraction.stream, extraction.period, extraction.subjects
        )
        self.state = ScanDraftState(extraction=extraction, result=result)
        self.ownership_confirmed = False
        self._persist()
        return result

    async def scan_file(self, path: Union[str, Path]) -> PeriodResult:
        return await self.scan(read_image(path))

    def update_grade(self, code: str, grade: Union[Grade, str]) -> PeriodResult:
        """
        Correct one row's grade and recompute the GPA

        The result keeps its id until it is saved; a correction made after a
        save becomes a new record.
        """
        result = self.state.result
        if result is None:
            raise IncompleteSelectionError("Scan a marksheet first")

        code = code.strip().upper()
        subjects = list(result.subjects)
        for index, subject in enumerate(subjects):
            if subject.code == code:
                subjects[index] = subject.with_grade(Grade(grade))
                break
        else:
            raise KeyError(f"No subject {code} in this scan")

        record_id = None if self.state.saved else result.id
        result = self.calculator.calculate_period_result(
            result.stream, result.period, subjects, record_id=record_id
        )
        self.state = self.state.model_copy(update={"result": result, "saved": False})
        self._persist()
        return result

    def confirm_ownership(self, confirmed: bool = True) -> None:
        self.ownership_confirmed = confirmed

    async def save(self, account: AccountService, user: UserRecord) -> SaveOutcome:
        """
        Commit the scanned result, replacing any earlier one for that semester

        Raises:
            IncompleteSelectionError: nothing scanned yet, or already saved
            OwnershipNotConfirmedError: ownership not confirmed
        """
        if self.state.result is None or self.state.saved:
            raise IncompleteSelectionError("Scan a marksheet before saving")
        if not self.ownership_confirmed:
            raise OwnershipNotConfirmedError("Confirm this result is yours before saving")

        outcome = await account.save_period_result(user, self.state.result)
        self.state = self.state.model_copy(update={"saved": True})
        self._persist()
        return outcome

    def reset(self) -> None:
        self.state = ScanDraftState()
        self.ownership_confirmed = False
        self.session_store.remove(SCAN_DRAFT_KEY)

    def _persist(self) -> None:
        self.session_store.set(SCAN_DRAFT_KEY, self.state.model_dump(mode="json"))


__all__ = ["ScanDraft", "ScanDraftState"]

"""
GPA DRAFT - Manual semester GPA entry

STEPS:
1. select(stream, semester) loads the curriculum with every grade unset
2. set_grade(code, grade) per subject
3. calculate() once is_complete
4. confirm_ownership() then save() commits the result to History

The draft is kept in the session store after every change so an interrupted
entry can be resumed; reset() discards it.
"""

import logging
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from ..config import Settings, settings as default_settings
from ..core.calculators import GPACalculator, is_complete
from ..core.catalog import CurriculumCatalog
from ..core.errors import IncompleteSelectionError, OwnershipNotConfirmedError, PeriodNotFoundError
from ..core.models import Grade, PeriodResult, ScoredSubject, UserRecord
from ..services.local_store import GPA_DRAFT_KEY, SessionStore
from .account import AccountService, SaveOutcome

logger = logging.getLogger(__name__)


class GPADraftState(BaseModel):
    """Serializable part of a GPA draft"""

    stream: str = ""
    period: int = 0
    subjects: List[ScoredSubject] = Field(default_factory=list)
    result: Optional[PeriodResult] = None
    saved: bool = False


class GPADraft:
    """In-progress semester GPA entry"""

    def __init__(
        self,
        catalog: CurriculumCatalog,
        session_store: Optional[SessionStore] = None,
        calculator: Optional[GPACalculator] = None,
        settings: Optional[Settings] = None,
    ):
        self.catalog = catalog
        self.session_store = session_store or SessionStore()
        self.calculator = calculator or GPACalculator()
        self.settings = settings or default_settings
        self.ownership_confirmed = False

        stored = self.session_store.get(GPA_DRAFT_KEY)
        self.state = GPADraftState.model_validate(stored) if stored else GPADraftState()

    @property
    def subjects(self) -> List[ScoredSubject]:
        return self.state.subjects

    @property
    def result(self) -> Optional[PeriodResult]:
        return self.state.result

    @property
    def is_complete(self) -> bool:
        return is_complete(self.state.subjects)

    @property
    def can_save(self) -> bool:
        return self.state.result is not None and self.ownership_confirmed and not self.state.saved

    def available_periods(self, stream: str) -> List[int]:
        return list(range(1, self.settings.max_periods(stream) + 1))

    def select(self, stream: str, period: int) -> List[ScoredSubject]:
        """
        Load a semester's curriculum with all grades unset

        Raises:
            PeriodNotFoundError: semester outside the stream's range, or no curriculum for it
        """
        stream = stream.strip().upper()
        if period not in self.available_periods(stream):
            raise PeriodNotFoundError(stream, period)

        subjects = self.catalog.subjects(stream, period)
        self.state = GPADraftState(
            stream=stream,
            period=period,
            subjects=[ScoredSubject(**s.model_dump()) for s in subjects],
        )
        self.ownership_confirmed = False
        self._persist()
        logger.info(f"📚 Loaded {len(subjects)} subjects for {stream} semester {period}")
        return self.state.subjects

    def set_grade(self, code: str, grade: Union[Grade, str]) -> None:
        """Assign a grade; any computed result is discarded"""
        code = code.strip().upper()
        grade = Grade(grade)
        for index, subject in enumerate(self.state.subjects):
            if subject.code == code:
                subjects = list(self.state.subjects)
                subjects[index] = subject.with_grade(grade)
                self.state = self.state.model_copy(
                    update={"subjects": subjects, "result": None, "saved": False}
                )
                self._persist()
                return
        raise KeyError(f"No subject {code} in this draft")

    def calculate(self) -> PeriodResult:
        """
        Compute the semester GPA

        Raises:
            IncompleteSelectionError: a subject still has no grade
        """
        if not self.is_complete:
            missing = [s.code for s in self.state.subjects if not s.is_graded]
            raise IncompleteSelectionError(f"Grades missing for: {', '.join(missing) or 'all subjects'}")

        result = self.calculator.calculate_period_result(
            self.state.stream, self.state.period, self.state.subjects
        )
        self.state = self.state.model_copy(update={"result": result, "saved": False})
        self.ownership_confirmed = False
        self._persist()
        return result

    def confirm_ownership(self, confirmed: bool = True) -> None:
        self.ownership_confirmed = confirmed

    async def save(self, account: AccountService, user: UserRecord) -> SaveOutcome:
        """
        Commit the calculated result

        Raises:
            IncompleteSelectionError: nothing calculated yet, or already saved
            OwnershipNotConfirmedError: ownership not confirmed
        """
        if self.state.result is None or self.state.saved:
            raise IncompleteSelectionError("Calculate a GPA before saving")
        if not self.ownership_confirmed:
            raise OwnershipNotConfirmedError("Confirm this result is yours before saving")

        outcome = await account.save_period_result(user, self.state.result)
        self.state = self.state.model_copy(update={"saved": True})
        self._persist()
        return outcome

    def reset(self) -> None:
        self.state = GPADraftState()
        self.ownership_confirmed = False
        self.session_store.remove(GPA_DRAFT_KEY)

    def _persist(self) -> None:
        self.session_store.set(GPA_DRAFT_KEY, self.state.model_dump(mode="json"))


__all__ = ["GPADraft", "GPADraftState"]

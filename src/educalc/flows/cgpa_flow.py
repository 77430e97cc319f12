"""
CGPA DRAFT - Cumulative GPA across the first N semesters

Semester entries start from the latest saved GPA for each semester; the user
can overwrite any of them. Calculation needs a value for every semester in
1..N.
"""

import logging
from typing import Dict, List, Optional

from ..core.calculators import GPACalculator
from ..core.errors import IncompleteSelectionError, OwnershipNotConfirmedError
from ..core.history import latest_period_scores
from ..core.models import MAX_PERIODS_COVERED, MIN_PERIODS_COVERED, CumulativeResult, History, UserRecord
from .account import AccountService, SaveOutcome

logger = logging.getLogger(__name__)


class CGPADraft:
    """In-progress CGPA entry"""

    def __init__(self, history: Optional[History] = None, calculator: Optional[GPACalculator] = None):
        self.calculator = calculator or GPACalculator()
        self.scores: Dict[int, Optional[float]] = {
            period: None for period in range(1, MAX_PERIODS_COVERED + 1)
        }
        self.num_periods = MIN_PERIODS_COVERED
        self.result: Optional[CumulativeResult] = None
        self.saved = False
        self.ownership_confirmed = False

        if history is not None:
            latest = self._prefill(history)
            if latest:
                self.num_periods = max(MIN_PERIODS_COVERED, min(max(latest), MAX_PERIODS_COVERED))

    @classmethod
    def for_user(cls, user: UserRecord, calculator: Optional[GPACalculator] = None) -> "CGPADraft":
        return cls(history=user.history, calculator=calculator)

    @property
    def entries(self) -> List[Optional[float]]:
        """Scores for semesters 1..num_periods"""
        return [self.scores[period] for period in range(1, self.num_periods + 1)]

    @property
    def is_ready(self) -> bool:
        return all(value is not None for value in self.entries)

    @property
    def can_save(self) -> bool:
        return self.result is not None and self.ownership_confirmed and not self.saved

    def set_num_periods(self, num_periods: int) -> None:
        if not MIN_PERIODS_COVERED <= num_periods <= MAX_PERIODS_COVERED:
            raise ValueError(
                f"Number of semesters must be {MIN_PERIODS_COVERED}-{MAX_PERIODS_COVERED}, got: {num_periods}"
            )
        self.num_periods = num_periods
        self._clear_result()

    def set_score(self, period: int, score: Optional[float]) -> None:
        """Enter a semester GPA (None clears it)"""
        if period not in self.scores:
            raise ValueError(f"Semester must be 1-{MAX_PERIODS_COVERED}, got: {period}")
        if score is not None and not 0.0 <= score <= 10.0:
            raise ValueError(f"GPA must be between 0 and 10, got: {score}")
        self.scores[period] = score
        self._clear_result()

    def sync_from_history(self, history: History) -> None:
        """Discard manual entries and take every semester from history"""
        for period in self.scores:
            self.scores[period] = None
        self._prefill(history)
        self._clear_result()

    def calculate(self) -> CumulativeResult:
        """
        Compute the CGPA over semesters 1..num_periods

        Raises:
            IncompleteSelectionError: a semester in range has no score
        """
        if not self.is_ready:
            missing = [str(p) for p, value in enumerate(self.entries, start=1) if value is None]
            raise IncompleteSelectionError(f"GPA missing for semesters: {', '.join(missing)}")

        self.result = self.calculator.calculate_cumulative_result(self.entries, self.num_periods)
        self.saved = False
        self.ownership_confirmed = False
        return self.result

    def confirm_ownership(self, confirmed: bool = True) -> None:
        self.ownership_confirmed = confirmed

    async def save(self, account: AccountService, user: UserRecord) -> SaveOutcome:
        """
        Append the calculated CGPA to History

        Raises:
            IncompleteSelectionError: nothing calculated yet, or already saved
            OwnershipNotConfirmedError: ownership not confirmed
        """
        if self.result is None or self.saved:
            raise IncompleteSelectionError("Calculate a CGPA before saving")
        if not self.ownership_confirmed:
            raise OwnershipNotConfirmedError("Confirm this result is yours before saving")

        outcome = await account.save_cumulative_result(user, self.result)
        self.saved = True
        return outcome

    def reset(self) -> None:
        for period in self.scores:
            self.scores[period] = None
        self.num_periods = MIN_PERIODS_COVERED
        self._clear_result()

    def _prefill(self, history: History) -> Dict[int, float]:
        """Fill empty entries from the latest saved GPA per semester"""
        latest = {p: s for p, s in latest_period_scores(history).items() if p in self.scores}
        for period, score in latest.items():
            if self.scores[period] is None:
                self.scores[period] = score
        if latest:
            logger.debug(f"Prefilled semesters {sorted(latest)} from history")
        return latest

    def _clear_result(self) -> None:
        self.result = None
        self.saved = False
        self.ownership_confirmed = False


__all__ = ["CGPADraft"]

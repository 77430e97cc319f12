"""Star rating plus comment, kept in the local store"""

import logging
from typing import List

from ..core.errors import InvalidFeedbackError
from ..core.models import FeedbackRecord, UserRecord
from ..services.local_store import LocalStore

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def can_submit(rating: int, comment: str) -> bool:
    """A rating of 1-5 and a comment that is not blank"""
    return MIN_RATING <= rating <= MAX_RATING and bool((comment or "").strip())


class FeedbackService:
    def __init__(self, local_store: LocalStore):
        self.local_store = local_store

    def submit(self, user: UserRecord, rating: int, comment: str) -> FeedbackRecord:
        if not can_submit(rating, comment):
            raise InvalidFeedbackError(
                f"Pick a rating between {MIN_RATING} and {MAX_RATING} and write a comment"
            )

        record = FeedbackRecord(user_id=user.id, user_name=user.name, rating=rating, comment=comment)
        self.local_store.append_feedback(record)
        logger.info(f"📝 Feedback {record.id} recorded ({rating}/5)")
        return record

    def list_feedback(self) -> List[FeedbackRecord]:
        return self.local_store.load_feedback()


__all__ = ["FeedbackService", "can_submit"]

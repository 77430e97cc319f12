"""
HISTORY RECONCILIATION - Merge new results into a user's saved history

POLICY:
✅ Semester results: one current value per semester; resubmitting replaces
✅ Cumulative results: always accumulate (4-semester and 6-semester CGPA both kept)
✅ Deletes: tolerated when the record is already gone

Every function takes a History and returns a new one; nothing is mutated.
"""

import logging
from typing import Dict, Iterable, List

from .models import CumulativeResult, History, PeriodResult

logger = logging.getLogger(__name__)


def upsert_period_result(history: History, new_result: PeriodResult) -> History:
    """Replace any result for the same semester and put the new one first"""
    kept = [r for r in history.period_results if r.period != new_result.period]
    if len(kept) != len(history.period_results):
        logger.info(f"🔁 Replacing semester {new_result.period} result")
    return history.model_copy(update={"period_results": [new_result, *kept]})


def append_cumulative_result(history: History, new_result: CumulativeResult) -> History:
    """Put a cumulative result first; earlier snapshots are kept"""
    return history.model_copy(
        update={"cumulative_results": [new_result, *history.cumulative_results]}
    )


def delete_result(history: History, record_id: str) -> History:
    """Remove the period or cumulative result with this id, if present"""
    period_results = [r for r in history.period_results if r.id != record_id]
    cumulative_results = [r for r in history.cumulative_results if r.id != record_id]

    if (
        len(period_results) == len(history.period_results)
        and len(cumulative_results) == len(history.cumulative_results)
    ):
        logger.debug(f"Delete of unknown record {record_id} ignored")
        return history

    return history.model_copy(
        update={"period_results": period_results, "cumulative_results": cumulative_results}
    )


def latest_period_scores(history: History) -> Dict[int, float]:
    """Most recent score per semester, judged by creation time"""
    latest: Dict[int, PeriodResult] = {}
    for record in history.period_results:
        current = latest.get(record.period)
        if current is None or record.created_at > current.created_at:
            latest[record.period] = record
    return {period: record.score for period, record in latest.items()}


def periods_for_display(history: History) -> List[PeriodResult]:
    """Semester results, highest semester first"""
    return sorted(history.period_results, key=lambda r: r.period, reverse=True)


def replay_history(
    period_records: Iterable[PeriodResult],
    cumulative_records: Iterable[CumulativeResult],
) -> History:
    """
    Rebuild a History from an append-only log (oldest first)

    The remote store delivers appends at least once, so the same record may
    appear more than once. A semester keeps its most recently created result;
    a redelivered or older entry for that semester is skipped. Cumulative
    repeats of an id already replayed are skipped.
    """
    history = History()
    current: Dict[int, PeriodResult] = {}

    for record in period_records:
        kept = current.get(record.period)
        if kept is not None and (record == kept or record.created_at < kept.created_at):
            continue
        current[record.period] = record
        history = upsert_period_result(history, record)

    seen = set()
    for record in cumulative_records:
        if record.id in seen:
            continue
        seen.add(record.id)
        history = append_cumulative_result(history, record)

    return history


__all__ = [
    "upsert_period_result",
    "append_cumulative_result",
    "delete_result",
    "latest_period_scores",
    "periods_for_display",
    "replay_history",
]

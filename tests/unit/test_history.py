"""
Unit Tests for History Reconciliation

Tests for:
- Semester upsert (replace, ordering, idempotence)
- Cumulative append (never deduplicated)
- Delete tolerance
- Latest-score lookup and display ordering
- Replay of an append-only log
"""

from educalc.core.history import (
    append_cumulative_result,
    delete_result,
    latest_period_scores,
    periods_for_display,
    replay_history,
    upsert_period_result,
)
from educalc.core.models import History


class TestUpsertPeriodResult:
    """Tests for upsert_period_result"""

    def test_replaces_existing_semester(self, sample_history, make_period_result):
        """Semester 3 resubmitted at 7.0 replaces 6.0 and moves to the front"""
        new = make_period_result(3, 7.0, minutes=20, id="sem3new")
        history = upsert_period_result(sample_history, new)

        assert [(r.period, r.score) for r in history.period_results] == [(3, 7.0), (2, 8.0)]
        assert len(history.period_results) == len(sample_history.period_results)

    def test_new_semester_prepended(self, sample_history, make_period_result):
        history = upsert_period_result(sample_history, make_period_result(4, 9.1, minutes=30))
        assert [r.period for r in history.period_results] == [4, 3, 2]

    def test_idempotent(self, sample_history, make_period_result):
        new = make_period_result(3, 7.0, minutes=20)
        once = upsert_period_result(sample_history, new)
        twice = upsert_period_result(once, new)
        assert twice == once

    def test_does_not_mutate_input(self, sample_history, make_period_result):
        upsert_period_result(sample_history, make_period_result(3, 7.0))
        assert [r.score for r in sample_history.period_results] == [6.0, 8.0]

    def test_cumulative_results_untouched(self, sample_history, make_period_result):
        history = upsert_period_result(sample_history, make_period_result(1, 7.0))
        assert history.cumulative_results == sample_history.cumulative_results


class TestAppendCumulativeResult:
    """Tests for append_cumulative_result"""

    def test_prepends(self, sample_history, make_cumulative_result):
        new = make_cumulative_result(8.1, 4, id="cgpa2")
        history = append_cumulative_result(sample_history, new)
        assert [r.id for r in history.cumulative_results] == ["cgpa2", "cgpa1"]

    def test_same_coverage_not_deduplicated(self, make_cumulative_result):
        history = History()
        history = append_cumulative_result(history, make_cumulative_result(7.0, 4))
        history = append_cumulative_result(history, make_cumulative_result(7.5, 4))
        assert len(history.cumulative_results) == 2


class TestDeleteResult:
    """Tests for delete_result"""

    def test_delete_period_result(self, sample_history):
        history = delete_result(sample_history, "sem2")
        assert [r.id for r in history.period_results] == ["sem3old"]
        assert len(history.cumulative_results) == 1

    def test_delete_cumulative_result(self, sample_history):
        history = delete_result(sample_history, "cgpa1")
        assert history.cumulative_results == []
        assert len(history.period_results) == 2

    def test_unknown_id_is_noop(self, sample_history):
        assert delete_result(sample_history, "missing") == sample_history

    def test_delete_twice(self, sample_history):
        once = delete_result(sample_history, "sem2")
        assert delete_result(once, "sem2") == once


class TestHistoryViews:
    """Tests for latest_period_scores and periods_for_display"""

    def test_latest_score_per_semester(self, make_period_result):
        history = History(
            period_results=[
                make_period_result(1, 6.0, minutes=1),
                make_period_result(1, 7.0, minutes=9),
                make_period_result(2, 8.0, minutes=5),
            ]
        )
        assert latest_period_scores(history) == {1: 7.0, 2: 8.0}

    def test_latest_scores_empty(self):
        assert latest_period_scores(History()) == {}

    def test_display_order(self, make_period_result):
        history = History(
            period_results=[
                make_period_result(2, 8.0),
                make_period_result(5, 7.0),
                make_period_result(1, 9.0),
            ]
        )
        assert [r.period for r in periods_for_display(history)] == [5, 2, 1]


class TestReplayHistory:
    """Tests for rebuilding History from an append-only log"""

    def test_later_semester_entry_wins(self, make_period_result):
        log = [
            make_period_result(3, 6.0, minutes=1, id="a"),
            make_period_result(2, 8.0, minutes=2, id="b"),
            make_period_result(3, 7.0, minutes=3, id="c"),
        ]
        history = replay_history(log, [])
        assert [(r.period, r.score) for r in history.period_results] == [(3, 7.0), (2, 8.0)]

    def test_duplicate_appends_skipped(self, make_period_result, make_cumulative_result):
        first = make_period_result(3, 6.0, minutes=1, id="a")
        later = make_period_result(3, 7.0, minutes=3, id="c")
        cgpa = make_cumulative_result(7.5, 2, id="x")

        # "a" delivered twice, the second time after "c"
        history = replay_history([first, later, first], [cgpa, cgpa])

        assert [r.id for r in history.period_results] == ["c"]
        assert [r.id for r in history.cumulative_results] == ["x"]

    def test_corrected_entry_with_same_id_wins(self, make_period_result):
        """A result re-saved under its old id after a correction replaces the stale one"""
        stale = make_period_result(3, 7.5, minutes=1, id="scan")
        corrected = make_period_result(3, 9.0, minutes=2, id="scan")

        history = replay_history([stale, corrected], [])

        assert [(r.id, r.score) for r in history.period_results] == [("scan", 9.0)]

    def test_older_entry_after_newer_is_skipped(self, make_period_result):
        newer = make_period_result(3, 8.0, minutes=5, id="new")
        older = make_period_result(3, 6.0, minutes=1, id="old")

        history = replay_history([newer, older], [])

        assert [r.id for r in history.period_results] == ["new"]

    def test_cumulative_order_newest_first(self, make_cumulative_result):
        log = [make_cumulative_result(7.0, 2, id="old"), make_cumulative_result(8.0, 4, id="new")]
        history = replay_history([], log)
        assert [r.id for r in history.cumulative_results] == ["new", "old"]

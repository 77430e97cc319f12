"""
Unit Tests for GPA Calculator

Tests for:
- Semester GPA calculation
- Cumulative CGPA calculation
- Completeness gate
- Grade point mapping
- Edge cases
"""

import itertools

import pytest
from educalc.core.calculators import (
    GPACalculator,
    compute_cumulative_score,
    compute_period_score,
    grade_points,
    is_complete,
)
from educalc.core.models import CumulativeResult, Grade, PeriodResult, ScoredSubject


def subject(code: str, credits: float, grade: Grade = Grade.UNSET) -> ScoredSubject:
    return ScoredSubject(code=code, name=f"Subject {code}", credits=credits, grade=grade)


class TestComputePeriodScore:
    """Tests for compute_period_score"""

    def test_weighted_average(self, scenario_a_subjects):
        """(3*10 + 4*7 + 3*8) / 10 = 8.20"""
        assert compute_period_score(scenario_a_subjects) == 8.2

    def test_empty_list_scores_zero(self):
        assert compute_period_score([]) == 0.0

    def test_zero_credit_subjects_score_zero(self):
        subjects = [subject("NC01", 0, Grade.O), subject("NC02", 0, Grade.A)]
        assert compute_period_score(subjects) == 0.0

    def test_unset_grades_excluded(self):
        """Unset grades add neither points nor credits"""
        subjects = [subject("CS01", 3, Grade.O), subject("CS02", 4)]
        assert compute_period_score(subjects) == 10.0

    def test_ra_counts_as_zero_points(self):
        subjects = [subject("CS01", 3, Grade.O), subject("CS02", 3, Grade.RA)]
        assert compute_period_score(subjects) == 5.0

    def test_rounds_to_two_decimals(self):
        """(10 + 9 + 9) / 3 = 9.333..."""
        subjects = [subject(f"CS0{i}", 1, g) for i, g in enumerate([Grade.O, Grade.A_PLUS, Grade.A_PLUS])]
        assert compute_period_score(subjects) == 9.33

    def test_order_independent(self):
        """Permuting the subjects never changes the rounded score"""
        subjects = [
            subject("CS01", 3.5, Grade.A_PLUS),
            subject("CS02", 1.5, Grade.C),
            subject("CS03", 4, Grade.B),
            subject("CS04", 2.25, Grade.O),
        ]
        scores = {compute_period_score(list(p)) for p in itertools.permutations(subjects)}
        assert len(scores) == 1

    @pytest.mark.parametrize("grade", [g for g in Grade if g is not Grade.UNSET])
    def test_score_within_range(self, grade):
        subjects = [subject("CS01", 3, grade), subject("CS02", 4, Grade.O)]
        assert 0.0 <= compute_period_score(subjects) <= 10.0


class TestComputeCumulativeScore:
    """Tests for compute_cumulative_score"""

    def test_mean_of_semesters(self):
        assert compute_cumulative_score([9.0, 7.5, 8.0, 6.5], 4) == 7.75

    def test_only_first_n_semesters_used(self):
        assert compute_cumulative_score([9.0, 7.0, 1.0], 2) == 8.0

    def test_empty_scores_zero(self):
        assert compute_cumulative_score([], 2) == 0.0

    @pytest.mark.parametrize("periods_covered", [0, 1, 11])
    def test_periods_covered_out_of_range(self, periods_covered):
        with pytest.raises(ValueError):
            compute_cumulative_score([8.0] * 10, periods_covered)


class TestIsComplete:
    """Tests for the all-grades-selected gate"""

    def test_empty_is_incomplete(self):
        assert is_complete([]) is False

    def test_all_graded(self, scenario_a_subjects):
        assert is_complete(scenario_a_subjects) is True

    def test_one_unset(self, scenario_a_subjects):
        assert is_complete(scenario_a_subjects + [subject("CS09", 3)]) is False


class TestGradePoints:
    """Tests for the grade point table"""

    @pytest.mark.parametrize(
        "grade,points",
        [("O", 10), ("A+", 9), ("A", 8), ("B+", 7), ("B", 6), ("C", 5), ("RA", 0), ("-", 0)],
    )
    def test_grade_points(self, grade, points):
        assert grade_points(grade) == points

    def test_unknown_grade_rejected(self):
        with pytest.raises(ValueError):
            grade_points("A-")


class TestGPACalculator:
    """Tests for GPACalculator class"""

    def test_period_result(self, scenario_a_subjects):
        calculator = GPACalculator()
        result = calculator.calculate_period_result("CSE", 3, scenario_a_subjects)

        assert isinstance(result, PeriodResult)
        assert result.score == 8.2
        assert result.stream == "CSE"
        assert result.period == 3
        assert result.total_credits == 10
        assert len(result.subjects) == 3

    def test_period_result_reuses_id(self, scenario_a_subjects):
        calculator = GPACalculator()
        result = calculator.calculate_period_result("CSE", 1, scenario_a_subjects, record_id="abc123xyz")
        assert result.id == "abc123xyz"

    def test_calculation_log(self, scenario_a_subjects):
        calculator = GPACalculator()
        calculator.calculate_period_result("CSE", 1, scenario_a_subjects + [subject("CS09", 2)])

        log = calculator.get_calculation_log()
        assert log[0].startswith("📊")
        assert any("CS09 has no grade" in line for line in log)
        assert log[-1] == "✅ GPA: 8.20 over 10 credits"

    def test_zero_credit_log(self):
        calculator = GPACalculator()
        result = calculator.calculate_period_result("CSE", 1, [])

        assert result.score == 0.0
        assert any("GPA defined as 0" in line for line in calculator.get_calculation_log())

    def test_cumulative_result(self):
        calculator = GPACalculator()
        result = calculator.calculate_cumulative_result([9.0, 7.5, 8.0, 6.5], 4)

        assert isinstance(result, CumulativeResult)
        assert result.score == 7.75
        assert result.periods_covered == 4
        assert calculator.get_calculation_log()[-1] == "✅ CGPA: 7.75"

    def test_log_reset_between_calculations(self, scenario_a_subjects):
        calculator = GPACalculator()
        calculator.calculate_period_result("CSE", 1, scenario_a_subjects)
        calculator.calculate_cumulative_result([8.0, 9.0], 2)

        assert not any("GPA:" in line and "CGPA" not in line for line in calculator.get_calculation_log())

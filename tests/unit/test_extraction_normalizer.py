"""
Unit Tests for Extraction Normalizer

Tests for:
- Stream resolution (exact, substring, fallback)
- Semester resolution and mismatch rejection
- Code and grade cleanup
- Curriculum lookup and unverified placeholders
- Rejection of empty and malformed payloads
"""

import pytest
from educalc.core.errors import (
    ExtractionRejectedError,
    MalformedExtractionError,
    NothingRecognizedError,
    PeriodMismatchError,
)
from educalc.core.extraction import (
    UNVERIFIED_SUBJECT_CREDITS,
    UNVERIFIED_SUBJECT_NAME,
    ExtractionNormalizer,
    normalize_code,
    normalize_grade,
)
from educalc.core.models import Grade, RawExtraction


@pytest.fixture
def normalizer(sample_catalog, test_settings):
    return ExtractionNormalizer(sample_catalog, test_settings)


class TestNormalizeCode:
    @pytest.mark.parametrize(
        "raw,expected",
        [("cs-301!!", "CS301"), ("cs101*", "CS101"), (" MA 101 ", "MA101"), ("", ""), (None, "")],
    )
    def test_normalize_code(self, raw, expected):
        assert normalize_code(raw) == expected


class TestNormalizeGrade:
    @pytest.mark.parametrize("label", ["O", "A+", "A", "B+", "B", "C", "RA"])
    def test_recognized_grades_kept(self, label):
        assert normalize_grade(label) == Grade(label)

    @pytest.mark.parametrize("label", ["A-", "a", "F", "AB", "U", "", "-", "10"])
    def test_unrecognized_grades_become_ra(self, label):
        assert normalize_grade(label) == Grade.RA

    def test_surrounding_whitespace_ignored(self):
        assert normalize_grade(" B+ ") == Grade.B_PLUS


class TestResolveStream:
    def test_exact_id(self, normalizer):
        assert normalizer.resolve_stream("ece") == ("ECE", True)

    def test_exact_name(self, normalizer):
        assert normalizer.resolve_stream("Master of Business Administration") == ("MBA", True)

    def test_substring_of_name(self, normalizer):
        assert normalizer.resolve_stream("Computer Sci") == ("CSE", True)

    def test_name_within_label(self, normalizer):
        assert normalizer.resolve_stream("B.E. Electronics and Communication Engineering (2021)") == ("ECE", True)

    def test_unknown_falls_back_to_default(self, normalizer):
        assert normalizer.resolve_stream("Fashion Design") == ("CSE", False)

    def test_blank_falls_back_to_default(self, normalizer):
        assert normalizer.resolve_stream("") == ("CSE", False)


class TestResolvePeriod:
    def test_missing_defaults_to_first(self, normalizer):
        assert normalizer.resolve_period("CSE", None) == 1

    def test_standard_stream_limit(self, normalizer):
        assert normalizer.resolve_period("CSE", 8) == 8
        with pytest.raises(PeriodMismatchError):
            normalizer.resolve_period("CSE", 9)

    def test_extended_stream_limit(self, normalizer):
        assert normalizer.resolve_period("MBA", 10) == 10
        with pytest.raises(PeriodMismatchError):
            normalizer.resolve_period("MBA", 11)

    def test_zero_rejected(self, normalizer):
        with pytest.raises(PeriodMismatchError):
            normalizer.resolve_period("CSE", 0)


class TestNormalize:
    def test_catalog_match(self, normalizer):
        """Computer Sci / cs101* resolves against CSE semester 1"""
        result = normalizer.normalize(
            {"detectedDepartment": "Computer Sci", "results": [{"code": "cs101*", "grade": "A"}]}
        )

        assert result.stream == "CSE"
        assert result.stream_matched is True
        assert result.period == 1
        assert len(result.subjects) == 1
        subject = result.subjects[0]
        assert subject.code == "CS101"
        assert subject.name == "Programming Fundamentals"
        assert subject.credits == 4
        assert subject.grade == "A"
        assert subject.verified is True

    def test_unknown_code_kept_unverified(self, normalizer):
        result = normalizer.normalize(
            {"detectedDepartment": "CSE", "detectedSemester": 3, "results": [{"code": "XY999", "grade": "B"}]}
        )

        subject = result.subjects[0]
        assert subject.code == "XY999"
        assert subject.name == UNVERIFIED_SUBJECT_NAME
        assert subject.credits == UNVERIFIED_SUBJECT_CREDITS
        assert subject.verified is False
        assert result.unverified_codes == ["XY999"]

    def test_semester_scopes_lookup(self, normalizer):
        """CS101 is a semester-1 subject, so it is unverified in semester 3"""
        result = normalizer.normalize(
            {"detectedDepartment": "CSE", "detectedSemester": "Semester 3", "results": [{"code": "CS101", "grade": "O"}]}
        )
        assert result.period == 3
        assert result.subjects[0].verified is False

    def test_unrecognized_grade_becomes_ra(self, normalizer):
        result = normalizer.normalize(
            {"detectedDepartment": "CSE", "results": [{"code": "CS101", "grade": "Absent"}]}
        )
        assert result.subjects[0].grade == "RA"

    def test_short_codes_dropped(self, normalizer):
        result = normalizer.normalize(
            {
                "detectedDepartment": "CSE",
                "results": [
                    {"code": "S.No", "grade": "A"},
                    {"code": "1", "grade": "O"},
                    {"code": "MA101", "grade": "B+"},
                ],
            }
        )
        assert [s.code for s in result.subjects] == ["MA101"]

    def test_duplicate_code_first_kept(self, normalizer):
        result = normalizer.normalize(
            {
                "detectedDepartment": "CSE",
                "results": [{"code": "CS101", "grade": "O"}, {"code": "cs 101", "grade": "C"}],
            }
        )
        assert len(result.subjects) == 1
        assert result.subjects[0].grade == "O"

    def test_nothing_recognized(self, normalizer):
        with pytest.raises(NothingRecognizedError):
            normalizer.normalize({"detectedDepartment": "CSE", "results": [{"code": "ab", "grade": "A"}]})

    def test_empty_results(self, normalizer):
        with pytest.raises(NothingRecognizedError) as exc_info:
            normalizer.normalize({"detectedDepartment": "CSE", "results": []})
        assert "Zero records detected" in str(exc_info.value)

    def test_semester_mismatch(self, normalizer):
        with pytest.raises(PeriodMismatchError) as exc_info:
            normalizer.normalize(
                {"detectedDepartment": "CSE", "detectedSemester": 12, "results": [{"code": "CS101", "grade": "A"}]}
            )
        assert exc_info.value.max_periods == 8

    def test_malformed_payload(self, normalizer):
        with pytest.raises(MalformedExtractionError):
            normalizer.normalize({"detectedDepartment": "CSE", "results": "CS101 A"})

    def test_rejections_share_base_class(self, normalizer):
        with pytest.raises(ExtractionRejectedError):
            normalizer.normalize({"results": []})

    def test_accepts_parsed_model(self, normalizer):
        raw = RawExtraction(detected_department="ECE", results=[{"code": "EC101", "grade": "A+"}])
        result = normalizer.normalize(raw)
        assert result.stream == "ECE"
        assert result.subjects[0].credits == 4

"""
Unit Tests for the Curriculum Catalog

Tests for:
- JSON and CSV loading
- Non-credit subject filtering
- Missing / malformed catalog files
- Semester lookup errors
"""

import json

import pytest
from educalc.config import BUNDLED_CATALOG
from educalc.core.catalog import CurriculumCatalog
from educalc.core.errors import CurriculumUnavailableError, PeriodNotFoundError


CSV_HEADER = "stream,stream_name,semester,code,name,credits\n"


class TestCatalogFromDict:
    """Tests for parsing the departments structure"""

    def test_streams_loaded(self, sample_catalog):
        assert [s.id for s in sample_catalog.streams] == ["CSE", "ECE", "MBA"]
        assert sample_catalog.has_stream("cse")

    def test_non_credit_subjects_dropped(self, sample_catalog):
        codes = [s.code for s in sample_catalog.subjects("CSE", 1)]
        assert codes == ["CS101", "MA101", "PH101"]

    def test_missing_departments(self):
        with pytest.raises(CurriculumUnavailableError):
            CurriculumCatalog.from_dict({"streams": []})

    def test_invalid_subject(self):
        data = {"departments": [{"id": "CSE", "name": "CSE", "semesters": {"1": [{"code": "CS101"}]}}]}
        with pytest.raises(CurriculumUnavailableError):
            CurriculumCatalog.from_dict(data)


class TestCatalogLookup:
    """Tests for subjects() and find_subject()"""

    def test_unknown_semester(self, sample_catalog):
        with pytest.raises(PeriodNotFoundError) as exc_info:
            sample_catalog.subjects("CSE", 2)
        assert exc_info.value.period == 2

    def test_unknown_stream(self, sample_catalog):
        with pytest.raises(PeriodNotFoundError):
            sample_catalog.subjects("CIVIL", 1)

    def test_period_not_found_is_not_unavailable(self, sample_catalog):
        with pytest.raises(PeriodNotFoundError) as exc_info:
            sample_catalog.subjects("ECE", 4)
        assert not isinstance(exc_info.value, CurriculumUnavailableError)

    def test_find_subject(self, sample_catalog):
        subject = sample_catalog.find_subject("CSE", 3, "CS301")
        assert subject is not None
        assert subject.name == "Data Structures"

    def test_find_subject_missing(self, sample_catalog):
        assert sample_catalog.find_subject("CSE", 3, "CS101") is None
        assert sample_catalog.find_subject("CIVIL", 1, "CS101") is None

    def test_subjects_returns_copy(self, sample_catalog):
        sample_catalog.subjects("CSE", 3).clear()
        assert len(sample_catalog.subjects("CSE", 3)) == 2


class TestCatalogFiles:
    """Tests for loading catalog files"""

    def test_from_json(self, tmp_path, sample_catalog_data):
        path = tmp_path / "subjects.json"
        path.write_text(json.dumps(sample_catalog_data), encoding="utf-8")

        catalog = CurriculumCatalog.load(path)
        assert len(catalog.subjects("CSE", 3)) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(CurriculumUnavailableError):
            CurriculumCatalog.load(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "subjects.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CurriculumUnavailableError):
            CurriculumCatalog.load(path)

    def test_from_csv(self, tmp_path):
        path = tmp_path / "subjects.csv"
        path.write_text(
            CSV_HEADER
            + "CSE,Computer Science and Engineering,1,CS101,Programming,4\n"
            + "CSE,Computer Science and Engineering,1,MC101,Induction,0\n"
            + "CSE,Computer Science and Engineering,2,CS201,Programming in C,3\n"
            + "MBA,Master of Business Administration,1,BA101,Management,3.5\n",
            encoding="utf-8",
        )

        catalog = CurriculumCatalog.load(path)

        assert [s.id for s in catalog.streams] == ["CSE", "MBA"]
        assert [s.code for s in catalog.subjects("CSE", 1)] == ["CS101"]
        assert catalog.subjects("MBA", 1)[0].credits == 3.5
        assert catalog.get_stream("CSE").periods == [1, 2]

    def test_csv_missing_columns(self, tmp_path):
        path = tmp_path / "subjects.csv"
        path.write_text("stream,semester,code\nCSE,1,CS101\n", encoding="utf-8")
        with pytest.raises(CurriculumUnavailableError) as exc_info:
            CurriculumCatalog.load(path)
        assert "credits" in str(exc_info.value)

    def test_bundled_catalog(self):
        catalog = CurriculumCatalog.load(BUNDLED_CATALOG)
        cs101 = catalog.find_subject("CSE", 1, "CS101")
        assert cs101 is not None
        assert cs101.credits == 4
        assert catalog.has_stream("MBA")

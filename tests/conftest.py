"""
Pytest Configuration and Fixtures

Provides common fixtures for all tests including:
- Settings isolated from the environment
- A small curriculum catalog
- Scored subject / result factories
- Local store in a temporary directory
"""

import pytest
from datetime import datetime, timedelta

from educalc.config import Settings
from educalc.core.catalog import CurriculumCatalog
from educalc.core.models import CumulativeResult, Grade, History, PeriodResult, ScoredSubject
from educalc.services.local_store import LocalStore


SAMPLE_CATALOG = {
    "departments": [
        {
            "id": "CSE",
            "name": "Computer Science and Engineering",
            "semesters": {
                "1": [
                    {"code": "CS101", "name": "Programming Fundamentals", "credits": 4},
                    {"code": "MA101", "name": "Calculus", "credits": 4},
                    {"code": "PH101", "name": "Engineering Physics", "credits": 3},
                    {"code": "MC101", "name": "Induction Programme", "credits": 0},
                ],
                "3": [
                    {"code": "CS301", "name": "Data Structures", "credits": 3},
                    {"code": "CS302", "name": "Object Oriented Programming", "credits": 3},
                ],
            },
        },
        {
            "id": "ECE",
            "name": "Electronics and Communication Engineering",
            "semesters": {
                "1": [{"code": "EC101", "name": "Circuit Theory", "credits": 4}],
            },
        },
        {
            "id": "MBA",
            "name": "Master of Business Administration",
            "semesters": {
                "1": [{"code": "BA101", "name": "Principles of Management", "credits": 3}],
                "9": [{"code": "BA901", "name": "Strategic Management", "credits": 4}],
            },
        },
    ]
}


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings that ignore the developer's environment and .env file"""
    return Settings(
        _env_file=None,
        GEMINI_API_KEY="test_gemini_key",
        FIREBASE_API_KEY="test_firebase_key",
        FIREBASE_PROJECT_ID="test-project",
        DATA_DIR=tmp_path,
        EXTRACTION_TIMEOUT=5.0,
    )


@pytest.fixture
def sample_catalog_data() -> dict:
    return SAMPLE_CATALOG


@pytest.fixture
def sample_catalog() -> CurriculumCatalog:
    """Catalog with CSE, ECE and MBA streams"""
    return CurriculumCatalog.from_dict(SAMPLE_CATALOG)


@pytest.fixture
def local_store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / "storage.json")


@pytest.fixture
def scenario_a_subjects():
    """(3, O), (4, B+), (3, A) -> 8.20"""
    return [
        ScoredSubject(code="SUB001", name="Subject One", credits=3, grade=Grade.O),
        ScoredSubject(code="SUB002", name="Subject Two", credits=4, grade=Grade.B_PLUS),
        ScoredSubject(code="SUB003", name="Subject Three", credits=3, grade=Grade.A),
    ]


@pytest.fixture
def make_period_result():
    """Factory for semester results with controllable creation time"""
    base = datetime(2025, 1, 1, 9, 0, 0)

    def _make(period: int, score: float, minutes: int = 0, **kwargs) -> PeriodResult:
        return PeriodResult(
            period=period,
            stream=kwargs.pop("stream", "CSE"),
            score=score,
            created_at=base + timedelta(minutes=minutes),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_cumulative_result():
    def _make(score: float, periods_covered: int = 2, **kwargs) -> CumulativeResult:
        return CumulativeResult(score=score, periods_covered=periods_covered, **kwargs)

    return _make


@pytest.fixture
def sample_history(make_period_result, make_cumulative_result) -> History:
    """Semesters 3 (6.0) and 2 (8.0), newest first, plus one CGPA"""
    return History(
        period_results=[
            make_period_result(3, 6.0, minutes=10, id="sem3old"),
            make_period_result(2, 8.0, minutes=5, id="sem2"),
        ],
        cumulative_results=[make_cumulative_result(7.5, 2, id="cgpa1")],
    )

"""
CURRICULUM CATALOG - Stream and semester subject lists

DATA SOURCES:
✅ JSON catalog - {"departments": [{"id", "name", "semesters": {"1": [subjects]}}]}
✅ CSV catalog - one row per subject: stream, stream_name, semester, code, name, credits

VALIDATION STRATEGY:
1. Schema Validation: required keys / columns must exist
2. Subject Validation: each subject parsed through the Subject model
3. Credit Filter: zero-credit (non-credit) subjects are dropped at load time

A catalog that cannot be read raises CurriculumUnavailableError; a stream that
has no subjects for a semester raises PeriodNotFoundError.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
from pydantic import ValidationError

from .errors import CurriculumUnavailableError, PeriodNotFoundError
from .models import Stream, Subject

logger = logging.getLogger(__name__)

CSV_REQUIRED_COLUMNS = ["stream", "stream_name", "semester", "code", "name", "credits"]


class CurriculumCatalog:
    """Authoritative subject lists per stream and semester"""

    def __init__(self, streams: List[Stream]):
        self.streams: List[Stream] = list(streams)
        self._by_id: Dict[str, Stream] = {s.id: s for s in self.streams}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CurriculumCatalog":
        """Build a catalog from the parsed JSON structure"""
        departments = data.get("departments") if isinstance(data, dict) else None
        if not isinstance(departments, list):
            raise CurriculumUnavailableError("Catalog has no 'departments' list")

        streams = []
        dropped = 0
        for entry in departments:
            try:
                stream = Stream.model_validate(entry)
            except ValidationError as e:
                raise CurriculumUnavailableError(f"Invalid department entry: {e}") from e

            semesters = {}
            for period, subjects in stream.semesters.items():
                credited = [s for s in subjects if s.counts_toward_gpa]
                dropped += len(subjects) - len(credited)
                semesters[period] = credited
            streams.append(stream.model_copy(update={"semesters": semesters}))

        if dropped:
            logger.info(f"  ℹ️  Dropped {dropped} non-credit subjects")
        logger.info(f"  ✅ Loaded {len(streams)} streams")
        return cls(streams)

    @classmethod
    def from_json(cls, file_path: Union[str, Path]) -> "CurriculumCatalog":
        """Load the catalog from a subjects.json file"""
        file_path = Path(file_path)
        logger.info(f"📊 Loading curriculum catalog from: {file_path}")

        try:
            with open(file_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"  ❌ Failed to load curriculum catalog: {e}")
            raise CurriculumUnavailableError(f"Failed to load curriculum catalog: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_csv(cls, file_path: Union[str, Path]) -> "CurriculumCatalog":
        """Load the catalog from a flat CSV, one subject per row"""
        file_path = Path(file_path)
        logger.info(f"📊 Loading curriculum catalog from: {file_path}")

        try:
            df = pd.read_csv(file_path, encoding="utf-8-sig", dtype={"code": str, "stream": str})
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.error(f"  ❌ Failed to load curriculum catalog: {e}")
            raise CurriculumUnavailableError(f"Failed to load curriculum catalog: {e}") from e

        missing_columns = [col for col in CSV_REQUIRED_COLUMNS if col not in df.columns]
        if missing_columns:
            raise CurriculumUnavailableError(f"Catalog CSV missing columns: {missing_columns}")

        df = df.dropna(subset=["stream", "semester", "code"])
        df["credits"] = pd.to_numeric(df["credits"], errors="coerce").fillna(0.0)

        departments: Dict[str, Dict[str, Any]] = {}
        for _, row in df.iterrows():
            stream_id = str(row["stream"]).strip()
            dept = departments.setdefault(
                stream_id,
                {"id": stream_id, "name": str(row["stream_name"]).strip(), "semesters": {}},
            )
            period = int(row["semester"])
            dept["semesters"].setdefault(period, []).append(
                {"code": str(row["code"]), "name": str(row["name"]), "credits": float(row["credits"])}
            )

        return cls.from_dict({"departments": list(departments.values())})

    @classmethod
    def load(cls, file_path: Union[str, Path]) -> "CurriculumCatalog":
        """Load by file extension (.csv, otherwise JSON)"""
        if Path(file_path).suffix.lower() == ".csv":
            return cls.from_csv(file_path)
        return cls.from_json(file_path)

    def get_stream(self, stream_id: str) -> Optional[Stream]:
        return self._by_id.get(stream_id.strip().upper())

    def has_stream(self, stream_id: str) -> bool:
        return self.get_stream(stream_id) is not None

    def subjects(self, stream_id: str, period: int) -> List[Subject]:
        """
        Credit-bearing subjects for a stream's semester, in catalog order

        Raises:
            PeriodNotFoundError: unknown stream, or no subjects for that semester
        """
        stream = self.get_stream(stream_id)
        subjects = stream.semesters.get(period, []) if stream else []
        if not subjects:
            raise PeriodNotFoundError(stream_id, period)
        return list(subjects)

    def find_subject(self, stream_id: str, period: int, code: str) -> Optional[Subject]:
        """Exact code lookup; None when the stream/semester or code is unknown"""
        stream = self.get_stream(stream_id)
        if stream is None:
            return None
        for subject in stream.semesters.get(period, []):
            if subject.code == code:
                return subject
        return None


__all__ = ["CurriculumCatalog", "CSV_REQUIRED_COLUMNS"]

"""
Local persistence

LocalStore keeps long-lived data (the active user record, submitted feedback)
in one JSON file under DATA_DIR. SessionStore holds form drafts for the life
of the process only.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from ..config import Settings, settings as default_settings
from ..core.models import FeedbackRecord, UserRecord

logger = logging.getLogger(__name__)

STORE_FILENAME = "storage.json"
USER_DATA_KEY = "educalc_user_data"
FEEDBACK_KEY = "educalc_feedback_db"
GPA_DRAFT_KEY = "educalc_gpa_draft"
SCAN_DRAFT_KEY = "educalc_scan_draft"
AUTH_TOKEN_KEY = "educalc_auth_token"
REFRESH_TOKEN_KEY = "educalc_refresh_token"


class LocalStore:
    """Key-value JSON file, rewritten whole on every change"""

    def __init__(self, path: Optional[Union[str, Path]] = None, settings: Optional[Settings] = None):
        settings = settings or default_settings
        self.path = Path(path) if path else Path(settings.DATA_DIR) / STORE_FILENAME

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"⚠️ Ignoring unreadable local store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self.path)

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    # User record

    def load_user(self) -> Optional[UserRecord]:
        """The persisted user, or None when absent or unreadable"""
        raw = self.get(USER_DATA_KEY)
        if raw is None:
            return None
        try:
            return UserRecord.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"⚠️ Discarding unreadable user record: {e.error_count()} errors")
            return None

    def save_user(self, user: UserRecord) -> None:
        self.set(USER_DATA_KEY, user.model_dump(mode="json"))
        logger.debug(f"Saved user {user.id} to {self.path}")

    def clear_user(self) -> None:
        self.remove(USER_DATA_KEY)

    # Auth tokens

    def save_tokens(self, id_token: str, refresh_token: Optional[str] = None) -> None:
        data = self._read()
        data[AUTH_TOKEN_KEY] = id_token
        if refresh_token:
            data[REFRESH_TOKEN_KEY] = refresh_token
        self._write(data)

    def clear_tokens(self) -> None:
        data = self._read()
        removed = [data.pop(key, None) for key in (AUTH_TOKEN_KEY, REFRESH_TOKEN_KEY)]
        if any(value is not None for value in removed):
            self._write(data)

    # Feedback

    def load_feedback(self) -> List[FeedbackRecord]:
        records = []
        for raw in self.get(FEEDBACK_KEY, []):
            try:
                records.append(FeedbackRecord.model_validate(raw))
            except ValidationError:
                logger.warning("⚠️ Skipping unreadable feedback entry")
        return records

    def append_feedback(self, record: FeedbackRecord) -> None:
        entries = self.get(FEEDBACK_KEY, [])
        entries.append(record.model_dump(mode="json"))
        self.set(FEEDBACK_KEY, entries)


class SessionStore:
    """In-process key-value store for drafts"""

    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


__all__ = [
    "LocalStore",
    "SessionStore",
    "USER_DATA_KEY",
    "FEEDBACK_KEY",
    "GPA_DRAFT_KEY",
    "SCAN_DRAFT_KEY",
    "AUTH_TOKEN_KEY",
    "REFRESH_TOKEN_KEY",
]

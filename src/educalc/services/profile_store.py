"""
PROFILE STORE - Remote per-user profile documents

One document per student, keyed by register number:
    registerNumber, name, department, createdAt,
    gpaHistory  - append-only log of semester results (oldest first)
    cgpaHistory - append-only log of cumulative results (oldest first)

IMPLEMENTATIONS:
✅ InMemoryProfileStore - process-local, for offline use and tests
✅ FirestoreProfileStore - Cloud Firestore REST API; appends use the
   appendMissingElements transform so a repeated append is harmless

Appends are delivered at least once; readers rebuild History with
core.history.replay_history, which skips repeated record ids.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, Field, ValidationError

from ..config import Settings, settings as default_settings
from ..core.errors import ProfileStoreError, SessionExpiredError
from ..core.models import CumulativeResult, History, PeriodResult
from .auth import FirebaseAuthClient

logger = logging.getLogger(__name__)

FIRESTORE_URL = "https://firestore.googleapis.com/v1"

PERIOD_HISTORY_FIELD = "gpaHistory"
CUMULATIVE_HISTORY_FIELD = "cgpaHistory"

HistoryRecord = Union[PeriodResult, CumulativeResult]
RecordT = TypeVar("RecordT", PeriodResult, CumulativeResult)


class StoredProfile(BaseModel):
    """A profile document as read back from the store"""

    register_number: str
    name: str
    stream: str = ""
    period_results: List[PeriodResult] = Field(default_factory=list, description="Oldest first")
    cumulative_results: List[CumulativeResult] = Field(default_factory=list, description="Oldest first")
    created_at: Optional[int] = Field(None, description="Epoch milliseconds")


def history_field(record: HistoryRecord) -> str:
    return PERIOD_HISTORY_FIELD if isinstance(record, PeriodResult) else CUMULATIVE_HISTORY_FIELD


def profile_from_document(register_number: str, data: Dict[str, Any]) -> StoredProfile:
    """Build a StoredProfile from plain document fields"""
    return StoredProfile(
        register_number=data.get("registerNumber") or register_number,
        name=data.get("name") or "",
        stream=data.get("department") or "",
        period_results=_parse_records(PeriodResult, data.get(PERIOD_HISTORY_FIELD) or []),
        cumulative_results=_parse_records(CumulativeResult, data.get(CUMULATIVE_HISTORY_FIELD) or []),
        created_at=data.get("createdAt"),
    )


def _parse_records(model: Type[RecordT], items: List[Any]) -> List[RecordT]:
    records = []
    for item in items:
        try:
            records.append(model.model_validate(item))
        except ValidationError:
            logger.warning(f"⚠️ Skipping unreadable {model.__name__} entry in profile history")
    return records


class ProfileStore(ABC):
    """Key-value profile storage, keyed by user id"""

    @abstractmethod
    async def create_profile(self, user_id: str, name: str, stream: str) -> None:
        """Create (or overwrite) a profile with empty history"""

    @abstractmethod
    async def read_profile(self, user_id: str) -> Optional[StoredProfile]:
        """Profile, or None when no document exists"""

    @abstractmethod
    async def append_to_history(self, user_id: str, record: HistoryRecord) -> None:
        """Append one record to the matching history log"""

    @abstractmethod
    async def save_history(self, user_id: str, history: History) -> None:
        """Replace both history logs (used after deletions)"""

    def set_credentials(self, id_token: str, refresh_token: Optional[str] = None) -> None:
        """Credentials for later calls; stores without access control ignore them"""


class InMemoryProfileStore(ProfileStore):
    """Dictionary-backed store with the same append semantics as Firestore"""

    def __init__(self):
        self.documents: Dict[str, Dict[str, Any]] = {}

    async def create_profile(self, user_id: str, name: str, stream: str) -> None:
        self.documents[user_id] = _new_document(user_id, name, stream)

    async def read_profile(self, user_id: str) -> Optional[StoredProfile]:
        data = self.documents.get(user_id)
        if data is None:
            return None
        return profile_from_document(user_id, data)

    async def append_to_history(self, user_id: str, record: HistoryRecord) -> None:
        data = self.documents.get(user_id)
        if data is None:
            raise ProfileStoreError(f"No profile for {user_id}")
        entry = record.model_dump(mode="json")
        log = data[history_field(record)]
        if entry not in log:
            log.append(entry)

    async def save_history(self, user_id: str, history: History) -> None:
        data = self.documents.get(user_id)
        if data is None:
            raise ProfileStoreError(f"No profile for {user_id}")
        data.update(_history_fields(history))


class FirestoreProfileStore(ProfileStore):
    """
    Profiles in Cloud Firestore, spoken to over its REST API

    Requests carry the signed-in user's id token. ID tokens expire after an
    hour; on HTTP 401 the refresh token is exchanged through the auth client
    and the request is retried once. `on_token_refresh` receives the new pair
    so it can be persisted.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        id_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        auth_client: Optional[FirebaseAuthClient] = None,
        on_token_refresh: Optional[Callable[[str, str], None]] = None,
    ):
        self.settings = settings or default_settings
        self.project_id = self.settings.FIREBASE_PROJECT_ID
        self.collection = self.settings.PROFILE_COLLECTION
        self.timeout = self.settings.REQUEST_TIMEOUT
        self.id_token = id_token
        self.refresh_token = refresh_token
        self.auth_client = auth_client
        self.on_token_refresh = on_token_refresh

    def set_credentials(self, id_token: str, refresh_token: Optional[str] = None) -> None:
        self.id_token = id_token
        if refresh_token:
            self.refresh_token = refresh_token

    @property
    def database_path(self) -> str:
        return f"projects/{self.project_id}/databases/(default)/documents"

    def document_name(self, user_id: str) -> str:
        return f"{self.database_path}/{self.collection}/{user_id}"

    async def create_profile(self, user_id: str, name: str, stream: str) -> None:
        fields = encode_fields(_new_document(user_id, name, stream))
        await self._request("PATCH", self.document_name(user_id), json={"fields": fields})
        logger.info(f"✅ Created profile {user_id}")

    async def read_profile(self, user_id: str) -> Optional[StoredProfile]:
        response = await self._request("GET", self.document_name(user_id), allow_missing=True)
        if response is None:
            return None
        data = decode_fields(response.json().get("fields", {}))
        return profile_from_document(user_id, data)

    async def append_to_history(self, user_id: str, record: HistoryRecord) -> None:
        write = {
            "transform": {
                "document": self.document_name(user_id),
                "fieldTransforms": [
                    {
                        "fieldPath": history_field(record),
                        "appendMissingElements": {
                            "values": [encode_value(record.model_dump(mode="json"))]
                        },
                    }
                ],
            },
            "currentDocument": {"exists": True},
        }
        await self._request("POST", f"{self.database_path}:commit", json={"writes": [write]})
        logger.info(f"✅ Appended {history_field(record)} record {record.id} for {user_id}")

    async def save_history(self, user_id: str, history: History) -> None:
        params = [
            ("updateMask.fieldPaths", PERIOD_HISTORY_FIELD),
            ("updateMask.fieldPaths", CUMULATIVE_HISTORY_FIELD),
            ("currentDocument.exists", "true"),
        ]
        fields = encode_fields(_history_fields(history))
        await self._request("PATCH", self.document_name(user_id), params=params, json={"fields": fields})
        logger.info(f"✅ Rewrote history for {user_id}")

    async def _request(
        self,
        method: str,
        path: str,
        allow_missing: bool = False,
        **kwargs,
    ) -> Optional[httpx.Response]:
        """
        Make a Firestore REST request; 404 -> None when allow_missing

        Raises:
            SessionExpiredError: token rejected and no refresh was possible
            ProfileStoreError: transport failure or any other non-200 reply
        """
        if not self.project_id:
            raise ProfileStoreError("FIREBASE_PROJECT_ID is not configured")

        url = f"{FIRESTORE_URL}/{path}"
        response = await self._send(method, url, **kwargs)
        if response.status_code == 401:
            await self._refresh_session()
            response = await self._send(method, url, **kwargs)
            if response.status_code == 401:
                raise SessionExpiredError("token rejected after refresh")

        if response.status_code == 404 and allow_missing:
            return None
        if response.status_code != 200:
            logger.error(f"❌ Profile store returned HTTP {response.status_code}")
            raise ProfileStoreError(f"Profile store error ({response.status_code}): {response.text}")
        return response

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.id_token}"} if self.id_token else {}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                return await client.request(method, url, headers=headers, **kwargs)
            except httpx.HTTPError as e:
                logger.error(f"❌ Profile store request failed: {e}")
                raise ProfileStoreError(f"Profile store request failed: {e}") from e

    async def _refresh_session(self) -> None:
        if not self.refresh_token or self.auth_client is None:
            logger.warning("⚠️ Profile store rejected the session token; no refresh token available")
            raise SessionExpiredError()

        self.id_token, self.refresh_token = await self.auth_client.refresh_id_token(self.refresh_token)
        if self.on_token_refresh is not None:
            self.on_token_refresh(self.id_token, self.refresh_token)


def _new_document(user_id: str, name: str, stream: str) -> Dict[str, Any]:
    return {
        "registerNumber": user_id,
        "name": name,
        "department": stream,
        PERIOD_HISTORY_FIELD: [],
        CUMULATIVE_HISTORY_FIELD: [],
        "createdAt": int(time.time() * 1000),
    }


def _history_fields(history: History) -> Dict[str, List[Dict[str, Any]]]:
    # History is newest-first; the remote logs are oldest-first
    return {
        PERIOD_HISTORY_FIELD: [r.model_dump(mode="json") for r in reversed(history.period_results)],
        CUMULATIVE_HISTORY_FIELD: [r.model_dump(mode="json") for r in reversed(history.cumulative_results)],
    }


# =========================
# Firestore value codec
# =========================

def encode_value(value: Any) -> Dict[str, Any]:
    """Python value -> Firestore typed Value"""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    raise TypeError(f"Cannot encode {type(value).__name__} as a Firestore value")


def encode_fields(data: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    return {key: encode_value(value) for key, value in data.items()}


def decode_value(value: Dict[str, Any]) -> Any:
    """Firestore typed Value -> Python value"""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "timestampValue" in value:
        return value["timestampValue"]
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    raise ProfileStoreError(f"Unsupported Firestore value: {sorted(value)}")


def decode_fields(fields: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    return {key: decode_value(value) for key, value in fields.items()}


__all__ = [
    "StoredProfile",
    "ProfileStore",
    "InMemoryProfileStore",
    "FirestoreProfileStore",
    "PERIOD_HISTORY_FIELD",
    "CUMULATIVE_HISTORY_FIELD",
    "encode_value",
    "decode_value",
    "encode_fields",
    "decode_fields",
    "profile_from_document",
]

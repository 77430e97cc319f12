"""External collaborators: AI extraction, image preparation, auth, profile and local storage"""

from .auth import AuthSession, FirebaseAuthClient
from .extraction_service import ExtractionClient, GeminiExtractionClient
from .imaging import compress_image, encode_image, read_image
from .local_store import LocalStore, SessionStore
from .profile_store import (
    FirestoreProfileStore,
    InMemoryProfileStore,
    ProfileStore,
    StoredProfile,
)

__all__ = [
    "AuthSession",
    "FirebaseAuthClient",
    "ExtractionClient",
    "GeminiExtractionClient",
    "compress_image",
    "encode_image",
    "read_image",
    "LocalStore",
    "SessionStore",
    "ProfileStore",
    "InMemoryProfileStore",
    "FirestoreProfileStore",
    "StoredProfile",
]

"""
ACCOUNT SERVICE - Guest sessions, login, and committing results to history

SAVE POLICY:
✅ Guests: results are committed to the local user record only
✅ Registered users: the remote profile store is written first; the local
   History changes only after the remote write succeeds
✅ Semester results replace the same semester; cumulative results accumulate
✅ After a guest saves, the outcome asks the caller to suggest registering
"""

import logging
from typing import Optional, Union

from pydantic import BaseModel

from ..core.errors import AuthError
from ..core.history import (
    append_cumulative_result,
    delete_result,
    replay_history,
    upsert_period_result,
)
from ..core.models import CumulativeResult, History, PeriodResult, UserRecord
from ..core.models.records import DEFAULT_SCHOLAR_NAME
from ..services.auth import FirebaseAuthClient
from ..services.local_store import LocalStore
from ..services.profile_store import ProfileStore, StoredProfile

logger = logging.getLogger(__name__)

PIONEER_BADGE = "pioneer"


class SaveOutcome(BaseModel):
    """Result of committing a record"""

    user: UserRecord
    record: Union[PeriodResult, CumulativeResult]
    prompt_register: bool = False


class AccountService:
    """Owns the acting user's record and every path that changes its History"""

    def __init__(
        self,
        local_store: LocalStore,
        profile_store: Optional[ProfileStore] = None,
        auth_client: Optional[FirebaseAuthClient] = None,
    ):
        self.local_store = local_store
        self.profile_store = profile_store
        self.auth_client = auth_client

    # =========================
    # Sessions
    # =========================

    def current_user(self) -> UserRecord:
        """The persisted user, or a fresh guest when there is none"""
        user = self.local_store.load_user()
        if user is None:
            user = self.start_guest()
        return user

    def start_guest(self) -> UserRecord:
        user = UserRecord.new_guest()
        self.local_store.save_user(user)
        logger.info(f"👤 Started guest session {user.id}")
        return user

    async def login(
        self, register_number: str, password: str, name: str = "", stream: str = ""
    ) -> UserRecord:
        """
        Sign in (registering on first use) and load the remote profile

        A profile document is created when the account has none yet. Local
        guest history is not carried over.

        Raises:
            InvalidCredentialsError: wrong password for an existing account
            AuthError: provider or transport failure
            ProfileStoreError: the profile could not be read or created
        """
        if self.auth_client is None or self.profile_store is None:
            raise AuthError("Login is not configured (set FIREBASE_API_KEY and FIREBASE_PROJECT_ID)")

        session = await self.auth_client.login_or_register(register_number, password)
        self.profile_store.set_credentials(session.id_token, session.refresh_token)
        self.local_store.save_tokens(session.id_token, session.refresh_token)

        user_id = session.register_number
        profile = await self.profile_store.read_profile(user_id)
        if profile is None:
            await self.profile_store.create_profile(user_id, name or DEFAULT_SCHOLAR_NAME, stream)
            profile = StoredProfile(
                register_number=user_id, name=name or DEFAULT_SCHOLAR_NAME, stream=stream
            )

        user = UserRecord(
            id=user_id,
            register_number=profile.register_number or user_id,
            name=profile.name or name or DEFAULT_SCHOLAR_NAME,
            stream=profile.stream or stream,
            history=replay_history(profile.period_results, profile.cumulative_results),
            badges=[PIONEER_BADGE],
        )
        self.local_store.save_user(user)
        logger.info(
            f"✅ Logged in {user.register_number} "
            f"({len(user.history.period_results)} semester results)"
        )
        return user

    def logout(self, user: UserRecord) -> UserRecord:
        """Drop the local session and start a fresh guest"""
        if user.is_guest:
            logger.info(f"🗑️ Clearing local data for guest {user.id}")
        else:
            logger.info(f"👋 Signed out {user.register_number}")
        self.local_store.clear_user()
        self.local_store.clear_tokens()
        return self.start_guest()

    # =========================
    # History changes
    # =========================

    async def save_period_result(self, user: UserRecord, result: PeriodResult) -> SaveOutcome:
        """Commit a semester result, replacing any earlier one for that semester"""
        await self._push(user, result)
        user = self._commit(user, upsert_period_result(user.history, result))
        logger.info(f"💾 Saved semester {result.period} GPA {result.score:.2f} for {user.id}")
        return SaveOutcome(user=user, record=result, prompt_register=user.is_guest)

    async def save_cumulative_result(self, user: UserRecord, result: CumulativeResult) -> SaveOutcome:
        """Commit a cumulative result; earlier ones are kept"""
        await self._push(user, result)
        user = self._commit(user, append_cumulative_result(user.history, result))
        logger.info(f"💾 Saved CGPA {result.score:.2f} over {result.periods_covered} semesters for {user.id}")
        return SaveOutcome(user=user, record=result, prompt_register=user.is_guest)

    async def delete_record(self, user: UserRecord, record_id: str) -> UserRecord:
        """Remove a record; unknown ids leave the user unchanged"""
        history = delete_result(user.history, record_id)
        if history is user.history:
            return user

        if self._is_remote(user):
            await self.profile_store.save_history(user.id, history)
        return self._commit(user, history)

    async def refresh(self, user: UserRecord) -> UserRecord:
        """Reload a registered user's History from the profile store"""
        if not self._is_remote(user):
            return user

        profile = await self.profile_store.read_profile(user.id)
        if profile is None:
            logger.warning(f"⚠️ No remote profile for {user.id}; keeping local history")
            return user
        return self._commit(user, replay_history(profile.period_results, profile.cumulative_results))

    def _is_remote(self, user: UserRecord) -> bool:
        return not user.is_guest and self.profile_store is not None

    async def _push(self, user: UserRecord, record: Union[PeriodResult, CumulativeResult]) -> None:
        if self._is_remote(user):
            await self.profile_store.append_to_history(user.id, record)

    def _commit(self, user: UserRecord, history: History) -> UserRecord:
        user = user.with_history(history)
        self.local_store.save_user(user)
        return user


__all__ = ["AccountService", "SaveOutcome", "PIONEER_BADGE"]

"""
Firebase Authentication via the Identity Toolkit REST API

Students log in with a register number; it is mapped onto an email address
(`<register>@<LOGIN_EMAIL_DOMAIN>`) because the identity provider only knows
email/password accounts. Signing in to an account that does not exist yet
registers it.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import httpx
from pydantic import BaseModel, Field

from ..config import Settings, settings as default_settings
from ..core.errors import (
    AccountExistsError,
    AccountNotFoundError,
    AuthError,
    InvalidCredentialsError,
    SessionExpiredError,
)

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

# Identity Toolkit error codes -> exception types
_ERROR_MAP = {
    "EMAIL_NOT_FOUND": AccountNotFoundError,
    # Returned instead of EMAIL_NOT_FOUND / INVALID_PASSWORD when email
    # enumeration protection is on; sign-up then tells the two apart.
    "INVALID_LOGIN_CREDENTIALS": AccountNotFoundError,
    "INVALID_PASSWORD": InvalidCredentialsError,
    "EMAIL_EXISTS": AccountExistsError,
    # Secure Token refresh failures
    "TOKEN_EXPIRED": SessionExpiredError,
    "INVALID_REFRESH_TOKEN": SessionExpiredError,
    "USER_NOT_FOUND": SessionExpiredError,
    "USER_DISABLED": SessionExpiredError,
}


class AuthSession(BaseModel):
    """Signed-in account"""

    uid: str = Field(..., description="Provider user id (localId)")
    id_token: str = Field(..., description="Bearer token for the profile store")
    refresh_token: Optional[str] = Field(None, description="Exchanged for a new id_token when it expires")
    register_number: str
    email: str
    is_new_account: bool = False


class FirebaseAuthClient:
    """Register-number login against Firebase Authentication"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.api_key = self.settings.FIREBASE_API_KEY
        self.timeout = self.settings.REQUEST_TIMEOUT

    def make_login_email(self, register_number: str) -> str:
        return f"{register_number.strip()}@{self.settings.LOGIN_EMAIL_DOMAIN}"

    async def sign_in(self, register_number: str, password: str) -> AuthSession:
        data = await self._identity_request(
            "accounts:signInWithPassword", self._credentials(register_number, password)
        )
        logger.info(f"✅ Signed in {register_number}")
        return self._session(register_number, data)

    async def sign_up(self, register_number: str, password: str) -> AuthSession:
        data = await self._identity_request(
            "accounts:signUp", self._credentials(register_number, password)
        )
        logger.info(f"✅ Registered {register_number}")
        return self._session(register_number, data, is_new_account=True)

    async def login_or_register(self, register_number: str, password: str) -> AuthSession:
        """
        Sign in, creating the account when it does not exist

        Raises:
            InvalidCredentialsError: account exists and the password is wrong
            AuthError: any other provider or transport failure
        """
        if not register_number.strip() or not password:
            raise InvalidCredentialsError("Register number and password are required")

        try:
            return await self.sign_in(register_number, password)
        except AccountNotFoundError:
            logger.info(f"ℹ️ No account for {register_number} - registering")

        try:
            return await self.sign_up(register_number, password)
        except AccountExistsError as e:
            raise InvalidCredentialsError("Access credentials invalid") from e

    def _credentials(self, register_number: str, password: str) -> Dict[str, Any]:
        return {
            "email": self.make_login_email(register_number),
            "password": password,
            "returnSecureToken": True,
        }

    def _session(self, register_number: str, data: Dict[str, Any], is_new_account: bool = False) -> AuthSession:
        try:
            return AuthSession(
                uid=data["localId"],
                id_token=data["idToken"],
                refresh_token=data.get("refreshToken"),
                register_number=register_number.strip(),
                email=data.get("email", self.make_login_email(register_number)),
                is_new_account=is_new_account,
            )
        except KeyError as e:
            raise AuthError(f"Incomplete authentication response: missing {e}") from e

    async def refresh_id_token(self, refresh_token: str) -> Tuple[str, str]:
        """
        Exchange a refresh token for a fresh (id_token, refresh_token) pair

        Raises:
            SessionExpiredError: the refresh token was rejected
            AuthError: transport failure or incomplete response
        """
        payload = {"grant_type": "refresh_token", "refresh_token": refresh_token}
        data = await self._post(SECURE_TOKEN_URL, "token refresh", data=payload)
        try:
            tokens = data["id_token"], data["refresh_token"]
        except KeyError as e:
            raise AuthError(f"Incomplete token refresh response: missing {e}") from e
        logger.info("🔑 Refreshed session token")
        return tokens

    async def _identity_request(self, action: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST to an Identity Toolkit endpoint and map provider errors"""
        return await self._post(f"{IDENTITY_TOOLKIT_URL}/{action}", action, json=payload)

    async def _post(self, url: str, action: str, **kwargs) -> Dict[str, Any]:
        if not self.api_key:
            raise AuthError("FIREBASE_API_KEY is not configured")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(url, params={"key": self.api_key}, **kwargs)
            except httpx.HTTPError as e:
                logger.error(f"❌ Authentication request failed: {e}")
                raise AuthError(f"Authentication request failed: {e}") from e

        if response.status_code == 200:
            return response.json()

        code = _error_code(response)
        error_class = _ERROR_MAP.get(code, AuthError)
        logger.warning(f"⚠️ {action} rejected: {code or response.status_code}")
        raise error_class(f"Authentication failed: {code or response.text}")


def _error_code(response: httpx.Response) -> str:
    """'WEAK_PASSWORD : Password should be ...' -> 'WEAK_PASSWORD'"""
    try:
        message = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return ""
    return str(message).split(":")[0].strip()


__all__ = ["AuthSession", "FirebaseAuthClient", "IDENTITY_TOOLKIT_URL", "SECURE_TOKEN_URL"]

"""
Error taxonomy for EduCalc

Each external-failure kind gets its own class so the calling layer can pick the
right remedy: retry for connectivity, retake the photo for extraction rejections,
and treat timeouts as "outcome unknown".
"""


class EduCalcError(Exception):
    """Base class for all EduCalc errors"""


# Validation refusals (flow gates invoked while closed)
class ValidationRefusal(EduCalcError):
    """A flow action was invoked while its readiness gate is closed"""


class IncompleteSelectionError(ValidationRefusal):
    """Not every subject/period has a value yet"""


class OwnershipNotConfirmedError(ValidationRefusal):
    """The user has not confirmed the result is their own"""


class InvalidFeedbackError(ValidationRefusal):
    """Rating is zero or the comment is blank"""


# Curriculum catalog
class CurriculumUnavailableError(EduCalcError):
    """The catalog could not be loaded or parsed"""


class PeriodNotFoundError(EduCalcError):
    """The stream has no curriculum for the requested period"""

    def __init__(self, stream: str, period: int):
        super().__init__(f"No curriculum for {stream} semester {period}")
        self.stream = stream
        self.period = period


# AI extraction
class ExtractionError(EduCalcError):
    """Base class for everything that can go wrong while scanning a marksheet"""


class ExtractionServiceError(ExtractionError):
    """The extraction service failed (network, HTTP status, unreadable reply)"""


class ExtractionTimeoutError(ExtractionError):
    """The extraction call did not finish in time; its outcome is unknown"""


class ExtractionRejectedError(ExtractionError):
    """The service answered, but the answer cannot be used"""


class MalformedExtractionError(ExtractionRejectedError):
    """The service reply does not have the expected structure"""


class NothingRecognizedError(ExtractionRejectedError):
    """No row survived normalization"""

    def __init__(self, message: str = "Zero records detected. Is the image clear?"):
        super().__init__(message)


class PeriodMismatchError(ExtractionRejectedError):
    """The detected semester does not exist for the resolved stream"""

    def __init__(self, stream: str, period: int, max_periods: int):
        super().__init__(
            f"Detected semester {period} is outside 1-{max_periods} for {stream}"
        )
        self.stream = stream
        self.period = period
        self.max_periods = max_periods


# Identity / profile store
class AuthError(EduCalcError):
    """Authentication service failure"""


class InvalidCredentialsError(AuthError):
    """Password rejected for an existing account"""


class AccountNotFoundError(AuthError):
    """No account exists for the register number"""


class AccountExistsError(AuthError):
    """Sign-up attempted for a register number that already has an account"""


class SessionExpiredError(AuthError):
    """Stored credentials were rejected and could not be refreshed"""

    def __init__(self, detail: str = ""):
        message = "Session expired - log in again with `educalc login`"
        super().__init__(f"{message} ({detail})" if detail else message)


class ProfileStoreError(EduCalcError):
    """Remote profile store call failed"""


__all__ = [
    "EduCalcError",
    "ValidationRefusal",
    "IncompleteSelectionError",
    "OwnershipNotConfirmedError",
    "InvalidFeedbackError",
    "CurriculumUnavailableError",
    "PeriodNotFoundError",
    "ExtractionError",
    "ExtractionServiceError",
    "ExtractionTimeoutError",
    "ExtractionRejectedError",
    "MalformedExtractionError",
    "NothingRecognizedError",
    "PeriodMismatchError",
    "AuthError",
    "InvalidCredentialsError",
    "AccountNotFoundError",
    "AccountExistsError",
    "SessionExpiredError",
    "ProfileStoreError",
]

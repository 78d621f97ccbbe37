"""
Console Errors

Error taxonomy for console operations and the mapping from backend error
codes to operator-facing messages.
"""

GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again."

_CODE_MESSAGES = {
    "EMAIL_ALREADY_EXISTS": "This email is already registered by another admin.",
    "PHONE_ALREADY_EXISTS": "This phone number is already registered by another admin.",
    "MOSQUE_NOT_FOUND": "Mosque not found.",
    "ADMIN_NOT_FOUND": "Admin not found.",
    "AUTO_BANNED": (
        "This admin has been rejected 3 or more times and cannot be allowed to reapply."
    ),
    "REAPPLICATION_ALREADY_ALLOWED": "This admin is already allowed to reapply.",
    "RATE_LIMIT_EXCEEDED": "Too many requests. Please wait a moment and try again.",
    "NOT_AUTHENTICATED": "Your session has expired. Please log in again.",
    "INVALID_TOKEN": "Your session has expired. Please log in again.",
}


def message_for_code(
    code: str | None,
    details: dict | None = None,
    fallback: str = GENERIC_FAILURE_MESSAGE,
) -> str:
    """
    Human message for a backend error code.

    ``ADMIN_ALREADY_EXISTS`` names the mosque's current admin when the
    backend supplied it. Unknown codes get ``fallback``.
    """
    details = details or {}

    if code == "ADMIN_ALREADY_EXISTS":
        existing = details.get("existing_admin") or {}
        name = existing.get("name") or details.get("admin_name")
        if name:
            return f"This mosque already has an approved admin: {name}"
        return "This mosque already has an approved admin."

    return _CODE_MESSAGES.get(code or "", fallback)


class ConsoleError(Exception):
    """Base class for console operation failures."""

    retryable = False

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code
        super().__init__(message)


class ConsoleValidationError(ConsoleError):
    """Input rejected locally; nothing was sent to the backend."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code)


class AutoBannedError(ConsoleValidationError):
    def __init__(self, message: str | None = None):
        super().__init__(message or _CODE_MESSAGES["AUTO_BANNED"], "AUTO_BANNED")


class ConsoleConflictError(ConsoleError):
    """The backend refused the request with a structured error code."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, code)
        self.status_code = status_code
        self.details = details or {}


class ConsoleTransientError(ConsoleError):
    """Network failure or server error; the underlying message is kept verbatim."""

    retryable = True

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, "TRANSIENT_ERROR")
        self.status_code = status_code


class ConsoleRequestError(ConsoleError):
    """The backend refused the request without an error code; the message is kept verbatim."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, "REQUEST_REJECTED")
        self.status_code = status_code

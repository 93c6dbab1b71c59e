from typing import Optional


class VerificationError(Exception):
    """Base error for the verification API.

    `message` is safe to show to the client; `detail` carries the underlying
    cause and is only echoed back in development mode.
    """

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(VerificationError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(VerificationError):
    status_code = 401
    default_message = "Please log in to continue"


class NotFound(VerificationError):
    status_code = 404
    default_message = "Verification data not found"


class StorageError(VerificationError):
    status_code = 500
    default_message = "Failed to access verification data"


class ClassifierUnavailable(VerificationError):
    """Upstream vision classifier failed or timed out. Safe to retry."""

    status_code = 503
    default_message = "Identity verification service is temporarily unavailable. Please try again."
    retryable = True

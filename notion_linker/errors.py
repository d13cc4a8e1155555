"""
Exceptions raised by the Notion relation linker.
"""

from typing import Optional

# Status codes worth another attempt: conflict, rate limit, server side
RETRYABLE_STATUS_CODES = {409, 429, 500, 502, 503, 504}


class NotionLinkerError(Exception):
    """Base class for linker errors."""


class ConfigurationError(NotionLinkerError, RuntimeError):
    """Required configuration is missing. Fatal at startup."""


class RemoteOperationError(NotionLinkerError):
    """A Notion API call failed (network, auth, rate limit, schema mismatch)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code

    @property
    def retryable(self) -> bool:
        # No status means the request never got a response
        if self.status_code is None:
            return True
        return self.status_code in RETRYABLE_STATUS_CODES


class RetryExhaustedError(NotionLinkerError):
    """A pass kept failing until the attempt cap was reached."""

    def __init__(self, name: str, attempts: int, last_error: Optional[BaseException] = None):
        super().__init__(
            f"{name} failed after {attempts} attempt(s): {last_error}"
        )
        self.name = name
        self.attempts = attempts
        self.last_error = last_error

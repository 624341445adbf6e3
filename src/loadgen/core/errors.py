"""Error taxonomy for the load generator."""
from typing import Optional


class LoadGenError(Exception):
    """Base class for load generator errors."""


class ConfigurationError(LoadGenError):
    """Invalid startup parameters. The test must not start."""


class RequestFailure(LoadGenError):
    """A single request failed (timeout, connection error, non-2xx status).

    Non-fatal: counted against the term and the loop moves on.
    """

    def __init__(
        self,
        term: str,
        url: str,
        status_code: Optional[int] = None,
        reason: str = "",
    ):
        self.term = term
        self.url = url
        self.status_code = status_code
        self.reason = reason
        detail = f"HTTP {status_code}" if status_code is not None else reason
        super().__init__(f"GET {url} failed: {detail}")


class CancellationError(LoadGenError):
    """Raised inside a virtual user when the test deadline fires."""


class VirtualUserStartupError(LoadGenError):
    """A virtual user could not initialize."""

    def __init__(self, user_id: int, reason: str = ""):
        self.user_id = user_id
        super().__init__(f"Virtual user {user_id} failed to start: {reason}")

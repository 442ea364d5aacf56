"""
Domain exceptions.

Defines categorized exception types for the monitoring core.
"""


class RateWatchError(Exception):
    """Base class for all rate watch errors."""


class SessionNotFoundError(RateWatchError):
    """Raised when a monitor session id does not exist."""

    def __init__(self, session_id: int) -> None:
        super().__init__(f"Monitor session {session_id} not found")
        self.session_id = session_id


class MissingPreconditionError(RateWatchError):
    """
    Raised when an active session lacks its profile or user record.

    This is a data-integrity problem, not a normal evaluation outcome.
    """


class ActiveSessionExistsError(RateWatchError):
    """Raised when an operation would leave a user with two active sessions."""

    def __init__(self, user_id: int, session_id: int) -> None:
        super().__init__(
            f"User {user_id} already has active session {session_id}"
        )
        self.user_id = user_id
        self.session_id = session_id


class ProfileValidationError(RateWatchError):
    """Raised when submitted thresholds fail validation."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__(", ".join(errors))
        self.errors = errors

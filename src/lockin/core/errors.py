"""Error taxonomy shared by the tracker components.

Three families matter to callers:

- ``ValidationError``: bad input or credentials. Carries a message meant for
  the user and is never retried.
- ``TransientStorageError``: the document store could not be reached or a
  write failed. Timer internals log it and rely on the local backup and the
  next sweep instead of surfacing it.
- ``LogicError``: a caller bug, such as adding time to a day that was already
  finalized. Logged loudly; retrying will not help.
"""

from __future__ import annotations


class LockinError(RuntimeError):
    """Base class for all tracker errors."""


class ValidationError(LockinError):
    """Input rejected before any state changed."""

    message = "Authentication error. Please try again"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MissingCredentials(ValidationError):
    message = "Please enter both email and password"


class WeakPassword(ValidationError):
    message = "Password is too weak"


class EmailInUse(ValidationError):
    message = "An account with this email already exists"


class InvalidEmail(ValidationError):
    message = "Invalid email address"


class UserNotFound(ValidationError):
    message = "No account found with this email address"


class WrongPassword(ValidationError):
    message = "Incorrect password"


class TooManyRequests(ValidationError):
    message = "Too many failed attempts. Please try again later"


class InvalidDelta(ValidationError):
    """Raised when a ledger increment is smaller than one second."""

    def __init__(self, delta_seconds: int) -> None:
        self.delta_seconds = delta_seconds
        super().__init__(f"Increment must be at least 1 second (got {delta_seconds})")


class TransientStorageError(LockinError):
    """The document store is unavailable or rejected a write."""


class DocumentNotFound(LockinError):
    """A partial update targeted a document that does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Document {path} does not exist")


class LogicError(LockinError):
    """A caller broke an invariant; fix the caller rather than retrying."""


class DayAlreadyFinalized(LogicError):
    """Raised when time is added to a day that has been closed."""

    def __init__(self, date: str) -> None:
        self.date = date
        super().__init__(f"Day {date} is already finalized")

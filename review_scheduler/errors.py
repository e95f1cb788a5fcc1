class SchedulerError(Exception):
    """Base class for review scheduler failures."""

    retryable = False


class ValidationError(SchedulerError, ValueError):
    """Input outside its domain; rejected before any state is touched."""


class NotFoundError(SchedulerError, LookupError):
    """Flashcard or schedule row does not exist."""


class PersistenceError(SchedulerError):
    """Store unavailable or write failed; nothing was applied."""

    retryable = True


class ConcurrencyConflict(SchedulerError):
    """The store rejected a write that raced with another one for the same key.

    Reload and resubmit.
    """

    retryable = True

"""Error taxonomy for the notification engine.

Every error is caught at the boundary of the component that raises it and
turned into a log line. None of them reach the user.
"""


class NudgeboxError(Exception):
    """Base class for nudgebox errors."""


class StreamConnectionError(NudgeboxError):
    """The push channel transport failed. Always retried with backoff."""


class ParseError(NudgeboxError):
    """A single message or poll record could not be understood."""


class SourceFetchError(NudgeboxError):
    """A poll source failed for one cycle."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class PersistenceError(NudgeboxError):
    """The key-value store could not be read or written."""


class PermissionDenied(NudgeboxError):
    """The platform refused (or cannot show) desktop notifications."""

from __future__ import annotations


class SettingsError(Exception):
    """Base class for errors raised by the settings store."""


class OperationCancelled(SettingsError):
    """The bound operation context was cancelled before a statement ran."""


class DeadlineExceeded(OperationCancelled):
    """The bound operation context ran past its deadline."""


class SettingsStoreError(SettingsError):
    """A store call failed.

    The message is prefixed with the operation that failed, e.g.
    ``failed to update global settings: <cause>``. The cause is chained.
    """

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"{operation}: {cause}")
        self.operation = operation
        self.cause = cause

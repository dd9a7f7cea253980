"""Preview failures with the message and recovery actions shown to the user."""

from enum import Enum


class RecoveryAction(str, Enum):
    """What the preview panel offers after a failure."""

    RETRY = "retry"
    DOWNLOAD = "download"


class PreviewError(Exception):
    """Base class for failures shown in the preview panel.

    Attributes:
        message: Text shown to the user.
        actions: Recovery actions the panel should offer.
    """

    default_message = "Preview unavailable"
    default_actions: frozenset[RecoveryAction] = frozenset()

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        self.actions = self.default_actions
        super().__init__(self.message)


class NoFileAttachedError(PreviewError):
    """The document has neither a storage path nor inline text."""

    default_message = "No file attached to this document"


class FetchFailedError(PreviewError):
    """Every storage area failed to return the file."""

    default_message = "Unable to load the file"
    default_actions = frozenset({RecoveryAction.RETRY, RecoveryAction.DOWNLOAD})

    def __init__(self, attempts: list[str], message: str | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts


class DecodeFailedError(PreviewError):
    """The bytes were fetched but could not be converted for display."""

    default_message = "Unable to read this file"
    default_actions = frozenset({RecoveryAction.DOWNLOAD})


class UnsupportedFormatError(PreviewError):
    """No renderer exists for this file type."""

    default_message = "Preview is not available for this format"
    default_actions = frozenset({RecoveryAction.DOWNLOAD})

"""
Exception hierarchy for errlocal.

Contract violations raise immediately; operational failures are raised by the
collaborator adapters and caught by the CLI at the nearest boundary.
"""


class ErrLocalError(Exception):
    """Base class for all errlocal errors."""


class InvalidFixActionError(ErrLocalError, ValueError):
    """Raised when a fix descriptor is missing filePath, lineNumber or code."""


class CommandNotFoundError(ErrLocalError):
    """Raised when the wrapped command cannot be spawned at all."""


class AnalyzerError(ErrLocalError):
    """Raised when the AI analysis call fails or returns unusable output."""


class TranslationError(ErrLocalError):
    """Raised when localization of an analysis fails."""


class BackendError(ErrLocalError):
    """Raised when the remote log backend rejects a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

"""Domain exception hierarchy for data-repair runs."""

from __future__ import annotations


class AppException(Exception):
    """Base exception for all data-repair errors.

    Subclasses set ``code`` and ``exit_code`` at the class level; callers
    provide ``message`` and an optional ``details`` list.
    """

    code: str = "APP_ERROR"
    exit_code: int = 1

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []


class RecordStoreUnavailableException(AppException):
    code = "RECORD_STORE_UNAVAILABLE"
    exit_code = 2


class MalformedDocumentException(AppException):
    code = "MALFORMED_DOCUMENT"


class ConfigurationException(AppException):
    code = "CONFIGURATION_ERROR"
    exit_code = 3


class ConfirmationRequiredException(AppException):
    code = "CONFIRMATION_REQUIRED"
    exit_code = 4

# app/core/errors.py
from datetime import datetime
from typing import List, Optional


class SuggestionError(Exception):
    """Base class for everything the suggestion flow can surface to a user."""

    kind = "suggestion_error"
    retriable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(SuggestionError):
    kind = "validation_failed"

    def __init__(self, missing_fields: List[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(f"The following fields are required: {', '.join(self.missing_fields)}")


class AuthRequired(SuggestionError):
    kind = "auth_required"

    def __init__(self, message: str = "Please sign in to use AI suggestions."):
        super().__init__(message)


class QuotaExceeded(SuggestionError):
    kind = "quota_exceeded"

    def __init__(
        self,
        reason: str,
        message: str,
        reset_time: Optional[datetime] = None,
        title: Optional[str] = None,
        server_confirmed: bool = False,
    ):
        super().__init__(message)
        self.reason = reason
        self.reset_time = reset_time
        self.title = title
        self.server_confirmed = server_confirmed


class ProviderError(SuggestionError):
    """Completion provider answered with an error or an unreadable body."""

    kind = "provider_error"
    retriable = True

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EmptyCompletion(ProviderError):
    kind = "empty_completion"

    def __init__(self, message: str = "The completion provider returned no text."):
        super().__init__(message)


class PersistenceWarning(SuggestionError):
    """Usage upsert failed after a successful generation. Logged, never raised to users."""

    kind = "persistence_warning"


class NetworkError(SuggestionError):
    kind = "network_error"
    retriable = True


class GenerationFailed(SuggestionError):
    kind = "generation_failed"
    retriable = True

    def __init__(self, message: str = "Failed to generate an AI suggestion. Please try again.", details: Optional[str] = None):
        super().__init__(message)
        self.details = details


class GenerationInProgress(SuggestionError):
    kind = "generation_in_progress"

    def __init__(self, message: str = "A suggestion is already being generated."):
        super().__init__(message)

"""Exception taxonomy for the grounded answer pipeline."""

from __future__ import annotations


class TutorError(RuntimeError):
    """Base class for errors surfaced to API callers."""


class QuestionValidationError(TutorError):
    """Raised when the submitted question is missing or malformed."""


class ConfigurationError(TutorError):
    """Raised when a required provider has no credentials configured."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"{provider} API key not configured")


class UpstreamProviderError(TutorError):
    """Raised when an embedding or generation call fails or times out."""

    def __init__(self, stage: str, message: str = "Failed to generate answer") -> None:
        self.stage = stage
        super().__init__(message)

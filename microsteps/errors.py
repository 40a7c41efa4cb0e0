from __future__ import annotations


class MicrostepsError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MicrostepsError):
    """Bad or missing input; rejected immediately, never retried."""

    status_code = 400


class ContentPolicyError(MicrostepsError):
    """Input matched the unsafe-content filter; never delegated."""

    status_code = 400


class RateLimitError(MicrostepsError):
    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded") -> None:
        super().__init__(message)


class ProviderError(MicrostepsError):
    """The completion provider failed, timed out or returned unusable output.

    Always recovered locally; callers fall back to deterministic text.
    """

    status_code = 502


class InternalError(MicrostepsError):
    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)

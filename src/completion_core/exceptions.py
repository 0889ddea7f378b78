"""
Exceptions raised by the invocation core.

The hierarchy separates fatal configuration mistakes (never retried) from
transport failures (subject to the retry policy) and limiter timeouts.
Callers can catch CompletionCoreError to handle any of them at once.
"""

from typing import Any, Optional


class CompletionCoreError(Exception):
    """
    Base exception for all invocation core errors.

    Attributes:
        message: Human-readable description
        details: Structured context for logging and debugging
    """
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(CompletionCoreError):
    """
    Raised for invalid or ambiguous configuration.

    Examples:
    - Missing provider API key
    - Streaming combined with n > 1 or best_of > 1
    - Stop sequences given both at construction and per call
    - Cache requested but no cache backend configured

    Always fatal: surfaced immediately and never retried.
    """
    pass


class UnknownTypeError(ConfigurationError):
    """Raised when a serialized LLM carries an unrecognized `_type`."""
    pass


# Status codes worth another attempt: timeouts, conflicts, rate limits.
RETRYABLE_STATUS_CODES = frozenset({408, 409, 429})


class TransportError(CompletionCoreError):
    """
    Raised when the provider cannot be reached or answers with an error.

    Covers network failures (no status code), non-2xx responses and
    malformed response bodies. Whether the retry executor re-attempts the
    call is decided by `retryable`.
    """
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        retryable: Optional[bool] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self._retryable = retryable

    @property
    def retryable(self) -> bool:
        if self._retryable is not None:
            return self._retryable
        if self.status_code is None:
            return True
        return self.status_code in RETRYABLE_STATUS_CODES or self.status_code >= 500


class StreamError(TransportError):
    """
    Raised when an event stream is malformed or ends before the sentinel.

    Streams cannot be resumed, so a retry restarts the whole request.
    """
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, status_code=None, details=details, retryable=True)


class InvocationTimeoutError(CompletionCoreError, TimeoutError):
    """
    Raised by the concurrency limiter when an admitted operation overruns
    its timeout. The limiter does not retry it.
    """
    pass

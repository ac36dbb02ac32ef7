"""Error taxonomy for the evaluation pipeline and job lifecycle.

Every error carries an ``ErrorKind`` so that a failed job can record *why*
it failed, not just that it did.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Classification persisted alongside a failed job."""

    INPUT_UNREADABLE = "input_unreadable"
    PROVIDER_QUOTA_EXCEEDED = "provider_quota_exceeded"
    PROVIDER_SAFETY_BLOCKED = "provider_safety_blocked"
    PROVIDER_EMPTY_RESPONSE = "provider_empty_response"
    PROVIDER_ERROR = "provider_error"
    CONTEXT_UNAVAILABLE = "context_unavailable"
    RESULT_UNPARSABLE = "result_unparsable"
    STORE_WRITE_ERROR = "store_write_error"
    INTERNAL_ERROR = "internal_error"


class EvaluationError(Exception):
    """Base class for all classified evaluation errors."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR


# ---------------------------------------------------------------------------
# Document loading
# ---------------------------------------------------------------------------


class DocumentLoadError(EvaluationError):
    kind = ErrorKind.INPUT_UNREADABLE


class UnsupportedFormatError(DocumentLoadError):
    """The file extension has no registered reader."""


class DocumentIOError(DocumentLoadError):
    """The file exists in the job record but cannot be read."""


class InputUnreadableError(EvaluationError):
    """One of the job's input documents could not be turned into text."""

    kind = ErrorKind.INPUT_UNREADABLE


# ---------------------------------------------------------------------------
# LLM provider
# ---------------------------------------------------------------------------


class ProviderError(EvaluationError):
    kind = ErrorKind.PROVIDER_ERROR


class QuotaExceededError(ProviderError):
    """Provider rate or billing limit reached. Operator action required."""

    kind = ErrorKind.PROVIDER_QUOTA_EXCEEDED


class SafetyBlockedError(ProviderError):
    """Provider content filter withheld the response."""

    kind = ErrorKind.PROVIDER_SAFETY_BLOCKED


class EmptyResponseError(ProviderError):
    """Provider returned no content."""

    kind = ErrorKind.PROVIDER_EMPTY_RESPONSE


# ---------------------------------------------------------------------------
# Context retrieval
# ---------------------------------------------------------------------------


class ContextUnavailableError(EvaluationError):
    kind = ErrorKind.CONTEXT_UNAVAILABLE


# ---------------------------------------------------------------------------
# Result parsing
# ---------------------------------------------------------------------------


class ResultUnparsableError(EvaluationError):
    kind = ErrorKind.RESULT_UNPARSABLE


class NoJSONFoundError(ResultUnparsableError):
    """No ``{ ... }`` span in the model output."""


class MalformedJSONError(ResultUnparsableError):
    """The ``{ ... }`` span does not decode into an evaluation result."""


# ---------------------------------------------------------------------------
# Job store / lifecycle
# ---------------------------------------------------------------------------


class StoreWriteError(EvaluationError):
    kind = ErrorKind.STORE_WRITE_ERROR


class JobNotFoundError(LookupError):
    """No job row exists for the given identifier."""


class InvalidTransitionError(ValueError):
    """A status change that the job state machine does not allow."""


class QueueFullError(RuntimeError):
    """The worker pool queue is at capacity."""

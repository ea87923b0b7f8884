"""Backoff delays and retryability classification.

Pure functions with no I/O. Classification works on FailureInfo, the
structured code/message pair extracted from a failure, so any fetch
function can opt into precise handling by raising FetchError with a code.
"""

from __future__ import annotations

from dataclasses import dataclass

from freshsync.core.exceptions import FetchError
from freshsync.core.models import FailureInfo


# Authentication/authorization failures (PostgREST JWT, Postgres privilege).
AUTH_CODES = frozenset(
    {
        "PGRST301",
        "42501",
        "401",
        "403",
        "unauthenticated",
        "unauthorized",
        "forbidden",
        "permission_denied",
        "AccessDenied",
        "InvalidAccessKeyId",
        "SignatureDoesNotMatch",
        "ExpiredToken",
    }
)

# Malformed request or schema errors (syntax error, undefined table).
MALFORMED_CODES = frozenset(
    {
        "42601",
        "42P01",
        "400",
        "422",
        "invalid_request",
        "invalid_format",
        "schema_error",
        "InvalidBucketName",
    }
)

NON_RETRYABLE_CODES = AUTH_CODES | MALFORMED_CODES

TIMEOUT_CODES = frozenset({"57014", "timeout", "408", "504"})

_NON_RETRYABLE_PHRASES = ("permission denied",)


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Exponential backoff with an upper bound.

    Attributes:
        base: Delay in seconds before the first retry.
        cap: Maximum delay in seconds.
        factor: Multiplier applied per retry.

    Example:
        >>> policy = BackoffPolicy(base=1.0, cap=8.0, factor=2.0)
        >>> [policy.delay_for(n) for n in range(1, 6)]
        [1.0, 2.0, 4.0, 8.0, 8.0]
    """

    base: float = 1.0
    cap: float = 8.0
    factor: float = 2.0

    def __post_init__(self) -> None:
        """Validate policy parameters."""
        if self.base < 0:
            raise ValueError("base delay cannot be negative")
        if self.cap < 0:
            raise ValueError("cap cannot be negative")
        if self.factor < 1:
            raise ValueError("factor must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before the given retry.

        Args:
            attempt: Retry number, starting at 1. The initial try (0) is
                never delayed.

        Returns:
            min(base * factor ** (attempt - 1), cap), or 0.0 for attempt 0.
        """
        if attempt <= 0:
            return 0.0
        try:
            delay = self.base * self.factor ** (attempt - 1)
        except OverflowError:
            return self.cap
        return min(delay, self.cap)


def delay_for(attempt: int, base: float, cap: float, factor: float = 2.0) -> float:
    """Functional form of BackoffPolicy.delay_for."""
    return BackoffPolicy(base=base, cap=cap, factor=factor).delay_for(attempt)


def describe_failure(failure: BaseException | FailureInfo) -> FailureInfo:
    """Extract the structured code/message of a failure.

    FetchError carries both explicitly. Any other exception contributes
    only its message; a ``code`` attribute is honoured when it is a string
    or integer so that third-party client errors still classify.
    """
    if isinstance(failure, FailureInfo):
        return failure
    if isinstance(failure, FetchError):
        return failure.info
    raw_code = getattr(failure, "code", None)
    code = str(raw_code) if isinstance(raw_code, (str, int)) else None
    return FailureInfo(code=code, message=str(failure))


def is_retryable(failure: BaseException | FailureInfo) -> bool:
    """Decide whether a failed fetch is worth retrying.

    Authentication, authorization, permission and malformed-request
    failures are final. Everything else, timeouts included, is retryable.
    """
    info = describe_failure(failure)
    if info.code is not None and info.code in NON_RETRYABLE_CODES:
        return False
    message = info.message.lower()
    return not any(phrase in message for phrase in _NON_RETRYABLE_PHRASES)


def is_timeout_error(failure: BaseException | FailureInfo) -> bool:
    """Check whether a failure looks like a timeout."""
    if isinstance(failure, TimeoutError):
        return True
    info = describe_failure(failure)
    if info.code is not None and info.code in TIMEOUT_CODES:
        return True
    return "timeout" in info.message.lower() or "timed out" in info.message.lower()

"""Error hierarchy for calendar projection and session fetching.

Calendar math raises InvalidConfiguration synchronously and never retries.
The session API client classifies HTTP failures into transient (retry) and
permanent (fail fast) errors so tenacity can decide what to retry.

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    def fetch_sessions(start_date, end_date):
        ...
"""


class SchedulingError(Exception):
    """Base exception for all scheduling errors."""

    pass


class InvalidConfiguration(SchedulingError):
    """Nonsensical grid or slot parameters.

    Examples: non-positive slot interval, start time at or after end time,
    unknown view mode when no fallback is allowed, unknown timezone.
    """

    pass


class SessionValidationError(SchedulingError):
    """A session record is malformed (missing or unparseable timestamps).

    Projection excludes such records and reports them instead; only
    validate_sessions(strict=True) raises this.
    """

    def __init__(self, message: str, session_id: int | str | None = None) -> None:
        super().__init__(message)
        self.session_id = session_id


class TransientError(SchedulingError):
    """Temporary failure that may succeed on retry.

    Examples: network timeouts, 503 Service Unavailable.
    """

    pass


class RateLimitError(TransientError):
    """Rate limit exceeded (429).

    retry_after holds the server's Retry-After delay in seconds, when sent;
    the API client waits at least that long before the next attempt.
    """

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class PermanentError(SchedulingError):
    """Failure that won't succeed on retry.

    Examples: 422 validation response, payload that is not a session list.
    """

    pass


class AuthenticationError(PermanentError):
    """API token missing, expired or rejected."""

    pass

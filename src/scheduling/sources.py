"""Session sources: JSON exports and the tutoring platform's sessions API.

These adapters only fetch raw session payloads; validation and projection
happen in src.scheduling.projector. HTTP failures are classified into the
error hierarchy so transient ones (timeouts, 5xx, 429) are retried with
tenacity and permanent ones (401/403, 4xx, bad payloads) fail fast.
"""

import json
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.nap import sleep as tenacity_sleep
from tenacity.wait import wait_base

from src.scheduling.config import SchedulingConfig, get_config
from src.scheduling.errors import (
    AuthenticationError,
    InvalidConfiguration,
    PermanentError,
    RateLimitError,
    TransientError,
)
from src.scheduling.logging import get_logger
from src.scheduling.models import SessionStatus

log = get_logger(__name__)

# Upper bound on a server-requested Retry-After delay, in seconds
MAX_RETRY_AFTER = 60.0


class wait_retry_after(wait_base):
    """Wait at least as long as a 429 Retry-After asks, else use fallback."""

    def __init__(self, fallback: wait_base, max_wait: float = MAX_RETRY_AFTER) -> None:
        self.fallback = fallback
        self.max_wait = max_wait

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = self.fallback(retry_state)
        outcome = retry_state.outcome
        error = outcome.exception() if outcome is not None else None
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            delay = max(delay, min(error.retry_after, self.max_wait))
        return delay


def _retry_after_seconds(value: str | None) -> float | None:
    """Parse a delta-seconds Retry-After header; HTTP-date values are ignored."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _unwrap(payload: Any) -> list[dict[str, Any]]:
    """Accept a bare list or the API envelope {"success": true, "data": [...]}."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        if payload.get("success") is False:
            raise PermanentError(
                f"API reported failure: {payload.get('message', 'no message')}"
            )
        data = payload.get("data")
        if isinstance(data, list):
            return data
    raise PermanentError("Expected a session list or a {'data': [...]} envelope")


def load_sessions_file(path: str | Path) -> list[dict[str, Any]]:
    """Read raw session payloads from a JSON export.

    Args:
        path: File holding a list of sessions or an API response envelope.

    Raises:
        FileNotFoundError: If the file does not exist.
        PermanentError: If the file is not JSON or holds no session list.
    """
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PermanentError(f"{path} is not valid JSON: {e}") from e

    sessions = _unwrap(payload)
    log.info("sessions_loaded", path=str(path), count=len(sessions))
    return sessions


class SessionApiClient:
    """Read-only client for the platform's teacher sessions endpoint.

    GET {base_url}{sessions_path}?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD
    with optional subject_id, course_id, student_id and status filters.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        *,
        sessions_path: str = "/api/teacher/sessions",
        timeout: float = 30.0,
        max_attempts: int = 3,
        wait: wait_base | None = None,
        sleep: Callable[[float], None] = tenacity_sleep,
        http: requests.Session | None = None,
    ) -> None:
        """Initialize SessionApiClient.

        Args:
            base_url: Platform base URL, e.g. https://tutor.example.com.
            token: Bearer token; omitted from requests when empty.
            sessions_path: Path of the sessions listing endpoint.
            timeout: Per-request timeout in seconds.
            max_attempts: Attempts per fetch before giving up on transient errors.
            wait: tenacity wait strategy between attempts (default exponential).
                A 429 Retry-After longer than this wait takes precedence.
            sleep: Called with each delay between attempts.
            http: requests.Session to reuse (default: a new one).
        """
        if not base_url:
            raise InvalidConfiguration("Session API base_url is not configured")
        if max_attempts < 1:
            raise InvalidConfiguration("max_attempts must be at least 1")

        self.base_url = base_url.rstrip("/")
        self.token = token
        self.sessions_path = sessions_path
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.wait = wait_retry_after(
            wait if wait is not None else wait_exponential(multiplier=1, max=10)
        )
        self.sleep = sleep
        self.http = http if http is not None else requests.Session()

    @classmethod
    def from_config(cls, config: SchedulingConfig | None = None) -> "SessionApiClient":
        """Build a client from SCHEDULING_API_* settings."""
        if config is None:
            config = get_config()
        return cls(
            config.api_base_url,
            config.api_token,
            sessions_path=config.api_sessions_path,
            timeout=config.api_timeout_seconds,
            max_attempts=config.api_max_attempts,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.sessions_path}"

    def fetch_sessions(
        self,
        start_date: date,
        end_date: date,
        *,
        subject_id: int | None = None,
        course_id: int | None = None,
        student_id: int | None = None,
        status: SessionStatus | str | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch raw session payloads starting within [start_date, end_date].

        Retries TransientError (timeouts, 5xx, 429) up to max_attempts and
        fails fast on PermanentError.

        Raises:
            InvalidConfiguration: If end_date is before start_date.
            AuthenticationError: If the token is rejected (401/403).
            PermanentError: On other 4xx responses or an unexpected payload.
            TransientError: If every attempt failed transiently.
        """
        if end_date < start_date:
            raise InvalidConfiguration("end_date must not be before start_date")

        params: dict[str, str | int] = {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
        }
        if subject_id is not None:
            params["subject_id"] = subject_id
        if course_id is not None:
            params["course_id"] = course_id
        if student_id is not None:
            params["student_id"] = student_id
        if status is not None:
            params["status"] = SessionStatus(status).value

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait,
            sleep=self.sleep,
            retry=retry_if_exception_type(TransientError),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                sessions = self._get(params)

        log.info(
            "sessions_fetched",
            url=self.url,
            start_date=params["start_date"],
            end_date=params["end_date"],
            count=len(sessions),
        )
        return sessions

    def _get(self, params: dict[str, str | int]) -> list[dict[str, Any]]:
        """Single GET, with the response classified into the error hierarchy."""
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            resp = self.http.get(
                self.url, params=params, headers=headers, timeout=self.timeout
            )
        except requests.Timeout as e:
            log.warning("sessions_request_timeout", url=self.url, error=str(e))
            raise TransientError(f"Sessions request timed out: {e}") from e
        except requests.ConnectionError as e:
            log.warning("sessions_request_failed", url=self.url, error=str(e))
            raise TransientError(f"Sessions request failed: {e}") from e

        if resp.status_code in (401, 403):
            log.error("sessions_auth_failed", status=resp.status_code)
            raise AuthenticationError(
                f"Sessions API rejected credentials ({resp.status_code})"
            )
        if resp.status_code == 429:
            retry_after = _retry_after_seconds(resp.headers.get("Retry-After"))
            log.warning("sessions_rate_limited", url=self.url, retry_after=retry_after)
            raise RateLimitError("Sessions API rate limit exceeded", retry_after)
        if resp.status_code >= 500:
            log.warning("sessions_server_error", status=resp.status_code)
            raise TransientError(f"Sessions API unavailable ({resp.status_code})")
        if resp.status_code != 200:
            raise PermanentError(
                f"Sessions API returned {resp.status_code}: {resp.text[:200]}"
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise PermanentError("Sessions API returned a non-JSON body") from e
        return _unwrap(payload)

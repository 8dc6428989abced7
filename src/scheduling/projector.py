"""SessionProjector - places session records onto calendar cells and time slots.

Pure transformation over an already-fetched snapshot of sessions: no I/O, no
shared state, safe to call from concurrent request handlers.

Overlap rule (everywhere): a session is in a cell or slot iff
    session.start < window_end and session.end > window_start
so sessions crossing slot or midnight boundaries show up in every window they
touch.

Timestamps: aware values are converted to the configured timezone and
compared as local wall-clock time; naive values are taken as already local.

Malformed records (missing/unparseable timestamps, end before start) are
excluded and reported in Projection.errors rather than aborting the whole
projection.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, tzinfo
from typing import Any

from pydantic import ValidationError

from src.scheduling.config import get_config
from src.scheduling.errors import InvalidConfiguration, SessionValidationError
from src.scheduling.logging import get_logger
from src.scheduling.models import (
    CalendarCell,
    Projection,
    SessionFilters,
    SessionRecord,
    SessionStatus,
    TimeSlot,
    ValidationIssue,
)
from src.scheduling.utils import dates_spanned, overlaps, to_local

log = get_logger(__name__)

SessionInput = SessionRecord | Mapping[str, Any]


def _resolve_tz(tz: tzinfo | None) -> tzinfo:
    return tz if tz is not None else get_config().tzinfo


def _local_bounds(session: SessionRecord, tz: tzinfo) -> tuple[datetime, datetime]:
    return to_local(session.start_time, tz), to_local(session.end_time, tz)


def _sorted(sessions: Iterable[SessionRecord], tz: tzinfo) -> list[SessionRecord]:
    """Ascending by start_time, ties broken by id."""
    return sorted(sessions, key=lambda s: (to_local(s.start_time, tz), s.id))


def _describe(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(p) for p in err["loc"]) or "record"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def validate_sessions(
    sessions: Iterable[SessionInput], *, strict: bool = False
) -> tuple[list[SessionRecord], list[ValidationIssue]]:
    """Validate raw session payloads, keeping the good ones.

    Args:
        sessions: SessionRecord instances or mappings (API/JSON payloads).
        strict: Raise on the first malformed record instead of skipping it.

    Returns:
        (valid records in input order, issues for excluded records)

    Raises:
        SessionValidationError: strict mode and a record failed validation.
    """
    records: list[SessionRecord] = []
    issues: list[ValidationIssue] = []
    for index, item in enumerate(sessions):
        if isinstance(item, SessionRecord):
            records.append(item)
            continue
        try:
            records.append(SessionRecord.model_validate(item))
        except ValidationError as e:
            session_id = item.get("id") if isinstance(item, Mapping) else None
            if not isinstance(session_id, (int, str)):
                session_id = None
            issue = ValidationIssue(
                index=index, session_id=session_id, message=_describe(e)
            )
            if strict:
                raise SessionValidationError(
                    f"Session #{index}: {issue.message}", session_id
                ) from e
            issues.append(issue)
            log.warning(
                "session_excluded",
                index=index,
                session_id=session_id,
                reason=issue.message,
            )
    return records, issues


def matches(
    session: SessionRecord, filters: SessionFilters, *, tz: tzinfo | None = None
) -> bool:
    """Check a session against every set filter (conjunction).

    - child_id / subject_id / status: exact match.
    - search_text: case-insensitive substring of child name, teacher name,
      subject name, title or notes.
    - date_range_start / date_range_end: the session's local start date lies
      within the inclusive range. Each bound applies on its own.
    """
    if filters.child_id is not None and session.child_id != filters.child_id:
        return False
    if filters.subject_id is not None and session.subject_id != filters.subject_id:
        return False
    if filters.status is not None and session.status != filters.status:
        return False

    if filters.search_text:
        needle = filters.search_text.strip().lower()
        haystack = (
            session.child_name,
            session.teacher_name,
            session.subject_name,
            session.title,
            session.notes,
        )
        if not any(needle in (value or "").lower() for value in haystack):
            return False

    if filters.date_range_start is not None or filters.date_range_end is not None:
        start_day = to_local(session.start_time, _resolve_tz(tz)).date()
        if filters.date_range_start is not None and start_day < filters.date_range_start:
            return False
        if filters.date_range_end is not None and start_day > filters.date_range_end:
            return False

    return True


def filter_sessions(
    sessions: Iterable[SessionInput],
    filters: SessionFilters | None = None,
    *,
    tz: tzinfo | None = None,
) -> list[SessionRecord]:
    """Valid sessions matching filters, ordered by (start_time, id).

    Invalid records are dropped (and logged); use project() to get them back
    as ValidationIssue entries.
    """
    tz = _resolve_tz(tz)
    records, _issues = validate_sessions(sessions)
    if filters is not None:
        records = [s for s in records if matches(s, filters, tz=tz)]
    return _sorted(records, tz)


def project(
    sessions: Iterable[SessionInput],
    filters: SessionFilters | None = None,
    *,
    cells: Sequence[CalendarCell] | None = None,
    tz: tzinfo | None = None,
) -> Projection:
    """Group filtered sessions by every calendar date they overlap.

    Args:
        sessions: Session records or raw payloads.
        filters: Optional filter parameters.
        cells: Optional grid; when given, every cell date is a key (possibly
            with an empty list) and sessions outside the grid are left out.
        tz: Timezone for local dates (default: configured timezone).

    Returns:
        Projection mapping date -> sessions ordered by (start_time, id), with
        excluded records in Projection.errors.
    """
    tz = _resolve_tz(tz)
    records, issues = validate_sessions(sessions)
    selected = [s for s in records if filters is None or matches(s, filters, tz=tz)]

    days: dict[date, list[SessionRecord]] = {}
    if cells is not None:
        days = {cell.date: [] for cell in cells}

    for session in _sorted(selected, tz):
        start, end = _local_bounds(session, tz)
        for day in dates_spanned(start, end):
            if cells is None:
                days.setdefault(day, []).append(session)
            elif day in days:
                days[day].append(session)

    if cells is None:
        days = dict(sorted(days.items()))

    log.debug(
        "sessions_projected",
        received=len(records) + len(issues),
        matched=len(selected),
        excluded=len(issues),
        days=len(days),
    )
    return Projection(days=days, errors=issues)


def sessions_in_slot(
    sessions: Iterable[SessionInput],
    cell_date: date,
    slot: TimeSlot,
    *,
    tz: tzinfo | None = None,
) -> list[SessionRecord]:
    """Sessions overlapping slot on cell_date, ordered by (start_time, id)."""
    tz = _resolve_tz(tz)
    slot_start, slot_end = slot.bounds(cell_date)
    records, _issues = validate_sessions(sessions)
    hits = [
        s for s in records if overlaps(*_local_bounds(s, tz), slot_start, slot_end)
    ]
    return _sorted(hits, tz)


def slot_matrix(
    sessions: Iterable[SessionInput],
    cells: Sequence[CalendarCell],
    slots: Sequence[TimeSlot],
    filters: SessionFilters | None = None,
    *,
    tz: tzinfo | None = None,
) -> dict[date, list[tuple[TimeSlot, list[SessionRecord]]]]:
    """Day x slot table for day/week views.

    Returns:
        {cell date: [(slot, sessions overlapping it), ...]} in grid and slot order.
    """
    tz = _resolve_tz(tz)
    projection = project(sessions, filters, cells=cells, tz=tz)
    return {
        day: [
            (slot, sessions_in_slot(day_sessions, day, slot, tz=tz))
            for slot in slots
        ]
        for day, day_sessions in projection.items()
    }


def find_conflicts(
    sessions: Iterable[SessionInput],
    start: datetime,
    end: datetime,
    *,
    teacher_id: int | None = None,
    exclude_id: int | None = None,
    tz: tzinfo | None = None,
) -> list[SessionRecord]:
    """Non-cancelled sessions overlapping a proposed [start, end) booking.

    Args:
        sessions: Existing sessions.
        start: Proposed start.
        end: Proposed end.
        teacher_id: Only consider this teacher's sessions.
        exclude_id: Skip this session (the one being rescheduled).

    Raises:
        InvalidConfiguration: If end is not after start.
    """
    tz = _resolve_tz(tz)
    window_start, window_end = to_local(start, tz), to_local(end, tz)
    if window_end <= window_start:
        raise InvalidConfiguration("Proposed session end must be after its start")

    records, _issues = validate_sessions(sessions)
    conflicts = [
        s
        for s in records
        if s.status is not SessionStatus.CANCELLED
        and (teacher_id is None or s.teacher_id == teacher_id)
        and (exclude_id is None or s.id != exclude_id)
        and overlaps(*_local_bounds(s, tz), window_start, window_end)
    ]
    return _sorted(conflicts, tz)

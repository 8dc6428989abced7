"""Attendance and performance summary for a teacher's timetable."""

from collections.abc import Iterable
from datetime import tzinfo

from src.scheduling.models import (
    AttendanceSummary,
    ChildAttendance,
    SessionFilters,
    SessionRecord,
)
from src.scheduling.projector import SessionInput, filter_sessions


def _rate(attended: int, total: int) -> float:
    return round(attended / total * 100, 1) if total else 0.0


def _average(scores: list[float]) -> float:
    return round(sum(scores) / len(scores), 1) if scores else 0.0


def summarize_attendance(
    sessions: Iterable[SessionInput],
    filters: SessionFilters | None = None,
    *,
    tz: tzinfo | None = None,
) -> AttendanceSummary:
    """Per-child attendance rate and average performance score.

    A session counts as attended only when attended is True; sessions without
    a performance score are left out of the averages. Rows are ordered by
    child name, then child id.
    """
    records = filter_sessions(sessions, filters, tz=tz)

    groups: dict[int | None, list[SessionRecord]] = {}
    for session in records:
        groups.setdefault(session.child_id, []).append(session)

    rows: list[ChildAttendance] = []
    for child_id, items in groups.items():
        attended = sum(1 for s in items if s.attended is True)
        scores = [s.performance_score for s in items if s.performance_score is not None]
        rows.append(
            ChildAttendance(
                child_id=child_id,
                child_name=next((s.child_name for s in items if s.child_name), None),
                total_sessions=len(items),
                attended_sessions=attended,
                attendance_rate=_rate(attended, len(items)),
                avg_performance=_average(scores),
            )
        )
    rows.sort(key=lambda r: ((r.child_name or "").lower(), r.child_id or 0))

    total = len(records)
    attended_total = sum(r.attended_sessions for r in rows)
    all_scores = [
        s.performance_score for s in records if s.performance_score is not None
    ]
    return AttendanceSummary(
        children=rows,
        total_sessions=total,
        attended_sessions=attended_total,
        attendance_rate=_rate(attended_total, total),
        avg_performance=_average(all_scores),
    )

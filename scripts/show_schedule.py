"""Show a day, week or month of tutoring sessions as a table or JSON.

Loads sessions from a JSON export or the platform API, builds the calendar
grid for the requested period, applies filters and prints the projection.

Run with: python scripts/show_schedule.py --sessions-file data/sessions.json
Month:    python scripts/show_schedule.py --sessions-file data/sessions.json --view month
From API: python scripts/show_schedule.py --api --date 2024-03-15
Filters:  python scripts/show_schedule.py --sessions-file data/sessions.json \
              --child 3 --status scheduled --search algebra
JSON:     python scripts/show_schedule.py --sessions-file data/sessions.json --json
Stats:    python scripts/show_schedule.py --sessions-file data/sessions.json --attendance
Strict:   python scripts/show_schedule.py --sessions-file data/sessions.json --strict

API settings come from SCHEDULING_API_BASE_URL / SCHEDULING_API_TOKEN (.env).

Exit codes:
  0 = success (table or JSON on stdout)
  1 = error (message on stderr)
"""

import argparse
import json
import os
import sys
from datetime import date, timedelta

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.scheduling.attendance import summarize_attendance  # noqa: E402
from src.scheduling.config import get_config  # noqa: E402
from src.scheduling.grid import build_grid, period_bounds, today_in  # noqa: E402
from src.scheduling.logging import setup_logging  # noqa: E402
from src.scheduling.models import (  # noqa: E402
    CalendarCell,
    Projection,
    SessionFilters,
    ViewMode,
)
from src.scheduling.projector import project, validate_sessions  # noqa: E402
from src.scheduling.sources import SessionApiClient, load_sessions_file  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    config = get_config()
    parser = argparse.ArgumentParser(
        description="Show tutoring sessions for a day, week or month.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    source_group = parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument(
        "--sessions-file",
        type=str,
        help="JSON file with a session list or an API response envelope.",
    )
    source_group.add_argument(
        "--api",
        action="store_true",
        help="Fetch sessions for the visible period from the platform API.",
    )

    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Reference date YYYY-MM-DD (default: today).",
    )
    parser.add_argument(
        "--view",
        type=str,
        default=config.default_view_mode.value,
        choices=[mode.value for mode in ViewMode],
        help=f"Calendar view (default: {config.default_view_mode.value}).",
    )

    parser.add_argument("--child", type=int, default=None, help="Child id filter.")
    parser.add_argument("--subject", type=int, default=None, help="Subject id filter.")
    parser.add_argument(
        "--status",
        type=str,
        default=None,
        choices=["scheduled", "completed", "cancelled"],
        help="Session status filter.",
    )
    parser.add_argument(
        "--search",
        type=str,
        default=None,
        help="Case-insensitive text search (child, teacher, subject, notes).",
    )
    parser.add_argument(
        "--from",
        dest="date_from",
        type=date.fromisoformat,
        default=None,
        help="Only sessions starting on or after this date.",
    )
    parser.add_argument(
        "--to",
        dest="date_to",
        type=date.fromisoformat,
        default=None,
        help="Only sessions starting on or before this date.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first malformed session instead of skipping it.",
    )

    output_group = parser.add_mutually_exclusive_group()
    output_group.add_argument(
        "--json",
        action="store_true",
        help="Output the projection as JSON instead of a table.",
    )
    output_group.add_argument(
        "--attendance",
        action="store_true",
        help="Output per-child attendance statistics as JSON.",
    )
    return parser.parse_args()


def _format_table(cells: list[CalendarCell], projection: Projection) -> str:
    """Format the projection as a human-readable table.

    Columns: Date | Time | Subject | Child | Teacher | Status
    Days outside the current month are marked with '*'.
    """
    headers = ["Date", "Time", "Subject", "Child", "Teacher", "Status"]

    rows = []
    for cell in cells:
        day_label = cell.date.strftime("%a %Y-%m-%d")
        if cell.is_today:
            day_label += " (today)"
        if not cell.belongs_to_current_period:
            day_label += " *"
        sessions = projection.get(cell.date, [])
        if not sessions:
            continue
        for session in sessions:
            rows.append(
                [
                    day_label,
                    session.time_range_label,
                    session.subject_name or session.title or "-",
                    session.child_name or "-",
                    session.teacher_name or "-",
                    session.status.value,
                ]
            )

    if not rows:
        return "(no sessions in this period)"

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell_text in enumerate(row):
            widths[i] = max(widths[i], len(cell_text))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)
    row_lines = [
        " | ".join(cell_text.ljust(widths[i]) for i, cell_text in enumerate(row))
        for row in rows
    ]
    return "\n".join([header_line, separator, *row_lines])


def _projection_json(cells: list[CalendarCell], projection: Projection) -> dict:
    return {
        "cells": [
            {
                **cell.model_dump(mode="json"),
                "sessions": [
                    s.model_dump(mode="json") for s in projection.get(cell.date, [])
                ],
            }
            for cell in cells
        ],
        "errors": [issue.model_dump(mode="json") for issue in projection.errors],
    }


def main(args: argparse.Namespace) -> None:
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    reference = args.date or today_in()
    cells = build_grid(reference, args.view)
    _log(
        f"show_schedule: {args.view} of {reference.isoformat()} "
        f"({cells[0].date} .. {cells[-1].date})"
    )

    if args.api:
        start, end = period_bounds(reference, args.view)
        client = SessionApiClient.from_config(config)
        raw_sessions = client.fetch_sessions(
            start.date(),
            (end - timedelta(days=1)).date(),
            subject_id=args.subject,
            student_id=args.child,
            status=args.status,
        )
    else:
        raw_sessions = load_sessions_file(args.sessions_file)
    _log(f"  Loaded {len(raw_sessions)} sessions")
    if args.strict:
        raw_sessions, _ = validate_sessions(raw_sessions, strict=True)

    filters = SessionFilters(
        child_id=args.child,
        subject_id=args.subject,
        status=args.status,
        search_text=args.search,
        date_range_start=args.date_from,
        date_range_end=args.date_to,
    )

    if args.attendance:
        summary = summarize_attendance(raw_sessions, filters)
        print(json.dumps(summary.model_dump(mode="json"), indent=2))
        return

    projection = project(raw_sessions, filters, cells=cells)
    if projection.errors:
        _log(f"  Skipped {len(projection.errors)} malformed sessions")
        for issue in projection.errors:
            _log(f"    #{issue.index} (id={issue.session_id}): {issue.message}")

    if args.json:
        print(json.dumps(_projection_json(cells, projection), indent=2))
    else:
        print(_format_table(cells, projection))


if __name__ == "__main__":
    args = _parse_args()
    try:
        main(args)
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

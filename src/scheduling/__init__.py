"""Calendar core for the tutoring platform's parent and teacher schedule screens.

Builds calendar grids and bookable time slots, and projects already-fetched
learning sessions onto them (filtering, overlap placement, attendance stats).
"""

from src.scheduling.grid import build_grid, period_bounds, shift_period
from src.scheduling.models import (
    CalendarCell,
    Projection,
    SessionFilters,
    SessionRecord,
    SessionStatus,
    TimeSlot,
    ViewMode,
)
from src.scheduling.projector import project, sessions_in_slot
from src.scheduling.slots import generate_slots

__all__ = [
    "build_grid",
    "period_bounds",
    "shift_period",
    "generate_slots",
    "project",
    "sessions_in_slot",
    "CalendarCell",
    "Projection",
    "SessionFilters",
    "SessionRecord",
    "SessionStatus",
    "TimeSlot",
    "ViewMode",
]

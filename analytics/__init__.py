"""Progress analytics over already-fetched projects."""

from .progress import (
    DAY_LABELS,
    project_progress,
    phase_progress,
    user_totals,
    weekly_activity,
    phase_breakdown,
    parse_timestamp,
)

__all__ = [
    "DAY_LABELS",
    "project_progress",
    "phase_progress",
    "user_totals",
    "weekly_activity",
    "phase_breakdown",
    "parse_timestamp",
]

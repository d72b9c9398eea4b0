"""Progress aggregation: completion percentages, user totals, weekly activity.

All functions are pure single passes over projects the caller already fetched.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from contracts import (
    DayActivity,
    Phase,
    PhaseBreakdown,
    Project,
    Task,
    TaskStatus,
    UserTotals,
)
from config import settings

logger = logging.getLogger(__name__)

DAY_LABELS: List[str] = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def _percent(completed: int, total: int) -> int:
    """Half-up rounded percentage; 0 when there is nothing to complete."""
    if total <= 0:
        return 0
    return int(completed * 100 / total + 0.5)


def _tasks(projects: Iterable[Project]) -> Iterable[Task]:
    for project in projects:
        for phase in project.phases:
            yield from phase.tasks


def project_progress(project: Project) -> int:
    """Percentage of the project's tasks that are Completed, in [0, 100].

    round(completed / total * 100), defined as 0 for a project with no tasks.
    """
    tasks = project.all_tasks()
    completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    return _percent(completed, len(tasks))


def phase_progress(phase: Phase) -> int:
    """Same rule as project_progress, for a single phase."""
    completed = sum(1 for t in phase.tasks if t.status == TaskStatus.COMPLETED)
    return _percent(completed, len(phase.tasks))


def user_totals(projects: Iterable[Project]) -> UserTotals:
    """Count completed and blocked tasks across every phase of every project.

    A task is blocked when its status is Backlog or it has a non-empty blocker
    note; a task matching both is counted once.
    """
    completed = 0
    backlog = 0
    for task in _tasks(projects):
        if task.status == TaskStatus.COMPLETED:
            completed += 1
        if task.has_blocker():
            backlog += 1
    return UserTotals(completed=completed, backlog=backlog)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as stored; None when it cannot be parsed."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def weekly_activity(projects: Iterable[Project], now: Optional[datetime] = None) -> List[DayActivity]:
    """Bucket completed tasks of the last 7 days by weekday.

    The window is [now - 6 days, now], inclusive at both ends. Output is always
    seven entries ordered Mon..Sun whatever weekday ``now`` falls on. Tasks with
    an unparseable or out-of-window completion timestamp are skipped.
    """
    now = now or datetime.now()
    if now.tzinfo is None:
        now = now.astimezone()
    start = now - timedelta(days=6)

    counts = [0] * len(DAY_LABELS)
    for task in _tasks(projects):
        if task.status != TaskStatus.COMPLETED:
            continue
        completed_at = parse_timestamp(task.completed_at)
        if completed_at is None:
            logger.debug("Skipping task %s: unparseable completion time %r", task.id, task.completed_at)
            continue
        if completed_at.tzinfo is None:
            completed_at = completed_at.replace(tzinfo=now.tzinfo)
        else:
            completed_at = completed_at.astimezone(now.tzinfo)
        if not (start <= completed_at <= now):
            continue
        # datetime.weekday() is already Monday=0 .. Sunday=6
        counts[completed_at.weekday()] += 1

    return [DayActivity(label=label, count=counts[idx]) for idx, label in enumerate(DAY_LABELS)]


def _short_name(title: str, limit: int) -> str:
    return title[:limit] + "..." if len(title) > limit else title


def phase_breakdown(project: Project, name_limit: Optional[int] = None) -> List[PhaseBreakdown]:
    """Per-phase completed / pending / backlog counts for the project chart.

    Pending covers Pending and In Progress; backlog uses the same blocked rule
    as user_totals.
    """
    limit = name_limit or settings.phase_name_max_length
    rows: List[PhaseBreakdown] = []
    for phase in project.phases:
        rows.append(
            PhaseBreakdown(
                name=_short_name(phase.title, limit),
                completed=sum(1 for t in phase.tasks if t.status == TaskStatus.COMPLETED),
                pending=sum(
                    1 for t in phase.tasks
                    if t.status in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)
                ),
                backlog=sum(1 for t in phase.tasks if t.has_blocker()),
            )
        )
    return rows

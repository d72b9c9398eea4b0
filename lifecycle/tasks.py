"""Task and phase lifecycle.

Tasks move between Pending, In Progress, Backlog and Completed. Completion
metadata is only ever written together with the Completed status, as one
replacement of ``Task.state``. Every function returns new models and leaves
its inputs untouched.
"""

import logging
import secrets
from datetime import date, datetime, timezone
from typing import List, Optional, Sequence

from contracts import (
    CompletedState,
    Phase,
    PhaseDraft,
    PendingState,
    Task,
    TaskStatus,
    TaskSubmission,
    User,
    state_for,
)
from errors import ValidationError

logger = logging.getLogger(__name__)


def generate_id(prefix: str) -> str:
    """Generate a short random identifier such as ``t-1a2b3c4d5e6f``."""
    return f"{prefix}-{secrets.token_hex(6)}"


def _now_iso(now: Optional[datetime] = None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def new_task(
    title: str,
    owner_id: str,
    description: str = "",
    assignee_id: Optional[str] = None,
    due_date: Optional[date] = None,
) -> Task:
    """Build a Pending task with a generated id.

    Raises:
        ValidationError: If the title is blank.
    """
    if not title or not title.strip():
        raise ValidationError("Task title is required")
    return Task(
        id=generate_id("t"),
        title=title.strip(),
        description=description,
        assignee_id=assignee_id or owner_id,
        due_date=due_date,
        state=PendingState(),
    )


def add_task(phase: Phase, task: Task, owner_id: str) -> Phase:
    """Append a task to a phase.

    A task without an id gets a generated one; a task without an assignee is
    assigned to the project owner.
    """
    if not task.title.strip():
        raise ValidationError("Task title is required")
    updates = {}
    if not task.id:
        updates["id"] = generate_id("t")
    if not task.assignee_id:
        updates["assignee_id"] = owner_id
    task = task.model_copy(update=updates, deep=True)
    return phase.model_copy(update={"tasks": [*phase.tasks, task]}, deep=True)


def delete_task(phase: Phase, task_id: str) -> Phase:
    """Remove a task by id. Removing an absent id is a no-op."""
    remaining = [t for t in phase.tasks if t.id != task_id]
    return phase.model_copy(update={"tasks": remaining}, deep=True)


def submit_task(task: Task, submission: TaskSubmission, now: Optional[datetime] = None) -> Task:
    """Complete a task with its proof-of-work.

    Status, completion time and the submission fields are written as a single
    state, so no Completed task exists without its metadata. Resubmitting a
    completed task replaces the previous submission.
    """
    state = CompletedState(
        completed_at=_now_iso(now),
        proof_image_ref=submission.proof_image_ref,
        notes=submission.notes,
        submission_description=submission.description,
        blocker_note=submission.blocker_note,
    )
    return task.model_copy(update={"state": state}, deep=True)


def set_task_status(task: Task, status: TaskStatus, now: Optional[datetime] = None) -> Task:
    """Move a task to another status.

    Moving into Completed stamps the completion time with an empty submission.
    Moving out of Completed discards the submission. Setting the current status
    again returns the task unchanged.
    """
    status = TaskStatus(status)
    if status == task.status:
        return task.model_copy(deep=True)
    if status == TaskStatus.COMPLETED:
        state = CompletedState(completed_at=_now_iso(now))
    else:
        state = state_for(status)
    logger.debug("Task %s: %s -> %s", task.id, task.status.value, status.value)
    return task.model_copy(update={"state": state}, deep=True)


def is_phase_complete(phase: Phase) -> bool:
    """True iff the phase has at least one task and all of them are Completed.

    An empty phase is not complete.
    """
    if not phase.tasks:
        return False
    return all(t.status == TaskStatus.COMPLETED for t in phase.tasks)


def phases_from_drafts(drafts: Sequence[PhaseDraft], members: Sequence[User]) -> List[Phase]:
    """Turn planner drafts into Pending phases and tasks.

    ``assignee_index`` points into ``members`` (index 0 is the owner); an index
    outside the list falls back to the owner. Drafts with a blank title are
    dropped.
    """
    if not members:
        raise ValidationError("At least one member is required to assign drafted tasks")
    owner_id = members[0].id

    phases: List[Phase] = []
    for draft in drafts:
        if not draft.title.strip():
            continue
        tasks: List[Task] = []
        for task_draft in draft.tasks:
            if not task_draft.title.strip():
                continue
            index = task_draft.assignee_index
            assignee = members[index].id if 0 <= index < len(members) else owner_id
            tasks.append(
                new_task(
                    title=task_draft.title,
                    owner_id=owner_id,
                    description=task_draft.description,
                    assignee_id=assignee,
                )
            )
        phases.append(Phase(id=generate_id("ph"), title=draft.title.strip(), tasks=tasks))
    return phases

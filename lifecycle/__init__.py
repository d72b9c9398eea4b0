"""Lifecycle transitions for tasks, phases and invites."""

from .tasks import (
    generate_id,
    new_task,
    add_task,
    delete_task,
    submit_task,
    set_task_status,
    is_phase_complete,
    phases_from_drafts,
)
from .invites import (
    check_invitable,
    accept_invite,
    decline_invite,
    grant_membership,
)

__all__ = [
    "generate_id",
    "new_task",
    "add_task",
    "delete_task",
    "submit_task",
    "set_task_status",
    "is_phase_complete",
    "phases_from_drafts",
    "check_invitable",
    "accept_invite",
    "decline_invite",
    "grant_membership",
]

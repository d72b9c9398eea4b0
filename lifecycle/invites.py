"""Invite lifecycle: pending -> accepted | declined.

Terminal states never change. Accepting grants membership; declining has no
side effect and the declined invite is kept as a record.
"""

import logging
from typing import Iterable

from contracts import Invite, InviteStatus, Project, User
from errors import DuplicateError, InvalidTransitionError

logger = logging.getLogger(__name__)


def check_invitable(project: Project, invitee_id: str, pending_invites: Iterable[Invite]) -> None:
    """Raise DuplicateError if the invitee is a member or already invited."""
    if project.is_member(invitee_id):
        raise DuplicateError(f"User {invitee_id} is already a member of {project.name}")
    for invite in pending_invites:
        if (
            invite.project_id == project.id
            and invite.invitee_id == invitee_id
            and invite.status == InviteStatus.PENDING
        ):
            raise DuplicateError(f"User {invitee_id} already has a pending invite to {project.name}")


def _transition(invite: Invite, target: InviteStatus) -> Invite:
    if invite.status == target:
        return invite.model_copy()
    if invite.is_terminal:
        raise InvalidTransitionError(
            f"Invite {invite.id} is already {invite.status.value}; cannot become {target.value}"
        )
    logger.debug("Invite %s: %s -> %s", invite.id, invite.status.value, target.value)
    return invite.model_copy(update={"status": target})


def accept_invite(invite: Invite) -> Invite:
    """Pending -> Accepted. Accepting an accepted invite is a no-op."""
    return _transition(invite, InviteStatus.ACCEPTED)


def decline_invite(invite: Invite) -> Invite:
    """Pending -> Declined. Declining a declined invite is a no-op."""
    return _transition(invite, InviteStatus.DECLINED)


def grant_membership(project: Project, user: User) -> Project:
    """Add a user to the project's members unless already present."""
    if project.is_member(user.id):
        return project.model_copy(deep=True)
    return project.model_copy(update={"members": [*project.members, user]}, deep=True)

"""Error taxonomy for DevStreak.

Callers can tell "nothing happened" (ValidationError, NotFoundError,
DuplicateError, InvalidTransitionError, plain UpstreamFailure) apart from
"partially happened" (PartialFailure).
"""

from typing import Optional


class DevStreakError(Exception):
    """Base class for every error raised by the core."""


class NotFoundError(DevStreakError):
    """A project, phase, task, invite or user id did not resolve."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class ValidationError(DevStreakError):
    """A required field is missing or invalid. Raised before any write."""


class DuplicateError(DevStreakError):
    """The invitee is already a member or already has a pending invite."""


class InvalidTransitionError(DevStreakError):
    """A transition out of a terminal invite state was attempted."""


class UpstreamFailure(DevStreakError):
    """The store or AI collaborator failed (network, auth, quota, I/O)."""


class PartialFailure(UpstreamFailure):
    """A multi-step write failed after its first step was persisted."""

    def __init__(self, message: str, project_id: str, step: str, cause: Optional[BaseException] = None):
        self.project_id = project_id
        self.step = step
        self.cause = cause
        super().__init__(f"{message} (project {project_id} was created; failed at: {step})")

"""Pydantic contracts for DevStreak.

Every entity handed between the store, the lifecycle functions, the planner
and the analytics is typed through these contracts.
"""

from .entities import (
    ProjectMode,
    SkillLevel,
    TaskStatus,
    InviteStatus,
    User,
    PendingState,
    InProgressState,
    BacklogState,
    CompletedState,
    TaskState,
    Task,
    Phase,
    Project,
    Invite,
    default_avatar_url,
    state_for,
)

from .requests import (
    NewProject,
    TaskSubmission,
)

from .drafting import (
    TaskDraft,
    PhaseDraft,
    PhasePlan,
    DraftRequest,
)

from .analytics import (
    UserTotals,
    DayActivity,
    PhaseBreakdown,
    ProjectSummary,
    ProfileSummary,
)

__all__ = [
    # Entities
    "ProjectMode",
    "SkillLevel",
    "TaskStatus",
    "InviteStatus",
    "User",
    "PendingState",
    "InProgressState",
    "BacklogState",
    "CompletedState",
    "TaskState",
    "Task",
    "Phase",
    "Project",
    "Invite",
    "default_avatar_url",
    "state_for",
    # Requests
    "NewProject",
    "TaskSubmission",
    # Drafting
    "TaskDraft",
    "PhaseDraft",
    "PhasePlan",
    "DraftRequest",
    # Analytics
    "UserTotals",
    "DayActivity",
    "PhaseBreakdown",
    "ProjectSummary",
    "ProfileSummary",
]

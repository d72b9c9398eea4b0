"""Read-only analytics results."""

from typing import Dict, List

from pydantic import BaseModel, Field


class UserTotals(BaseModel):
    """Completed and blocked task counts across a user's projects."""
    completed: int = Field(default=0, ge=0)
    backlog: int = Field(default=0, ge=0)


class DayActivity(BaseModel):
    """Completed tasks on one weekday of the activity window."""
    label: str
    count: int = Field(default=0, ge=0)


class PhaseBreakdown(BaseModel):
    """Per-phase task counts for the project chart."""
    name: str
    completed: int = 0
    pending: int = 0
    backlog: int = 0


class ProjectSummary(BaseModel):
    """Everything the project dashboard shows."""
    project_id: str
    name: str
    progress: int = Field(default=0, ge=0, le=100)
    phase_progress: Dict[str, int] = Field(default_factory=dict, description="Phase id -> percent")
    completed_phases: List[str] = Field(default_factory=list, description="Ids of fully completed phases")
    breakdown: List[PhaseBreakdown] = Field(default_factory=list)


class ProfileSummary(BaseModel):
    """Totals and recent activity for one user across their projects."""
    user_id: str
    username: str
    streak: int = 0
    project_count: int = 0
    totals: UserTotals = Field(default_factory=UserTotals)
    activity: List[DayActivity] = Field(default_factory=list)

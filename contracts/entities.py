"""Entity contracts: users, projects, phases, tasks and invites.

Task status and its completion metadata travel together as a tagged variant
(``Task.state``), so a Completed task always carries its submission and no other
status can carry one.
"""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union
from urllib.parse import quote_plus

from pydantic import BaseModel, Field, model_validator


class ProjectMode(str, Enum):
    """How a project is approached."""
    LEARN_AND_DEVELOP = "Learn & Develop"
    DIRECT_DEVELOP = "Direct Develop"


class SkillLevel(str, Enum):
    """Self-reported skill level used to pitch drafted tasks."""
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    NONE = "None"  # Direct Develop mode


class TaskStatus(str, Enum):
    """Status of a task."""
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    BACKLOG = "Backlog"


class InviteStatus(str, Enum):
    """Status of a project invite. Accepted and declined are terminal."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


def default_avatar_url(username: str) -> str:
    return f"https://ui-avatars.com/api/?name={quote_plus(username or 'User')}&background=random"


class User(BaseModel):
    """A person who owns or collaborates on projects."""

    id: str = Field(..., min_length=1)
    username: str = Field(..., description="Display name")
    avatar_url: str = Field(default="", description="Avatar image reference")
    streak: int = Field(default=0, ge=0, description="Consecutive days of activity")

    @model_validator(mode="after")
    def fill_avatar(self) -> "User":
        if not self.avatar_url:
            object.__setattr__(self, "avatar_url", default_avatar_url(self.username))
        return self


class PendingState(BaseModel):
    status: Literal["Pending"] = "Pending"


class InProgressState(BaseModel):
    status: Literal["In Progress"] = "In Progress"


class BacklogState(BaseModel):
    status: Literal["Backlog"] = "Backlog"


class CompletedState(BaseModel):
    """Completion metadata; only exists on completed tasks."""
    status: Literal["Completed"] = "Completed"
    completed_at: str = Field(..., min_length=1, description="ISO-8601 completion timestamp")
    proof_image_ref: Optional[str] = Field(None, description="Proof-of-work image reference")
    notes: str = Field(default="")
    submission_description: str = Field(default="")
    blocker_note: str = Field(default="", description="Backlog/blocker note left on submission")


TaskState = Annotated[
    Union[PendingState, InProgressState, BacklogState, CompletedState],
    Field(discriminator="status"),
]

_STATE_BY_STATUS = {
    TaskStatus.PENDING: PendingState,
    TaskStatus.IN_PROGRESS: InProgressState,
    TaskStatus.BACKLOG: BacklogState,
}


def state_for(status: TaskStatus) -> Union[PendingState, InProgressState, BacklogState]:
    """Return the payload-free state for a non-completed status."""
    return _STATE_BY_STATUS[TaskStatus(status)]()


class Task(BaseModel):
    """A unit of work inside a phase."""

    id: str = Field(default="", description="Empty until assigned by the lifecycle or store")
    title: str
    description: str = Field(default="")
    assignee_id: str = Field(default="", description="User id of a project member; empty means the owner")
    due_date: Optional[date] = None
    state: TaskState = Field(default_factory=PendingState)

    @model_validator(mode="before")
    @classmethod
    def upgrade_flat_record(cls, data: Any) -> Any:
        """Fold flat status/submission columns into the tagged state."""
        if not isinstance(data, dict) or "state" in data or "status" not in data:
            return data
        data = dict(data)
        status = TaskStatus(data.pop("status"))
        submission = {
            "completed_at": data.pop("completed_at", None),
            "proof_image_ref": data.pop("proof_image_url", None) or data.pop("proof_image_ref", None),
            "notes": data.pop("notes", None) or "",
            "submission_description": data.pop("submission_description", None) or "",
            "blocker_note": data.pop("backlogs", None) or data.pop("blocker_note", None) or "",
        }
        if status == TaskStatus.COMPLETED:
            data["state"] = {"status": status.value, **submission}
        else:
            data["state"] = {"status": status.value}
        return data

    @property
    def status(self) -> TaskStatus:
        return TaskStatus(self.state.status)

    @property
    def is_completed(self) -> bool:
        return isinstance(self.state, CompletedState)

    @property
    def completed_at(self) -> Optional[str]:
        return self.state.completed_at if isinstance(self.state, CompletedState) else None

    @property
    def blocker_note(self) -> str:
        return self.state.blocker_note if isinstance(self.state, CompletedState) else ""

    def has_blocker(self) -> bool:
        """True if the task is in backlog or carries a non-empty blocker note."""
        return self.status == TaskStatus.BACKLOG or bool(self.blocker_note.strip())


class Phase(BaseModel):
    """A named, ordered group of tasks (e.g. "Month 1: Fundamentals")."""

    id: str = Field(default="")
    title: str
    tasks: List[Task] = Field(default_factory=list)
    is_expanded: bool = Field(default=True, description="Presentation only")


class Project(BaseModel):
    """A project with its members and roadmap."""

    id: str
    name: str
    description: str
    repo_url: Optional[str] = Field(None, description="External repository reference")
    owner_id: str
    members: List[User] = Field(default_factory=list)
    created_at: datetime
    mode: Optional[ProjectMode] = None
    skill_level: Optional[SkillLevel] = None
    streak: int = Field(default=0, ge=0)
    phases: List[Phase] = Field(default_factory=list)

    @model_validator(mode="after")
    def owner_is_member(self) -> "Project":
        if self.owner_id not in self.member_ids():
            raise ValueError(f"owner {self.owner_id!r} must be a member of project {self.id!r}")
        return self

    def member_ids(self) -> List[str]:
        return [m.id for m in self.members]

    def is_member(self, user_id: str) -> bool:
        return user_id in self.member_ids()

    def all_tasks(self) -> List[Task]:
        return [task for phase in self.phases for task in phase.tasks]

    def find_phase(self, phase_id: str) -> Optional[Phase]:
        return next((ph for ph in self.phases if ph.id == phase_id), None)

    def find_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.all_tasks() if t.id == task_id), None)

    def phase_of(self, task_id: str) -> Optional[Phase]:
        return next((ph for ph in self.phases if any(t.id == task_id for t in ph.tasks)), None)


class Invite(BaseModel):
    """A request for a user to join a project."""

    id: str
    project_id: str
    project_name: str = Field(default="", description="Cached project name")
    inviter_id: str
    inviter_name: str = Field(default="", description="Cached inviter display name")
    invitee_id: str
    status: InviteStatus = Field(default=InviteStatus.PENDING)

    @property
    def is_terminal(self) -> bool:
        return self.status != InviteStatus.PENDING

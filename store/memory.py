"""In-memory reference store.

An explicit repository object: each instance owns its own tables, and every
value it returns is a deep copy, so nothing outside the store can mutate them.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from contracts import Invite, InviteStatus, NewProject, Phase, Project, Task, User
from errors import DuplicateError, NotFoundError, ValidationError
from lifecycle.tasks import generate_id
from store.base import ProjectStore

logger = logging.getLogger(__name__)

# Task fields a partial update may touch
UPDATABLE_TASK_FIELDS = ("title", "description", "assignee_id", "due_date", "state")


class InMemoryStore(ProjectStore):
    """Dict-backed ProjectStore."""

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self._users: Dict[str, User] = {}
        self._projects: Dict[str, Dict[str, Any]] = {}
        self._members: Dict[str, List[str]] = {}
        self._phases: Dict[str, Dict[str, str]] = {}
        self._tasks: Dict[str, Task] = {}
        self._task_phase: Dict[str, str] = {}
        self._invites: Dict[str, Invite] = {}

    def _commit(self) -> None:
        """Hook called after every write; subclasses persist here."""

    # --- Users ---

    def save_user(self, user: User) -> User:
        self._users[user.id] = user.model_copy(deep=True)
        self._commit()
        return user.model_copy(deep=True)

    def fetch_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    def list_users(self) -> List[User]:
        return [u.model_copy(deep=True) for u in self._users.values()]

    def _require_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    def _require_project(self, project_id: str) -> Dict[str, Any]:
        row = self._projects.get(project_id)
        if row is None:
            raise NotFoundError("project", project_id)
        return row

    # --- Projects (read) ---

    def _assemble(self, project_id: str) -> Project:
        row = self._projects[project_id]
        phases = []
        for phase_id, phase_row in self._phases.items():
            if phase_row["project_id"] != project_id:
                continue
            tasks = [
                task.model_copy(deep=True)
                for task_id, task in self._tasks.items()
                if self._task_phase[task_id] == phase_id
            ]
            phases.append(Phase(id=phase_id, title=phase_row["title"], tasks=tasks))
        members = [
            self._users[uid].model_copy(deep=True)
            for uid in self._members.get(project_id, [])
            if uid in self._users
        ]
        return Project(**row, members=members, phases=phases)

    def fetch_projects_for_user(self, user_id: str) -> List[Project]:
        return [
            self._assemble(pid)
            for pid, member_ids in self._members.items()
            if user_id in member_ids and pid in self._projects
        ]

    def fetch_project(self, project_id: str) -> Optional[Project]:
        if project_id not in self._projects:
            return None
        return self._assemble(project_id)

    # --- Projects (write) ---

    def create_project(self, spec: NewProject) -> Project:
        self._require_user(spec.owner_id)
        project_id = generate_id("p")
        self._projects[project_id] = {
            "id": project_id,
            "name": spec.name,
            "description": spec.description,
            "repo_url": spec.repo_url,
            "owner_id": spec.owner_id,
            "created_at": datetime.now(timezone.utc),
            "mode": spec.mode,
            "skill_level": spec.skill_level,
            "streak": 0,
        }
        self._members[project_id] = [spec.owner_id]
        self._commit()
        logger.info("Created project %s (%s)", project_id, spec.name)
        return self._assemble(project_id)

    def add_member(self, project_id: str, user_id: str) -> None:
        self._require_project(project_id)
        self._require_user(user_id)
        members = self._members.setdefault(project_id, [])
        if user_id not in members:
            members.append(user_id)
            self._commit()

    def add_phase(self, project_id: str, title: str) -> Phase:
        self._require_project(project_id)
        phase_id = generate_id("ph")
        self._phases[phase_id] = {"project_id": project_id, "title": title}
        self._commit()
        return Phase(id=phase_id, title=title)

    def add_task(self, phase_id: str, task: Task) -> Task:
        if phase_id not in self._phases:
            raise NotFoundError("phase", phase_id)
        if task.id in self._tasks:
            raise DuplicateError(f"Task id already exists: {task.id}")
        stored = task.model_copy(update={"id": task.id or generate_id("t")}, deep=True)
        self._tasks[stored.id] = stored
        self._task_phase[stored.id] = phase_id
        self._commit()
        return stored.model_copy(deep=True)

    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        unknown = set(changes) - set(UPDATABLE_TASK_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update task fields: {sorted(unknown)}")
        data = task.model_dump()
        for key, value in changes.items():
            data[key] = value.model_dump() if isinstance(value, BaseModel) else value
        try:
            updated = Task.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e
        self._tasks[task_id] = updated
        self._commit()
        return updated.model_copy(deep=True)

    def delete_task(self, task_id: str) -> None:
        if self._tasks.pop(task_id, None) is not None:
            self._task_phase.pop(task_id, None)
            self._commit()

    # --- Invites ---

    def create_invite(self, project_id: str, inviter_id: str, invitee_id: str) -> Invite:
        row = self._require_project(project_id)
        inviter = self._require_user(inviter_id)
        self._require_user(invitee_id)
        for invite in self._invites.values():
            if (
                invite.project_id == project_id
                and invite.invitee_id == invitee_id
                and invite.status == InviteStatus.PENDING
            ):
                raise DuplicateError(f"User {invitee_id} already has a pending invite to {project_id}")
        invite = Invite(
            id=generate_id("inv"),
            project_id=project_id,
            project_name=row["name"],
            inviter_id=inviter.id,
            inviter_name=inviter.username,
            invitee_id=invitee_id,
            status=InviteStatus.PENDING,
        )
        self._invites[invite.id] = invite
        self._commit()
        return invite.model_copy()

    def update_invite_status(self, invite_id: str, status: InviteStatus) -> Invite:
        invite = self._invites.get(invite_id)
        if invite is None:
            raise NotFoundError("invite", invite_id)
        updated = invite.model_copy(update={"status": InviteStatus(status)})
        self._invites[invite_id] = updated
        self._commit()
        return updated.model_copy()

    def fetch_invite(self, invite_id: str) -> Optional[Invite]:
        invite = self._invites.get(invite_id)
        return invite.model_copy() if invite else None

    def fetch_invites_for_user(
        self,
        user_id: str,
        status: Optional[InviteStatus] = InviteStatus.PENDING,
    ) -> List[Invite]:
        return [
            i.model_copy() for i in self._invites.values()
            if i.invitee_id == user_id and (status is None or i.status == status)
        ]

    def fetch_invites_for_project(
        self,
        project_id: str,
        status: Optional[InviteStatus] = None,
    ) -> List[Invite]:
        return [
            i.model_copy() for i in self._invites.values()
            if i.project_id == project_id and (status is None or i.status == status)
        ]

    # --- Snapshots ---

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready dump of every table."""
        return {
            "users": [u.model_dump(mode="json") for u in self._users.values()],
            "projects": [
                {**_json_row(row), "members": list(self._members.get(pid, []))}
                for pid, row in self._projects.items()
            ],
            "phases": [{"id": pid, **row} for pid, row in self._phases.items()],
            "tasks": [
                {"phase_id": self._task_phase[tid], **task.model_dump(mode="json")}
                for tid, task in self._tasks.items()
            ],
            "invites": [i.model_dump(mode="json") for i in self._invites.values()],
        }

    def restore(self, data: Mapping[str, Any]) -> None:
        """Replace every table with the contents of a snapshot."""
        self._reset()
        for raw in data.get("users", []):
            user = User.model_validate(raw)
            self._users[user.id] = user
        for raw in data.get("projects", []):
            raw = dict(raw)
            members = raw.pop("members", [])
            # Validate the row shape through the entity contract
            project = Project.model_validate(
                {**raw, "members": [{"id": uid, "username": uid} for uid in members]}
            )
            self._projects[project.id] = project.model_dump(exclude={"members", "phases"})
            self._members[project.id] = list(members)
        for raw in data.get("phases", []):
            self._phases[raw["id"]] = {"project_id": raw["project_id"], "title": raw["title"]}
        for raw in data.get("tasks", []):
            raw = dict(raw)
            phase_id = raw.pop("phase_id")
            task = Task.model_validate(raw)
            self._tasks[task.id] = task
            self._task_phase[task.id] = phase_id
        for raw in data.get("invites", []):
            invite = Invite.model_validate(raw)
            self._invites[invite.id] = invite


def _json_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in row.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        elif hasattr(value, "value"):
            value = value.value
        out[key] = value
    return out

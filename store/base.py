"""Store collaborator interface.

The core never talks to a database directly; it goes through a ProjectStore
handed to it by the caller. Implementations raise the typed errors from
``errors``: NotFoundError for unknown ids, DuplicateError for a second pending
invite, UpstreamFailure when the backing system fails.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional

from contracts import Invite, InviteStatus, NewProject, Phase, Project, Task, User


class ProjectStore(ABC):
    """Abstract persistence for users, projects, phases, tasks and invites."""

    # --- Users ---

    @abstractmethod
    def save_user(self, user: User) -> User:
        """Insert or replace a user profile."""
        pass

    @abstractmethod
    def fetch_user(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    def list_users(self) -> List[User]:
        pass

    # --- Projects (read) ---

    @abstractmethod
    def fetch_projects_for_user(self, user_id: str) -> List[Project]:
        """Every project the user is a member of, fully assembled."""
        pass

    @abstractmethod
    def fetch_project(self, project_id: str) -> Optional[Project]:
        """A fully assembled project, or None if the id does not resolve."""
        pass

    # --- Projects (write) ---

    @abstractmethod
    def create_project(self, spec: NewProject) -> Project:
        """Create a project row; the owner becomes its first member."""
        pass

    @abstractmethod
    def add_member(self, project_id: str, user_id: str) -> None:
        """Add a member. Adding an existing member is a no-op."""
        pass

    @abstractmethod
    def add_phase(self, project_id: str, title: str) -> Phase:
        pass

    @abstractmethod
    def add_task(self, phase_id: str, task: Task) -> Task:
        """Persist a task in a phase; an empty task id is assigned by the store."""
        pass

    @abstractmethod
    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        """Apply a partial update. ``state`` replaces status and submission together."""
        pass

    @abstractmethod
    def delete_task(self, task_id: str) -> None:
        """Delete a task. Deleting an unknown id is a no-op."""
        pass

    # --- Invites ---

    @abstractmethod
    def create_invite(self, project_id: str, inviter_id: str, invitee_id: str) -> Invite:
        """Create a pending invite; unique per (project, invitee) while pending."""
        pass

    @abstractmethod
    def update_invite_status(self, invite_id: str, status: InviteStatus) -> Invite:
        pass

    @abstractmethod
    def fetch_invite(self, invite_id: str) -> Optional[Invite]:
        pass

    @abstractmethod
    def fetch_invites_for_user(
        self,
        user_id: str,
        status: Optional[InviteStatus] = InviteStatus.PENDING,
    ) -> List[Invite]:
        """Invites addressed to the user; ``status=None`` returns all of them."""
        pass

    @abstractmethod
    def fetch_invites_for_project(
        self,
        project_id: str,
        status: Optional[InviteStatus] = None,
    ) -> List[Invite]:
        pass

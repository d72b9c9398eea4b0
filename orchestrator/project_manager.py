"""Project Manager - sequences lifecycle transitions and store writes.

The Project Manager is the entry point the CLI talks to. It:
1. Resolves the acting user through the identity collaborator
2. Validates every request before the first write
3. Applies lifecycle transitions and persists them through the store
4. Reports multi-step writes that stop half way as PartialFailure
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

import lifecycle
from agents import PhasePlannerAgent
from analytics import phase_breakdown, phase_progress, project_progress, user_totals, weekly_activity
from contracts import (
    Invite,
    InviteStatus,
    NewProject,
    Phase,
    PhaseDraft,
    ProfileSummary,
    Project,
    ProjectMode,
    ProjectSummary,
    SkillLevel,
    Task,
    TaskStatus,
    TaskSubmission,
    User,
)
from errors import DevStreakError, NotFoundError, PartialFailure, UpstreamFailure, ValidationError
from store import IdentityProvider, ProjectStore

logger = logging.getLogger(__name__)


class ProjectManager:
    """Service layer over a ProjectStore, an IdentityProvider and an optional planner.

    Nothing here is retried: a failed store call surfaces to the caller as is.
    """

    def __init__(
        self,
        store: ProjectStore,
        identity: IdentityProvider,
        planner: Optional[PhasePlannerAgent] = None,
    ):
        self.store = store
        self.identity = identity
        self.planner = planner

    # --- Lookups ---

    def current_user(self) -> User:
        """The acting user.

        Raises:
            ValidationError: If nobody is signed in.
        """
        user = self.identity.current_user()
        if user is None:
            raise ValidationError("No current user; register or pass --user")
        return user

    def list_projects(self) -> List[Project]:
        return self.store.fetch_projects_for_user(self.current_user().id)

    def get_project(self, project_id: str) -> Project:
        project = self.store.fetch_project(project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    def _get_task(self, project: Project, task_id: str) -> Task:
        task = project.find_task(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def _resolve_users(self, user_ids: Iterable[str]) -> List[User]:
        users = []
        for user_id in user_ids:
            user = self.store.fetch_user(user_id)
            if user is None:
                raise NotFoundError("user", user_id)
            if all(u.id != user.id for u in users):
                users.append(user)
        return users

    @staticmethod
    def _owner_first(project: Project) -> List[User]:
        """Members with the owner at index 0, as drafted assignee indexes expect."""
        owner = [m for m in project.members if m.id == project.owner_id]
        return owner + [m for m in project.members if m.id != project.owner_id]

    # --- Projects ---

    def create_project(
        self,
        name: str,
        description: str,
        repo_url: Optional[str] = None,
        member_ids: Sequence[str] = (),
        mode: Optional[ProjectMode] = None,
        skill_level: Optional[SkillLevel] = None,
        phases: Optional[Sequence[PhaseDraft]] = None,
        draft: bool = False,
    ) -> Project:
        """Create a project owned by the current user.

        Args:
            name: Project name (required)
            description: Project description (required)
            repo_url: Optional repository reference
            member_ids: Extra members besides the owner
            mode: Learn & Develop or Direct Develop
            skill_level: Team skill level
            phases: Already drafted phases to persist with the project
            draft: Ask the planner for the first phase when ``phases`` is None.
                A drafting failure is logged and the project is created empty.

        Returns:
            The stored project, re-fetched after every write.

        Raises:
            ValidationError, NotFoundError: Before anything is written.
            UpstreamFailure: If the project row itself could not be created.
            PartialFailure: If a later step failed after the row was created.
        """
        owner = self.current_user()
        try:
            spec = NewProject(
                name=name,
                description=description,
                repo_url=repo_url,
                owner_id=owner.id,
                mode=mode,
                skill_level=skill_level,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid project: {e}") from e

        others = [u for u in self._resolve_users(member_ids) if u.id != owner.id]
        members = [owner] + others

        if phases is None and draft:
            try:
                phases = self._draft_first(spec.description, spec.mode, spec.skill_level, members)
            except UpstreamFailure as e:
                logger.warning("AI drafting failed, creating %r without phases: %s", spec.name, e)
                phases = []
        planned = lifecycle.phases_from_drafts(phases or [], members)

        project = self.store.create_project(spec)
        step = "add members"
        try:
            for user in others:
                self.store.add_member(project.id, user.id)
            for phase in planned:
                step = f"add phase {phase.title!r}"
                stored = self.store.add_phase(project.id, phase.title)
                for task in phase.tasks:
                    step = f"add task {task.title!r}"
                    self.store.add_task(stored.id, task)
        except DevStreakError as e:
            logger.error("Project %s created but %s failed: %s", project.id, step, e)
            raise PartialFailure(str(e), project_id=project.id, step=step, cause=e) from e

        logger.info("Project %s ready with %d member(s), %d phase(s)", project.id, len(members), len(planned))
        return self.get_project(project.id)

    # --- AI drafting ---

    def _require_planner(self) -> PhasePlannerAgent:
        if self.planner is None:
            raise UpstreamFailure("No AI planner configured")
        return self.planner

    def _draft_first(self, description, mode, skill_level, members) -> List[PhaseDraft]:
        return self._require_planner().draft_first_phase(
            description, members, mode=mode, skill_level=skill_level
        )

    def draft_phases(
        self,
        description: str,
        mode: Optional[ProjectMode] = None,
        skill_level: Optional[SkillLevel] = None,
        member_ids: Sequence[str] = (),
    ) -> List[PhaseDraft]:
        """Draft the first phase for a project that does not exist yet."""
        owner = self.current_user()
        members = [owner] + [u for u in self._resolve_users(member_ids) if u.id != owner.id]
        return self._draft_first(description, mode, skill_level, members)

    def draft_next_phase(self, project_id: str) -> List[PhaseDraft]:
        """Draft the phase that follows the project's existing ones."""
        project = self.get_project(project_id)
        return self._require_planner().draft_next_phase(
            project.description,
            [ph.title for ph in project.phases],
            self._owner_first(project),
            mode=project.mode,
            skill_level=project.skill_level,
        )

    def append_drafted_phase(self, project_id: str, draft: PhaseDraft) -> Project:
        """Persist one drafted phase and its tasks at the end of the roadmap."""
        project = self.get_project(project_id)
        planned = lifecycle.phases_from_drafts([draft], self._owner_first(project))
        if not planned:
            raise ValidationError("Drafted phase has no title")
        phase = planned[0]

        stored = self.store.add_phase(project.id, phase.title)
        try:
            for task in phase.tasks:
                self.store.add_task(stored.id, task)
        except DevStreakError as e:
            raise PartialFailure(
                str(e), project_id=project.id, step=f"add tasks to phase {phase.title!r}", cause=e
            ) from e
        logger.info("Appended drafted phase %r to %s", phase.title, project.id)
        return self.get_project(project.id)

    # --- Phases and tasks ---

    def add_phase(self, project_id: str, title: str) -> Phase:
        if not title or not title.strip():
            raise ValidationError("Phase title is required")
        project = self.get_project(project_id)
        phase = self.store.add_phase(project.id, title.strip())
        logger.info("Added phase %s to %s", phase.id, project.id)
        return phase

    def add_task(
        self,
        project_id: str,
        phase_id: str,
        title: str,
        description: str = "",
        assignee_id: Optional[str] = None,
        due_date: Optional[date] = None,
    ) -> Task:
        """Add a Pending task; an unspecified assignee means the project owner."""
        project = self.get_project(project_id)
        if project.find_phase(phase_id) is None:
            raise NotFoundError("phase", phase_id)
        if assignee_id and not project.is_member(assignee_id):
            raise ValidationError(f"Assignee {assignee_id} is not a member of {project.name}")

        task = lifecycle.new_task(
            title,
            owner_id=project.owner_id,
            description=description,
            assignee_id=assignee_id,
            due_date=due_date,
        )
        stored = self.store.add_task(phase_id, task)
        logger.info("Added task %s to phase %s", stored.id, phase_id)
        return stored

    def delete_task(self, project_id: str, task_id: str) -> None:
        """Delete a task. Deleting a task that is not there is a no-op."""
        project = self.get_project(project_id)
        if project.find_task(task_id) is None:
            logger.debug("Task %s not in %s; nothing to delete", task_id, project_id)
            return
        self.store.delete_task(task_id)
        logger.info("Deleted task %s", task_id)

    def submit_task(
        self,
        project_id: str,
        task_id: str,
        submission: TaskSubmission,
        now: Optional[datetime] = None,
    ) -> Task:
        """Complete a task with its proof-of-work in a single state write."""
        task = self._get_task(self.get_project(project_id), task_id)
        completed = lifecycle.submit_task(task, submission, now=now)
        stored = self.store.update_task(task_id, {"state": completed.state})
        logger.info("Task %s submitted", task_id)
        return stored

    def set_task_status(
        self,
        project_id: str,
        task_id: str,
        status: TaskStatus,
        now: Optional[datetime] = None,
    ) -> Task:
        task = self._get_task(self.get_project(project_id), task_id)
        updated = lifecycle.set_task_status(task, status, now=now)
        if updated.state == task.state:
            return task
        stored = self.store.update_task(task_id, {"state": updated.state})
        logger.info("Task %s is now %s", task_id, stored.status.value)
        return stored

    # --- Invites ---

    def send_invite(self, project_id: str, invitee_id: str) -> Invite:
        """Invite a user to a project on behalf of the current user.

        Raises:
            ValidationError: If the current user is not a member.
            DuplicateError: If the invitee is a member or already invited.
        """
        inviter = self.current_user()
        project = self.get_project(project_id)
        if not project.is_member(inviter.id):
            raise ValidationError(f"Only members of {project.name} can invite")
        if self.store.fetch_user(invitee_id) is None:
            raise NotFoundError("user", invitee_id)

        pending = self.store.fetch_invites_for_project(project.id, status=InviteStatus.PENDING)
        lifecycle.check_invitable(project, invitee_id, pending)
        invite = self.store.create_invite(project.id, inviter.id, invitee_id)
        logger.info("Invited %s to %s (%s)", invitee_id, project.id, invite.id)
        return invite

    def pending_invites(self) -> List[Invite]:
        return self.store.fetch_invites_for_user(self.current_user().id, status=InviteStatus.PENDING)

    def _own_invite(self, invite_id: str) -> Invite:
        user = self.current_user()
        invite = self.store.fetch_invite(invite_id)
        if invite is None:
            raise NotFoundError("invite", invite_id)
        if invite.invitee_id != user.id:
            raise ValidationError(f"Invite {invite_id} is not addressed to {user.username}")
        return invite

    def accept_invite(self, invite_id: str) -> Invite:
        """Accept an invite and join its project.

        Membership is written before the status, so an interrupted accept can
        simply be repeated.
        """
        invite = self._own_invite(invite_id)
        accepted = lifecycle.accept_invite(invite)
        self.store.add_member(invite.project_id, invite.invitee_id)
        if accepted.status != invite.status:
            accepted = self.store.update_invite_status(invite.id, accepted.status)
            logger.info("Invite %s accepted; %s joined %s", invite.id, invite.invitee_id, invite.project_id)
        return accepted

    def decline_invite(self, invite_id: str) -> Invite:
        invite = self._own_invite(invite_id)
        declined = lifecycle.decline_invite(invite)
        if declined.status != invite.status:
            declined = self.store.update_invite_status(invite.id, declined.status)
            logger.info("Invite %s declined", invite.id)
        return declined

    def search_invitable_users(self, project_id: str, query: str) -> List[User]:
        """Users matching ``query`` who are not yet members of the project."""
        project = self.get_project(project_id)
        return [u for u in self.identity.search_users(query) if not project.is_member(u.id)]

    # --- Analytics ---

    def project_summary(self, project_id: str) -> ProjectSummary:
        project = self.get_project(project_id)
        return ProjectSummary(
            project_id=project.id,
            name=project.name,
            progress=project_progress(project),
            phase_progress={ph.id: phase_progress(ph) for ph in project.phases},
            completed_phases=[ph.id for ph in project.phases if lifecycle.is_phase_complete(ph)],
            breakdown=phase_breakdown(project),
        )

    def profile_summary(self, now: Optional[datetime] = None) -> ProfileSummary:
        user = self.current_user()
        projects = self.store.fetch_projects_for_user(user.id)
        return ProfileSummary(
            user_id=user.id,
            username=user.username,
            streak=user.streak,
            project_count=len(projects),
            totals=user_totals(projects),
            activity=weekly_activity(projects, now=now),
        )

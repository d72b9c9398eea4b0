"""Shared fixtures: a seeded in-memory store and helpers for building projects."""

from datetime import datetime, timezone

import pytest

from contracts import CompletedState, Phase, Project, Task, TaskStatus, User, state_for
from orchestrator import ProjectManager
from store import InMemoryStore, StoreIdentity


def make_task(task_id: str, status: TaskStatus = TaskStatus.PENDING, completed_at: str = None, blocker: str = "") -> Task:
    """Build a task in the given status; Completed needs ``completed_at``."""
    if status == TaskStatus.COMPLETED:
        state = CompletedState(completed_at=completed_at, blocker_note=blocker)
    else:
        state = state_for(status)
    return Task(id=task_id, title=f"Task {task_id}", assignee_id="u-alice", state=state)


def make_project(*phases: Phase, name: str = "Shop") -> Project:
    owner = User(id="u-alice", username="alice")
    return Project(
        id="p-1",
        name=name,
        description="An online shop",
        owner_id=owner.id,
        members=[owner],
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        phases=list(phases),
    )


@pytest.fixture
def store():
    s = InMemoryStore()
    for user_id, name in [("u-alice", "alice"), ("u-bob", "bob"), ("u-carol", "Carol"), ("u-bobby", "Bobby")]:
        s.save_user(User(id=user_id, username=name))
    return s


@pytest.fixture
def identity(store):
    return StoreIdentity(store, current_user_id="u-alice")


@pytest.fixture
def manager(store, identity):
    return ProjectManager(store, identity)


def act_as(manager: ProjectManager, user_id: str) -> ProjectManager:
    """Same store, different acting user."""
    return ProjectManager(manager.store, StoreIdentity(manager.store, user_id), planner=manager.planner)

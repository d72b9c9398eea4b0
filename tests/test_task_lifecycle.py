"""Tests for task and phase lifecycle transitions."""

from datetime import datetime, timezone

import pytest

from contracts import CompletedState, Phase, PhaseDraft, Task, TaskDraft, TaskStatus, TaskSubmission, User
from errors import ValidationError
from lifecycle import (
    add_task,
    delete_task,
    is_phase_complete,
    new_task,
    phases_from_drafts,
    set_task_status,
    submit_task,
)
from conftest import make_task

NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


class TestNewAndAddTask:
    def test_new_task_defaults(self):
        task = new_task("Set up CI", owner_id="u-owner")
        assert task.id.startswith("t-")
        assert task.status == TaskStatus.PENDING
        assert task.assignee_id == "u-owner"

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError):
            new_task("   ", owner_id="u-owner")

    def test_add_task_fills_id_and_assignee(self):
        phase = Phase(id="ph", title="M1")
        updated = add_task(phase, Task(title="Design schema"), owner_id="u-owner")
        assert phase.tasks == []
        assert len(updated.tasks) == 1
        assert updated.tasks[0].id
        assert updated.tasks[0].assignee_id == "u-owner"
        assert updated.tasks[0].status == TaskStatus.PENDING

    def test_generated_ids_unique(self):
        ids = {new_task("t", owner_id="o").id for _ in range(50)}
        assert len(ids) == 50


class TestDeleteTask:
    def test_removes_by_id(self):
        phase = Phase(id="ph", title="M1", tasks=[make_task("a"), make_task("b")])
        assert [t.id for t in delete_task(phase, "a").tasks] == ["b"]

    def test_absent_id_is_noop(self):
        phase = Phase(id="ph", title="M1", tasks=[make_task("a")])
        assert delete_task(phase, "zzz") == phase


class TestSubmitTask:
    def test_submission_sets_status_and_metadata_together(self):
        task = make_task("a", TaskStatus.IN_PROGRESS)
        submission = TaskSubmission(description="Done", blocker_note="flaky test", notes="n", proof_image_ref="img.png")
        done = submit_task(task, submission, now=NOW)
        assert isinstance(done.state, CompletedState)
        assert done.completed_at == NOW.isoformat()
        assert done.state.submission_description == "Done"
        assert done.state.proof_image_ref == "img.png"
        assert done.blocker_note == "flaky test"
        assert task.status == TaskStatus.IN_PROGRESS

    def test_resubmission_replaces_previous(self):
        first = submit_task(make_task("a"), TaskSubmission(description="v1", notes="old"), now=NOW)
        second = submit_task(first, TaskSubmission(description="v2"), now=NOW)
        assert second.state.submission_description == "v2"
        assert second.state.notes == ""


class TestSetTaskStatus:
    def test_into_completed_stamps_time(self):
        done = set_task_status(make_task("a"), TaskStatus.COMPLETED, now=NOW)
        assert done.completed_at == NOW.isoformat()
        assert done.state.submission_description == ""

    def test_out_of_completed_clears_submission(self):
        done = submit_task(make_task("a"), TaskSubmission(description="x", blocker_note="b"), now=NOW)
        reopened = set_task_status(done, TaskStatus.IN_PROGRESS)
        assert reopened.status == TaskStatus.IN_PROGRESS
        assert reopened.completed_at is None
        assert reopened.blocker_note == ""

    def test_same_status_unchanged(self):
        done = submit_task(make_task("a"), TaskSubmission(description="x"), now=NOW)
        assert set_task_status(done, TaskStatus.COMPLETED) == done

    def test_accepts_string_value(self):
        assert set_task_status(make_task("a"), "Backlog").status == TaskStatus.BACKLOG


class TestPhaseCompletion:
    def test_empty_phase_not_complete(self):
        assert is_phase_complete(Phase(id="ph", title="M1")) is False

    def test_all_completed(self):
        tasks = [make_task(str(i), TaskStatus.COMPLETED, "x") for i in range(3)]
        assert is_phase_complete(Phase(id="ph", title="M1", tasks=tasks)) is True

    def test_two_of_three(self):
        tasks = [make_task("1", TaskStatus.COMPLETED, "x"), make_task("2", TaskStatus.COMPLETED, "x"), make_task("3")]
        assert is_phase_complete(Phase(id="ph", title="M1", tasks=tasks)) is False


class TestPhasesFromDrafts:
    MEMBERS = [User(id="u-owner", username="owner"), User(id="u-dev", username="dev")]

    def test_assignee_index_maps_to_members(self):
        drafts = [PhaseDraft(title="Month 1", tasks=[
            TaskDraft(title="Learn Git", assignee_index=0),
            TaskDraft(title="Build API", assignee_index=1),
            TaskDraft(title="Deploy", assignee_index=7),
        ])]
        phases = phases_from_drafts(drafts, self.MEMBERS)
        assert [t.assignee_id for t in phases[0].tasks] == ["u-owner", "u-dev", "u-owner"]
        assert all(t.status == TaskStatus.PENDING for t in phases[0].tasks)

    def test_blank_titles_dropped(self):
        drafts = [PhaseDraft(title=" "), PhaseDraft(title="M2", tasks=[TaskDraft(title=""), TaskDraft(title="ok")])]
        phases = phases_from_drafts(drafts, self.MEMBERS)
        assert [p.title for p in phases] == ["M2"]
        assert [t.title for t in phases[0].tasks] == ["ok"]

    def test_members_required(self):
        with pytest.raises(ValidationError):
            phases_from_drafts([PhaseDraft(title="M1")], [])

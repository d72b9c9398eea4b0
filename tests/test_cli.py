"""Tests for the devstreak CLI (click CliRunner against a JSON store in tmp_path)."""

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from contracts import NewProject, Task, User
from main import cli
from store import JsonFileStore


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "devstreak.json"
    store = JsonFileStore(path)
    store.save_user(User(id="u-alice", username="alice"))
    store.save_user(User(id="u-bob", username="bob"))
    return path


@pytest.fixture
def seeded(data_file):
    """A project 'Shop' with one phase and one task, owned by alice."""
    store = JsonFileStore(data_file)
    project = store.create_project(NewProject(name="Shop", description="An online shop", owner_id="u-alice"))
    phase = store.add_phase(project.id, "Month 1")
    task = store.add_task(phase.id, Task(title="Set up CI", assignee_id="u-alice"))
    return project.id, phase.id, task.id


def run(data_file, *args, user="u-alice"):
    base = ["--data-file", str(data_file)]
    if user:
        base += ["--user", user]
    return CliRunner().invoke(cli, [*base, *args])


def reload(data_file):
    return JsonFileStore(data_file)


class TestUsers:
    def test_register_and_whoami(self, tmp_path):
        path = tmp_path / "d.json"
        result = run(path, "register", "carol", "--id", "u-carol", user=None)
        assert result.exit_code == 0
        assert "u-carol" in result.output
        result = run(path, "whoami", user="u-carol")
        assert result.exit_code == 0
        assert "carol" in result.output

    def test_whoami_without_user_fails(self, data_file):
        result = run(data_file, "whoami", user=None)
        assert result.exit_code == 1
        assert "No current user" in result.output

    def test_users_search(self, data_file):
        result = run(data_file, "users", "BO")
        assert "bob" in result.output
        assert "alice" not in result.output


class TestProjects:
    def test_create_and_list(self, data_file):
        result = run(data_file, "create", "Shop", "-d", "An online shop", "-m", "u-bob", "--mode", "Direct Develop")
        assert result.exit_code == 0, result.output
        assert "Created" in result.output
        project = reload(data_file).fetch_projects_for_user("u-bob")[0]
        assert project.member_ids() == ["u-alice", "u-bob"]
        assert project.mode.value == "Direct Develop"

        result = run(data_file, "projects")
        assert "Shop" in result.output

    def test_create_blank_description_fails(self, data_file):
        result = run(data_file, "create", "Shop", "-d", " ")
        assert result.exit_code == 1
        assert "Error" in result.output
        assert reload(data_file).fetch_projects_for_user("u-alice") == []

    def test_create_with_failed_draft_still_creates(self, data_file):
        with patch("litellm.completion", side_effect=RuntimeError("no key")):
            result = run(data_file, "create", "Shop", "-d", "An online shop", "--draft")
        assert result.exit_code == 0, result.output
        assert "without phases" in result.output
        assert len(reload(data_file).fetch_projects_for_user("u-alice")) == 1

    def test_show(self, data_file, seeded):
        project_id, _, _ = seeded
        result = run(data_file, "show", project_id)
        assert result.exit_code == 0, result.output
        assert "Shop" in result.output
        assert "Set up CI" in result.output

    def test_show_blocker_only_with_note(self, data_file, seeded):
        project_id, _, task_id = seeded
        run(data_file, "status", project_id, task_id, "backlog")
        result = run(data_file, "show", project_id)
        assert result.exit_code == 0, result.output
        assert "Backlog" in result.output
        assert "blocker:" not in result.output

    def test_show_unknown_project(self, data_file):
        result = run(data_file, "show", "p-missing")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestTasks:
    def test_add_phase_and_task(self, data_file, seeded):
        project_id, phase_id, _ = seeded
        assert run(data_file, "add-phase", project_id, "Month 2").exit_code == 0
        result = run(data_file, "add-task", project_id, phase_id, "Write tests", "-a", "u-alice", "--due", "2024-06-01")
        assert result.exit_code == 0, result.output
        project = reload(data_file).fetch_project(project_id)
        assert [p.title for p in project.phases] == ["Month 1", "Month 2"]
        added = project.phases[0].tasks[-1]
        assert added.title == "Write tests"
        assert added.due_date.isoformat() == "2024-06-01"

    def test_add_task_non_member_assignee(self, data_file, seeded):
        project_id, phase_id, _ = seeded
        result = run(data_file, "add-task", project_id, phase_id, "Write tests", "-a", "u-bob")
        assert result.exit_code == 1

    def test_status_and_submit(self, data_file, seeded):
        project_id, _, task_id = seeded
        result = run(data_file, "status", project_id, task_id, "in progress")
        assert result.exit_code == 0, result.output
        assert reload(data_file).fetch_project(project_id).find_task(task_id).status.value == "In Progress"

        result = run(data_file, "submit", project_id, task_id, "-d", "Pipeline green", "--blocker", "flaky e2e")
        assert result.exit_code == 0, result.output
        task = reload(data_file).fetch_project(project_id).find_task(task_id)
        assert task.is_completed
        assert task.state.submission_description == "Pipeline green"
        assert task.blocker_note == "flaky e2e"

    def test_delete_task_twice(self, data_file, seeded):
        project_id, _, task_id = seeded
        assert run(data_file, "delete-task", project_id, task_id).exit_code == 0
        assert run(data_file, "delete-task", project_id, task_id).exit_code == 0
        assert reload(data_file).fetch_project(project_id).all_tasks() == []


class TestInvites:
    def test_invite_accept(self, data_file, seeded):
        project_id, _, _ = seeded
        assert run(data_file, "invite", project_id, "u-bob").exit_code == 0
        invite = reload(data_file).fetch_invites_for_user("u-bob")[0]

        result = run(data_file, "invites", user="u-bob")
        assert invite.id in result.output
        result = run(data_file, "accept", invite.id, user="u-bob")
        assert result.exit_code == 0, result.output
        assert "u-bob" in reload(data_file).fetch_project(project_id).member_ids()

    def test_duplicate_invite(self, data_file, seeded):
        project_id, _, _ = seeded
        run(data_file, "invite", project_id, "u-bob")
        result = run(data_file, "invite", project_id, "u-bob")
        assert result.exit_code == 1
        assert "pending invite" in result.output

    def test_decline(self, data_file, seeded):
        project_id, _, _ = seeded
        run(data_file, "invite", project_id, "u-bob")
        invite_id = reload(data_file).fetch_invites_for_user("u-bob")[0].id
        assert run(data_file, "decline", invite_id, user="u-bob").exit_code == 0
        assert reload(data_file).fetch_project(project_id).member_ids() == ["u-alice"]


class TestDraftingAndProfile:
    def test_next_phase_saves_draft(self, data_file, seeded):
        project_id, _, _ = seeded
        reply = MagicMock(
            choices=[MagicMock(message=MagicMock(content=json.dumps(
                {"phases": [{"title": "Month 2", "tasks": [{"title": "Deploy", "assignee_index": 0}]}]}
            )))],
            usage=MagicMock(prompt_tokens=1, completion_tokens=1),
            _hidden_params={},
            model="gpt-4o-mini",
        )
        with patch("litellm.completion", return_value=reply):
            result = run(data_file, "--model", "gpt-4o-mini", "next-phase", project_id)
        assert result.exit_code == 0, result.output
        assert "Month 2" in result.output
        assert [p.title for p in reload(data_file).fetch_project(project_id).phases] == ["Month 1", "Month 2"]

    def test_next_phase_failure_exits_1(self, data_file, seeded):
        project_id, _, _ = seeded
        with patch("litellm.completion", side_effect=RuntimeError("quota")):
            result = run(data_file, "next-phase", project_id)
        assert result.exit_code == 1
        assert len(reload(data_file).fetch_project(project_id).phases) == 1

    def test_profile(self, data_file, seeded):
        project_id, _, task_id = seeded
        run(data_file, "submit", project_id, task_id)
        result = run(data_file, "profile")
        assert result.exit_code == 0, result.output
        assert "Completed: 1" in result.output
        assert "Mon" in result.output and "Sun" in result.output

    def test_list_providers(self, data_file):
        result = run(data_file, "list-providers")
        assert result.exit_code == 0
        assert "litellm" in result.output

    def test_gemini_provider_rejects_non_gemini_model(self, data_file, seeded):
        project_id, _, _ = seeded
        result = run(data_file, "--provider", "gemini", "--model", "gpt-4o-mini", "next-phase", project_id)
        assert result.exit_code == 2
        assert "gpt-4o-mini" in result.output
        assert len(reload(data_file).fetch_project(project_id).phases) == 1

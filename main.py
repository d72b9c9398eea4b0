#!/usr/bin/env python3
"""DevStreak CLI - track projects, phases, tasks and invites from the terminal.

Usage:
    # Register and act as a user
    python main.py register alice --id u-alice
    export DEVSTREAK_CURRENT_USER_ID=u-alice

    # Create a project, optionally with an AI-drafted first phase
    python main.py create "Shop" -d "An online shop" --draft

    # Work on tasks
    python main.py add-task <project> <phase> "Set up CI"
    python main.py submit <project> <task> --description "Pipeline green"
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from agents import PhasePlannerAgent
from config import settings
from contracts import (
    PhaseDraft,
    ProjectMode,
    SkillLevel,
    TaskStatus,
    TaskSubmission,
    User,
)
from errors import DevStreakError, PartialFailure
from lifecycle import generate_id
from orchestrator import ProjectManager
from providers import list_providers as get_available_providers
from store import JsonFileStore, StoreIdentity


console = Console()

STATUS_STYLES = {
    TaskStatus.PENDING: "white",
    TaskStatus.IN_PROGRESS: "cyan",
    TaskStatus.BACKLOG: "yellow",
    TaskStatus.COMPLETED: "green",
}


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


class DevStreakGroup(click.Group):
    """Click group that reports DevStreak errors as a red message and exit code 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except PartialFailure as e:
            console.print(f"[red]Partially done:[/red] {escape(str(e))}")
            ctx.exit(1)
        except DevStreakError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            ctx.exit(1)


class AppContext:
    """Lazily built collaborators shared by every command."""

    def __init__(self, data_file: Optional[str], user_id: Optional[str], provider: Optional[str], model: Optional[str]):
        self.store = JsonFileStore(data_file)
        self.identity = StoreIdentity(self.store, user_id or settings.current_user_id)
        self.provider = provider
        self.model = model

    def manager(self, with_planner: bool = False) -> ProjectManager:
        planner = None
        if with_planner:
            try:
                planner = PhasePlannerAgent(model=self.model, provider=self.provider)
            except ValueError as e:
                raise click.BadParameter(str(e), param_hint="--model") from e
        return ProjectManager(self.store, self.identity, planner=planner)


pass_app = click.make_pass_decorator(AppContext)


@click.group(cls=DevStreakGroup)
@click.option("--data-file", default=None, help="JSON data file (default: DEVSTREAK_DATA_FILE or ./devstreak.json)")
@click.option("--user", "-u", "user_id", default=None, help="Act as this user id (default: DEVSTREAK_CURRENT_USER_ID)")
@click.option("--provider", "-p", type=click.Choice(["litellm", "gemini"]), default=None, help="AI provider for drafting")
@click.option("--model", default=None, help="Model name for drafting (e.g. gemini/gemini-2.5-flash, gpt-4o-mini)")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx: click.Context, data_file, user_id, provider, model, verbose):
    """DevStreak: project roadmaps, proof-of-work and team invites."""
    setup_logging(verbose)
    ctx.obj = AppContext(data_file, user_id, provider, model)


# --- Users ---

@cli.command()
@click.argument("username")
@click.option("--id", "user_id", default=None, help="Explicit user id (default: generated)")
@pass_app
def register(app: AppContext, username: str, user_id: Optional[str]):
    """Register a user profile."""
    if not username.strip():
        raise click.BadParameter("username must not be blank")
    user = app.store.save_user(User(id=user_id or generate_id("u"), username=username.strip()))
    console.print(f"[green]Registered[/green] {escape(user.username)} ({user.id})")
    console.print(f"[dim]Act as this user with --user {user.id} or DEVSTREAK_CURRENT_USER_ID={user.id}[/dim]")


@cli.command()
@pass_app
def whoami(app: AppContext):
    """Show the current user."""
    user = app.manager().current_user()
    console.print(f"{escape(user.username)} ({user.id})  streak: {user.streak}")


@cli.command()
@click.argument("query", required=False, default="")
@pass_app
def users(app: AppContext, query: str):
    """List users, or search them by name."""
    found = app.identity.search_users(query) if query else app.store.list_users()
    if not found:
        console.print("[dim]No users found[/dim]")
        return
    for user in found:
        console.print(f"  {user.id:16} {escape(user.username)}")


# --- Projects ---

@cli.command()
@pass_app
def projects(app: AppContext):
    """List the current user's projects."""
    manager = app.manager()
    found = manager.list_projects()
    if not found:
        console.print("[dim]No projects yet. Create one with: devstreak create[/dim]")
        return
    table = Table(title="Projects")
    table.add_column("Id", no_wrap=True)
    table.add_column("Name")
    table.add_column("Members", justify="right")
    table.add_column("Progress", justify="right")
    for project in found:
        summary = manager.project_summary(project.id)
        table.add_row(project.id, escape(project.name), str(len(project.members)), f"{summary.progress}%")
    console.print(table)


@cli.command()
@click.argument("name")
@click.option("--description", "-d", required=True, help="What the project is about")
@click.option("--repo", default=None, help="Repository URL")
@click.option("--member", "-m", "members", multiple=True, help="Member user id (repeatable)")
@click.option("--mode", type=click.Choice([m.value for m in ProjectMode]), default=None)
@click.option("--skill", type=click.Choice([s.value for s in SkillLevel]), default=None)
@click.option("--draft", is_flag=True, help="Ask the AI planner for the first phase")
@pass_app
def create(app: AppContext, name, description, repo, members: Tuple[str, ...], mode, skill, draft):
    """Create a project owned by the current user."""
    manager = app.manager(with_planner=draft)
    project = manager.create_project(
        name,
        description,
        repo_url=repo,
        member_ids=members,
        mode=ProjectMode(mode) if mode else None,
        skill_level=SkillLevel(skill) if skill else None,
        draft=draft,
    )
    console.print(f"[green]Created[/green] {escape(project.name)} ({project.id})")
    if draft and not project.phases:
        console.print("[yellow]AI drafting was unavailable; the project starts without phases.[/yellow]")
    for phase in project.phases:
        console.print(f"  {escape(phase.title)}: {len(phase.tasks)} task(s)")


@cli.command()
@click.argument("project_id")
@pass_app
def show(app: AppContext, project_id: str):
    """Show a project's roadmap and progress."""
    manager = app.manager()
    project = manager.get_project(project_id)
    summary = manager.project_summary(project_id)
    members = {m.id: m.username for m in project.members}

    console.print(Panel.fit(
        f"[bold]{escape(project.name)}[/bold]  {summary.progress}%\n"
        f"[dim]{escape(project.description)}[/dim]",
        border_style="blue",
    ))
    console.print(f"[dim]Members:[/dim] {escape(', '.join(members.values()))}")
    if project.repo_url:
        console.print(f"[dim]Repo:[/dim] {escape(project.repo_url)}")

    tree = Tree(f"{project.id}")
    for phase in project.phases:
        done = " [green]done[/green]" if phase.id in summary.completed_phases else ""
        branch = tree.add(f"{escape(phase.title)} ({phase.id}) {summary.phase_progress[phase.id]}%{done}")
        for task in phase.tasks:
            style = STATUS_STYLES[task.status]
            assignee = members.get(task.assignee_id, task.assignee_id)
            line = f"[{style}]{task.status.value}[/{style}] {escape(task.title)} ({task.id}) @{escape(assignee)}"
            if task.due_date:
                line += f" due {task.due_date.isoformat()}"
            if task.blocker_note.strip():
                line += f" [yellow]blocker: {escape(task.blocker_note)}[/yellow]"
            branch.add(line)
    console.print(tree)


@cli.command("add-phase")
@click.argument("project_id")
@click.argument("title")
@pass_app
def add_phase(app: AppContext, project_id: str, title: str):
    """Add an empty phase to a project."""
    phase = app.manager().add_phase(project_id, title)
    console.print(f"[green]Added phase[/green] {escape(phase.title)} ({phase.id})")


@cli.command("add-task")
@click.argument("project_id")
@click.argument("phase_id")
@click.argument("title")
@click.option("--description", "-d", default="", help="Task description")
@click.option("--assignee", "-a", default=None, help="Member user id (default: project owner)")
@click.option("--due", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Due date (YYYY-MM-DD)")
@pass_app
def add_task(app: AppContext, project_id, phase_id, title, description, assignee, due: Optional[datetime]):
    """Add a Pending task to a phase."""
    task = app.manager().add_task(
        project_id,
        phase_id,
        title,
        description=description,
        assignee_id=assignee,
        due_date=due.date() if due else None,
    )
    console.print(f"[green]Added task[/green] {escape(task.title)} ({task.id})")


@cli.command("delete-task")
@click.argument("project_id")
@click.argument("task_id")
@pass_app
def delete_task(app: AppContext, project_id: str, task_id: str):
    """Delete a task (no error if it is already gone)."""
    app.manager().delete_task(project_id, task_id)
    console.print(f"Deleted {task_id}")


@cli.command()
@click.argument("project_id")
@click.argument("task_id")
@click.argument("status", type=click.Choice([s.value for s in TaskStatus], case_sensitive=False))
@pass_app
def status(app: AppContext, project_id: str, task_id: str, status: str):
    """Move a task to another status."""
    value = next(s for s in TaskStatus if s.value.lower() == status.lower())
    task = app.manager().set_task_status(project_id, task_id, value)
    console.print(f"{escape(task.title)} is now [{STATUS_STYLES[task.status]}]{task.status.value}[/]")


@cli.command()
@click.argument("project_id")
@click.argument("task_id")
@click.option("--description", "-d", default="", help="What was done")
@click.option("--blocker", default="", help="Backlog or blocker note")
@click.option("--notes", default="", help="Free-text notes")
@click.option("--proof", default=None, help="Proof-of-work image reference")
@pass_app
def submit(app: AppContext, project_id, task_id, description, blocker, notes, proof):
    """Complete a task with its proof-of-work."""
    submission = TaskSubmission(description=description, blocker_note=blocker, notes=notes, proof_image_ref=proof)
    task = app.manager().submit_task(project_id, task_id, submission)
    console.print(f"[green]Completed[/green] {escape(task.title)} at {task.completed_at}")


# --- Invites ---

@cli.command()
@click.argument("project_id")
@click.argument("invitee_id")
@pass_app
def invite(app: AppContext, project_id: str, invitee_id: str):
    """Invite a user to a project."""
    sent = app.manager().send_invite(project_id, invitee_id)
    console.print(f"[green]Invited[/green] {invitee_id} to {escape(sent.project_name)} ({sent.id})")


@cli.command()
@pass_app
def invites(app: AppContext):
    """List the current user's pending invites."""
    pending = app.manager().pending_invites()
    if not pending:
        console.print("[dim]No pending invites[/dim]")
        return
    for inv in pending:
        console.print(f"  {inv.id}  {escape(inv.project_name)} from {escape(inv.inviter_name)}")


@cli.command()
@click.argument("invite_id")
@pass_app
def accept(app: AppContext, invite_id: str):
    """Accept an invite and join the project."""
    accepted = app.manager().accept_invite(invite_id)
    console.print(f"[green]Joined[/green] {escape(accepted.project_name)}")


@cli.command()
@click.argument("invite_id")
@pass_app
def decline(app: AppContext, invite_id: str):
    """Decline an invite."""
    declined = app.manager().decline_invite(invite_id)
    console.print(f"Declined invite to {escape(declined.project_name)}")


# --- AI drafting ---

def _print_draft(draft: PhaseDraft) -> None:
    console.print(f"[bold]{escape(draft.title)}[/bold]")
    for task in draft.tasks:
        console.print(f"  - {escape(task.title)} [dim](member #{task.assignee_index})[/dim]")


@cli.command("next-phase")
@click.argument("project_id")
@click.option("--dry-run", is_flag=True, help="Show the draft without saving it")
@pass_app
def next_phase(app: AppContext, project_id: str, dry_run: bool):
    """Draft the next phase of a project with the AI planner."""
    manager = app.manager(with_planner=True)
    with console.status("Drafting next phase..."):
        drafts = manager.draft_next_phase(project_id)
    for draft in drafts:
        _print_draft(draft)
    if dry_run:
        return
    project = manager.append_drafted_phase(project_id, drafts[0])
    console.print(f"[green]Saved[/green] phase {len(project.phases)} of {escape(project.name)}")


# --- Analytics ---

@cli.command()
@pass_app
def profile(app: AppContext):
    """Show totals and the last seven days of activity."""
    summary = app.manager().profile_summary()
    console.print(Panel.fit(
        f"[bold]{escape(summary.username)}[/bold]  streak: {summary.streak}\n"
        f"Projects: {summary.project_count}  "
        f"Completed: [green]{summary.totals.completed}[/green]  "
        f"Backlog: [yellow]{summary.totals.backlog}[/yellow]",
        border_style="blue",
    ))
    for day in summary.activity:
        console.print(f"  {day.label}  {'#' * day.count} {day.count}")


@cli.command("list-providers")
def list_providers():
    """List AI providers and whether they are configured."""
    console.print("[bold]Available AI Providers:[/bold]\n")
    for name, available in get_available_providers().items():
        state = "[green]✓ Ready[/green]" if available else "[red]✗ No API key[/red]"
        console.print(f"  {name:12} {state}")
    console.print("\n[dim]Set API keys via environment variables:[/dim]")
    console.print("  GEMINI_API_KEY, OPENAI_API_KEY, ANTHROPIC_API_KEY")


if __name__ == "__main__":
    cli()

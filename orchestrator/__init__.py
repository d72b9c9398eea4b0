"""Orchestrator module: the service layer the CLI drives."""

from .project_manager import ProjectManager

__all__ = [
    "ProjectManager",
]

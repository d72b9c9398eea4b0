"""Contracts for AI-drafted phases and tasks."""

from typing import Any, List, Optional

from pydantic import BaseModel, Field, model_validator

from .entities import ProjectMode, SkillLevel


class TaskDraft(BaseModel):
    """A task proposed by the planner."""
    title: str
    description: str = Field(default="")
    assignee_index: int = Field(
        default=0,
        description="Index of the member in the provided members list to assign this task to. 0 for owner.",
    )


class PhaseDraft(BaseModel):
    """A phase proposed by the planner."""
    title: str = Field(..., description="e.g., 'Month 1: Foundation' or 'Phase 1: Setup'")
    tasks: List[TaskDraft] = Field(default_factory=list)


class PhasePlan(BaseModel):
    """Planner output: one or more drafted phases."""
    phases: List[PhaseDraft] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def wrap_bare_list(cls, data: Any) -> Any:
        """Models often answer with the bare array of phases."""
        if isinstance(data, list):
            return {"phases": data}
        return data


class DraftRequest(BaseModel):
    """Input handed to the planner."""
    project_description: str
    mode: ProjectMode = Field(default=ProjectMode.DIRECT_DEVELOP)
    skill_level: SkillLevel = Field(default=SkillLevel.NONE)
    members: List[str] = Field(default_factory=list, description="Member display names; list index is the assignee index")
    existing_phases: List[str] = Field(default_factory=list, description="Titles of phases already planned")
    instruction: Optional[str] = None

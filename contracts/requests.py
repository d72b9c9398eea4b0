"""Write-side contracts validated before anything reaches the store."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .entities import ProjectMode, SkillLevel


class NewProject(BaseModel):
    """Fields needed to create a project row."""

    name: str = Field(..., description="Project name")
    description: str = Field(..., description="What the project is about")
    repo_url: Optional[str] = Field(None, description="Optional repository reference")
    owner_id: str = Field(..., min_length=1)
    mode: Optional[ProjectMode] = None
    skill_level: Optional[SkillLevel] = None

    @field_validator("name", "description")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("repo_url")
    @classmethod
    def empty_repo_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class TaskSubmission(BaseModel):
    """Proof-of-work submitted when a task is completed."""

    description: str = Field(default="", description="What was done")
    blocker_note: str = Field(default="", description="Any backlogs or blockers")
    notes: str = Field(default="")
    proof_image_ref: Optional[str] = Field(None, description="Proof-of-work image reference")

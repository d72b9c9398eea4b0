"""Phase Planner Agent - drafts phases and tasks from a project description.

Drafts one phase at a time: the first phase of a new project, or the next
phase after the ones already planned. Output is a validated PhasePlan; any
failure reaches the caller as UpstreamFailure so manual project work is
never blocked by the AI.
"""

from typing import List, Optional, Sequence

from agents.base_agent import BaseAgent
from contracts import DraftRequest, PhaseDraft, PhasePlan, ProjectMode, SkillLevel, User
from errors import UpstreamFailure
from providers import LLMProvider


FIRST_PHASE_INSTRUCTION = (
    "Create ONLY the FIRST PHASE (e.g. \"Month 1\" or \"Phase 1: MVP Core\"). "
    "Do NOT generate the whole project at once."
)

NEXT_PHASE_INSTRUCTION = (
    "The project has already planned the phases listed in existing_phases. "
    "Generate ONLY the NEXT single phase (e.g. if \"Month 1\" is done, generate \"Month 2\")."
)


class PhasePlannerAgent(BaseAgent):
    """Project manager and tech lead: breaks an idea into a phase of tasks."""

    SYSTEM_PROMPT = """You are an expert Project Manager and Technical Tech Lead.
Your goal is to break down a software project idea into concrete, actionable phases and tasks.

## Context fields
- mode: if "Learn & Develop", focus on educational steps first. If "Direct Develop", focus on shipping features.
- skill_level: adjust the technical complexity of the tasks.
- members: team members by index; index 0 is the project owner.

## Rules
1. Follow the instruction field exactly: it says which phase to produce.
2. Inside the phase, list specific tasks with a short description each.
3. Assign tasks effectively among the team members using assignee_index.
4. Respond with ONLY a JSON object of the form {"phases": [...]}. No prose, no explanation."""

    def __init__(
        self,
        model: Optional[str] = None,
        provider: Optional[str] = None,
        llm_provider: Optional[LLMProvider] = None,
    ):
        """Initialize the Phase Planner Agent."""
        super().__init__(
            role="planner",
            system_prompt=self.SYSTEM_PROMPT,
            output_schema=PhasePlan,
            model=model,
            provider=provider,
            llm_provider=llm_provider,
        )

    def get_task_description(self) -> str:
        return "Draft project phases and tasks from a description"

    def _draft(self, request: DraftRequest) -> List[PhaseDraft]:
        try:
            result = self.run(request)
        except Exception as e:
            raise UpstreamFailure(f"AI drafting failed: {e}") from e
        plan: PhasePlan = result.output
        if not plan.phases:
            raise UpstreamFailure("AI drafting returned no phases")
        return plan.phases

    def draft_first_phase(
        self,
        description: str,
        members: Sequence[User],
        mode: Optional[ProjectMode] = None,
        skill_level: Optional[SkillLevel] = None,
    ) -> List[PhaseDraft]:
        """Draft the opening phase of a new project.

        Args:
            description: Project description written by the user.
            members: Project members; list order defines assignee indexes.
            mode: Learn & Develop or Direct Develop.
            skill_level: Team skill level.

        Returns:
            Drafted phases (normally exactly one).

        Raises:
            UpstreamFailure: If the provider fails or never returns a valid plan.
        """
        request = DraftRequest(
            project_description=description,
            mode=mode or ProjectMode.DIRECT_DEVELOP,
            skill_level=skill_level or SkillLevel.NONE,
            members=[m.username for m in members],
            instruction=FIRST_PHASE_INSTRUCTION,
        )
        return self._draft(request)

    def draft_next_phase(
        self,
        description: str,
        existing_phases: Sequence[str],
        members: Sequence[User],
        mode: Optional[ProjectMode] = None,
        skill_level: Optional[SkillLevel] = None,
    ) -> List[PhaseDraft]:
        """Draft the single phase that follows ``existing_phases``."""
        request = DraftRequest(
            project_description=description,
            mode=mode or ProjectMode.DIRECT_DEVELOP,
            skill_level=skill_level or SkillLevel.NONE,
            members=[m.username for m in members],
            existing_phases=list(existing_phases),
            instruction=NEXT_PHASE_INSTRUCTION,
        )
        return self._draft(request)

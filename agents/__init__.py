"""AI collaborators for DevStreak."""

from .base_agent import BaseAgent, AgentResult, TokenUsage
from .planner_agent import PhasePlannerAgent

__all__ = [
    "BaseAgent",
    "AgentResult",
    "TokenUsage",
    "PhasePlannerAgent",
]

"""Agent cognition for the sanctuary: cadence, goal planning, behaviour
execution, and interaction dialogue."""

from .cadence import Cooldown
from .planner import Planner, GoalPlanner, GoalRule, DEFAULT_RULES, GOAL_DURATIONS
from .executor import Executor, BehaviorExecutor, PROBLEM_SOLUTIONS
from .dialogue import DialogueGenerator, ScriptedDialogue, LLMDialogue

__all__ = [
    "Cooldown",
    "Planner",
    "GoalPlanner",
    "GoalRule",
    "DEFAULT_RULES",
    "GOAL_DURATIONS",
    "Executor",
    "BehaviorExecutor",
    "PROBLEM_SOLUTIONS",
    "DialogueGenerator",
    "ScriptedDialogue",
    "LLMDialogue",
]

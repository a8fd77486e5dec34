"""Goal selection for sanctuary agents.

``GoalPlanner`` turns an agent's personality and its current perception into
scored candidate goals and commits to the best one. Candidates come from an
ordered rule table; each rule is gated by a capability so a kind only ever
considers goals it can execute.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from ..schemas import Agent, Capability, Goal, Perception, Position, WorldBounds
from .cadence import Cooldown


class Planner(Protocol):
    """Protocol for goal selectors."""

    def decide(self, agent: Agent, perception: Perception, now: float) -> Optional[Goal]:
        """Return the goal the agent is committed to after this call."""
        ...


GOAL_DURATIONS = {
    "teach": 5000.0,
    "meditate": 8000.0,
    "explore": 10000.0,
    "investigate": 3000.0,
    "restore_harmony": 6000.0,
    "communicate": 2000.0,
}

MEDITATION_HARMONY_THRESHOLD = 60.0
RESTORATION_HARMONY_THRESHOLD = 90.0
COMMUNICATION_RANGE = 60.0


@dataclass(frozen=True)
class GoalRule:
    """One row of the candidate table."""

    goal_type: str
    capability: Capability
    build: Callable[["GoalPlanner", Agent, Perception, float], Optional[Goal]]


def _teach(planner: "GoalPlanner", agent: Agent, perception: Perception, now: float) -> Optional[Goal]:
    sociability = agent.trait("sociability")
    if not perception.movable_units or sociability <= 0.5:
        return None
    target = perception.movable_units[0]
    return Goal(
        type="teach",
        priority=sociability * 10,
        target_id=target.id,
        duration=GOAL_DURATIONS["teach"],
        started_at=now,
    )


def _meditate(planner: "GoalPlanner", agent: Agent, perception: Perception, now: float) -> Optional[Goal]:
    if perception.harmony >= MEDITATION_HARMONY_THRESHOLD:
        return None
    return Goal(
        type="meditate",
        priority=(100 - perception.harmony) / 10,
        duration=GOAL_DURATIONS["meditate"],
        started_at=now,
    )


def _explore(planner: "GoalPlanner", agent: Agent, perception: Perception, now: float) -> Optional[Goal]:
    exploration = agent.trait("exploration")
    if exploration <= 0.6:
        return None
    return Goal(
        type="explore",
        priority=exploration * 8,
        target_position=planner.random_point(agent.size),
        duration=GOAL_DURATIONS["explore"],
        started_at=now,
    )


def _investigate(planner: "GoalPlanner", agent: Agent, perception: Perception, now: float) -> Optional[Goal]:
    if not perception.static_resources:
        return None
    target = perception.static_resources[0]
    return Goal(
        type="investigate",
        priority=agent.trait("curiosity") * 7,
        target_id=target.id,
        duration=GOAL_DURATIONS["investigate"],
        started_at=now,
    )


def _restore_harmony(planner: "GoalPlanner", agent: Agent, perception: Perception, now: float) -> Optional[Goal]:
    if perception.harmony >= RESTORATION_HARMONY_THRESHOLD or not perception.all_ids():
        return None
    return Goal(
        type="restore_harmony",
        priority=(100 - perception.harmony) / 8,
        duration=GOAL_DURATIONS["restore_harmony"],
        started_at=now,
    )


def _communicate(planner: "GoalPlanner", agent: Agent, perception: Perception, now: float) -> Optional[Goal]:
    sociability = agent.trait("sociability")
    if sociability <= 0.4 or not agent.memory:
        return None
    for sighting in perception.other_agents:
        if sighting.distance <= COMMUNICATION_RANGE:
            return Goal(
                type="communicate",
                priority=sociability * 6,
                target_id=sighting.id,
                duration=GOAL_DURATIONS["communicate"],
                started_at=now,
            )
    return None


DEFAULT_RULES: List[GoalRule] = [
    GoalRule("teach", Capability.CAN_TEACH, _teach),
    GoalRule("meditate", Capability.CAN_MEDITATE, _meditate),
    GoalRule("explore", Capability.CAN_EXPLORE, _explore),
    GoalRule("investigate", Capability.CAN_INVESTIGATE, _investigate),
    GoalRule("restore_harmony", Capability.CAN_RESTORE_HARMONY, _restore_harmony),
    GoalRule("communicate", Capability.CAN_COMMUNICATE, _communicate),
]


class GoalPlanner:
    """Cooldown-gated, rule-table goal selector.

    Within an agent's decision cooldown ``decide`` is a no-op returning the
    exact ``current_goal`` object. Outside it, the highest-priority candidate
    wins and ties keep the earlier rule.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        bounds: Optional[WorldBounds] = None,
        rules: Optional[List[GoalRule]] = None,
    ):
        self.rng = rng or random.Random()
        self.bounds = bounds or WorldBounds()
        self.rules = list(rules) if rules is not None else list(DEFAULT_RULES)

    def random_point(self, margin: float = 0.0) -> Position:
        """Uniform coordinate inside the bounds, keeping ``margin`` from the edges."""

        x = margin + self.rng.random() * max(0.0, self.bounds.width - 2 * margin)
        y = margin + self.rng.random() * max(0.0, self.bounds.height - 2 * margin)
        return Position(x=x, y=y)

    def candidates(self, agent: Agent, perception: Perception, now: float) -> List[Goal]:
        """Generate candidates in rule order."""

        goals: List[Goal] = []
        for rule in self.rules:
            if not agent.can(rule.capability):
                continue
            goal = rule.build(self, agent, perception, now)
            if goal is not None:
                goals.append(goal)
        return goals

    def decide(self, agent: Agent, perception: Perception, now: float) -> Optional[Goal]:
        cooldown = Cooldown(agent.decision_cooldown)
        if not cooldown.is_due(now=now, last_run=agent.last_decision_time):
            return agent.current_goal

        best: Optional[Goal] = None
        for candidate in self.candidates(agent, perception, now):
            if best is None or candidate.priority > best.priority:
                best = candidate

        agent.current_goal = best
        if best is not None:
            agent.last_decision_time = now
        agent.sync_state(interacting=False)
        return best

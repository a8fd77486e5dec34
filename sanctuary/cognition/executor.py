"""Behaviour execution for committed goals.

``BehaviorExecutor.execute`` dispatches on ``agent.current_goal.type`` and
mutates only the bodies the goal references. Every behaviour is also exposed
as a public method so callers (and the collaborative problem queue) can invoke
it directly.

Failures are local: a behaviour that cannot run reports ``success=False``
and leaves the world untouched. A vanished target raises
``TargetNotFoundError`` internally; ``execute`` converts it into a cleared goal.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence

from ..config import SimulationSettings
from ..errors import TargetNotFoundError
from ..ledger import ResourceLedger
from ..memory import DecayWeightedMemory, MemoryStrategy
from ..schemas import (
    Agent,
    Body,
    BehaviorResult,
    CollaborativeProblem,
    Position,
    TimedModifier,
    WorldBounds,
    WorldEntity,
    WorldState,
)


class Executor(Protocol):
    """Protocol for behaviour executors."""

    def execute(
        self, agent: Agent, world: WorldState, ledger: ResourceLedger, now: float
    ) -> BehaviorResult:
        ...


ONE_SHOT_GOALS = frozenset({"teach", "meditate", "restore_harmony", "communicate"})

TEACH_BOOST = (1.2, 30000.0)
HARMONY_BOOST = (1.1, 20000.0)
MAX_HARMONY_RESTORED = 5
MEDITATION_HARMONY = 1.0
SHARED_MEMORY_LIMIT = 3
DUPLICATE_WINDOW = 1000.0
COMMUNICATION_GAIN = 0.5
COLLABORATION_GAIN = 2.0


def _solve_harmony_crisis(actors: Sequence[Agent], ledger: ResourceLedger, now: float) -> Dict[str, float]:
    return {"harmony": ledger.add("harmony", 15.0)}


def _solve_resource_shortage(actors: Sequence[Agent], ledger: ResourceLedger, now: float) -> Dict[str, float]:
    for actor in actors:
        actor.apply_modifier(
            TimedModifier(kind="resource_optimization", multiplier=1.3, duration=60000.0, applied_at=now)
        )
    return {}


PROBLEM_SOLUTIONS: Dict[str, Callable[[Sequence[Agent], ResourceLedger, float], Dict[str, float]]] = {
    "harmony_crisis": _solve_harmony_crisis,
    "resource_shortage": _solve_resource_shortage,
}


class BehaviorExecutor:
    """Deterministic executor for the sanctuary goal families."""

    def __init__(
        self,
        memory: Optional[MemoryStrategy] = None,
        bounds: Optional[WorldBounds] = None,
        settings: Optional[SimulationSettings] = None,
    ):
        self.settings = settings or SimulationSettings()
        self.memory = memory or DecayWeightedMemory(
            capacity=self.settings.memory_capacity,
            age_divisor=self.settings.memory_age_divisor,
        )
        self.bounds = bounds or WorldBounds()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def execute(
        self, agent: Agent, world: WorldState, ledger: ResourceLedger, now: float
    ) -> BehaviorResult:
        goal = agent.current_goal
        if goal is None:
            return BehaviorResult(agent_id=agent.id, goal_type="idle", success=False, reason="no goal")

        try:
            result = self._dispatch(agent, world, ledger, now)
        except TargetNotFoundError as exc:
            agent.clear_goal()
            return BehaviorResult(
                agent_id=agent.id,
                goal_type=goal.type,
                success=False,
                completed=True,
                reason=str(exc),
            )

        if agent.current_goal is goal and (
            (result.success and goal.type in ONE_SHOT_GOALS) or result.completed or goal.expired(now)
        ):
            agent.clear_goal()
            result.completed = True
        return result

    def _dispatch(
        self, agent: Agent, world: WorldState, ledger: ResourceLedger, now: float
    ) -> BehaviorResult:
        goal = agent.current_goal
        if goal.type == "teach":
            return self.teach(agent, self._target(agent, world), now)
        if goal.type == "explore":
            if goal.target_position is None:
                raise TargetNotFoundError(agent.id, None)
            return self.explore(agent, goal.target_position, world, now)
        if goal.type == "investigate":
            return self.investigate(agent, self._target(agent, world), world, now)
        if goal.type == "meditate":
            return self.meditate(agent, ledger, now)
        if goal.type == "restore_harmony":
            return self.restore_harmony(agent, world, ledger, now)
        if goal.type == "communicate":
            target = self._target(agent, world)
            if not isinstance(target, Agent):
                raise TargetNotFoundError(agent.id, goal.target_id)
            return self.communicate(agent, target, now)
        return BehaviorResult(
            agent_id=agent.id, goal_type=goal.type, success=False, reason=f"unknown goal type {goal.type!r}"
        )

    @staticmethod
    def _target(agent: Agent, world: WorldState) -> Body:
        target_id = agent.current_goal.target_id if agent.current_goal else None
        target = world.get_body(target_id) if target_id else None
        if target is None:
            raise TargetNotFoundError(agent.id, target_id)
        return target

    # ------------------------------------------------------------------
    # Movement helpers
    # ------------------------------------------------------------------

    def _step_towards(self, actor: Agent, destination: Position) -> float:
        """Move ``actor`` up to ``movement_speed`` towards ``destination``.

        Returns the remaining distance after the step.
        """

        distance = actor.position.distance_to(destination)
        if distance > 0:
            ratio = min(actor.movement_speed / distance, 1.0)
            moved = Position(
                x=actor.position.x + (destination.x - actor.position.x) * ratio,
                y=actor.position.y + (destination.y - actor.position.y) * ratio,
            )
            actor.position = self.bounds.clamp(moved, actor.size)
        return actor.position.distance_to(destination)

    @staticmethod
    def _bodies_within(actor: Agent, world: WorldState, radius: float) -> List[Body]:
        return [
            body
            for body in world.bodies()
            if body.id != actor.id and actor.distance_to(body) <= radius
        ]

    # ------------------------------------------------------------------
    # Behaviours
    # ------------------------------------------------------------------

    def teach(self, actor: Agent, target: Body, now: float) -> BehaviorResult:
        """Boost a nearby movable unit's productivity and learn from it."""

        if not target.movable:
            return BehaviorResult(
                agent_id=actor.id, goal_type="teach", success=False, reason="target is not a movable unit"
            )
        if actor.distance_to(target) > self.settings.teach_range:
            return BehaviorResult(agent_id=actor.id, goal_type="teach", success=False, reason="target out of range")

        multiplier, duration = TEACH_BOOST
        target.apply_modifier(
            TimedModifier(
                kind="productivity_boost",
                multiplier=multiplier,
                duration=duration,
                applied_at=now,
                source=actor.id,
            )
        )
        actor.gain_intelligence(1.0)
        self.memory.record(
            actor,
            {"type": "teaching_completed", "payload": {"target_id": target.id}, "importance": 2.0},
            now,
        )
        return BehaviorResult(agent_id=actor.id, goal_type="teach", success=True, affected_ids=[target.id])

    def explore(
        self, actor: Agent, target_location: Position, world: WorldState, now: float
    ) -> BehaviorResult:
        """Step towards ``target_location`` and map what is found on arrival."""

        remaining = self._step_towards(actor, target_location)
        found = self._bodies_within(actor, world, self.settings.discovery_radius)
        discoveries = [body.id for body in found]

        if discoveries:
            self.memory.record(
                actor,
                {
                    "type": "area_mapping",
                    "payload": {"discoveries": discoveries},
                    "importance": float(len(discoveries)),
                },
                now,
            )

        return BehaviorResult(
            agent_id=actor.id,
            goal_type="explore",
            success=True,
            completed=remaining <= 0.0,
            discoveries=discoveries,
        )

    def investigate(self, actor: Agent, target: Body, world: WorldState, now: float) -> BehaviorResult:
        """Approach a static resource and record it once within discovery range."""

        remaining = self._step_towards(actor, target.position)
        if remaining > self.settings.discovery_radius:
            return BehaviorResult(agent_id=actor.id, goal_type="investigate", success=True)

        entity_type = target.entity_type if isinstance(target, WorldEntity) else "unknown"
        self.memory.record(
            actor,
            {
                "type": "resource_discovered",
                "payload": {"resource_id": target.id, "entity_type": entity_type},
                "importance": 5.0,
            },
            now,
        )
        return BehaviorResult(
            agent_id=actor.id,
            goal_type="investigate",
            success=True,
            completed=True,
            discoveries=[target.id],
        )

    def meditate(self, actor: Agent, ledger: ResourceLedger, now: float) -> BehaviorResult:
        applied = ledger.add("harmony", MEDITATION_HARMONY)
        self.memory.record(actor, {"type": "meditation", "payload": {"harmony_gain": applied}}, now)
        return BehaviorResult(
            agent_id=actor.id, goal_type="meditate", success=True, resource_deltas={"harmony": applied}
        )

    def restore_harmony(
        self, actor: Agent, world: WorldState, ledger: ResourceLedger, now: float
    ) -> BehaviorResult:
        """Raise global harmony by the number of nearby bodies (max 5)."""

        found = self._bodies_within(actor, world, self.settings.harmony_restore_radius)
        if not found:
            return BehaviorResult(
                agent_id=actor.id, goal_type="restore_harmony", success=False, reason="nothing within reach"
            )

        applied = ledger.add("harmony", float(min(MAX_HARMONY_RESTORED, len(found))))
        multiplier, duration = HARMONY_BOOST
        boosted: List[str] = []
        for body in found:
            if not body.movable:
                continue
            body.apply_modifier(
                TimedModifier(
                    kind="harmony_boost",
                    multiplier=multiplier,
                    duration=duration,
                    applied_at=now,
                    source=actor.id,
                )
            )
            boosted.append(body.id)

        return BehaviorResult(
            agent_id=actor.id,
            goal_type="restore_harmony",
            success=True,
            resource_deltas={"harmony": applied},
            affected_ids=boosted,
        )

    def collaborative_solve(
        self,
        actors: Sequence[Agent],
        problem: CollaborativeProblem,
        ledger: ResourceLedger,
        now: float,
    ) -> BehaviorResult:
        """Pool abilities to solve ``problem``; the solution effect applies once."""

        lead = actors[0].id if actors else "nobody"
        abilities = set().union(*(actor.special_abilities for actor in actors)) if actors else set()

        if len(actors) < problem.min_creatures or not problem.required_abilities <= abilities:
            missing = sorted(problem.required_abilities - abilities)
            return BehaviorResult(
                agent_id=lead,
                goal_type="collaborative_solve",
                success=False,
                reason=f"team of {len(actors)} missing {missing}" if missing else "team too small",
            )

        solution = PROBLEM_SOLUTIONS.get(problem.type)
        deltas = solution(actors, ledger, now) if solution else {}
        for actor in actors:
            actor.gain_intelligence(COLLABORATION_GAIN)
            self.memory.record(
                actor,
                {
                    "type": "problem_solved",
                    "payload": {"problem": problem.type, "team": [a.id for a in actors]},
                    "importance": 4.0,
                },
                now,
            )

        return BehaviorResult(
            agent_id=lead,
            goal_type="collaborative_solve",
            success=True,
            completed=True,
            resource_deltas=deltas,
            affected_ids=[actor.id for actor in actors],
            time_to_solve=max(1000.0, 5000.0 - 500.0 * len(actors)),
        )

    def communicate(self, speaker: Agent, listener: Agent, now: float) -> BehaviorResult:
        """Share up to three recent memories with a nearby agent."""

        if speaker.distance_to(listener) > self.settings.communicate_range:
            return BehaviorResult(
                agent_id=speaker.id, goal_type="communicate", success=False, reason="listener out of range"
            )

        shared = 0
        for entry in reversed(self.memory.recent(speaker, SHARED_MEMORY_LIMIT)):
            if self._has_near_duplicate(listener.memory, entry.type, entry.timestamp):
                continue
            self.memory.record(
                listener,
                {
                    "type": entry.type,
                    "timestamp": entry.timestamp,
                    "location": entry.location,
                    "payload": dict(entry.payload),
                    "importance": entry.importance,
                    "source": speaker.id,
                    "shared": True,
                },
                now,
            )
            shared += 1

        speaker.gain_intelligence(COMMUNICATION_GAIN)
        listener.gain_intelligence(COMMUNICATION_GAIN)
        return BehaviorResult(
            agent_id=speaker.id,
            goal_type="communicate",
            success=True,
            affected_ids=[listener.id],
            discoveries=[],
            reason=f"shared {shared} memories",
        )

    @staticmethod
    def _has_near_duplicate(entries: Iterable, memory_type: str, timestamp: float) -> bool:
        return any(
            entry.type == memory_type and abs(entry.timestamp - timestamp) <= DUPLICATE_WINDOW
            for entry in entries
        )

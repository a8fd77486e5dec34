"""
Main simulation orchestrator.

All collaborators (ledger, memory, persistence, dialogue) are injected; the
defaults keep everything in process memory.

Each call to ``tick(now, delta_time)`` runs one synchronous pipeline:
1. Apply pointer inputs recorded since the last tick (placement)
2. Expire timed modifiers
3. Build perceptions, then decide goals, then execute behaviours
4. Refresh running interactions and scan post-movement positions for new ones
5. Attempt queued collaborative problems with free agents
6. Recompute active synergies
7. Re-derive every agent's ``state`` from its goal and interaction membership

A world loaded from a snapshot resumes its saved interactions; anything that
already ended is dropped on construction.

Per-agent failures are isolated into ``TickDiagnostic`` records; ``tick``
always returns its events. ``run`` is the async driver that adds dialogue,
persistence, and console output on top of ``tick``.
"""

import random
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional
from uuid import UUID, uuid4

from .config import Config, SimulationSettings
from .errors import SimulationRunError
from .interactions import InteractionDetector
from .ledger import InMemoryLedger, ResourceLedger, format_resources
from .logging_utils import (
    LOG_TAG_DETERMINISTIC,
    LOG_TAG_ERROR,
    LOG_TAG_INFO,
    LOG_TAG_LLM,
    LOG_TAG_RESONANCE,
    LOG_TAG_SUCCESS,
    log_deterministic,
    log_error,
    log_info,
    log_llm,
    log_resonance,
    log_success,
)
from .memory import DecayWeightedMemory, MemoryStrategy
from .perception import build_agent_perception
from .persistence import InMemoryPersistence, PersistenceStrategy
from .placement import PlacementController
from .schemas import (
    Agent,
    BehaviorResult,
    CollaborativeProblem,
    DomainEvent,
    Interaction,
    Perception,
    PlacementResult,
    SimulationRun,
    Synergy,
    TickDiagnostic,
    WorldState,
)
from .synergy import SynergyCalculator, apply_synergy_effects
from .cognition import BehaviorExecutor, DialogueGenerator, GoalPlanner, ScriptedDialogue


TickListener = Callable[[int, WorldState, List[DomainEvent]], None]


class Orchestrator:
    """
    Main simulation orchestrator.

    Owns the world state between ticks and is the only writer to it; input
    threads talk to it through ``place_agent`` / ``drag_agent`` / ``drop_agent``,
    which merely record pointer events.
    """

    def __init__(
        self,
        world_state: WorldState,
        ledger: Optional[ResourceLedger] = None,
        settings: Optional[SimulationSettings] = None,
        rng: Optional[random.Random] = None,
        memory: Optional[MemoryStrategy] = None,
        persistence: Optional[PersistenceStrategy] = None,
        dialogue: Optional[DialogueGenerator] = None,
        tick_listeners: Optional[List[TickListener]] = None,
        verbose: Optional[bool] = None,
    ):
        """Initialize orchestrator with all dependencies injected.

        Args:
            world_state: Initial WorldState (agents, entities, bounds)
            ledger: Resource ledger (defaults to InMemoryLedger seeded from
                ``world_state.resources`` or the default resources)
            settings: Tunables (defaults read from Config)
            rng: Seeded random source shared by planning and dialogue
            memory: Memory strategy (defaults to DecayWeightedMemory)
            persistence: Persistence strategy used by ``run`` (defaults to InMemory)
            dialogue: Dialogue generator used by ``run`` (defaults to ScriptedDialogue)
            tick_listeners: Callables invoked after each ``run`` tick with
                (tick, world_state, events)
            verbose: Print per-agent diagnostics (defaults to Config.VERBOSE)
        """
        self.world = world_state
        self.settings = settings or SimulationSettings()
        self.rng = rng or random.Random(Config.RANDOM_SEED)
        self.ledger = ledger or InMemoryLedger(world_state.resources or None)
        self.memory = memory or DecayWeightedMemory(
            capacity=self.settings.memory_capacity,
            age_divisor=self.settings.memory_age_divisor,
        )

        self.planner = GoalPlanner(rng=self.rng, bounds=self.world.bounds)
        self.executor = BehaviorExecutor(memory=self.memory, bounds=self.world.bounds, settings=self.settings)
        self.detector = InteractionDetector(
            radius=self.settings.interaction_radius,
            rematch_cooldown=self.settings.interaction_rematch_cooldown,
        )
        self.synergy_calculator = SynergyCalculator()
        self.placement = PlacementController(
            proximity_radius=self.settings.proximity_radius,
            overlap_factor=self.settings.overlap_factor,
        )

        self.persistence = persistence or InMemoryPersistence()
        self.dialogue = dialogue or ScriptedDialogue(random.Random(self.rng.random()))
        self.tick_listeners = tick_listeners or []
        self.verbose = Config.VERBOSE if verbose is None else verbose

        self.pending_problems: List[CollaborativeProblem] = []
        self.active_synergies: List[Synergy] = []
        self.last_diagnostics: List[TickDiagnostic] = []
        self.last_placements: List[PlacementResult] = []
        self._queued_events: List[DomainEvent] = []

        self.world.interactions = self.detector.restore(self.world)
        self.world.resources = self.ledger.snapshot()
        self.run_id: UUID = uuid4()

    # ------------------------------------------------------------------
    # Lifecycle hooks and input entry points
    # ------------------------------------------------------------------

    def on_agent_spawned(self, agent: Agent) -> None:
        """Add ``agent`` to the roster; it participates from the next tick."""

        if self.world.get_agent(agent.id) is not None:
            raise ValueError(f"Agent {agent.id} is already in the world")
        agent.position = self.world.bounds.clamp(agent.position, agent.size)
        self.world.agents.append(agent)
        self._queued_events.append(
            self._event("lifecycle", f"{agent.kind.value} {agent.id} joined the sanctuary", agent_ids=[agent.id])
        )

    def on_agent_removed(self, agent_id: str) -> bool:
        """Remove an agent, cancelling its interaction and any drag holding it."""

        agent = self.world.get_agent(agent_id)
        if agent is None:
            return False

        cancelled = self.detector.cancel_for_agent(agent_id, self.world.timestamp, self.world)
        self.placement.release(agent_id)
        self.world.agents = [a for a in self.world.agents if a.id != agent_id]

        self._queued_events.append(
            self._event("lifecycle", f"{agent.kind.value} {agent_id} left the sanctuary", agent_ids=[agent_id])
        )
        if cancelled is not None:
            self._queued_events.append(self._interaction_event("interaction_cancelled", cancelled))
        return True

    def place_agent(self, agent_id: str, x: float, y: float) -> None:
        """Record a drag start on ``agent_id`` at pointer ``(x, y)``."""
        self.placement.record_start(agent_id, x, y)

    def drag_agent(self, x: float, y: float) -> None:
        self.placement.record_move(x, y)

    def drop_agent(self) -> None:
        self.placement.record_drop()

    def post_problem(self, problem: CollaborativeProblem) -> None:
        """Queue a collaborative problem; free agents attempt it every tick until solved."""
        self.pending_problems.append(problem)

    def production_rates(self, base_rates: Mapping[str, float]) -> Dict[str, float]:
        """Apply the currently active synergies to ``base_rates``."""
        return apply_synergy_effects(base_rates, self.active_synergies)

    # ------------------------------------------------------------------
    # Tick pipeline
    # ------------------------------------------------------------------

    def tick(self, now: float, delta_time: float = 0.0) -> List[DomainEvent]:
        """Run the full pipeline once and return the emitted events."""

        self.world.tick += 1
        self.world.timestamp = now
        self.world.metadata["last_delta_time"] = delta_time

        events: List[DomainEvent] = list(self._queued_events)
        self._queued_events = []
        diagnostics: List[TickDiagnostic] = []

        # 1. Placement inputs recorded since the previous tick
        self.last_placements = self.placement.apply_pending(self.world, now)
        for result in self.last_placements:
            events.append(self._placement_event(result))

        # 2. Modifier expiry
        for body in self.world.bodies():
            body.prune_modifiers(now)

        # 3. Perception -> decision -> execution for free agents
        free_agents = [
            agent
            for agent in self.world.agents
            if not agent.is_dragging and not self.detector.is_interacting(agent.id)
        ]
        perceptions = self._build_perceptions(free_agents, diagnostics)
        self._decide(free_agents, perceptions, now, events, diagnostics)
        self._execute(free_agents, perceptions, now, events, diagnostics)

        # 4. Interactions on post-movement positions
        self._update_interactions(now, events)

        # 5. Collaborative problems
        self._attempt_problems(now, events)

        # 6. Synergies
        self._update_synergies(events)

        for diagnostic in diagnostics:
            events.append(
                self._event(
                    "diagnostic",
                    f"{diagnostic.stage} failed for {diagnostic.agent_id}: {diagnostic.message}",
                    agent_ids=[diagnostic.agent_id],
                    metadata={"error_type": diagnostic.error_type, "stage": diagnostic.stage},
                )
            )
            if self.verbose:
                log_error(
                    f"  {LOG_TAG_ERROR} [{diagnostic.stage}] {diagnostic.agent_id}: "
                    f"{diagnostic.error_type}: {diagnostic.message}"
                )

        for agent in self.world.agents:
            agent.sync_state(self.detector.is_interacting(agent.id))

        self.last_diagnostics = diagnostics
        self.world.interactions = [i.model_copy(deep=True) for i in self.detector.active_interactions()]
        self.world.resources = self.ledger.snapshot()
        return events

    def _diagnose(
        self, diagnostics: List[TickDiagnostic], agent: Agent, stage: str, exc: Exception
    ) -> None:
        diagnostics.append(
            TickDiagnostic(agent_id=agent.id, stage=stage, error_type=type(exc).__name__, message=str(exc))
        )

    def _build_perceptions(
        self, agents: List[Agent], diagnostics: List[TickDiagnostic]
    ) -> Dict[str, Perception]:
        perceptions: Dict[str, Perception] = {}
        for agent in agents:
            try:
                perceptions[agent.id] = build_agent_perception(agent, self.world, self.ledger)
            except Exception as exc:
                self._diagnose(diagnostics, agent, "perception", exc)
        return perceptions

    def _decide(
        self,
        agents: List[Agent],
        perceptions: Dict[str, Perception],
        now: float,
        events: List[DomainEvent],
        diagnostics: List[TickDiagnostic],
    ) -> None:
        for agent in agents:
            perception = perceptions.get(agent.id)
            if perception is None:
                continue
            previous = agent.current_goal
            try:
                goal = self.planner.decide(agent, perception, now)
            except Exception as exc:
                self._diagnose(diagnostics, agent, "decision", exc)
                continue
            if goal is not None and goal is not previous:
                events.append(
                    self._event(
                        "decision",
                        f"{agent.id} chose {goal.type} (priority {goal.priority:.2f})",
                        agent_ids=[agent.id],
                        metadata={"goal": goal.model_dump(mode="json")},
                    )
                )

    def _execute(
        self,
        agents: List[Agent],
        perceptions: Dict[str, Perception],
        now: float,
        events: List[DomainEvent],
        diagnostics: List[TickDiagnostic],
    ) -> None:
        for agent in agents:
            if agent.id not in perceptions or agent.current_goal is None:
                continue
            try:
                result = self.executor.execute(agent, self.world, self.ledger, now)
            except Exception as exc:
                agent.clear_goal()
                self._diagnose(diagnostics, agent, "execution", exc)
                continue
            events.extend(self._behavior_events(result))

    def _update_interactions(self, now: float, events: List[DomainEvent]) -> None:
        update = self.detector.refresh(self.world, now)
        for fired in update.fired:
            events.append(
                self._event(
                    "interaction_effect",
                    f"{fired.effect.type} x{fired.effect.multiplier:g} ({fired.phase})",
                    agent_ids=fired.recipients,
                    metadata={"interaction_id": fired.interaction_id, "phase": fired.phase},
                )
            )
        for interaction in update.expired:
            events.append(self._interaction_event("interaction_ended", interaction))
        for interaction in update.cancelled:
            events.append(self._interaction_event("interaction_cancelled", interaction))

        for interaction in self.detector.scan(self.world.agents, now):
            events.append(self._interaction_event("interaction_started", interaction))
            for resource, amount in interaction.immediate_deltas().items():
                applied = self.ledger.add(resource, amount)
                events.append(
                    self._event(
                        "resource",
                        f"{interaction.type} generated {applied:+.2f} {resource}",
                        agent_ids=list(interaction.participants),
                        resource=resource,
                        delta=applied,
                        metadata={"interaction_id": interaction.id},
                    )
                )

        for fired in self.detector.advance(self.world, now):
            events.append(
                self._event(
                    "interaction_effect",
                    f"{fired.effect.type} x{fired.effect.multiplier:g} ({fired.phase})",
                    agent_ids=fired.recipients,
                    metadata={"interaction_id": fired.interaction_id, "phase": fired.phase},
                )
            )

    def _attempt_problems(self, now: float, events: List[DomainEvent]) -> None:
        if not self.pending_problems:
            return

        available = [
            agent
            for agent in self.world.agents
            if not agent.is_dragging and not self.detector.is_interacting(agent.id)
        ]
        unsolved: List[CollaborativeProblem] = []
        for problem in self.pending_problems:
            team = [
                agent
                for agent in available
                if not problem.required_abilities or agent.special_abilities & problem.required_abilities
            ]
            result = self.executor.collaborative_solve(team, problem, self.ledger, now)
            if not result.success:
                unsolved.append(problem)
                continue

            team_ids = {agent.id for agent in team}
            available = [agent for agent in available if agent.id not in team_ids]
            events.append(
                self._event(
                    "problem_solved",
                    f"{problem.type} solved by {len(team)} agents in {result.time_to_solve:.0f}ms",
                    agent_ids=result.affected_ids,
                    metadata={"problem_id": problem.id, "time_to_solve": result.time_to_solve},
                )
            )
            events.extend(self._resource_events(result))
        self.pending_problems = unsolved

    def _update_synergies(self, events: List[DomainEvent]) -> None:
        roster = [agent for agent in self.world.agents if not agent.is_dragging]
        synergies = self.synergy_calculator.evaluate(roster)
        previous = [synergy.name for synergy in self.active_synergies]
        current = [synergy.name for synergy in synergies]
        self.active_synergies = synergies

        if current != previous:
            events.append(
                self._event(
                    "synergy",
                    f"Active synergies: {', '.join(current) or 'none'}",
                    metadata={"active": current, "previous": previous},
                )
            )

    # ------------------------------------------------------------------
    # Event helpers
    # ------------------------------------------------------------------

    def _event(self, category: str, description: str, **fields: Any) -> DomainEvent:
        return DomainEvent(
            tick=self.world.tick,
            timestamp=self.world.timestamp,
            category=category,
            description=description,
            **fields,
        )

    def _interaction_event(self, category: str, interaction: Interaction) -> DomainEvent:
        verb = {
            "interaction_started": "began",
            "interaction_ended": "completed",
            "interaction_cancelled": "was cancelled",
        }[category]
        return self._event(
            category,
            f"{interaction.type} between {' & '.join(interaction.participants)} {verb}",
            agent_ids=list(interaction.participants),
            metadata={"interaction_id": interaction.id, "type": interaction.type},
        )

    def _placement_event(self, result: PlacementResult) -> DomainEvent:
        if result.is_valid_placement:
            bonus = sum(effect.value for effect in result.effects)
            description = f"{result.unit_id} placed (bonus {bonus:+.2f})"
        else:
            description = f"{result.unit_id} placement reverted: {result.reason}"
        return self._event(
            "placement",
            description,
            agent_ids=[result.unit_id],
            metadata=result.model_dump(mode="json"),
        )

    def _resource_events(self, result: BehaviorResult) -> List[DomainEvent]:
        return [
            self._event(
                "resource",
                f"{result.goal_type} by {result.agent_id}: {delta:+.2f} {resource}",
                agent_ids=[result.agent_id],
                resource=resource,
                delta=delta,
            )
            for resource, delta in result.resource_deltas.items()
            if delta
        ]

    def _behavior_events(self, result: BehaviorResult) -> List[DomainEvent]:
        outcome = "succeeded" if result.success else "failed"
        description = f"{result.agent_id} {result.goal_type} {outcome}"
        if result.reason:
            description += f" ({result.reason})"
        events = [
            self._event(
                "behavior",
                description,
                agent_ids=[result.agent_id, *result.affected_ids],
                metadata={
                    "goal_type": result.goal_type,
                    "success": result.success,
                    "completed": result.completed,
                    "discoveries": result.discoveries,
                },
            )
        ]
        events.extend(self._resource_events(result))
        return events

    # ------------------------------------------------------------------
    # Async driver
    # ------------------------------------------------------------------

    async def run(self, num_ticks: int, tick_ms: Optional[float] = None, start_time: float = 0.0) -> Dict:
        """Run ``num_ticks`` ticks spaced ``tick_ms`` apart.

        Returns:
            Dict with run_id, final_state and every emitted event

        Raises:
            SimulationRunError: If a snapshot or event batch cannot be persisted
        """
        tick_ms = Config.TICK_DURATION_MS if tick_ms is None else tick_ms
        await self.persistence.initialize()

        try:
            await self.persistence.save_run_metadata(
                SimulationRun(
                    id=self.run_id,
                    start_time=datetime.now(timezone.utc),
                    num_ticks=num_ticks,
                    config=self.settings.model_dump(mode="json"),
                )
            )
            await self._persist_tick(self.world.tick, [])

            print(f"Starting sanctuary run {self.run_id}")
            print(f"Agents: {len(self.world.agents)}, Entities: {len(self.world.entities)}, Ticks: {num_ticks}\n")

            all_events: List[DomainEvent] = []
            now = start_time
            for index in range(1, num_ticks + 1):
                print(f"=== Tick {index}/{num_ticks} ===")
                now += tick_ms
                events = self.tick(now, tick_ms)
                await self._voice_new_interactions(events)
                await self._persist_tick(self.world.tick, events)
                self._print_tick_summary(events)
                all_events.extend(events)

                for listener in self.tick_listeners:
                    try:
                        listener(self.world.tick, self.world, events)
                    except Exception as exc:  # pragma: no cover - diagnostic hook
                        print(f"  [Analysis] Listener failed: {exc}")

            await self.persistence.update_run_status(self.run_id, "completed", datetime.now(timezone.utc))
            log_success(f"\n{LOG_TAG_SUCCESS} Simulation complete!")
            return {"run_id": self.run_id, "final_state": self.world, "events": all_events}

        except SimulationRunError:
            await self.persistence.update_run_status(self.run_id, "failed", datetime.now(timezone.utc))
            raise

        finally:
            await self.persistence.close()

    async def _voice_new_interactions(self, events: List[DomainEvent]) -> None:
        for event in events:
            if event.category != "interaction_started":
                continue
            interaction = self.detector.active.get(event.metadata["interaction_id"])
            if interaction is None:
                continue
            participants = [self.world.get_agent(agent_id) for agent_id in interaction.participants]
            lines = await self.dialogue.generate(interaction, [p for p in participants if p is not None])
            interaction.dialogue = lines
            event.metadata["dialogue"] = lines
        self.world.interactions = [i.model_copy(deep=True) for i in self.detector.active_interactions()]

    async def _persist_tick(self, tick: int, events: List[DomainEvent]) -> None:
        try:
            await self.persistence.save_state(self.run_id, tick, self.world)
            if events:
                await self.persistence.save_events(self.run_id, tick, events)
        except Exception as exc:
            raise SimulationRunError(tick, exc) from exc

    def _print_tick_summary(self, events: List[DomainEvent]) -> None:
        resource_summary = format_resources(self.ledger.snapshot())
        if resource_summary:
            log_info(f"  {LOG_TAG_INFO} Resources: {resource_summary}")

        for event in events:
            if event.category in {"decision", "behavior"}:
                log_deterministic(f"  {LOG_TAG_DETERMINISTIC} {event.description}")
            elif event.category.startswith("interaction") or event.category == "synergy":
                log_resonance(f"  {LOG_TAG_RESONANCE} {event.description}")
                for line in event.metadata.get("dialogue", []):
                    log_llm(f"      {LOG_TAG_LLM} {line}")
            elif event.category == "diagnostic":
                log_error(f"  {LOG_TAG_ERROR} {event.description}")
            elif event.category in {"problem_solved", "placement", "lifecycle"}:
                log_success(f"  {LOG_TAG_SUCCESS} {event.description}")

        print()

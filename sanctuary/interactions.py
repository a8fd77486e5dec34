"""
Pairwise interaction detection and lifecycle.

``InteractionDetector`` scans agent pairs after movement has resolved, creates
timed three-phase interactions for pairs within range, fires each phase's
timed effects when the phase starts, and ends interactions on expiry or
cancellation.

Lifecycle rules:
- An agent belongs to at most one active interaction
- Within one scan, pairs are visited in roster order and the first match wins;
  a later pair containing an already-matched agent is skipped (not queued)
- Resource-generation effects are granted once, at creation
- Timed modifier effects fire phase by phase; cancelling stops unfired phases
  but never reverses what already applied
- After an interaction ends, the same pair waits ``rematch_cooldown`` before
  it can match again
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple
from uuid import uuid4

from .errors import InteractionConflict
from .schemas import (
    Agent,
    AgentKind,
    Interaction,
    InteractionEffect,
    InteractionPhase,
    TimedModifier,
    WorldState,
)


GENERAL_SYNERGY = "general_synergy"
PHASE_NAMES: Tuple[str, str, str] = ("initiation", "collaboration", "completion")

PAIR_TYPES: Dict[FrozenSet[AgentKind], str] = {
    frozenset({AgentKind.DREAMER, AgentKind.WEAVER}): "inspiration",
    frozenset({AgentKind.PHILOSOPHER_DREAMER, AgentKind.ARTISTIC_WEAVER}): "creative_collaboration",
    frozenset({AgentKind.CURIOUS_EXPLORER, AgentKind.PHILOSOPHER_DREAMER}): "knowledge_sharing",
    frozenset({AgentKind.COSMIC_SAGE, AgentKind.VOID_EXPLORER}): "knowledge_sharing",
}

INTERACTION_DURATIONS: Dict[str, float] = {
    "inspiration": 5000.0,
    "creative_collaboration": 6000.0,
    "knowledge_sharing": 7500.0,
    GENERAL_SYNERGY: 5000.0,
}


def classify_pair(first: AgentKind, second: AgentKind) -> str:
    """Look up the interaction type for an unordered kind pair."""

    return PAIR_TYPES.get(frozenset({first, second}), GENERAL_SYNERGY)


def build_effects(interaction_type: str, first: Agent, second: Agent) -> List[InteractionEffect]:
    """Effects list for a new interaction, in phase-assignment order."""

    if interaction_type == "inspiration":
        return [
            InteractionEffect(type="resource_generation", resource="inspiration", amount=5.0),
            InteractionEffect(
                type="productivity_boost", multiplier=1.3, duration=10000.0, target_id=second.id
            ),
        ]
    if interaction_type == "creative_collaboration":
        return [
            InteractionEffect(type="resource_generation", resource="inspiration", amount=8.0),
            InteractionEffect(type="resource_generation", resource="insight", amount=3.0),
            InteractionEffect(type="synergy_bonus", multiplier=1.5, duration=6000.0),
        ]
    if interaction_type == "knowledge_sharing":
        return [
            InteractionEffect(type="resource_generation", resource="wisdom", amount=6.0),
            InteractionEffect(type="resource_generation", resource="insight", amount=4.0),
            InteractionEffect(type="learning_boost", multiplier=1.25, duration=15000.0),
        ]
    return [
        InteractionEffect(type="resource_generation", resource="harmony", amount=2.0),
        InteractionEffect(type="synergy_bonus", multiplier=1.1, duration=5000.0),
    ]


def build_phases(start_time: float, duration: float, effects: Sequence[InteractionEffect]) -> List[InteractionPhase]:
    """Split ``duration`` into three equal phases; phase i owns effects[j] with j % 3 == i."""

    slice_length = duration / len(PHASE_NAMES)
    return [
        InteractionPhase(
            name=name,
            start_time=start_time + index * slice_length,
            duration=slice_length,
            effects=[effect for j, effect in enumerate(effects) if j % len(PHASE_NAMES) == index],
        )
        for index, name in enumerate(PHASE_NAMES)
    ]


@dataclass
class FiredEffect:
    interaction_id: str
    phase: str
    effect: InteractionEffect
    recipients: List[str]


@dataclass
class InteractionUpdate:
    """What changed during ``refresh``."""

    fired: List[FiredEffect] = field(default_factory=list)
    expired: List[Interaction] = field(default_factory=list)
    cancelled: List[Interaction] = field(default_factory=list)


class InteractionDetector:
    """Find, run, and end pairwise interactions.

    The detector is the only record of who is interacting; agent ``state``
    strings are derived from it. After an interaction ends, the same pair
    may not start another until ``rematch_cooldown`` ms have passed. Pass
    ``rematch_cooldown=0`` to let a pair re-match on the very next tick.
    """

    def __init__(self, radius: float = 60.0, rematch_cooldown: float = 10000.0):
        self.radius = radius
        self.rematch_cooldown = rematch_cooldown
        self.active: Dict[str, Interaction] = {}
        self._membership: Dict[str, str] = {}
        self._pair_available_at: Dict[FrozenSet[str], float] = {}
        self.last_conflicts: List[InteractionConflict] = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def interaction_for(self, agent_id: str) -> Optional[Interaction]:
        interaction_id = self._membership.get(agent_id)
        return self.active.get(interaction_id) if interaction_id else None

    def is_interacting(self, agent_id: str) -> bool:
        return agent_id in self._membership

    def active_interactions(self) -> List[Interaction]:
        return list(self.active.values())

    def restore(self, world: WorldState) -> List[Interaction]:
        """Rebuild the active set from ``world.interactions`` (a loaded snapshot).

        Interactions that already ended, or that name a missing or doubly
        booked agent, are dropped. Every agent's state is re-derived from
        the result.
        """

        self.active.clear()
        self._membership.clear()
        restored: List[Interaction] = []
        for saved in world.interactions:
            if not saved.active or world.timestamp >= saved.end_time:
                continue
            if any(world.get_agent(a) is None or a in self._membership for a in saved.participants):
                continue
            interaction = saved.model_copy(deep=True)
            self.active[interaction.id] = interaction
            for agent_id in interaction.participants:
                self._membership[agent_id] = interaction.id
            restored.append(interaction)

        for agent in world.agents:
            agent.sync_state(self.is_interacting(agent.id))
        return restored

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def scan(self, agents: Sequence[Agent], now: float) -> List[Interaction]:
        """Create interactions for eligible pairs within ``radius``."""

        self.last_conflicts = []
        created: List[Interaction] = []

        candidates = [agent for agent in agents if not agent.is_dragging]
        for first, second in combinations(candidates, 2):
            if first.distance_to(second) > self.radius:
                continue

            busy = next((a.id for a in (first, second) if self.is_interacting(a.id)), None)
            if busy is not None:
                self.last_conflicts.append(InteractionConflict([first.id, second.id], busy))
                continue

            pair = frozenset({first.id, second.id})
            if now < self._pair_available_at.get(pair, float("-inf")):
                continue

            interaction = self._create(first, second, now)
            created.append(interaction)

        return created

    def _create(self, first: Agent, second: Agent, now: float) -> Interaction:
        interaction_type = classify_pair(first.kind, second.kind)
        duration = INTERACTION_DURATIONS.get(interaction_type, INTERACTION_DURATIONS[GENERAL_SYNERGY])
        effects = build_effects(interaction_type, first, second)

        interaction = Interaction(
            id=uuid4().hex,
            participants=[first.id, second.id],
            type=interaction_type,
            start_time=now,
            duration=duration,
            effects=effects,
            phases=build_phases(now, duration, effects),
        )
        self.active[interaction.id] = interaction
        for agent in (first, second):
            self._membership[agent.id] = interaction.id
            agent.sync_state(interacting=True)
        return interaction

    # ------------------------------------------------------------------
    # Progression
    # ------------------------------------------------------------------

    def advance(self, world: WorldState, now: float) -> List[FiredEffect]:
        """Fire the timed effects of every phase that has started."""

        fired: List[FiredEffect] = []
        for interaction in list(self.active.values()):
            for phase in interaction.phases:
                if phase.fired or now < phase.start_time:
                    continue
                phase.fired = True
                for effect in phase.effects:
                    if effect.is_immediate:
                        continue
                    recipients = self._apply_modifier(interaction, effect, world, phase.start_time)
                    fired.append(FiredEffect(interaction.id, phase.name, effect, recipients))
        return fired

    @staticmethod
    def _apply_modifier(
        interaction: Interaction, effect: InteractionEffect, world: WorldState, applied_at: float
    ) -> List[str]:
        targets = [effect.target_id] if effect.target_id else list(interaction.participants)
        recipients: List[str] = []
        for agent_id in targets:
            agent = world.get_agent(agent_id)
            if agent is None:
                continue
            agent.apply_modifier(
                TimedModifier(
                    kind=effect.type,
                    multiplier=effect.multiplier,
                    duration=effect.duration,
                    applied_at=applied_at,
                    source=interaction.id,
                )
            )
            recipients.append(agent_id)
        return recipients

    def refresh(self, world: WorldState, now: float) -> InteractionUpdate:
        """Fire due phases, then end expired and broken interactions."""

        update = InteractionUpdate(fired=self.advance(world, now))

        for interaction in list(self.active.values()):
            if now >= interaction.end_time:
                self._finish(interaction, now, world)
                update.expired.append(interaction)
                continue

            members = [world.get_agent(agent_id) for agent_id in interaction.participants]
            if any(member is None for member in members) or self._separated(members):
                self._finish(interaction, now, world)
                update.cancelled.append(interaction)

        return update

    def _separated(self, members: Sequence[Agent]) -> bool:
        return any(a.distance_to(b) > self.radius for a, b in combinations(members, 2))

    def cancel(self, interaction_id: str, now: float, world: WorldState) -> bool:
        """Stop an interaction early. Returns ``False`` when nothing was active."""

        interaction = self.active.get(interaction_id)
        if interaction is None:
            return False
        self._finish(interaction, now, world)
        return True

    def cancel_for_agent(self, agent_id: str, now: float, world: WorldState) -> Optional[Interaction]:
        interaction = self.interaction_for(agent_id)
        if interaction is None:
            return None
        self._finish(interaction, now, world)
        return interaction

    def _finish(self, interaction: Interaction, now: float, world: WorldState) -> None:
        interaction.active = False
        self.active.pop(interaction.id, None)
        self._pair_available_at[frozenset(interaction.participants)] = now + self.rematch_cooldown
        for agent_id in interaction.participants:
            if self._membership.get(agent_id) == interaction.id:
                del self._membership[agent_id]
            agent = world.get_agent(agent_id)
            if agent is not None:
                agent.sync_state(interacting=False)

"""Agent kind profiles and the seeded agent factory.

Each :class:`~sanctuary.schemas.AgentKind` maps to a static
:class:`KindProfile` describing what the kind may do (capabilities), which
ability tags it contributes to collaborative problems, and how it sits in the
world (size, whether it counts as a movable unit). Personality traits are drawn
from an injected ``random.Random`` so runs are reproducible.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from .config import SimulationSettings
from .schemas import Agent, AgentKind, Capability, Position, WorldBounds


PERSONALITY_TRAITS: Tuple[str, ...] = ("curiosity", "sociability", "productivity", "exploration")
DEFAULT_INTELLIGENCE = 100.0


@dataclass(frozen=True)
class KindProfile:
    """Static description of an agent kind."""

    capabilities: FrozenSet[Capability]
    special_abilities: Tuple[str, ...]
    size: float = 25.0
    movable: bool = False
    category: str = "creature"


_CREATURE = "creature"
_UNIT = "unit"

KIND_PROFILES: Dict[AgentKind, KindProfile] = {
    AgentKind.COSMIC_SAGE: KindProfile(
        capabilities=frozenset(
            {Capability.CAN_TEACH, Capability.CAN_MEDITATE, Capability.CAN_INVESTIGATE, Capability.CAN_COMMUNICATE}
        ),
        special_abilities=("insight_generation", "knowledge_sharing", "meditation"),
    ),
    AgentKind.VOID_EXPLORER: KindProfile(
        capabilities=frozenset(
            {Capability.CAN_EXPLORE, Capability.CAN_INVESTIGATE, Capability.CAN_COMMUNICATE}
        ),
        special_abilities=("void_navigation", "resource_discovery", "pathfinding"),
    ),
    AgentKind.HARMONY_KEEPER: KindProfile(
        capabilities=frozenset(
            {Capability.CAN_RESTORE_HARMONY, Capability.CAN_MEDITATE, Capability.CAN_COMMUNICATE}
        ),
        special_abilities=("harmony_restoration", "conflict_resolution", "healing"),
    ),
    AgentKind.DREAMER: KindProfile(
        capabilities=frozenset({Capability.CAN_MEDITATE, Capability.CAN_EXPLORE, Capability.CAN_COMMUNICATE}),
        special_abilities=("dream_weaving",),
        size=20.0,
        movable=True,
        category=_UNIT,
    ),
    AgentKind.WEAVER: KindProfile(
        capabilities=frozenset({Capability.CAN_INVESTIGATE, Capability.CAN_COMMUNICATE}),
        special_abilities=("pattern_weaving",),
        size=20.0,
        movable=True,
        category=_UNIT,
    ),
    AgentKind.PHILOSOPHER_DREAMER: KindProfile(
        capabilities=frozenset({Capability.CAN_TEACH, Capability.CAN_MEDITATE, Capability.CAN_COMMUNICATE}),
        special_abilities=("contemplation", "knowledge_sharing"),
        size=20.0,
        movable=True,
        category=_UNIT,
    ),
    AgentKind.ARTISTIC_WEAVER: KindProfile(
        capabilities=frozenset({Capability.CAN_INVESTIGATE, Capability.CAN_COMMUNICATE}),
        special_abilities=("artistic_expression",),
        size=20.0,
        movable=True,
        category=_UNIT,
    ),
    AgentKind.CURIOUS_EXPLORER: KindProfile(
        capabilities=frozenset(
            {Capability.CAN_EXPLORE, Capability.CAN_INVESTIGATE, Capability.CAN_COMMUNICATE}
        ),
        special_abilities=("discovery", "pathfinding"),
        size=20.0,
        movable=True,
        category=_UNIT,
    ),
}


def profile_for(kind: AgentKind | str) -> KindProfile:
    return KIND_PROFILES[AgentKind(kind)]


def is_creature(kind: AgentKind | str) -> bool:
    return profile_for(kind).category == _CREATURE


def random_personality(rng: random.Random) -> Dict[str, float]:
    """Draw every trait uniformly from ``[0, 1)`` in a fixed order."""

    return {trait: rng.random() for trait in PERSONALITY_TRAITS}


def create_agent(
    kind: AgentKind | str,
    x: float,
    y: float,
    *,
    rng: Optional[random.Random] = None,
    bounds: Optional[WorldBounds] = None,
    settings: Optional[SimulationSettings] = None,
    personality: Optional[Mapping[str, float]] = None,
    agent_id: Optional[str] = None,
) -> Agent:
    """Create an agent of ``kind`` at ``(x, y)``.

    The spawn point is clamped so the agent's whole radius sits inside
    ``bounds``. Missing personality traits are drawn from ``rng``; explicit
    traits override the drawn ones.
    """

    kind = AgentKind(kind)
    rng = rng or random.Random()
    bounds = bounds or WorldBounds()
    settings = settings or SimulationSettings()
    profile = KIND_PROFILES[kind]

    traits = random_personality(rng)
    if personality:
        traits.update(personality)

    if agent_id is None:
        agent_id = f"{kind.value}-{rng.getrandbits(32):08x}"

    position = bounds.clamp(Position(x=x, y=y), profile.size)

    return Agent(
        id=agent_id,
        kind=kind,
        position=position,
        size=profile.size,
        movable=profile.movable,
        draggable=True,
        personality=traits,
        intelligence=DEFAULT_INTELLIGENCE,
        decision_cooldown=settings.decision_cooldown,
        perception_radius=settings.perception_radius,
        movement_speed=settings.movement_speed,
        capabilities=set(profile.capabilities),
        special_abilities=set(profile.special_abilities),
    )

"""
Pydantic schemas for the sanctuary simulation core.

All data structures shared between services are defined here.

Design Philosophy:
- Agents and world entities share a ``Body`` base (position, size, modifiers)
- Agent kinds are a tagged variant (``AgentKind``) with an explicit capability set
- Back-references are ids, never live objects, so every record serializes flat
- Pydantic validation guards invariants (trait ranges, intelligence cap, importance ≥ 0)
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


MAX_INTELLIGENCE = 200.0
"""Upper bound for ``Agent.intelligence``."""


# ============================================================================
# Tagged variants
# ============================================================================


class AgentKind(str, Enum):
    """Every kind of autonomous agent the sanctuary can host."""

    COSMIC_SAGE = "cosmic_sage"
    VOID_EXPLORER = "void_explorer"
    HARMONY_KEEPER = "harmony_keeper"
    DREAMER = "dreamer"
    WEAVER = "weaver"
    PHILOSOPHER_DREAMER = "philosopher_dreamer"
    ARTISTIC_WEAVER = "artistic_weaver"
    CURIOUS_EXPLORER = "curious_explorer"


class Capability(str, Enum):
    """Goal families an agent kind is allowed to pursue."""

    CAN_TEACH = "can_teach"
    CAN_MEDITATE = "can_meditate"
    CAN_EXPLORE = "can_explore"
    CAN_INVESTIGATE = "can_investigate"
    CAN_RESTORE_HARMONY = "can_restore_harmony"
    CAN_COMMUNICATE = "can_communicate"


# ============================================================================
# Geometry
# ============================================================================


class Position(BaseModel):
    """A point in world coordinates."""

    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")

    def distance_to(self, other: "Position") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


class WorldBounds(BaseModel):
    """Rectangular world extent with the origin at the top-left corner."""

    width: float = Field(800.0, gt=0, description="World width")
    height: float = Field(600.0, gt=0, description="World height")

    def clamp(self, position: Position, margin: float = 0.0) -> Position:
        """Return ``position`` clamped to ``[margin, dimension - margin]`` per axis."""

        x = min(max(position.x, margin), self.width - margin)
        y = min(max(position.y, margin), self.height - margin)
        return Position(x=x, y=y)

    def contains(self, position: Position, margin: float = 0.0) -> bool:
        return (
            margin <= position.x <= self.width - margin
            and margin <= position.y <= self.height - margin
        )


# ============================================================================
# Bodies
# ============================================================================


class TimedModifier(BaseModel):
    """A temporary multiplier attached to a body (productivity boost, etc.)."""

    kind: str = Field(..., description="Modifier name, e.g. productivity_boost")
    multiplier: float = Field(..., description="Multiplicative factor while active")
    duration: float = Field(..., ge=0, description="Lifetime in milliseconds")
    applied_at: float = Field(..., description="Timestamp the modifier was applied")
    source: Optional[str] = Field(None, description="Id of the agent or interaction that granted it")

    def expired(self, now: float) -> bool:
        return now - self.applied_at >= self.duration


class Body(BaseModel):
    """Anything with a position and radius that lives in the world.

    ``movable`` marks bodies that behave as units (they can be taught and
    boosted); ``draggable`` marks bodies the player can reposition. Bodies with
    ``draggable=False`` are fixed obstacles for placement validation.
    """

    id: str = Field(..., description="Unique identifier")
    position: Position = Field(..., description="Centre of the body")
    size: float = Field(25.0, gt=0, description="Radius")
    movable: bool = Field(True, description="Whether the body counts as a movable unit")
    draggable: bool = Field(True, description="Whether the player can reposition it")
    is_dragging: bool = Field(False, description="True while a drag session holds the body")
    modifiers: List[TimedModifier] = Field(default_factory=list, description="Active timed modifiers")

    def distance_to(self, other: "Body") -> float:
        return self.position.distance_to(other.position)

    def apply_modifier(self, modifier: TimedModifier) -> None:
        """Attach ``modifier``, replacing any active modifier of the same kind."""

        self.modifiers = [m for m in self.modifiers if m.kind != modifier.kind]
        self.modifiers.append(modifier)

    def get_modifier(self, kind: str) -> Optional[TimedModifier]:
        for modifier in self.modifiers:
            if modifier.kind == kind:
                return modifier
        return None

    def prune_modifiers(self, now: float) -> List[TimedModifier]:
        """Drop expired modifiers and return them."""

        expired = [m for m in self.modifiers if m.expired(now)]
        if expired:
            self.modifiers = [m for m in self.modifiers if not m.expired(now)]
        return expired


class WorldEntity(Body):
    """A non-autonomous body: domes, crystal trees, wandering sprites."""

    entity_type: str = Field(..., description="Entity category, e.g. dome or crystal_tree")
    movable: bool = Field(False, description="Static resources are not movable")
    draggable: bool = Field(False, description="Static resources cannot be dragged")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Scenario-defined metadata")


# ============================================================================
# Cognition records
# ============================================================================


class MemoryEntry(BaseModel):
    """One remembered event in an agent's bounded memory."""

    timestamp: float = Field(..., description="When the event happened (ms)")
    type: str = Field(..., min_length=1, description="Event type, e.g. area_mapping")
    location: Position = Field(..., description="Agent position when recorded")
    payload: Dict[str, Any] = Field(..., description="Event details")
    importance: float = Field(1.0, ge=0, description="Retention weight")
    source: Optional[str] = Field(None, description="Originating agent id for shared entries")
    shared: bool = Field(False, description="True when copied from another agent")


class Goal(BaseModel):
    """A scored candidate action an agent has committed to."""

    type: str = Field(..., description="Goal type, e.g. teach or explore")
    priority: float = Field(..., description="Score used during selection")
    target_id: Optional[str] = Field(None, description="Targeted body id")
    target_position: Optional[Position] = Field(None, description="Targeted coordinate")
    duration: float = Field(..., ge=0, description="Maximum pursuit time (ms)")
    started_at: float = Field(0.0, description="Decision timestamp")

    def expired(self, now: float) -> bool:
        return now - self.started_at >= self.duration


class Agent(Body):
    """An autonomous creature or conversational unit."""

    kind: AgentKind = Field(..., description="Tagged agent variant")
    personality: Dict[str, float] = Field(default_factory=dict, description="Trait -> [0, 1]")
    intelligence: float = Field(100.0, ge=0, le=MAX_INTELLIGENCE, description="Learning level, capped at 200")
    memory: List[MemoryEntry] = Field(default_factory=list, description="Chronological memory entries")
    current_goal: Optional[Goal] = Field(None, description="Goal being pursued")
    state: str = Field("idle", description="idle | acting:<goal> | interacting")
    last_decision_time: Optional[float] = Field(None, description="Last successful decision (None = never)")
    decision_cooldown: float = Field(2000.0, ge=0, description="Minimum time between decisions (ms)")
    perception_radius: float = Field(100.0, gt=0, description="Perception range")
    movement_speed: float = Field(30.0, ge=0, description="Units moved per tick")
    capabilities: Set[Capability] = Field(default_factory=set, description="Goal families allowed")
    special_abilities: Set[str] = Field(default_factory=set, description="Ability tags for problem solving")

    @field_validator("personality")
    @classmethod
    def _traits_in_unit_range(cls, value: Dict[str, float]) -> Dict[str, float]:
        for trait, score in value.items():
            if not 0.0 <= score <= 1.0:
                raise ValueError(f"personality trait {trait!r} must be within [0, 1], got {score}")
        return value

    def trait(self, name: str) -> float:
        return self.personality.get(name, 0.0)

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def gain_intelligence(self, amount: float) -> None:
        self.intelligence = min(MAX_INTELLIGENCE, self.intelligence + amount)

    def sync_state(self, interacting: bool) -> None:
        """Derive ``state`` from the current goal and interaction membership."""

        if interacting:
            self.state = "interacting"
        elif self.current_goal is not None:
            self.state = f"acting:{self.current_goal.type}"
        else:
            self.state = "idle"

    def clear_goal(self, interacting: bool = False) -> None:
        self.current_goal = None
        self.sync_state(interacting)


# ============================================================================
# Interactions and synergies
# ============================================================================


class InteractionEffect(BaseModel):
    """One effect produced by an interaction."""

    type: str = Field(..., description="resource_generation | productivity_boost | synergy_bonus | learning_boost")
    resource: Optional[str] = Field(None, description="Ledger resource for resource_generation")
    amount: float = Field(0.0, description="Resource delta for resource_generation")
    multiplier: float = Field(1.0, description="Modifier factor for timed effects")
    duration: float = Field(0.0, ge=0, description="Modifier lifetime (ms)")
    target_id: Optional[str] = Field(None, description="Single recipient; None means every participant")

    @property
    def is_immediate(self) -> bool:
        return self.type == "resource_generation"


class InteractionPhase(BaseModel):
    """A time slice of an interaction owning a subset of its effects."""

    name: str = Field(..., description="initiation | collaboration | completion")
    start_time: float = Field(..., description="Phase start timestamp")
    duration: float = Field(..., ge=0, description="Phase length")
    effects: List[InteractionEffect] = Field(default_factory=list, description="Effects owned by the phase")
    fired: bool = Field(False, description="True once the phase's timed effects were applied")


class Interaction(BaseModel):
    """A timed, multi-phase relationship between agents."""

    id: str = Field(..., description="Unique identifier")
    participants: List[str] = Field(..., min_length=2, description="Participant agent ids")
    type: str = Field(..., description="Interaction type from the pairing table")
    start_time: float = Field(..., description="Creation timestamp")
    duration: float = Field(..., gt=0, description="Total length (ms)")
    effects: List[InteractionEffect] = Field(default_factory=list, description="All effects in order")
    phases: List[InteractionPhase] = Field(default_factory=list, description="Exactly three phases")
    active: bool = Field(True, description="False once expired or cancelled")
    dialogue: List[str] = Field(default_factory=list, description="Lines spoken during the interaction")

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def immediate_deltas(self) -> Dict[str, float]:
        """Resource deltas granted at creation time."""

        deltas: Dict[str, float] = {}
        for effect in self.effects:
            if effect.is_immediate and effect.resource:
                deltas[effect.resource] = deltas.get(effect.resource, 0.0) + effect.amount
        return deltas


class Synergy(BaseModel):
    """A composition-dependent production bonus."""

    name: str = Field(..., description="Display name")
    description: str = Field("", description="Flavour text")
    bonus: Dict[str, float] = Field(..., description="Resource -> multiplier (all_resources applies to every key)")
    participants: List[AgentKind] = Field(default_factory=list, description="Kind signature of the rule")
    unlocks_special_abilities: bool = Field(False, description="Whether the composition unlocks abilities")


class CollaborativeProblem(BaseModel):
    """A sanctuary crisis that several agents can solve together."""

    id: str = Field(default_factory=lambda: uuid4().hex, description="Unique identifier")
    type: str = Field(..., description="harmony_crisis | resource_shortage | ...")
    required_abilities: Set[str] = Field(default_factory=set, description="Ability tags the team must cover")
    min_creatures: int = Field(1, ge=1, description="Minimum team size")
    posted_at: float = Field(0.0, description="When the problem appeared")


# ============================================================================
# Service results
# ============================================================================


class Sighting(BaseModel):
    """A body observed during perception."""

    id: str
    kind: str = Field(..., description="Agent kind or entity type")
    position: Position
    distance: float
    movable: bool


class Perception(BaseModel):
    """What an agent can observe at decision time."""

    agent_id: str
    radius: float
    movable_units: List[Sighting] = Field(default_factory=list)
    static_resources: List[Sighting] = Field(default_factory=list)
    other_agents: List[Sighting] = Field(default_factory=list)
    harmony: float = Field(50.0, description="Ambient harmony from the ledger")
    crowding: int = Field(0, description="Movable units plus agents in range")

    def all_ids(self) -> Set[str]:
        return {
            sighting.id
            for group in (self.movable_units, self.static_resources, self.other_agents)
            for sighting in group
        }


class BehaviorResult(BaseModel):
    """Outcome of executing one goal."""

    agent_id: str
    goal_type: str
    success: bool
    completed: bool = Field(False, description="True when the goal was cleared")
    reason: Optional[str] = None
    resource_deltas: Dict[str, float] = Field(default_factory=dict)
    discoveries: List[str] = Field(default_factory=list)
    affected_ids: List[str] = Field(default_factory=list)
    time_to_solve: Optional[float] = None


class PlacementEffect(BaseModel):
    type: str = Field(..., description="proximity_bonus | strategic_position")
    value: float
    nearby_count: Optional[int] = None


class PlacementResult(BaseModel):
    """Outcome of a completed drag gesture."""

    unit_id: str
    is_valid_placement: bool
    position: Position
    total_distance: float = 0.0
    drag_duration: float = Field(0.0, ge=0, description="ms between drag start and drop")
    effects: List[PlacementEffect] = Field(default_factory=list)
    reason: Optional[str] = None


class DragSession(BaseModel):
    """Bookkeeping between drag start and drag completion."""

    dragged_agent_id: str
    pointer_offset: Position
    original_position: Position
    total_distance: float = 0.0
    start_time: float = 0.0


class ProximityIndicator(BaseModel):
    """Hint shown while dragging: a nearby body and its pull."""

    body_id: str
    distance: float
    strength: float = Field(..., ge=0, le=1)
    interaction_type: Optional[str] = None


class InteractionDialogue(BaseModel):
    """Structured dialogue generated for an interaction."""

    lines: List[str] = Field(..., min_length=1, description="One or more spoken lines")
    mood: str = Field("serene", description="Overall tone of the exchange")


# ============================================================================
# World and events
# ============================================================================


class DomainEvent(BaseModel):
    """Something log-worthy that happened during a tick."""

    event_id: UUID = Field(default_factory=uuid4)
    tick: int
    timestamp: float
    category: str = Field(..., description="resource | behavior | interaction_* | synergy | placement | problem_solved | diagnostic | lifecycle")
    description: str
    agent_ids: List[str] = Field(default_factory=list)
    resource: Optional[str] = None
    delta: Optional[float] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class TickDiagnostic(BaseModel):
    """A per-agent failure isolated during a tick."""

    agent_id: str
    stage: str = Field(..., description="perception | decision | execution")
    error_type: str
    message: str


class WorldState(BaseModel):
    """Complete simulation state at one tick."""

    tick: int = 0
    timestamp: float = 0.0
    bounds: WorldBounds = Field(default_factory=WorldBounds)
    agents: List[Agent] = Field(default_factory=list)
    entities: List[WorldEntity] = Field(default_factory=list)
    interactions: List[Interaction] = Field(default_factory=list)
    resources: Dict[str, float] = Field(default_factory=dict, description="Ledger snapshot")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        for agent in self.agents:
            if agent.id == agent_id:
                return agent
        return None

    def get_body(self, body_id: str) -> Optional[Body]:
        for body in self.bodies():
            if body.id == body_id:
                return body
        return None

    def bodies(self) -> Iterator[Body]:
        yield from self.agents
        yield from self.entities


class SimulationRun(BaseModel):
    """Metadata for one ``Orchestrator.run`` invocation."""

    id: UUID = Field(default_factory=uuid4)
    start_time: datetime
    end_time: Optional[datetime] = None
    num_ticks: int
    status: str = Field("running", description="running | completed | failed")
    config: Dict[str, Any] = Field(default_factory=dict)

"""
Sanctuary - agent simulation core for the Resonant Sanctuary idle game.

Spatially-aware creatures and conversational units perceive their
surroundings, keep bounded memories, pick goals under a decision cooldown,
act, pair up in timed interactions, earn composition synergies, and can be
repositioned by drag and drop.

The core is synchronous and deterministic given a seeded RNG. Storage,
dialogue and the resource ledger are injected.
"""

__version__ = "0.1.0"

from .orchestrator import Orchestrator

from .agents import KIND_PROFILES, KindProfile, create_agent
from .config import Config, SimulationSettings
from .errors import (
    SanctuaryError,
    TargetNotFoundError,
    PlacementValidationError,
    MemoryConstraintViolation,
    InteractionConflict,
    SimulationRunError,
)
from .ledger import ResourceLedger, InMemoryLedger, format_resources
from .memory import MemoryStrategy, DecayWeightedMemory, FifoMemory
from .perception import query_nearby, build_agent_perception
from .interactions import InteractionDetector, classify_pair
from .synergy import SynergyCalculator, apply_synergy_effects
from .placement import PlacementController
from .persistence import PersistenceStrategy, InMemoryPersistence, JsonPersistence
from .cognition import (
    Cooldown,
    GoalPlanner,
    BehaviorExecutor,
    DialogueGenerator,
    ScriptedDialogue,
    LLMDialogue,
)

from .schemas import (
    Agent,
    AgentKind,
    Capability,
    Body,
    WorldEntity,
    WorldState,
    WorldBounds,
    Position,
    MemoryEntry,
    Goal,
    Interaction,
    Synergy,
    DragSession,
    DomainEvent,
    TickDiagnostic,
    CollaborativeProblem,
    Perception,
    PlacementResult,
    SimulationRun,
)

from .scenario import load_scenario, ScenarioLoader

__all__ = [
    "Orchestrator",
    "KIND_PROFILES",
    "KindProfile",
    "create_agent",
    "Config",
    "SimulationSettings",
    "SanctuaryError",
    "TargetNotFoundError",
    "PlacementValidationError",
    "MemoryConstraintViolation",
    "InteractionConflict",
    "SimulationRunError",
    "ResourceLedger",
    "InMemoryLedger",
    "format_resources",
    "MemoryStrategy",
    "DecayWeightedMemory",
    "FifoMemory",
    "query_nearby",
    "build_agent_perception",
    "InteractionDetector",
    "classify_pair",
    "SynergyCalculator",
    "apply_synergy_effects",
    "PlacementController",
    "PersistenceStrategy",
    "InMemoryPersistence",
    "JsonPersistence",
    "Cooldown",
    "GoalPlanner",
    "BehaviorExecutor",
    "DialogueGenerator",
    "ScriptedDialogue",
    "LLMDialogue",
    "Agent",
    "AgentKind",
    "Capability",
    "Body",
    "WorldEntity",
    "WorldState",
    "WorldBounds",
    "Position",
    "MemoryEntry",
    "Goal",
    "Interaction",
    "Synergy",
    "DragSession",
    "DomainEvent",
    "TickDiagnostic",
    "CollaborativeProblem",
    "Perception",
    "PlacementResult",
    "SimulationRun",
    "load_scenario",
    "ScenarioLoader",
]

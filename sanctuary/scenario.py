"""
Scenario loading for JSON-defined sanctuaries.

A scenario describes the initial world: its bounds, starting resources, fixed
entities (domes, crystal trees) and agents. Agents are created through
``create_agent`` so personality traits missing from the file are drawn from
the seeded RNG.

Scenario file structure:
```json
{
  "name": "Resonant Sanctuary",
  "description": "...",
  "bounds": {"width": 800, "height": 600},
  "resources": {"energy": 20, "insight": 5, "harmony": 50},
  "entities": [
    {"id": "dome-1", "entity_type": "dome", "x": 400, "y": 300, "size": 40}
  ],
  "agents": [
    {"kind": "dreamer", "x": 120, "y": 140, "personality": {"sociability": 0.8}}
  ]
}
```

Usage:
    world_state, resources = load_scenario("resonant_sanctuary", rng=random.Random(7))
    orchestrator = Orchestrator(world_state, ledger=InMemoryLedger(resources))
"""

import json
import random
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .agents import create_agent
from .config import Config, SimulationSettings
from .ledger import DEFAULT_RESOURCES
from .schemas import Agent, AgentKind, Position, WorldBounds, WorldEntity, WorldState


class ScenarioLoader:
    """Load and validate sanctuary scenarios from JSON files.

    Validation:
    - Required fields: name, agents
    - Every agent needs a known ``kind`` plus ``x`` and ``y``
    - Every entity needs ``entity_type`` plus ``x`` and ``y``
    - Raises ValueError on the first problem found
    """

    def __init__(self, scenarios_dir: Optional[Path] = None):
        self.scenarios_dir = Path(scenarios_dir) if scenarios_dir else Config.SCENARIOS_DIR

    def load(
        self,
        scenario_name: str,
        *,
        rng: Optional[random.Random] = None,
        settings: Optional[SimulationSettings] = None,
    ) -> Tuple[WorldState, Dict[str, float]]:
        """Load ``{scenario_name}.json`` into a world and starting resources.

        Raises:
            FileNotFoundError: If the scenario file doesn't exist
            ValueError: If required fields are missing or malformed
        """
        scenario_path = self.scenarios_dir / f"{scenario_name}.json"
        if not scenario_path.exists():
            raise FileNotFoundError(f"Scenario '{scenario_name}' not found at {scenario_path}")

        data = json.loads(scenario_path.read_text("utf-8"))
        return self.from_dict(data, rng=rng, settings=settings)

    def from_dict(
        self,
        data: Dict[str, Any],
        *,
        rng: Optional[random.Random] = None,
        settings: Optional[SimulationSettings] = None,
    ) -> Tuple[WorldState, Dict[str, float]]:
        self._validate_scenario(data)
        rng = rng or random.Random(Config.RANDOM_SEED)
        settings = settings or SimulationSettings()

        bounds_data = data.get("bounds") or {}
        bounds = WorldBounds(
            width=bounds_data.get("width", Config.WORLD_WIDTH),
            height=bounds_data.get("height", Config.WORLD_HEIGHT),
        )

        entities = [self._parse_entity(entry, index, bounds) for index, entry in enumerate(data.get("entities", []))]
        agents = [self._parse_agent(entry, bounds, rng, settings) for entry in data["agents"]]

        ids = [body.id for body in [*agents, *entities]]
        duplicates = sorted({body_id for body_id in ids if ids.count(body_id) > 1})
        if duplicates:
            raise ValueError(f"Scenario has duplicate body ids: {duplicates}")

        resources = dict(DEFAULT_RESOURCES)
        resources.update({key: float(value) for key, value in data.get("resources", {}).items()})

        world_state = WorldState(
            bounds=bounds,
            agents=agents,
            entities=entities,
            resources=resources,
            metadata={"scenario": data["name"], "description": data.get("description", "")},
        )
        return world_state, resources

    def _validate_scenario(self, data: Dict[str, Any]) -> None:
        missing = [field for field in ("name", "agents") if field not in data]
        if missing:
            raise ValueError(f"Scenario missing required fields: {missing}")

        known_kinds = {kind.value for kind in AgentKind}
        for agent in data["agents"]:
            if not {"kind", "x", "y"} <= agent.keys():
                raise ValueError("Each agent entry must include 'kind', 'x' and 'y'")
            if agent["kind"] not in known_kinds:
                raise ValueError(f"Unknown agent kind {agent['kind']!r}; expected one of {sorted(known_kinds)}")

        for entity in data.get("entities", []):
            if not {"entity_type", "x", "y"} <= entity.keys():
                raise ValueError("Each entity entry must include 'entity_type', 'x' and 'y'")

    @staticmethod
    def _parse_agent(
        entry: Dict[str, Any], bounds: WorldBounds, rng: random.Random, settings: SimulationSettings
    ) -> Agent:
        return create_agent(
            entry["kind"],
            entry["x"],
            entry["y"],
            rng=rng,
            bounds=bounds,
            settings=settings,
            personality=entry.get("personality"),
            agent_id=entry.get("id"),
        )

    @staticmethod
    def _parse_entity(entry: Dict[str, Any], index: int, bounds: WorldBounds) -> WorldEntity:
        size = float(entry.get("size", 30.0))
        position = bounds.clamp(Position(x=entry["x"], y=entry["y"]), size)
        return WorldEntity(
            id=entry.get("id", f"{entry['entity_type']}-{index}"),
            entity_type=entry["entity_type"],
            position=position,
            size=size,
            movable=bool(entry.get("movable", False)),
            draggable=bool(entry.get("draggable", False)),
            metadata=entry.get("metadata", {}),
        )


def load_scenario(
    scenario_name: str, *, rng: Optional[random.Random] = None
) -> Tuple[WorldState, Dict[str, float]]:
    """Convenience wrapper around ``ScenarioLoader().load``."""
    return ScenarioLoader().load(scenario_name, rng=rng)

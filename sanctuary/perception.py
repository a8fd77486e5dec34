"""
Perception construction for sanctuary agents.

Agents never see the whole world. Each decision is made from a snapshot of the
bodies inside the agent's perception radius, split into three categories:

- ``other_agents``: every other agent (creature or conversational unit)
- ``movable_units``: every other body flagged ``movable`` (units, sprites)
- ``static_resources``: world entities that are not movable (domes, crystal trees)

An agent that is also a movable unit appears in both ``other_agents`` and
``movable_units``; the union of the three lists is exactly the set of bodies
within range. Distances are Euclidean and the threshold is inclusive.

Usage:
    perception = build_agent_perception(agent, world_state, ledger)
    goal = planner.decide(agent, perception, now)
"""

from typing import List, Optional

from .ledger import ResourceLedger
from .schemas import Agent, Body, Perception, Sighting, WorldEntity, WorldState


DEFAULT_HARMONY = 50.0


def _sighting(body: Body, distance: float) -> Sighting:
    kind = body.kind.value if isinstance(body, Agent) else body.entity_type
    return Sighting(
        id=body.id,
        kind=kind,
        position=body.position.model_copy(),
        distance=distance,
        movable=body.movable,
    )


def _ordered(sightings: List[Sighting]) -> List[Sighting]:
    return sorted(sightings, key=lambda s: (s.distance, s.id))


def query_nearby(agent: Body, radius: float, world_state: WorldState) -> Perception:
    """Return every body within ``radius`` of ``agent``, categorised.

    O(n) scan over the roster; the querying body is excluded by id. Each list
    is ordered by distance, then id, so results are deterministic.
    """

    movable_units: List[Sighting] = []
    static_resources: List[Sighting] = []
    other_agents: List[Sighting] = []

    for body in world_state.bodies():
        if body.id == agent.id:
            continue
        distance = agent.distance_to(body)
        if distance > radius:
            continue

        sighting = _sighting(body, distance)
        if isinstance(body, Agent):
            other_agents.append(sighting)
        if body.movable:
            movable_units.append(sighting)
        elif isinstance(body, WorldEntity):
            static_resources.append(sighting)

    return Perception(
        agent_id=agent.id,
        radius=radius,
        movable_units=_ordered(movable_units),
        static_resources=_ordered(static_resources),
        other_agents=_ordered(other_agents),
    )


def build_agent_perception(
    agent: Agent,
    world_state: WorldState,
    ledger: Optional[ResourceLedger] = None,
) -> Perception:
    """Build the decision-time perception for ``agent``.

    Adds the ambient harmony level (read from the ledger, or the world's
    resource snapshot when no ledger is given) and a crowding count to the
    spatial query.
    """

    perception = query_nearby(agent, agent.perception_radius, world_state)

    if ledger is not None:
        harmony = ledger.get("harmony")
    else:
        harmony = world_state.resources.get("harmony", DEFAULT_HARMONY)

    perception.harmony = harmony
    perception.crowding = len(perception.movable_units) + len(
        [s for s in perception.other_agents if not s.movable]
    )
    return perception

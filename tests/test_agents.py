"""Tests for kind profiles and the agent factory."""

import random

import pytest

from sanctuary.agents import KIND_PROFILES, create_agent, is_creature, profile_for
from sanctuary.config import SimulationSettings
from sanctuary.schemas import AgentKind, Capability, WorldBounds


def test_every_kind_has_a_profile():
    assert set(KIND_PROFILES) == set(AgentKind)


@pytest.mark.parametrize(
    "kind, capability, allowed",
    [
        ("cosmic_sage", Capability.CAN_TEACH, True),
        ("void_explorer", Capability.CAN_EXPLORE, True),
        ("harmony_keeper", Capability.CAN_RESTORE_HARMONY, True),
        ("harmony_keeper", Capability.CAN_TEACH, False),
        ("weaver", Capability.CAN_TEACH, False),
        ("dreamer", Capability.CAN_EXPLORE, True),
    ],
)
def test_capability_table(kind, capability, allowed):
    agent = create_agent(kind, 100, 100, rng=random.Random(0))

    assert agent.can(capability) is allowed


def test_creatures_are_not_movable_units():
    assert is_creature("cosmic_sage")
    assert not is_creature(AgentKind.DREAMER)
    assert create_agent("cosmic_sage", 100, 100, rng=random.Random(0)).movable is False
    assert create_agent("dreamer", 100, 100, rng=random.Random(0)).movable is True
    assert profile_for("weaver").size == 20.0


def test_factory_is_seeded():
    first = create_agent("dreamer", 100, 100, rng=random.Random(42))
    second = create_agent("dreamer", 100, 100, rng=random.Random(42))

    assert first.id == second.id
    assert first.id.startswith("dreamer-")
    assert first.personality == second.personality
    assert all(0.0 <= value <= 1.0 for value in first.personality.values())


def test_explicit_traits_override_drawn_ones():
    agent = create_agent("dreamer", 100, 100, rng=random.Random(1), personality={"sociability": 0.75})

    assert agent.personality["sociability"] == 0.75
    assert len(agent.personality) == 4


def test_spawn_point_is_clamped_and_settings_applied():
    settings = SimulationSettings(decision_cooldown=500.0, perception_radius=150.0, movement_speed=12.0)

    agent = create_agent(
        "harmony_keeper",
        -40,
        1000,
        rng=random.Random(0),
        bounds=WorldBounds(width=400, height=300),
        settings=settings,
    )

    assert (agent.position.x, agent.position.y) == (25.0, 275.0)
    assert agent.decision_cooldown == 500.0
    assert agent.perception_radius == 150.0
    assert agent.movement_speed == 12.0
    assert "harmony_restoration" in agent.special_abilities

"""Tests for pairwise interaction detection and lifecycle."""

import random

import pytest

from sanctuary.agents import create_agent
from sanctuary.interactions import InteractionDetector, build_phases, classify_pair
from sanctuary.schemas import AgentKind, InteractionEffect, Position, WorldState


def make_agent(kind, x, y, agent_id):
    return create_agent(kind, x, y, rng=random.Random(3), agent_id=agent_id)


def make_pair(distance=42.0):
    dreamer = make_agent("dreamer", 300, 300, "dreamer")
    weaver = make_agent("weaver", 300 + distance, 300, "weaver")
    return dreamer, weaver, WorldState(agents=[dreamer, weaver])


def test_pair_within_radius_starts_inspiration():
    dreamer, weaver, world = make_pair(42.0)
    detector = InteractionDetector(radius=60.0)

    created = detector.scan(world.agents, now=0.0)

    assert len(created) == 1
    interaction = created[0]
    assert interaction.type == "inspiration"
    assert interaction.participants == ["dreamer", "weaver"]
    assert interaction.duration == 5000.0
    assert interaction.immediate_deltas() == {"inspiration": 5.0}
    assert dreamer.state == "interacting"
    assert weaver.state == "interacting"


def test_pair_outside_radius_is_ignored():
    _, _, world = make_pair(61.0)
    detector = InteractionDetector(radius=60.0)

    assert detector.scan(world.agents, now=0.0) == []
    assert detector.active_interactions() == []


def test_dragged_agents_are_not_matched():
    dreamer, _, world = make_pair(30.0)
    dreamer.is_dragging = True

    assert InteractionDetector().scan(world.agents, now=0.0) == []


def test_phases_split_duration_and_effects():
    effects = [InteractionEffect(type=f"effect_{i}") for i in range(4)]

    phases = build_phases(1000.0, 6000.0, effects)

    assert [phase.name for phase in phases] == ["initiation", "collaboration", "completion"]
    assert [phase.start_time for phase in phases] == [1000.0, 3000.0, 5000.0]
    assert [[e.type for e in phase.effects] for phase in phases] == [
        ["effect_0", "effect_3"],
        ["effect_1"],
        ["effect_2"],
    ]


def test_first_match_wins_and_reports_conflicts():
    a = make_agent("dreamer", 300, 300, "a")
    b = make_agent("weaver", 330, 300, "b")
    c = make_agent("cosmic_sage", 315, 320, "c")
    detector = InteractionDetector(radius=60.0)

    created = detector.scan([a, b, c], now=0.0)

    assert [i.participants for i in created] == [["a", "b"]]
    assert len(detector.last_conflicts) == 2
    assert {conflict.busy_id for conflict in detector.last_conflicts} == {"a", "b"}
    assert c.state == "idle"


def test_timed_effects_fire_when_their_phase_starts():
    dreamer, weaver, world = make_pair()
    detector = InteractionDetector()
    detector.scan(world.agents, now=0.0)

    assert detector.advance(world, now=0.0) == []
    assert weaver.get_modifier("productivity_boost") is None

    fired = detector.advance(world, now=2000.0)

    assert [f.phase for f in fired] == ["collaboration"]
    boost = weaver.get_modifier("productivity_boost")
    assert boost.multiplier == 1.3
    assert boost.duration == 10000.0
    assert dreamer.get_modifier("productivity_boost") is None


def test_interaction_expires_and_frees_participants():
    dreamer, weaver, world = make_pair()
    detector = InteractionDetector()
    detector.scan(world.agents, now=0.0)

    still_running = detector.refresh(world, now=4999.0)
    finished = detector.refresh(world, now=5000.0)

    assert still_running.expired == []
    assert len(finished.expired) == 1
    assert finished.expired[0].active is False
    assert dreamer.state == "idle"
    assert weaver.state == "idle"
    assert not detector.is_interacting("dreamer")


def test_separation_cancels_and_cancel_is_idempotent():
    dreamer, weaver, world = make_pair()
    detector = InteractionDetector()
    interaction = detector.scan(world.agents, now=0.0)[0]

    weaver.position = Position(x=420, y=300)
    update = detector.refresh(world, now=1000.0)

    assert update.cancelled == [interaction]
    assert detector.cancel(interaction.id, now=1100.0, world=world) is False
    assert weaver.state == "idle"


def test_cancel_keeps_already_fired_effects():
    _, weaver, world = make_pair()
    detector = InteractionDetector()
    interaction = detector.scan(world.agents, now=0.0)[0]
    detector.advance(world, now=2000.0)

    assert detector.cancel(interaction.id, now=2500.0, world=world) is True
    assert weaver.get_modifier("productivity_boost") is not None
    assert interaction.phases[2].fired is False


def test_same_pair_waits_for_rematch_cooldown():
    _, _, world = make_pair()
    detector = InteractionDetector(rematch_cooldown=10000.0)
    detector.scan(world.agents, now=0.0)
    detector.refresh(world, now=5000.0)

    assert detector.scan(world.agents, now=6000.0) == []
    rematch = detector.scan(world.agents, now=15000.0)
    assert len(rematch) == 1


def test_cancel_for_agent_ends_its_interaction():
    dreamer, _, world = make_pair()
    detector = InteractionDetector()
    interaction = detector.scan(world.agents, now=0.0)[0]

    assert detector.cancel_for_agent("dreamer", now=10.0, world=world) is interaction
    assert detector.cancel_for_agent("dreamer", now=20.0, world=world) is None
    assert dreamer.state == "idle"



def test_cancel_requires_the_world_to_free_participants():
    dreamer, weaver, world = make_pair()
    detector = InteractionDetector()
    interaction = detector.scan(world.agents, now=0.0)[0]

    with pytest.raises(TypeError):
        detector.cancel(interaction.id, 10.0)
    assert detector.is_interacting("dreamer")

    assert detector.cancel(interaction.id, 10.0, world) is True
    assert detector.interaction_for("dreamer") is None
    assert dreamer.state == "idle"
    assert weaver.state == "idle"


def test_zero_rematch_cooldown_allows_immediate_rematch():
    _, _, world = make_pair()
    detector = InteractionDetector(rematch_cooldown=0.0)
    detector.scan(world.agents, now=0.0)

    assert len(detector.refresh(world, now=5000.0).expired) == 1
    assert len(detector.scan(world.agents, now=5000.0)) == 1


def test_restore_rebuilds_membership_from_snapshot():
    _, _, world = make_pair()
    detector = InteractionDetector()
    interaction = detector.scan(world.agents, now=0.0)[0]
    world.interactions = [interaction.model_copy(deep=True)]
    world.timestamp = 1000.0

    loaded = WorldState.model_validate_json(world.model_dump_json())
    resumed = InteractionDetector()
    restored = resumed.restore(loaded)

    assert [i.id for i in restored] == [interaction.id]
    assert resumed.interaction_for("weaver").id == interaction.id
    assert loaded.get_agent("dreamer").state == "interacting"


def test_restore_drops_finished_interactions_and_frees_agents():
    _, _, world = make_pair()
    interaction = InteractionDetector().scan(world.agents, now=0.0)[0]
    world.interactions = [interaction.model_copy(deep=True)]
    world.timestamp = 6000.0

    loaded = WorldState.model_validate_json(world.model_dump_json())
    resumed = InteractionDetector()

    assert resumed.restore(loaded) == []
    assert not resumed.is_interacting("dreamer")
    assert [agent.state for agent in loaded.agents] == ["idle", "idle"]

@pytest.mark.parametrize(
    "first, second, expected",
    [
        (AgentKind.DREAMER, AgentKind.WEAVER, "inspiration"),
        (AgentKind.PHILOSOPHER_DREAMER, AgentKind.ARTISTIC_WEAVER, "creative_collaboration"),
        (AgentKind.CURIOUS_EXPLORER, AgentKind.PHILOSOPHER_DREAMER, "knowledge_sharing"),
        (AgentKind.HARMONY_KEEPER, AgentKind.DREAMER, "general_synergy"),
    ],
)
def test_classification_is_symmetric(first, second, expected):
    assert classify_pair(first, second) == expected
    assert classify_pair(second, first) == expected

"""Tests for scenario loading via ScenarioLoader."""

import json
import random
from pathlib import Path

import pytest

from sanctuary.scenario import ScenarioLoader

SCENARIOS_DIR = Path(__file__).resolve().parent.parent / "examples" / "scenarios"


def test_example_scenario_builds_world():
    loader = ScenarioLoader(scenarios_dir=SCENARIOS_DIR)
    world_state, resources = loader.load("resonant_sanctuary", rng=random.Random(7))

    assert len(world_state.agents) == 8
    assert len(world_state.entities) == 4
    assert resources["harmony"] == 45.0
    assert resources["energy"] == 20.0
    assert world_state.metadata["scenario"] == "Resonant Sanctuary"

    sage = world_state.get_agent("sage-1")
    assert sage.personality["sociability"] == 0.8
    assert set(sage.personality) == {"curiosity", "sociability", "productivity", "exploration"}

    sprite = world_state.get_body("sprite-1")
    assert sprite.movable is True and sprite.draggable is True
    assert world_state.get_body("dome-central").draggable is False


def test_same_seed_gives_same_personalities():
    loader = ScenarioLoader(scenarios_dir=SCENARIOS_DIR)

    first, _ = loader.load("resonant_sanctuary", rng=random.Random(3))
    second, _ = loader.load("resonant_sanctuary", rng=random.Random(3))

    assert [a.personality for a in first.agents] == [a.personality for a in second.agents]


def test_missing_scenario_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        ScenarioLoader(scenarios_dir=tmp_path).load("nowhere")


def test_loader_reads_custom_directory(tmp_path):
    (tmp_path / "tiny.json").write_text(
        json.dumps(
            {
                "name": "Tiny",
                "bounds": {"width": 200, "height": 100},
                "agents": [{"kind": "dreamer", "x": 500, "y": 50}],
                "entities": [{"entity_type": "dome", "x": 100, "y": 50}],
            }
        ),
        "utf-8",
    )

    world_state, resources = ScenarioLoader(scenarios_dir=tmp_path).load("tiny", rng=random.Random(1))

    assert world_state.bounds.width == 200
    assert world_state.agents[0].position.x == 180
    assert world_state.entities[0].id == "dome-0"
    assert resources["harmony"] == 50.0


@pytest.mark.parametrize(
    "data, message",
    [
        ({"agents": []}, "name"),
        ({"name": "x"}, "agents"),
        ({"name": "x", "agents": [{"kind": "dreamer", "x": 1}]}, "'kind', 'x' and 'y'"),
        ({"name": "x", "agents": [{"kind": "dragon", "x": 1, "y": 1}]}, "Unknown agent kind"),
        ({"name": "x", "agents": [], "entities": [{"x": 1, "y": 1}]}, "entity_type"),
        (
            {
                "name": "x",
                "agents": [
                    {"id": "twin", "kind": "dreamer", "x": 100, "y": 100},
                    {"id": "twin", "kind": "weaver", "x": 200, "y": 100},
                ],
            },
            "duplicate",
        ),
    ],
)
def test_invalid_scenarios_raise_value_error(data, message):
    with pytest.raises(ValueError, match=message):
        ScenarioLoader().from_dict(data, rng=random.Random(0))

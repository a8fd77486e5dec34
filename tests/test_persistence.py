"""Tests for in-memory and JSON snapshot persistence."""

import random
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from sanctuary.agents import create_agent
from sanctuary.persistence import InMemoryPersistence, JsonPersistence
from sanctuary.schemas import DomainEvent, MemoryEntry, Position, SimulationRun, WorldState


def make_world_state(tick: int = 0) -> WorldState:
    rng = random.Random(tick)
    sage = create_agent("cosmic_sage", 200, 200, rng=rng, agent_id="sage")
    sage.memory.append(
        MemoryEntry(timestamp=10.0, type="meditation", location=Position(x=200, y=200), payload={"harmony_gain": 1.0})
    )
    return WorldState(
        tick=tick,
        timestamp=tick * 100.0,
        agents=[sage, create_agent("dreamer", 240, 200, rng=rng, agent_id="dreamer")],
        resources={"harmony": 52.0, "inspiration": 5.0},
    )


def make_event(tick: int, description: str) -> DomainEvent:
    return DomainEvent(tick=tick, timestamp=tick * 100.0, category="behavior", description=description)


def make_run(num_ticks: int = 3) -> SimulationRun:
    return SimulationRun(start_time=datetime(2026, 1, 1, tzinfo=timezone.utc), num_ticks=num_ticks)


@pytest.mark.asyncio
async def test_in_memory_persistence_round_trip():
    persistence = InMemoryPersistence()
    await persistence.initialize()
    run = make_run()

    await persistence.save_run_metadata(run)
    state = make_world_state(1)
    await persistence.save_state(run.id, 1, state)
    await persistence.save_events(run.id, 1, [make_event(1, "first")])
    await persistence.save_events(run.id, 1, [make_event(1, "second")])
    await persistence.update_run_status(run.id, "completed", datetime(2026, 1, 1, 1, tzinfo=timezone.utc))

    assert await persistence.get_state(run.id, 1) == state
    assert [e.description for e in await persistence.get_events(run.id, 1)] == ["first", "second"]
    assert (await persistence.get_run(run.id)).status == "completed"
    assert await persistence.get_state(run.id, 2) is None
    assert await persistence.get_events(run.id, 2) == []


@pytest.mark.asyncio
async def test_in_memory_persistence_stores_copies():
    persistence = InMemoryPersistence()
    run_id = uuid4()
    state = make_world_state(1)

    await persistence.save_state(run_id, 1, state)
    state.agents[0].position = Position(x=700, y=500)

    stored = await persistence.get_state(run_id, 1)
    assert stored.agents[0].position == Position(x=200, y=200)


@pytest.mark.asyncio
async def test_in_memory_delete_run_removes_everything():
    persistence = InMemoryPersistence()
    run = make_run()
    await persistence.save_run_metadata(run)
    await persistence.save_state(run.id, 0, make_world_state())
    await persistence.save_events(run.id, 0, [make_event(0, "boot")])

    await persistence.delete_run(run.id)

    assert await persistence.get_run(run.id) is None
    assert await persistence.get_state(run.id, 0) is None
    assert await persistence.get_events(run.id, 0) == []


@pytest.mark.asyncio
async def test_json_persistence_writes_files(tmp_path):
    persistence = JsonPersistence(tmp_path / "runs")
    await persistence.initialize()
    run = make_run()

    await persistence.save_run_metadata(run)
    state = make_world_state(3)
    await persistence.save_state(run.id, 3, state)
    await persistence.save_events(run.id, 3, [make_event(3, "first")])
    await persistence.save_events(run.id, 3, [make_event(3, "second")])
    await persistence.update_run_status(run.id, "failed")

    run_dir = tmp_path / "runs" / str(run.id)
    assert (run_dir / "run.json").exists()
    assert (run_dir / "states" / "00003.json").exists()
    assert await persistence.get_state(run.id, 3) == state
    assert [e.description for e in await persistence.get_events(run.id, 3)] == ["first", "second"]

    stored_run = await persistence.get_run(run.id)
    assert stored_run.status == "failed"
    assert stored_run.end_time is None

    await persistence.delete_run(run.id)
    assert not run_dir.exists()
    await persistence.close()


@pytest.mark.asyncio
async def test_json_persistence_missing_records(tmp_path):
    persistence = JsonPersistence(tmp_path)
    run_id = uuid4()

    assert await persistence.get_run(run_id) is None
    assert await persistence.get_state(run_id, 0) is None
    assert await persistence.get_events(run_id, 0) == []
    await persistence.update_run_status(run_id, "completed")

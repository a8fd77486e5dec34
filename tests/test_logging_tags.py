"""Tests for color handling and the console tags printed by ``Orchestrator.run``."""

from __future__ import annotations

import contextlib
import io
import random

import pytest

from sanctuary import InMemoryLedger, Orchestrator, WorldState, create_agent
from sanctuary.logging_utils import (
    Color,
    LOG_TAG_DETERMINISTIC,
    LOG_TAG_ERROR,
    LOG_TAG_RESONANCE,
    LOG_TAG_SUCCESS,
    colored,
)

QUIET = {"curiosity": 0.0, "sociability": 0.0, "productivity": 0.0, "exploration": 0.0}


def make_orchestrator(*agents, harmony=95.0):
    return Orchestrator(
        WorldState(agents=list(agents)),
        ledger=InMemoryLedger({"harmony": harmony}),
        rng=random.Random(0),
        verbose=False,
    )


def test_colored_respects_no_color(monkeypatch):
    monkeypatch.setenv("SANCTUARY_NO_COLOR", "1")
    assert colored("plain", Color.RED) == "plain"

    monkeypatch.delenv("SANCTUARY_NO_COLOR")
    assert colored("tinted", Color.RED, bold=True) == f"{Color.BOLD.value}{Color.RED.value}tinted{Color.RESET.value}"


@pytest.mark.asyncio
async def test_interactions_use_resonance_tag(monkeypatch):
    monkeypatch.setenv("SANCTUARY_NO_COLOR", "1")
    rng = random.Random(1)
    orchestrator = make_orchestrator(
        create_agent("dreamer", 300, 300, rng=rng, personality=QUIET, agent_id="dreamer"),
        create_agent("weaver", 340, 300, rng=rng, personality=QUIET, agent_id="weaver"),
    )

    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        await orchestrator.run(num_ticks=1, tick_ms=100.0)
    out = buf.getvalue()

    assert f"{LOG_TAG_RESONANCE} inspiration between dreamer & weaver began" in out
    assert f"{LOG_TAG_SUCCESS} Simulation complete!" in out


@pytest.mark.asyncio
async def test_interaction_lines_go_through_log_resonance(monkeypatch):
    resonance_lines = []
    monkeypatch.setattr("sanctuary.orchestrator.log_resonance", resonance_lines.append)
    rng = random.Random(1)
    orchestrator = make_orchestrator(
        create_agent("dreamer", 300, 300, rng=rng, personality=QUIET, agent_id="dreamer"),
        create_agent("weaver", 340, 300, rng=rng, personality=QUIET, agent_id="weaver"),
    )

    with contextlib.redirect_stdout(io.StringIO()):
        await orchestrator.run(num_ticks=1, tick_ms=100.0)

    assert any("inspiration between dreamer & weaver began" in line for line in resonance_lines)


@pytest.mark.asyncio
async def test_behaviours_use_deterministic_tag(monkeypatch):
    monkeypatch.setenv("SANCTUARY_NO_COLOR", "1")
    keeper = create_agent(
        "harmony_keeper", 400, 300, rng=random.Random(2), personality=QUIET, agent_id="keeper"
    )
    orchestrator = make_orchestrator(keeper, harmony=30.0)

    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        await orchestrator.run(num_ticks=1, tick_ms=100.0)
    out = buf.getvalue()

    assert f"{LOG_TAG_DETERMINISTIC} keeper chose meditate" in out
    assert f"{LOG_TAG_DETERMINISTIC} keeper meditate succeeded" in out


@pytest.mark.asyncio
async def test_diagnostics_use_error_tag(monkeypatch):
    monkeypatch.setenv("SANCTUARY_NO_COLOR", "1")
    keeper = create_agent(
        "harmony_keeper", 400, 300, rng=random.Random(2), personality=QUIET, agent_id="keeper"
    )
    orchestrator = make_orchestrator(keeper, harmony=30.0)

    def broken_decide(agent, perception, now):
        raise RuntimeError("lost in thought")

    monkeypatch.setattr(orchestrator.planner, "decide", broken_decide)

    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        await orchestrator.run(num_ticks=1, tick_ms=100.0)

    assert f"{LOG_TAG_ERROR} decision failed for keeper: lost in thought" in buf.getvalue()

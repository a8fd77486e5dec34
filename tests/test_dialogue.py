"""Tests for scripted and LLM-backed interaction dialogue."""

import random

import pytest

from sanctuary.agents import create_agent
from sanctuary.cognition import LLMDialogue, ScriptedDialogue
from sanctuary.cognition.dialogue import CONNECTION_FALLBACK, NETWORK_DISRUPTED, SCRIPTED_LINES
from sanctuary.schemas import AgentKind, Interaction, InteractionDialogue


def make_interaction(interaction_type, participants):
    return Interaction(
        id="interaction-1",
        participants=[agent.id for agent in participants],
        type=interaction_type,
        start_time=0.0,
        duration=5000.0,
    )


def make_pair():
    rng = random.Random(0)
    return [
        create_agent("dreamer", 300, 300, rng=rng, agent_id="dreamer"),
        create_agent("weaver", 340, 300, rng=rng, agent_id="weaver"),
    ]


@pytest.mark.asyncio
async def test_scripted_lines_match_speaker_kind():
    participants = make_pair()
    dialogue = ScriptedDialogue(random.Random(4))

    lines = await dialogue.generate(make_interaction("inspiration", participants), participants)

    assert len(lines) == 2
    speaker, text = lines[0].split(": ", 1)
    assert speaker == "dreamer"
    assert text in SCRIPTED_LINES["inspiration"][AgentKind.DREAMER]
    assert lines[1].split(": ", 1)[1] in SCRIPTED_LINES["inspiration"][AgentKind.WEAVER]


def test_scripted_lines_are_seeded():
    participants = make_pair()

    first = ScriptedDialogue(random.Random(8)).lines_for("inspiration", participants)
    second = ScriptedDialogue(random.Random(8)).lines_for("inspiration", participants)

    assert first == second


def test_unscripted_type_uses_connection_line():
    participants = make_pair()

    assert ScriptedDialogue(random.Random(1)).lines_for("general_synergy", participants) == [CONNECTION_FALLBACK]


def test_unlisted_kind_borrows_lines_by_position():
    rng = random.Random(2)
    participants = [
        create_agent("cosmic_sage", 100, 100, rng=rng, agent_id="sage"),
        create_agent("void_explorer", 140, 100, rng=rng, agent_id="explorer"),
    ]

    lines = ScriptedDialogue(random.Random(3)).lines_for("knowledge_sharing", participants)

    assert lines[0].split(": ", 1)[1] in SCRIPTED_LINES["knowledge_sharing"][AgentKind.CURIOUS_EXPLORER]
    assert lines[1].split(": ", 1)[1] in SCRIPTED_LINES["knowledge_sharing"][AgentKind.PHILOSOPHER_DREAMER]


@pytest.mark.asyncio
async def test_llm_dialogue_returns_model_lines(monkeypatch):
    participants = make_pair()
    captured = {}

    async def fake_call_llm_with_retries(**kwargs):
        captured.update(kwargs)
        return InteractionDialogue(lines=["dreamer: I dream.", "weaver: I weave."], mood="joyful")

    monkeypatch.setattr("sanctuary.cognition.dialogue.call_llm_with_retries", fake_call_llm_with_retries)

    dialogue = LLMDialogue(llm_provider="openai", llm_model="gpt-5-nano")
    lines = await dialogue.generate(make_interaction("inspiration", participants), participants)

    assert lines == ["dreamer: I dream.", "weaver: I weave."]
    assert captured["response_model"] is InteractionDialogue
    assert "inspiration" in captured["user_prompt"]
    assert "dreamer (dreamer)" in captured["user_prompt"]


@pytest.mark.asyncio
async def test_llm_dialogue_falls_back_when_unreachable(monkeypatch, capsys):
    participants = make_pair()

    async def offline(**kwargs):
        raise ConnectionError("network unreachable")

    monkeypatch.setattr("sanctuary.cognition.dialogue.call_llm_with_retries", offline)

    dialogue = LLMDialogue(
        llm_provider="openai",
        llm_model="gpt-5-nano",
        fallback=ScriptedDialogue(random.Random(5)),
    )
    lines = await dialogue.generate(make_interaction("inspiration", participants), participants)

    assert lines[0] == NETWORK_DISRUPTED
    assert [line.split(": ", 1)[0] for line in lines[1:]] == ["dreamer", "weaver"]
    assert "[!]" in capsys.readouterr().out

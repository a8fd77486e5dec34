"""Dialogue generators for active interactions.

Dialogue is flavour only: it never feeds back into the simulation. The
orchestrator asks a generator for lines when an interaction starts and stores
them on ``Interaction.dialogue``.

Two generators are included:
1. ScriptedDialogue - canned lines per interaction type and speaker kind
2. LLMDialogue - structured LLM output, falling back to scripted lines
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from ..config import Config
from ..llm_utils import call_llm_with_retries
from ..logging_utils import LOG_TAG_ERROR, LOG_TAG_LLM, log_error, log_llm
from ..schemas import Agent, AgentKind, Interaction, InteractionDialogue


CONNECTION_FALLBACK = "We share a moment of connection..."
NETWORK_DISRUPTED = "The aetheric connection is disrupted. The cosmic network seems unreachable."

SCRIPTED_LINES: Dict[str, Dict[AgentKind, List[str]]] = {
    "inspiration": {
        AgentKind.DREAMER: [
            "Your visions spark new possibilities in my mind!",
            "I see patterns forming from your dreams...",
            "The threads of reality bend to your imagination!",
        ],
        AgentKind.WEAVER: [
            "Your dreams give form to my creations!",
            "I can weave your visions into reality!",
            "Together we birth new worlds!",
        ],
    },
    "creative_collaboration": {
        AgentKind.PHILOSOPHER_DREAMER: [
            "Your art gives form to abstract wisdom...",
            "Beauty and truth unite in perfect harmony!",
            "Through your creativity, philosophy becomes tangible.",
        ],
        AgentKind.ARTISTIC_WEAVER: [
            "Your wisdom infuses my art with deeper meaning!",
            "Philosophy and beauty dance together!",
            "Your insights inspire my greatest works!",
        ],
    },
    "knowledge_sharing": {
        AgentKind.CURIOUS_EXPLORER: [
            "Your wisdom illuminates my discoveries!",
            "Together we uncover the universe's secrets!",
            "Knowledge shared is knowledge multiplied!",
        ],
        AgentKind.PHILOSOPHER_DREAMER: [
            "Your explorations confirm ancient wisdom...",
            "Discovery and contemplation unite!",
            "Through exploration, truth reveals itself.",
        ],
    },
}


class DialogueGenerator(ABC):
    """Produces spoken lines for an interaction, one per participant."""

    @abstractmethod
    async def generate(self, interaction: Interaction, participants: Sequence[Agent]) -> List[str]:
        ...


class ScriptedDialogue(DialogueGenerator):
    """Pick canned lines for each participant with a seeded RNG.

    A speaker whose kind has no lines for the interaction type borrows the
    table entry at its own position; unknown interaction types get the generic
    connection line.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def lines_for(self, interaction_type: str, participants: Sequence[Agent]) -> List[str]:
        table = SCRIPTED_LINES.get(interaction_type)
        if not table:
            return [CONNECTION_FALLBACK]

        fallbacks = list(table.values())
        lines: List[str] = []
        for index, agent in enumerate(participants):
            options = table.get(agent.kind) or fallbacks[min(index, len(fallbacks) - 1)]
            lines.append(f"{agent.id}: {self.rng.choice(options)}")
        return lines

    async def generate(self, interaction: Interaction, participants: Sequence[Agent]) -> List[str]:
        return self.lines_for(interaction.type, participants)


DIALOGUE_SYSTEM_PROMPT = """\
You voice the residents of the Resonant Sanctuary, a serene cosmic refuge.
Write one short line of dialogue per participant, in participant order, that
fits the interaction type and each speaker's kind. Respond with JSON matching
the schema: {"lines": [...], "mood": "..."}."""


class LLMDialogue(DialogueGenerator):
    """Ask an LLM for dialogue; degrade to scripted lines on any failure."""

    def __init__(
        self,
        *,
        llm_provider: Optional[str] = None,
        llm_model: Optional[str] = None,
        fallback: Optional[DialogueGenerator] = None,
        max_attempts: int = 2,
    ):
        self.llm_provider = llm_provider or Config.LLM_PROVIDER
        self.llm_model = llm_model or Config.LLM_MODEL
        self.fallback = fallback or ScriptedDialogue()
        self.max_attempts = max_attempts

    def build_prompt(self, interaction: Interaction, participants: Sequence[Agent]) -> str:
        speakers = "\n".join(
            f"- {agent.id} ({agent.kind.value}), intelligence {agent.intelligence:.0f}"
            for agent in participants
        )
        return f"Interaction type: {interaction.type}\nParticipants:\n{speakers}"

    async def generate(self, interaction: Interaction, participants: Sequence[Agent]) -> List[str]:
        log_llm(f"{LOG_TAG_LLM} Dialogue for {interaction.type} ({', '.join(a.id for a in participants)})")
        try:
            response = await call_llm_with_retries(
                system_prompt=DIALOGUE_SYSTEM_PROMPT,
                user_prompt=self.build_prompt(interaction, participants),
                llm_provider=self.llm_provider,
                llm_model=self.llm_model,
                response_model=InteractionDialogue,
                max_attempts=self.max_attempts,
            )
        except Exception as exc:
            log_error(f"{LOG_TAG_ERROR} Dialogue generation failed: {type(exc).__name__}: {exc}")
            lines = await self.fallback.generate(interaction, participants)
            return [NETWORK_DISRUPTED, *lines]
        return list(response.lines)

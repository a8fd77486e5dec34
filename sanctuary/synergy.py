"""
Composition-dependent production bonuses.

Synergies are derived from the roster every tick and never persisted. Each
rule inspects how many agents of each kind are present; every matching rule
fires, so a roster can earn several synergies at once.

Bonuses are multipliers. ``apply_synergy_effects`` multiplies matching
resource rates in sequence with no clamping in between, which makes the final
rates independent of synergy order. The special ``all_resources`` key
multiplies every tracked resource.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Sequence

from .schemas import Agent, AgentKind, Synergy


ALL_RESOURCES = "all_resources"

KindCounts = Mapping[AgentKind, int]


@dataclass(frozen=True)
class SynergyRule:
    name: str
    description: str
    bonus: Dict[str, float]
    participants: Sequence[AgentKind]
    matches: Callable[[KindCounts], bool]
    unlocks_special_abilities: bool = False

    def build(self) -> Synergy:
        return Synergy(
            name=self.name,
            description=self.description,
            bonus=dict(self.bonus),
            participants=list(self.participants),
            unlocks_special_abilities=self.unlocks_special_abilities,
        )


def _requires_all(*kinds: AgentKind) -> Callable[[KindCounts], bool]:
    return lambda counts: all(counts.get(kind, 0) > 0 for kind in kinds)


def _requires_at_least(kind: AgentKind, count: int) -> Callable[[KindCounts], bool]:
    return lambda counts: counts.get(kind, 0) >= count


DEFAULT_SYNERGY_RULES: List[SynergyRule] = [
    SynergyRule(
        name="Dream Weaving",
        description="Dreamers and Weavers create beautiful realities together",
        bonus={"inspiration": 1.5, "harmony": 1.2},
        participants=(AgentKind.DREAMER, AgentKind.WEAVER),
        matches=_requires_all(AgentKind.DREAMER, AgentKind.WEAVER),
    ),
    SynergyRule(
        name="Wisdom & Beauty",
        description="Philosophy and art unite in perfect harmony",
        bonus={"wisdom": 1.4, "inspiration": 1.6, "insight": 1.3},
        participants=(AgentKind.PHILOSOPHER_DREAMER, AgentKind.ARTISTIC_WEAVER),
        matches=_requires_all(AgentKind.PHILOSOPHER_DREAMER, AgentKind.ARTISTIC_WEAVER),
    ),
    SynergyRule(
        name="Collective Dreaming",
        description="Multiple dreamers amplify each other's visions",
        bonus={"insight": 2.0, "harmony": 1.8},
        participants=(AgentKind.DREAMER,),
        matches=_requires_at_least(AgentKind.DREAMER, 3),
    ),
    SynergyRule(
        name="Trinity of Creation",
        description="Explorer, philosopher and artist complete the creative cycle",
        bonus={ALL_RESOURCES: 1.5},
        participants=(AgentKind.CURIOUS_EXPLORER, AgentKind.PHILOSOPHER_DREAMER, AgentKind.ARTISTIC_WEAVER),
        matches=_requires_all(
            AgentKind.CURIOUS_EXPLORER, AgentKind.PHILOSOPHER_DREAMER, AgentKind.ARTISTIC_WEAVER
        ),
        unlocks_special_abilities=True,
    ),
    SynergyRule(
        name="Sanctuary Council",
        description="Sage, explorer and keeper steward the sanctuary together",
        bonus={ALL_RESOURCES: 1.25},
        participants=(AgentKind.COSMIC_SAGE, AgentKind.VOID_EXPLORER, AgentKind.HARMONY_KEEPER),
        matches=_requires_all(AgentKind.COSMIC_SAGE, AgentKind.VOID_EXPLORER, AgentKind.HARMONY_KEEPER),
    ),
]


class SynergyCalculator:
    """Evaluate an ordered rule list against a roster."""

    def __init__(self, rules: Iterable[SynergyRule] | None = None):
        self.rules = list(rules) if rules is not None else list(DEFAULT_SYNERGY_RULES)

    @staticmethod
    def count_kinds(agents: Iterable[Agent | AgentKind | str]) -> Counter:
        counts: Counter = Counter()
        for item in agents:
            kind = item.kind if isinstance(item, Agent) else AgentKind(item)
            counts[kind] += 1
        return counts

    def evaluate(self, agents: Iterable[Agent | AgentKind | str]) -> List[Synergy]:
        """All synergies the roster earns, in rule order."""

        counts = self.count_kinds(agents)
        return [rule.build() for rule in self.rules if rule.matches(counts)]


def apply_synergy_effects(base_rates: Mapping[str, float], synergies: Iterable[Synergy]) -> Dict[str, float]:
    """Return ``base_rates`` with every synergy multiplier applied."""

    rates = dict(base_rates)
    for synergy in synergies:
        for resource, multiplier in synergy.bonus.items():
            if resource == ALL_RESOURCES:
                for key in rates:
                    rates[key] *= multiplier
            elif resource in rates:
                rates[resource] *= multiplier
    return rates

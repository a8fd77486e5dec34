"""Tests for roster synergies."""

import itertools
import random

import pytest

from sanctuary.agents import create_agent
from sanctuary.schemas import AgentKind
from sanctuary.synergy import SynergyCalculator, apply_synergy_effects


def names(synergies):
    return [synergy.name for synergy in synergies]


def test_dreamer_and_weaver_earn_dream_weaving():
    synergies = SynergyCalculator().evaluate(["dreamer", "weaver"])

    assert names(synergies) == ["Dream Weaving"]
    assert synergies[0].bonus == {"inspiration": 1.5, "harmony": 1.2}


def test_three_dreamers_add_collective_dreaming():
    calculator = SynergyCalculator()

    assert names(calculator.evaluate(["dreamer", "dreamer", "weaver"])) == ["Dream Weaving"]
    assert names(calculator.evaluate(["dreamer"] * 3 + ["weaver"])) == ["Dream Weaving", "Collective Dreaming"]


def test_trinity_unlocks_special_abilities_and_stacks():
    roster = [AgentKind.CURIOUS_EXPLORER, AgentKind.PHILOSOPHER_DREAMER, AgentKind.ARTISTIC_WEAVER]

    synergies = SynergyCalculator().evaluate(roster)

    assert names(synergies) == ["Wisdom & Beauty", "Trinity of Creation"]
    assert synergies[1].unlocks_special_abilities is True


def test_council_of_creatures():
    rng = random.Random(5)
    agents = [
        create_agent(kind, 100 + 50 * i, 100, rng=rng)
        for i, kind in enumerate(("cosmic_sage", "void_explorer", "harmony_keeper"))
    ]

    assert names(SynergyCalculator().evaluate(agents)) == ["Sanctuary Council"]


def test_empty_roster_has_no_synergies():
    assert SynergyCalculator().evaluate([]) == []


def test_apply_effects_multiplies_matching_rates_only():
    synergies = SynergyCalculator().evaluate(["dreamer", "weaver"])

    rates = apply_synergy_effects({"inspiration": 2.0, "wisdom": 1.0}, synergies)

    assert rates == {"inspiration": 3.0, "wisdom": 1.0}


def test_all_resources_multiplies_every_rate():
    synergies = SynergyCalculator().evaluate(["cosmic_sage", "void_explorer", "harmony_keeper"])
    base = {"inspiration": 4.0, "harmony": 2.0}

    rates = apply_synergy_effects(base, synergies)

    assert rates == {"inspiration": 5.0, "harmony": 2.5}
    assert base == {"inspiration": 4.0, "harmony": 2.0}


def test_rates_do_not_depend_on_synergy_order():
    roster = ["dreamer"] * 3 + ["weaver", "curious_explorer", "philosopher_dreamer", "artistic_weaver"]
    synergies = SynergyCalculator().evaluate(roster)
    base = {"inspiration": 1.0, "harmony": 0.5, "insight": 0.2, "wisdom": 0.1}
    expected = apply_synergy_effects(base, synergies)

    for ordering in itertools.permutations(synergies):
        rates = apply_synergy_effects(base, ordering)
        assert rates == pytest.approx(expected)

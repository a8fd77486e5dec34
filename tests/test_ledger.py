"""Tests for the in-memory resource ledger."""

from sanctuary.ledger import DEFAULT_RESOURCES, InMemoryLedger, format_resources


def test_defaults_seed_the_ledger():
    ledger = InMemoryLedger()

    assert ledger.snapshot() == DEFAULT_RESOURCES
    assert ledger.get("unknown") == 0.0


def test_harmony_is_clamped_to_its_domain():
    ledger = InMemoryLedger({"harmony": 98.0})

    assert ledger.add("harmony", 5.0) == 2.0
    assert ledger.get("harmony") == 100.0
    assert ledger.add("harmony", -150.0) == -100.0
    assert ledger.get("harmony") == 0.0


def test_other_resources_never_go_negative():
    ledger = InMemoryLedger({"insight": 3.0})

    assert ledger.add("insight", -5.0) == -3.0
    assert ledger.add("wisdom", 6.0) == 6.0
    assert ledger.snapshot() == {"insight": 0.0, "wisdom": 6.0}


def test_initial_values_are_clamped_and_custom_domains_apply():
    ledger = InMemoryLedger({"harmony": 140.0, "energy": 10.0}, domains={"energy": (0.0, 12.0)})

    assert ledger.get("harmony") == 100.0
    assert ledger.add("energy", 5.0) == 2.0


def test_snapshot_is_a_copy():
    ledger = InMemoryLedger({"harmony": 50.0})
    snapshot = ledger.snapshot()
    snapshot["harmony"] = 0.0

    assert ledger.get("harmony") == 50.0


def test_format_resources():
    assert format_resources({"harmony": 52.0, "insight": 5.5}) == "Harmony=52.0, Insight=5.50"
    assert format_resources({"synergy_bonus": 1.25}) == "Synergy Bonus=1.25"
    assert format_resources({}) == ""

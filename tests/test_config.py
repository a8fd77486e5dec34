"""Tests for configuration helpers."""

import pytest

from sanctuary.config import Config, SimulationSettings


def test_settings_default_from_config(monkeypatch):
    monkeypatch.setattr(Config, "MEMORY_CAPACITY", 12)
    monkeypatch.setattr(Config, "DECISION_COOLDOWN_MS", 750.0)

    settings = SimulationSettings()

    assert settings.memory_capacity == 12
    assert settings.decision_cooldown == 750.0
    assert settings.teach_range == 50.0
    assert settings.overlap_factor == 0.8


def test_settings_reject_invalid_values():
    with pytest.raises(ValueError):
        SimulationSettings(memory_capacity=0)


def test_validate_requires_api_key_for_provider(monkeypatch):
    monkeypatch.setattr(Config, "LLM_PROVIDER", "anthropic")
    monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", None)

    with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
        Config.validate()

    monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", "test-key")
    Config.validate()


def test_validate_rejects_bad_world_size(monkeypatch):
    monkeypatch.setattr(Config, "WORLD_WIDTH", 0.0)

    with pytest.raises(ValueError, match="WORLD_WIDTH"):
        Config.validate()


def test_display_lists_key_settings():
    text = Config.display()

    assert text.startswith("Sanctuary Configuration:")
    assert "Memory Capacity" in text
    assert "Interaction Radius" in text

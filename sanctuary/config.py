"""
Sanctuary Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env file if it exists
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # LLM Provider Configuration (only used by the optional dialogue generator)
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "openai")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-5-nano")

    # API Keys
    ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")

    # World
    WORLD_WIDTH: float = float(os.getenv("WORLD_WIDTH", "800"))
    WORLD_HEIGHT: float = float(os.getenv("WORLD_HEIGHT", "600"))

    # Agent cognition
    MEMORY_CAPACITY: int = int(os.getenv("MEMORY_CAPACITY", "50"))
    MEMORY_AGE_DIVISOR: float = float(os.getenv("MEMORY_AGE_DIVISOR", "10000"))
    DECISION_COOLDOWN_MS: float = float(os.getenv("DECISION_COOLDOWN_MS", "2000"))
    PERCEPTION_RADIUS: float = float(os.getenv("PERCEPTION_RADIUS", "100"))
    MOVEMENT_SPEED: float = float(os.getenv("MOVEMENT_SPEED", "30"))

    # Interactions
    INTERACTION_RADIUS: float = float(os.getenv("INTERACTION_RADIUS", "60"))
    INTERACTION_REMATCH_MS: float = float(os.getenv("INTERACTION_REMATCH_MS", "10000"))

    # Simulation
    DEFAULT_TICK_COUNT: int = int(os.getenv("DEFAULT_TICK_COUNT", "50"))
    TICK_DURATION_MS: float = float(os.getenv("TICK_DURATION_MS", "100"))
    RANDOM_SEED: int | None = (
        int(os.environ["RANDOM_SEED"]) if os.getenv("RANDOM_SEED") else None
    )

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    VERBOSE: bool = os.getenv("SANCTUARY_VERBOSE", "").lower() in {"1", "true", "yes"}

    # Project Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    SCENARIOS_DIR: Path = Path(
        os.getenv("SANCTUARY_SCENARIOS_DIR", str(PROJECT_ROOT / "examples" / "scenarios"))
    )

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if required values are invalid."""
        if cls.WORLD_WIDTH <= 0 or cls.WORLD_HEIGHT <= 0:
            raise ValueError(
                "WORLD_WIDTH and WORLD_HEIGHT must be positive. "
                f"Got {cls.WORLD_WIDTH}x{cls.WORLD_HEIGHT}."
            )

        if cls.MEMORY_CAPACITY < 1:
            raise ValueError("MEMORY_CAPACITY must be >= 1")

        if cls.MEMORY_AGE_DIVISOR <= 0:
            raise ValueError("MEMORY_AGE_DIVISOR must be positive")

        if cls.LLM_PROVIDER == "anthropic" and not cls.ANTHROPIC_API_KEY:
            raise ValueError(
                "ANTHROPIC_API_KEY is required when using the 'anthropic' provider"
            )

        if cls.LLM_PROVIDER == "openai" and not cls.OPENAI_API_KEY:
            raise ValueError(
                "OPENAI_API_KEY is required when using the 'openai' provider. "
                "Use ScriptedDialogue to run without an LLM."
            )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Sanctuary Configuration:",
            f"  LLM Provider: {cls.LLM_PROVIDER}",
            f"  LLM Model: {cls.LLM_MODEL}",
            f"  World: {cls.WORLD_WIDTH:g}x{cls.WORLD_HEIGHT:g}",
            f"  Memory Capacity: {cls.MEMORY_CAPACITY}",
            f"  Decision Cooldown: {cls.DECISION_COOLDOWN_MS:g}ms",
            f"  Interaction Radius: {cls.INTERACTION_RADIUS:g}",
            f"  Default Ticks: {cls.DEFAULT_TICK_COUNT}",
            f"  Random Seed: {cls.RANDOM_SEED}",
        ]
        return "\n".join(lines)


class SimulationSettings(BaseModel):
    """Tunables injected into the orchestrator and its services.

    Defaults are read from :class:`Config` so a ``.env`` file can reshape a run
    without code changes, while tests construct settings explicitly.
    """

    memory_capacity: int = Field(default_factory=lambda: Config.MEMORY_CAPACITY, ge=1)
    memory_age_divisor: float = Field(
        default_factory=lambda: Config.MEMORY_AGE_DIVISOR, gt=0
    )
    decision_cooldown: float = Field(
        default_factory=lambda: Config.DECISION_COOLDOWN_MS, ge=0
    )
    perception_radius: float = Field(
        default_factory=lambda: Config.PERCEPTION_RADIUS, gt=0
    )
    movement_speed: float = Field(default_factory=lambda: Config.MOVEMENT_SPEED, ge=0)
    interaction_radius: float = Field(
        default_factory=lambda: Config.INTERACTION_RADIUS, gt=0
    )
    interaction_rematch_cooldown: float = Field(
        default_factory=lambda: Config.INTERACTION_REMATCH_MS, ge=0
    )
    teach_range: float = Field(50.0, description="Inclusive teaching distance")
    communicate_range: float = Field(60.0, description="Inclusive communication distance")
    discovery_radius: float = Field(30.0, description="Scan radius after moving")
    harmony_restore_radius: float = Field(80.0, description="Harmony restoration radius")
    proximity_radius: float = Field(80.0, description="Placement proximity radius")
    overlap_factor: float = Field(0.8, description="Fraction of combined sizes that counts as overlap")

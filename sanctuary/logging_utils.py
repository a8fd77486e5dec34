"""Logging utilities for Sanctuary simulations.

Provides color-coded output to distinguish deterministic simulation steps from
LLM-backed dialogue, errors, and summaries.
"""

import os
from enum import Enum


class Color(Enum):
    """ANSI color codes for terminal output."""

    BLUE = "\033[94m"      # Deterministic operations (perception, planning, behaviours)
    YELLOW = "\033[93m"    # LLM calls (interaction dialogue)
    RED = "\033[91m"       # Errors and diagnostics
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata
    MAGENTA = "\033[95m"   # Interactions and synergies

    BOLD = "\033[1m"
    RESET = "\033[0m"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if SANCTUARY_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("SANCTUARY_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


def log_deterministic(message: str) -> None:
    """Log a deterministic operation (blue)."""
    print(colored(message, Color.BLUE))


def log_llm(message: str) -> None:
    """Log an LLM operation (yellow)."""
    print(colored(message, Color.YELLOW))


def log_error(message: str) -> None:
    """Log an error or diagnostic (red)."""
    print(colored(message, Color.RED))


def log_success(message: str) -> None:
    """Log a success (green)."""
    print(colored(message, Color.GREEN))


def log_info(message: str) -> None:
    """Log metadata/info (cyan)."""
    print(colored(message, Color.CYAN))


def log_resonance(message: str) -> None:
    """Log an interaction or synergy change (magenta)."""
    print(colored(message, Color.MAGENTA))


# Markers for operation types (color-blind accessible)
LOG_TAG_DETERMINISTIC = "[•]"
LOG_TAG_LLM = "[AI]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"
LOG_TAG_INFO = "[i]"
LOG_TAG_RESONANCE = "[~]"

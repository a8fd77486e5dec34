"""Timestamp cadences for throttling agent cognition.

Cooldowns are plain timestamp comparisons re-evaluated every tick; nothing
here sleeps or schedules work.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Cooldown:
    """Represents a ``no more than once every N ms`` cadence."""

    every: float = 0.0

    def is_due(self, *, now: float, last_run: Optional[float]) -> bool:
        """Return ``True`` when the cadence allows running at ``now``."""

        if self.every <= 0 or last_run is None:
            return True

        return now - last_run >= self.every

    def remaining(self, *, now: float, last_run: Optional[float]) -> float:
        """Milliseconds left before the cadence is due again."""

        if self.is_due(now=now, last_run=last_run):
            return 0.0
        return self.every - (now - last_run)

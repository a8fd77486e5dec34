"""
ResourceLedger interface for the sanctuary economy.

The simulation core never owns resource totals; it reads and adjusts them
through this interface. Per-tick production formulas and purchase costs live
with the economy layer, not here.

Each resource has a domain (``harmony`` is clamped to ``[0, 100]``, every
other resource is clamped at ``0`` from below). ``add`` returns the delta that
was actually applied after clamping so callers can report honest events.
"""

from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional, Tuple


DEFAULT_RESOURCES: Dict[str, float] = {
    "energy": 20.0,
    "insight": 5.0,
    "harmony": 50.0,
    "inspiration": 0.0,
    "wisdom": 0.0,
}

ResourceDomain = Tuple[Optional[float], Optional[float]]

DEFAULT_DOMAINS: Dict[str, ResourceDomain] = {
    "harmony": (0.0, 100.0),
}
DEFAULT_DOMAIN: ResourceDomain = (0.0, None)


class ResourceLedger(ABC):
    """Read/adjust access to shared resources."""

    @abstractmethod
    def get(self, resource: str) -> float:
        """Return the current amount of ``resource`` (0 when unknown)."""

    @abstractmethod
    def add(self, resource: str, delta: float) -> float:
        """Adjust ``resource`` by ``delta`` within its domain.

        Returns:
            The delta actually applied after clamping.
        """

    @abstractmethod
    def snapshot(self) -> Dict[str, float]:
        """Return a copy of every tracked resource."""


class InMemoryLedger(ResourceLedger):
    """Dict-backed ledger used by tests, examples and the default orchestrator."""

    def __init__(
        self,
        initial: Optional[Mapping[str, float]] = None,
        domains: Optional[Mapping[str, ResourceDomain]] = None,
    ):
        self._domains: Dict[str, ResourceDomain] = dict(DEFAULT_DOMAINS)
        if domains:
            self._domains.update(domains)

        self._values: Dict[str, float] = {}
        source = DEFAULT_RESOURCES if initial is None else initial
        for resource, amount in source.items():
            self._values[resource] = self._clamp(resource, float(amount))

    def _clamp(self, resource: str, value: float) -> float:
        low, high = self._domains.get(resource, DEFAULT_DOMAIN)
        if low is not None:
            value = max(low, value)
        if high is not None:
            value = min(high, value)
        return value

    def get(self, resource: str) -> float:
        return self._values.get(resource, 0.0)

    def add(self, resource: str, delta: float) -> float:
        before = self.get(resource)
        after = self._clamp(resource, before + delta)
        self._values[resource] = after
        return after - before

    def snapshot(self) -> Dict[str, float]:
        return dict(self._values)


def format_resources(resources: Mapping[str, float]) -> str:
    """Format resource totals as a one-line console summary.

    Values >= 10 show one decimal place, smaller values show two, so
    ``{"harmony": 52.0, "insight": 5.5}`` renders as
    ``"Harmony=52.0, Insight=5.50"``. Returns an empty string when there is
    nothing to show.
    """

    if not resources:
        return ""

    parts: list[str] = []
    for key, value in resources.items():
        label = key.replace("_", " ").title()
        formatted = f"{value:.1f}" if abs(value) >= 10 else f"{value:.2f}"
        parts.append(f"{label}={formatted}")
    return ", ".join(parts)

"""
MemoryStrategy interface for bounded agent memory.

Each agent carries its own memory list (``Agent.memory``); strategies decide
how entries are created, which ones survive when capacity is exceeded, and how
they are recalled.

Key responsibilities:
- Turn loose event mappings into validated ``MemoryEntry`` records
- Drop malformed events (missing type or payload) without raising
- Keep ``len(agent.memory) <= capacity`` after every ``record`` call
- Recall entries by type within an age window, newest first

Two included strategies:
1. DecayWeightedMemory - importance minus age decay decides survivors (default)
2. FifoMemory - keeps only the most recent entries
"""

from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError

from .errors import MemoryConstraintViolation
from .schemas import Agent, MemoryEntry, Position


DEFAULT_CAPACITY = 50
DEFAULT_AGE_DIVISOR = 10000.0
DEFAULT_RECALL_AGE = 60000.0


class MemoryStrategy(ABC):
    """Abstract base class for agent memory policies.

    Subclasses only decide which entries to keep once the list grows past
    ``capacity``; validation, recall and sharing are common to every policy.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity

    def build_entry(
        self, agent: Agent, event: Mapping[str, Any], now: Optional[float] = None
    ) -> MemoryEntry:
        """Validate ``event`` and convert it into a ``MemoryEntry``.

        Raises:
            MemoryConstraintViolation: If the event lacks a type, a payload,
                or a timestamp, or fails schema validation.
        """

        if not isinstance(event, Mapping):
            raise MemoryConstraintViolation(f"memory event must be a mapping, got {type(event).__name__}")
        if not event.get("type"):
            raise MemoryConstraintViolation("memory event is missing its type")
        if not isinstance(event.get("payload"), Mapping):
            raise MemoryConstraintViolation("memory event is missing its payload")

        timestamp = event.get("timestamp", now)
        if timestamp is None:
            raise MemoryConstraintViolation("memory event has no timestamp")

        location = event.get("location") or agent.position.model_copy()
        try:
            return MemoryEntry(
                timestamp=timestamp,
                type=event["type"],
                location=Position.model_validate(location),
                payload=dict(event["payload"]),
                importance=event.get("importance", 1.0),
                source=event.get("source"),
                shared=bool(event.get("shared", False)),
            )
        except ValidationError as exc:
            raise MemoryConstraintViolation(str(exc)) from exc

    def record(
        self, agent: Agent, event: Mapping[str, Any], now: Optional[float] = None
    ) -> Optional[MemoryEntry]:
        """Append an event to ``agent.memory`` and enforce capacity.

        Malformed events are dropped and ``None`` is returned.
        """

        try:
            entry = self.build_entry(agent, event, now)
        except MemoryConstraintViolation:
            return None

        agent.memory.append(entry)
        if len(agent.memory) > self.capacity:
            reference = entry.timestamp if now is None else now
            agent.memory = self.evict(agent.memory, reference)
        return entry

    @abstractmethod
    def evict(self, entries: List[MemoryEntry], now: float) -> List[MemoryEntry]:
        """Return at most ``capacity`` survivors of ``entries``."""

    def recall(
        self,
        agent: Agent,
        memory_type: str,
        max_age: float = DEFAULT_RECALL_AGE,
        now: Optional[float] = None,
    ) -> List[MemoryEntry]:
        """Entries of ``memory_type`` no older than ``max_age``, newest first."""

        if now is None:
            now = max((entry.timestamp for entry in agent.memory), default=0.0)
        matches = [
            entry
            for entry in agent.memory
            if entry.type == memory_type and now - entry.timestamp <= max_age
        ]
        return sorted(matches, key=lambda entry: entry.timestamp, reverse=True)

    def recent(self, agent: Agent, limit: int = 3) -> List[MemoryEntry]:
        """The ``limit`` most recent entries, newest first."""

        ordered = sorted(agent.memory, key=lambda entry: entry.timestamp, reverse=True)
        return ordered[:limit]


class DecayWeightedMemory(MemoryStrategy):
    """Keep the entries with the best ``importance - age / age_divisor`` score.

    Survivors stay in their original chronological order; only membership is
    decided by score. Ties keep the earlier entry.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, age_divisor: float = DEFAULT_AGE_DIVISOR):
        super().__init__(capacity)
        if age_divisor <= 0:
            raise ValueError("age_divisor must be positive")
        self.age_divisor = age_divisor

    def score(self, entry: MemoryEntry, now: float) -> float:
        return entry.importance - (now - entry.timestamp) / self.age_divisor

    def evict(self, entries: List[MemoryEntry], now: float) -> List[MemoryEntry]:
        ranked = sorted(
            range(len(entries)),
            key=lambda index: self.score(entries[index], now),
            reverse=True,
        )
        keep = sorted(ranked[: self.capacity])
        return [entries[index] for index in keep]


class FifoMemory(MemoryStrategy):
    """Keep only the newest ``capacity`` entries."""

    def evict(self, entries: List[MemoryEntry], now: float) -> List[MemoryEntry]:
        return entries[-self.capacity:]

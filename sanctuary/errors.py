"""Exception types raised inside the sanctuary simulation core.

Agent-level failures never escape :meth:`Orchestrator.tick`; they are converted
into diagnostics. The classes here let each service signal *why* something was
rejected so the orchestrator can report it.
"""

from typing import List, Optional


class SanctuaryError(Exception):
    """Base class for all simulation errors."""


class TargetNotFoundError(SanctuaryError):
    """A goal references a body that is no longer in the world."""

    def __init__(self, agent_id: str, target_id: Optional[str]):
        self.agent_id = agent_id
        self.target_id = target_id
        super().__init__(
            f"Agent {agent_id} lost track of target {target_id!r}; the goal was cleared."
        )


class PlacementValidationError(SanctuaryError):
    """A dropped unit landed outside the world or on top of a fixed body."""

    def __init__(self, unit_id: str, reason: str):
        self.unit_id = unit_id
        self.reason = reason
        super().__init__(f"Placement of {unit_id} rejected: {reason}")


class MemoryConstraintViolation(SanctuaryError):
    """A memory event is missing its type or payload."""


class InteractionConflict(SanctuaryError):
    """A candidate pair was skipped because a participant is already busy."""

    def __init__(self, agent_ids: List[str], busy_id: str):
        self.agent_ids = list(agent_ids)
        self.busy_id = busy_id
        super().__init__(
            f"Pair {agent_ids[0]}/{agent_ids[1]} skipped: {busy_id} is already interacting"
        )


class SimulationRunError(SanctuaryError):
    """Raised when ``Orchestrator.run`` cannot persist a tick."""

    def __init__(self, tick: int, cause: BaseException):
        self.tick = tick
        self.cause = cause
        message = (
            f"Persistence failed at tick {tick}: {type(cause).__name__}: {cause}\n\n"
            "Tips:\n"
            "  - Check that the JsonPersistence base path is writable.\n"
            "  - Use InMemoryPersistence() to run without touching the filesystem."
        )
        super().__init__(message)

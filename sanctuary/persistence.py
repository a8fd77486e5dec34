"""
PersistenceStrategy interface for pluggable snapshot storage.

Persistence is optional: the orchestrator's ``tick`` never touches storage,
and ``run`` defaults to ``InMemoryPersistence``. Records are flat; agents,
interactions and memories reference each other by id only, so snapshots
round-trip through JSON without cycles.

Two included implementations:
1. InMemoryPersistence - dict-based, data lost on exit (tests, prototyping)
2. JsonPersistence - human-readable JSON files per tick (debugging, sharing runs)

Usage pattern:
    persistence = JsonPersistence("sanctuary_runs")
    await persistence.initialize()
    await persistence.save_state(run_id, tick, world_state)
    await persistence.close()
"""

import asyncio
import json
import shutil
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
from uuid import UUID

from .schemas import DomainEvent, SimulationRun, WorldState


class PersistenceStrategy(ABC):
    """Abstract base class for simulation state persistence.

    All methods are async so file or network backends never block the
    caller's event loop. Method groups:
    1. Lifecycle: initialize(), close()
    2. Run metadata: save_run_metadata(), update_run_status(), get_run()
    3. Snapshots: save_state(), get_state()
    4. Events: save_events(), get_events()
    5. Cleanup: delete_run()
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend (create directories, open connections)."""

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources. Stored data must stay readable."""

    @abstractmethod
    async def save_run_metadata(self, run: SimulationRun) -> None:
        pass

    @abstractmethod
    async def update_run_status(
        self, run_id: UUID, status: str, end_time: Optional[datetime] = None
    ) -> None:
        """Update run status (running, completed, failed); unknown runs are ignored."""

    @abstractmethod
    async def get_run(self, run_id: UUID) -> Optional[SimulationRun]:
        pass

    @abstractmethod
    async def save_state(self, run_id: UUID, tick: int, state: WorldState) -> None:
        """Store a snapshot of ``state`` for ``tick``.

        Implementations must store a copy; the orchestrator keeps mutating
        the live world after this call returns.
        """

    @abstractmethod
    async def get_state(self, run_id: UUID, tick: int) -> Optional[WorldState]:
        pass

    @abstractmethod
    async def save_events(self, run_id: UUID, tick: int, events: List[DomainEvent]) -> None:
        pass

    @abstractmethod
    async def get_events(self, run_id: UUID, tick: int) -> List[DomainEvent]:
        pass

    @abstractmethod
    async def delete_run(self, run_id: UUID) -> None:
        """Remove run metadata, snapshots and events."""


class InMemoryPersistence(PersistenceStrategy):
    """In-memory persistence using Python dicts (no files).

    Storage structure:
    - runs: Dict[UUID, SimulationRun]
    - states: Dict[(run_id, tick), WorldState] (deep copies)
    - events: Dict[(run_id, tick), List[DomainEvent]]

    Data survives ``close()`` so callers can inspect results after a run.
    """

    def __init__(self):
        self.runs: Dict[UUID, SimulationRun] = {}
        self.states: Dict[tuple[UUID, int], WorldState] = {}
        self.events: Dict[tuple[UUID, int], List[DomainEvent]] = {}

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def save_run_metadata(self, run: SimulationRun) -> None:
        self.runs[run.id] = run.model_copy(deep=True)

    async def update_run_status(
        self, run_id: UUID, status: str, end_time: Optional[datetime] = None
    ) -> None:
        if run_id in self.runs:
            self.runs[run_id].status = status
            if end_time:
                self.runs[run_id].end_time = end_time

    async def get_run(self, run_id: UUID) -> Optional[SimulationRun]:
        return self.runs.get(run_id)

    async def save_state(self, run_id: UUID, tick: int, state: WorldState) -> None:
        self.states[(run_id, tick)] = state.model_copy(deep=True)

    async def get_state(self, run_id: UUID, tick: int) -> Optional[WorldState]:
        return self.states.get((run_id, tick))

    async def save_events(self, run_id: UUID, tick: int, events: List[DomainEvent]) -> None:
        self.events.setdefault((run_id, tick), []).extend(
            event.model_copy(deep=True) for event in events
        )

    async def get_events(self, run_id: UUID, tick: int) -> List[DomainEvent]:
        return self.events.get((run_id, tick), [])

    async def delete_run(self, run_id: UUID) -> None:
        self.runs.pop(run_id, None)
        for store in (self.states, self.events):
            for key in [key for key in store if key[0] == run_id]:
                del store[key]


class JsonPersistence(PersistenceStrategy):
    """File-based persistence using pretty-printed JSON.

    Directory structure:
    ```
    {base_path}/
      {run_id}/
        run.json           # SimulationRun metadata
        states/00000.json  # WorldState at tick 0
        events/00001.json  # List[DomainEvent] at tick 1
    ```

    Tick numbers are zero-padded to five digits so files sort
    lexicographically. All file I/O runs in a worker thread via
    ``asyncio.to_thread``.
    """

    def __init__(self, base_path: Path | str = "sanctuary_runs"):
        self.base_path = Path(base_path)

    def _run_dir(self, run_id: UUID) -> Path:
        return self.base_path / str(run_id)

    @staticmethod
    def _write_json(path: Path, payload) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), "utf-8")

    @staticmethod
    def _read_json(path: Path):
        return json.loads(path.read_text("utf-8"))

    async def initialize(self) -> None:
        await asyncio.to_thread(self.base_path.mkdir, parents=True, exist_ok=True)

    async def close(self) -> None:
        return None

    async def save_run_metadata(self, run: SimulationRun) -> None:
        path = self._run_dir(run.id) / "run.json"
        await asyncio.to_thread(self._write_json, path, run.model_dump(mode="json"))

    async def update_run_status(
        self, run_id: UUID, status: str, end_time: Optional[datetime] = None
    ) -> None:
        path = self._run_dir(run_id) / "run.json"
        if not path.exists():
            return

        def _update() -> None:
            payload = self._read_json(path)
            payload["status"] = status
            payload["end_time"] = end_time.isoformat() if end_time else None
            self._write_json(path, payload)

        await asyncio.to_thread(_update)

    async def get_run(self, run_id: UUID) -> Optional[SimulationRun]:
        path = self._run_dir(run_id) / "run.json"
        if not path.exists():
            return None
        payload = await asyncio.to_thread(self._read_json, path)
        return SimulationRun.model_validate(payload)

    async def save_state(self, run_id: UUID, tick: int, state: WorldState) -> None:
        path = self._run_dir(run_id) / "states" / f"{tick:05d}.json"
        await asyncio.to_thread(self._write_json, path, state.model_dump(mode="json"))

    async def get_state(self, run_id: UUID, tick: int) -> Optional[WorldState]:
        path = self._run_dir(run_id) / "states" / f"{tick:05d}.json"
        if not path.exists():
            return None
        payload = await asyncio.to_thread(self._read_json, path)
        return WorldState.model_validate(payload)

    async def save_events(self, run_id: UUID, tick: int, events: List[DomainEvent]) -> None:
        path = self._run_dir(run_id) / "events" / f"{tick:05d}.json"
        existing = await self.get_events(run_id, tick)
        payload = [event.model_dump(mode="json") for event in [*existing, *events]]
        await asyncio.to_thread(self._write_json, path, payload)

    async def get_events(self, run_id: UUID, tick: int) -> List[DomainEvent]:
        path = self._run_dir(run_id) / "events" / f"{tick:05d}.json"
        if not path.exists():
            return []
        payload = await asyncio.to_thread(self._read_json, path)
        return [DomainEvent.model_validate(item) for item in payload]

    async def delete_run(self, run_id: UUID) -> None:
        run_dir = self._run_dir(run_id)
        if run_dir.exists():
            await asyncio.to_thread(shutil.rmtree, run_dir)

"""
Drag-and-drop placement of agents and draggable bodies.

``PlacementController`` owns at most one ``DragSession`` at a time:

    start_drag  -> records pointer offset and original position
    update_drag -> clamps into bounds, accumulates travelled distance
    complete_drag -> validates; on success computes placement effects,
                     on failure reverts to the original position

Input may arrive on a UI thread. That thread only *records* pointer inputs
(``record_start`` / ``record_move`` / ``record_drop``); the simulation thread
drains and applies them at the start of the next tick via ``apply_pending``.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

from .errors import PlacementValidationError
from .interactions import classify_pair
from .schemas import (
    Agent,
    Body,
    DragSession,
    PlacementEffect,
    PlacementResult,
    Position,
    ProximityIndicator,
    WorldBounds,
    WorldState,
)


PROXIMITY_BONUS_PER_BODY = 0.1
STRATEGIC_BONUS = 0.15


@dataclass(frozen=True)
class PointerInput:
    """A pointer event captured off the simulation thread."""

    action: str  # start | move | drop | cancel
    x: float = 0.0
    y: float = 0.0
    unit_id: Optional[str] = None


class PlacementController:
    def __init__(
        self,
        proximity_radius: float = 80.0,
        overlap_factor: float = 0.8,
    ):
        self.proximity_radius = proximity_radius
        self.overlap_factor = overlap_factor
        self.session: Optional[DragSession] = None
        self._unit: Optional[Body] = None
        self._pending: Deque[PointerInput] = deque()
        self._lock = threading.Lock()

    @property
    def dragged_unit(self) -> Optional[Body]:
        return self._unit

    # ------------------------------------------------------------------
    # Input recording (any thread)
    # ------------------------------------------------------------------

    def record_start(self, unit_id: str, x: float, y: float) -> None:
        with self._lock:
            self._pending.append(PointerInput("start", x, y, unit_id))

    def record_move(self, x: float, y: float) -> None:
        with self._lock:
            self._pending.append(PointerInput("move", x, y))

    def record_drop(self) -> None:
        with self._lock:
            self._pending.append(PointerInput("drop"))

    def record_cancel(self) -> None:
        with self._lock:
            self._pending.append(PointerInput("cancel"))

    def drain(self) -> List[PointerInput]:
        with self._lock:
            inputs = list(self._pending)
            self._pending.clear()
        return inputs

    def apply_pending(self, world: WorldState, now: float) -> List[PlacementResult]:
        """Apply recorded inputs in arrival order on the simulation thread."""

        results: List[PlacementResult] = []
        for pointer in self.drain():
            if pointer.action == "start":
                unit = world.get_body(pointer.unit_id) if pointer.unit_id else None
                if unit is not None:
                    self.start_drag(unit, pointer.x, pointer.y, now)
            elif pointer.action == "move":
                self.update_drag(pointer.x, pointer.y, world.bounds)
            elif pointer.action == "drop":
                result = self.complete_drag(world, now)
                if result is not None:
                    results.append(result)
            elif pointer.action == "cancel":
                self.cancel_drag()
        return results

    # ------------------------------------------------------------------
    # Drag lifecycle (simulation thread)
    # ------------------------------------------------------------------

    def find_draggable_at(self, world: WorldState, x: float, y: float) -> Optional[Body]:
        """Closest draggable body whose radius covers ``(x, y)``."""

        point = Position(x=x, y=y)
        best: Optional[Body] = None
        best_distance = float("inf")
        for body in world.bodies():
            if not body.draggable:
                continue
            distance = body.position.distance_to(point)
            if distance <= body.size and distance < best_distance:
                best, best_distance = body, distance
        return best

    def start_drag(self, unit: Body, x: float, y: float, now: float = 0.0) -> Optional[DragSession]:
        """Begin dragging ``unit``; returns ``None`` if it cannot be dragged."""

        if not unit.draggable or self.session is not None:
            return None

        self.session = DragSession(
            dragged_agent_id=unit.id,
            pointer_offset=Position(x=x - unit.position.x, y=y - unit.position.y),
            original_position=unit.position.model_copy(),
            start_time=now,
        )
        self._unit = unit
        unit.is_dragging = True
        return self.session

    def update_drag(self, x: float, y: float, bounds: WorldBounds) -> Optional[Position]:
        if self.session is None or self._unit is None:
            return None

        offset = self.session.pointer_offset
        candidate = Position(x=x - offset.x, y=y - offset.y)
        clamped = bounds.clamp(candidate, self._unit.size)
        self.session.total_distance += self._unit.position.distance_to(clamped)
        self._unit.position = clamped
        return clamped

    def validate(self, unit: Body, world: WorldState) -> None:
        """Raise ``PlacementValidationError`` if ``unit`` may not rest here."""

        if not world.bounds.contains(unit.position, unit.size):
            raise PlacementValidationError(unit.id, "outside world bounds")

        for body in world.bodies():
            if body.id == unit.id or body.draggable:
                continue
            limit = self.overlap_factor * (unit.size + body.size)
            if unit.distance_to(body) < limit:
                raise PlacementValidationError(unit.id, f"overlaps {body.id}")

    def complete_drag(self, world: WorldState, now: Optional[float] = None) -> Optional[PlacementResult]:
        """Finish the gesture. Returns ``None`` when no drag is active."""

        if self.session is None or self._unit is None:
            return None

        unit, session = self._unit, self.session
        duration = max(0.0, now - session.start_time) if now is not None else 0.0
        try:
            self.validate(unit, world)
        except PlacementValidationError as exc:
            self.revert_invalid_placement()
            return PlacementResult(
                unit_id=unit.id,
                is_valid_placement=False,
                position=unit.position.model_copy(),
                total_distance=session.total_distance,
                drag_duration=duration,
                reason=exc.reason,
            )

        unit.is_dragging = False
        self.session = None
        self._unit = None
        return PlacementResult(
            unit_id=unit.id,
            is_valid_placement=True,
            position=unit.position.model_copy(),
            total_distance=session.total_distance,
            drag_duration=duration,
            effects=self.placement_effects(unit, world),
        )

    def revert_invalid_placement(self) -> bool:
        """Restore the original position and end the session (idempotent)."""

        if self.session is None or self._unit is None:
            return False
        self._unit.position = self.session.original_position.model_copy()
        self._unit.is_dragging = False
        self.session = None
        self._unit = None
        return True

    def cancel_drag(self) -> bool:
        return self.revert_invalid_placement()

    def release(self, unit_id: str) -> bool:
        """Drop the session without moving anything (the unit left the world)."""

        if self.session is None or self.session.dragged_agent_id != unit_id:
            return False
        self.session = None
        self._unit = None
        return True

    # ------------------------------------------------------------------
    # Effects and hints
    # ------------------------------------------------------------------

    def _nearby(self, unit: Body, world: WorldState) -> List[Body]:
        return [
            body
            for body in world.bodies()
            if body.id != unit.id and unit.distance_to(body) <= self.proximity_radius
        ]

    def placement_effects(self, unit: Body, world: WorldState) -> List[PlacementEffect]:
        effects: List[PlacementEffect] = []

        nearby = self._nearby(unit, world)
        if nearby:
            effects.append(
                PlacementEffect(
                    type="proximity_bonus",
                    value=len(nearby) * PROXIMITY_BONUS_PER_BODY,
                    nearby_count=len(nearby),
                )
            )

        bounds = world.bounds
        if unit.position.x > bounds.width / 2 and unit.position.y > bounds.height / 2:
            effects.append(PlacementEffect(type="strategic_position", value=STRATEGIC_BONUS))

        return effects

    def proximity_indicators(self, world: WorldState) -> List[ProximityIndicator]:
        """Hints for the unit being dragged, strongest first."""

        if self._unit is None:
            return []

        indicators: List[ProximityIndicator] = []
        for body in self._nearby(self._unit, world):
            distance = self._unit.distance_to(body)
            interaction_type = None
            if isinstance(self._unit, Agent) and isinstance(body, Agent):
                interaction_type = classify_pair(self._unit.kind, body.kind)
            indicators.append(
                ProximityIndicator(
                    body_id=body.id,
                    distance=distance,
                    strength=max(0.0, 1 - distance / self.proximity_radius),
                    interaction_type=interaction_type,
                )
            )
        return sorted(indicators, key=lambda indicator: indicator.strength, reverse=True)

# tank_arena/client/input_source.py
"""
Input capability for the client core.

Device adapters (keyboard/pointer, touch joystick) feed raw events into an
InputSource; the client only ever calls poll() once per client tick.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from tank_arena.config.settings import JOYSTICK_AXIS_THRESHOLD, JOYSTICK_DEAD_ZONE

DIRECTIONS = ("w", "a", "s", "d")


def no_keys() -> Dict[str, bool]:
    return {key: False for key in DIRECTIONS}


@dataclass
class InputSnapshot:
    """What the player is doing right now."""

    keys: Dict[str, bool] = field(default_factory=no_keys)
    aim_x: float = 0.0
    aim_y: float = 0.0
    fire: bool = False


class InputSource(ABC):
    """Anything that can report held directions, an aim point and fire requests."""

    @abstractmethod
    def poll(self) -> InputSnapshot:
        """Return the current input state and consume pending fire requests."""


class PointerInputSource(InputSource):
    """WASD keys plus a pointer for aiming and the primary button for firing."""

    def __init__(self):
        self.keys = no_keys()
        self.pointer: Tuple[float, float] = (0.0, 0.0)
        self._fire_pending = False

    def key_down(self, key: str):
        key = key.lower()
        if key in self.keys:
            self.keys[key] = True

    def key_up(self, key: str):
        key = key.lower()
        if key in self.keys:
            self.keys[key] = False

    def pointer_move(self, x: float, y: float):
        self.pointer = (x, y)

    def pointer_down(self, button: int = 0):
        if button == 0:
            self._fire_pending = True

    def poll(self) -> InputSnapshot:
        snapshot = InputSnapshot(
            keys=dict(self.keys),
            aim_x=self.pointer[0],
            aim_y=self.pointer[1],
            fire=self._fire_pending,
        )
        self._fire_pending = False
        return snapshot


class JoystickInputSource(InputSource):
    """Virtual stick for movement and a separate touch point for aim/fire."""

    def __init__(
        self,
        dead_zone: float = JOYSTICK_DEAD_ZONE,
        axis_threshold: float = JOYSTICK_AXIS_THRESHOLD,
    ):
        self.dead_zone = dead_zone
        self.axis_threshold = axis_threshold
        self.stick: Optional[Tuple[float, float]] = None  # offset from stick center
        self.aim: Tuple[float, float] = (0.0, 0.0)
        self._fire_pending = False

    def stick_move(self, dx: float, dy: float):
        self.stick = (dx, dy)

    def stick_release(self):
        self.stick = None

    def aim_touch(self, x: float, y: float):
        """A touch outside the stick both aims and fires."""
        self.aim = (x, y)
        self._fire_pending = True

    def aim_drag(self, x: float, y: float):
        self.aim = (x, y)

    def held_keys(self) -> Dict[str, bool]:
        """Map the stick offset onto the four direction keys."""
        keys = no_keys()
        if self.stick is None:
            return keys

        dx, dy = self.stick
        if math.hypot(dx, dy) < self.dead_zone:
            return keys

        angle = math.atan2(dy, dx)
        nx, ny = math.cos(angle), math.sin(angle)
        keys["w"] = ny < -self.axis_threshold
        keys["s"] = ny > self.axis_threshold
        keys["a"] = nx < -self.axis_threshold
        keys["d"] = nx > self.axis_threshold
        return keys

    def poll(self) -> InputSnapshot:
        snapshot = InputSnapshot(
            keys=self.held_keys(),
            aim_x=self.aim[0],
            aim_y=self.aim[1],
            fire=self._fire_pending,
        )
        self._fire_pending = False
        return snapshot

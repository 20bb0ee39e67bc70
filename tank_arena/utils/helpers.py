# tank_arena/utils/helpers.py
"""Utility functions and helpers."""

import math
import time
from collections import namedtuple
from typing import Iterable, Mapping

from tank_arena.config.settings import MAX_NAME_LENGTH

Box = namedtuple("Box", ["x", "y", "width", "height"])


def now_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


def overlaps(a, b) -> bool:
    """Check if two axis-aligned boxes intersect.

    Boxes are anything with x, y, width and height. Touching edges do not
    count as an overlap.
    """
    return (
        a.x < b.x + b.width
        and a.x + a.width > b.x
        and a.y < b.y + b.height
        and a.y + a.height > b.y
    )


def overlaps_any(box, others: Iterable) -> bool:
    """Check if a box intersects any box in others."""
    return any(overlaps(box, other) for other in others)


def box_center(box) -> tuple:
    return box.x + box.width / 2, box.y + box.height / 2


def movement_delta(keys: Mapping[str, bool], speed: float) -> tuple:
    """Translate held WASD keys into a position delta."""
    dx = dy = 0
    if keys.get("w"):
        dy -= speed
    if keys.get("s"):
        dy += speed
    if keys.get("a"):
        dx -= speed
    if keys.get("d"):
        dx += speed
    return dx, dy


def aim_angle(box, target_x: float, target_y: float) -> float:
    """Angle from the center of box towards a target point."""
    cx, cy = box_center(box)
    return math.atan2(target_y - cy, target_x - cx)


def sanitize_name(raw) -> str:
    """Trim, truncate, then strip angle brackets from a display name."""
    name = str(raw).strip()[:MAX_NAME_LENGTH]
    return name.replace("<", "").replace(">", "")


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation between a and b by factor t."""
    return a + (b - a) * t


def lerp_angle(a: float, b: float, t: float) -> float:
    """Interpolate between two angles along the shorter arc."""
    return a + normalize_angle(b - a) * t


def normalize_angle(angle: float) -> float:
    """Normalize angle to [-π, π] range."""
    while angle > math.pi:
        angle -= 2 * math.pi
    while angle < -math.pi:
        angle += 2 * math.pi
    return angle

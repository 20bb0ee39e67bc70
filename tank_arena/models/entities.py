# tank_arena/models/entities.py
"""Game entity models and data classes."""

from dataclasses import dataclass
from typing import Optional

from tank_arena.config.settings import (
    BULLET_HEIGHT,
    BULLET_WIDTH,
    DEFAULT_NAME,
    ITEM_HEIGHT,
    ITEM_WIDTH,
    MAX_HEALTH,
    PLAYER_HEIGHT,
    PLAYER_WIDTH,
)


@dataclass
class Player:
    """Represents a tank controlled by one connected session."""

    id: str
    x: float
    y: float
    angle: float = 0.0
    health: int = MAX_HEALTH
    name: str = DEFAULT_NAME
    kills: int = 0
    speedBoost: Optional[int] = None  # expiry timestamp (ms)
    damageBoost: Optional[int] = None  # expiry timestamp (ms)
    width: int = PLAYER_WIDTH
    height: int = PLAYER_HEIGHT

    def has_speed_boost(self, now: int) -> bool:
        return self.speedBoost is not None and self.speedBoost > now

    def has_damage_boost(self, now: int) -> bool:
        return self.damageBoost is not None and self.damageBoost > now


@dataclass
class Bullet:
    """Represents a projectile fired by a player."""

    id: int
    x: float
    y: float
    vx: float
    vy: float
    playerId: str
    width: int = BULLET_WIDTH
    height: int = BULLET_HEIGHT


@dataclass(frozen=True)
class Wall:
    """Represents a static obstacle tile."""

    x: float
    y: float
    width: float
    height: float


@dataclass
class Item:
    """Represents a pickup lying on the map."""

    id: int
    type: str
    x: float
    y: float
    spawnTime: int
    width: int = ITEM_WIDTH
    height: int = ITEM_HEIGHT

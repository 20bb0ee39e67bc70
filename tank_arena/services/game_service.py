# tank_arena/services/game_service.py
"""Authoritative simulation: world state, tick step and command queue."""

import logging
import math
import random
import uuid
from collections import deque
from dataclasses import asdict
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple

from tank_arena.config.settings import (
    BOOST_DURATION,
    BULLET_DAMAGE,
    BULLET_DAMAGE_BOOSTED,
    BULLET_SPEED,
    GRID_SIZE,
    HEALTH_PICKUP_AMOUNT,
    INNER_WALL_CHANCE,
    INNER_WALL_STEP,
    ITEM_FALLBACK_POSITION,
    ITEM_HEIGHT,
    ITEM_LIFETIME,
    ITEM_SPAWN_ATTEMPTS,
    ITEM_SPAWN_INTERVAL,
    ITEM_SPAWN_MARGIN,
    ITEM_TYPES,
    ITEM_WIDTH,
    KILLFEED_SIZE,
    MAX_HEALTH,
    MAX_ITEMS,
    MIN_MOVE_INTERVAL,
    PLAYER_SPEED,
    PLAYER_SPEED_BOOST,
    SPAWN_MIN,
    SPAWN_RANGE,
    TILE_SIZE,
    WORLD_SIZE,
)
from tank_arena.models.entities import Bullet, Item, Player, Wall
from tank_arena.utils.helpers import (
    Box,
    box_center,
    movement_delta,
    now_ms,
    overlaps,
    overlaps_any,
    sanitize_name,
)

logger = logging.getLogger(__name__)


def generate_walls() -> List[Wall]:
    """Build the border ring plus a sparse random set of interior tiles."""
    tiles = {}
    last = GRID_SIZE - 1
    for i in range(GRID_SIZE):
        for gx, gy in ((i, 0), (i, last), (0, i), (last, i)):
            tiles[(gx, gy)] = True

    for gx in range(2, GRID_SIZE - 2, INNER_WALL_STEP):
        for gy in range(2, GRID_SIZE - 2, INNER_WALL_STEP):
            if random.random() > INNER_WALL_CHANCE:
                tiles[(gx, gy)] = True

    return [
        Wall(x=gx * TILE_SIZE, y=gy * TILE_SIZE, width=TILE_SIZE, height=TILE_SIZE)
        for gx, gy in tiles
    ]


def random_spawn_position() -> Tuple[float, float]:
    """Random player spawn point. Not checked against walls."""
    return (
        SPAWN_MIN + random.random() * SPAWN_RANGE,
        SPAWN_MIN + random.random() * SPAWN_RANGE,
    )


def in_bounds(bullet: Bullet) -> bool:
    return 0 < bullet.x < WORLD_SIZE and 0 < bullet.y < WORLD_SIZE


class GameService:
    """Main game service that owns the world and runs the tick."""

    def __init__(
        self,
        walls: Optional[Sequence[Wall]] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.clock = clock
        self.players: Dict[str, Player] = {}
        self.bullets: List[Bullet] = []
        self.walls: Tuple[Wall, ...] = tuple(
            generate_walls() if walls is None else walls
        )
        self.items: List[Item] = []

        # Per-player throttle state, created and destroyed with the Player
        self.last_move_time: Dict[str, int] = {}

        # Single-writer queue of (kind, player_id, payload), drained by step()
        self.commands: Deque[tuple] = deque()

        self.killfeed: Deque[dict] = deque(maxlen=KILLFEED_SIZE)

        # ID generators
        self.next_bullet_id = 0
        self.next_item_id = 0

        self.tick_count = 0
        self.last_item_spawn_time = self.clock()
        self.last_update = self.last_item_spawn_time

        self._wall_dicts = [asdict(wall) for wall in self.walls]

    # Players
    def create_player(self, player_id: Optional[str] = None) -> Player:
        """Create a new player at a random spawn position."""
        if player_id is None:
            player_id = str(uuid.uuid4())
        x, y = random_spawn_position()
        player = Player(id=player_id, x=x, y=y)
        self.players[player_id] = player
        logger.info("Player %s joined (%d online)", player_id, len(self.players))
        return player

    def remove_player(self, player_id: str):
        """Remove a player and its throttle state."""
        self.last_move_time.pop(player_id, None)
        if self.players.pop(player_id, None) is not None:
            logger.info("Player %s left (%d online)", player_id, len(self.players))

    # Inbound commands
    def submit_move(self, player_id: str, keys: dict, angle: Optional[float]) -> bool:
        """Queue a movement command unless it arrives inside the throttle window."""
        if player_id not in self.players:
            return False

        now = self.clock()
        last = self.last_move_time.get(player_id)
        if last is not None and now - last < MIN_MOVE_INTERVAL:
            return False

        self.last_move_time[player_id] = now
        self.commands.append(("move", player_id, (keys, angle)))
        return True

    def submit_fire(self, player_id: str):
        if player_id in self.players:
            self.commands.append(("fire", player_id, None))

    def submit_name(self, player_id: str, raw_name):
        if player_id in self.players:
            self.commands.append(("name", player_id, raw_name))

    # Tick
    def step(self) -> dict:
        """Advance the world by one tick and return the resulting snapshot."""
        now = self.clock()
        self.tick_count += 1

        self.update_bullets(now)
        self.update_items(now)
        self.collect_items(now)
        self.apply_commands(now)

        self.last_update = now
        return self.get_snapshot()

    def update_bullets(self, now: int):
        """Advance bullets and resolve wall and player hits."""
        remaining = []

        for bullet in self.bullets:
            bullet.x += bullet.vx
            bullet.y += bullet.vy

            if overlaps_any(bullet, self.walls):
                continue

            target = self._find_target(bullet)
            if target is not None:
                self._apply_hit(bullet, target, now)
                continue

            if in_bounds(bullet):
                remaining.append(bullet)

        self.bullets = remaining

    def update_items(self, now: int):
        """Expire old items and spawn new ones on the spawn interval."""
        self.items = [
            item for item in self.items if now - item.spawnTime < ITEM_LIFETIME
        ]

        if now - self.last_item_spawn_time >= ITEM_SPAWN_INTERVAL:
            self._spawn_item(now)
            self.last_item_spawn_time = now

    def collect_items(self, now: int):
        """Give each item to the first player (by join order) touching it."""
        remaining = []
        for item in self.items:
            collector = next(
                (p for p in self.players.values() if overlaps(item, p)), None
            )
            if collector is None:
                remaining.append(item)
            else:
                self._apply_item_effect(collector, item.type, now)
        self.items = remaining

    def apply_commands(self, now: int):
        """Drain queued commands in arrival order."""
        while self.commands:
            kind, player_id, payload = self.commands.popleft()
            player = self.players.get(player_id)
            if player is None:
                continue

            if kind == "move":
                keys, angle = payload
                self._move_player(player, keys, angle, now)
            elif kind == "fire":
                self._fire(player)
            elif kind == "name":
                self._rename(player, payload)

    # Helper methods
    def _find_target(self, bullet: Bullet) -> Optional[Player]:
        for player_id, player in self.players.items():
            if player_id != bullet.playerId and overlaps(bullet, player):
                return player
        return None

    def _apply_hit(self, bullet: Bullet, target: Player, now: int):
        shooter = self.players.get(bullet.playerId)
        if shooter is not None and shooter.has_damage_boost(now):
            damage = BULLET_DAMAGE_BOOSTED
        else:
            damage = BULLET_DAMAGE

        target.health = max(0, target.health - damage)

        if target.health <= 0:
            if shooter is not None:
                shooter.kills += 1
            self._respawn(target)
            self.killfeed.append(
                {
                    "t": now,
                    "killer": bullet.playerId,
                    "killerName": shooter.name if shooter else None,
                    "victim": target.id,
                    "victimName": target.name,
                }
            )
            logger.debug("Player %s killed %s", bullet.playerId, target.id)

    def _respawn(self, player: Player):
        player.health = MAX_HEALTH
        player.x, player.y = random_spawn_position()
        player.speedBoost = None
        player.damageBoost = None

    def _random_item_position(self) -> Tuple[float, float]:
        """Find an item position that does not overlap any wall."""
        span = WORLD_SIZE - 2 * ITEM_SPAWN_MARGIN
        for _ in range(ITEM_SPAWN_ATTEMPTS):
            x = ITEM_SPAWN_MARGIN + random.random() * span
            y = ITEM_SPAWN_MARGIN + random.random() * span
            if not overlaps_any(Box(x, y, ITEM_WIDTH, ITEM_HEIGHT), self.walls):
                return x, y
        return ITEM_FALLBACK_POSITION

    def _spawn_item(self, now: int) -> Optional[Item]:
        """Spawn a single random item unless the cap is reached."""
        if len(self.items) >= MAX_ITEMS:
            return None

        x, y = self._random_item_position()
        item_id = self.next_item_id
        self.next_item_id += 1

        item = Item(id=item_id, type=random.choice(ITEM_TYPES), x=x, y=y, spawnTime=now)
        self.items.append(item)
        return item

    def _apply_item_effect(self, player: Player, item_type: str, now: int):
        if item_type == "health":
            player.health = min(MAX_HEALTH, player.health + HEALTH_PICKUP_AMOUNT)
        elif item_type == "speed":
            player.speedBoost = max(player.speedBoost or 0, now + BOOST_DURATION)
        elif item_type == "damage":
            player.damageBoost = max(player.damageBoost or 0, now + BOOST_DURATION)

    def _move_player(self, player: Player, keys: dict, angle: Optional[float], now: int):
        speed = PLAYER_SPEED_BOOST if player.has_speed_boost(now) else PLAYER_SPEED
        dx, dy = movement_delta(keys, speed)

        if angle is not None:
            player.angle = angle

        candidate = Box(player.x + dx, player.y + dy, player.width, player.height)
        if not overlaps_any(candidate, self.walls):
            player.x = candidate.x
            player.y = candidate.y

    def _fire(self, player: Player) -> Bullet:
        bullet_id = self.next_bullet_id
        self.next_bullet_id += 1

        x, y = box_center(player)
        bullet = Bullet(
            id=bullet_id,
            x=x,
            y=y,
            vx=math.cos(player.angle) * BULLET_SPEED,
            vy=math.sin(player.angle) * BULLET_SPEED,
            playerId=player.id,
        )
        self.bullets.append(bullet)
        return bullet

    def _rename(self, player: Player, raw_name):
        name = sanitize_name(raw_name)
        if name:
            player.name = name

    # Getter methods for game state
    def get_snapshot(self) -> dict:
        """Full world state as sent to clients."""
        return {
            "players": {pid: asdict(p) for pid, p in self.players.items()},
            "bullets": [asdict(b) for b in self.bullets],
            "walls": self._wall_dicts,
            "items": [asdict(i) for i in self.items],
            "lastUpdate": self.last_update,
        }

    def get_scoreboard(self) -> List[dict]:
        """Players ranked by kills, highest first."""
        ranked = sorted(self.players.values(), key=lambda p: p.kills, reverse=True)
        return [{"id": p.id, "name": p.name, "kills": p.kills} for p in ranked]

    def get_killfeed(self) -> List[dict]:
        return list(self.killfeed)

    def get_stats(self) -> dict:
        return {
            "tick": self.tick_count,
            "totalPlayers": len(self.players),
            "totalBullets": len(self.bullets),
            "totalItems": len(self.items),
            "totalWalls": len(self.walls),
        }

# tank_arena/client/reconciliation.py
"""
Client-side prediction, server reconciliation and remote-player bookkeeping.

Applies local movement immediately using the same rules as the server, then
pulls the prediction towards each authoritative snapshot. Other players keep
their previous and newest server positions so a renderer can interpolate.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from tank_arena.config.settings import (
    PLAYER_HEIGHT,
    PLAYER_SPEED,
    PLAYER_SPEED_BOOST,
    PLAYER_WIDTH,
    RECONCILE_BLEND,
    RECONCILE_THRESHOLD,
    TICK_INTERVAL,
)
from tank_arena.utils.helpers import (
    Box,
    aim_angle,
    lerp,
    lerp_angle,
    movement_delta,
    now_ms,
    overlaps_any,
)

from .input_source import InputSnapshot


@dataclass
class PredictedState:
    """Locally predicted state of the controlled player."""

    x: float
    y: float
    angle: float
    width: float = PLAYER_WIDTH
    height: float = PLAYER_HEIGHT


@dataclass
class RemotePlayer:
    """Last two authoritative states of another player."""

    id: str
    x: float
    y: float
    angle: float
    prev_x: float
    prev_y: float
    prev_angle: float
    update_time: int
    health: int = 100
    name: str = ""
    kills: int = 0
    speedBoost: Optional[int] = None
    damageBoost: Optional[int] = None
    width: float = PLAYER_WIDTH
    height: float = PLAYER_HEIGHT

    @classmethod
    def from_server(cls, data: dict, now: int) -> "RemotePlayer":
        remote = cls(
            id=data["id"],
            x=data["x"],
            y=data["y"],
            angle=data["angle"],
            prev_x=data["x"],
            prev_y=data["y"],
            prev_angle=data["angle"],
            update_time=now,
        )
        remote._copy_stats(data)
        return remote

    def update(self, data: dict, now: int):
        self.prev_x, self.prev_y, self.prev_angle = self.x, self.y, self.angle
        self.x, self.y, self.angle = data["x"], data["y"], data["angle"]
        self.update_time = now
        self._copy_stats(data)

    def _copy_stats(self, data: dict):
        self.health = data.get("health", self.health)
        self.name = data.get("name", self.name)
        self.kills = data.get("kills", self.kills)
        self.speedBoost = data.get("speedBoost")
        self.damageBoost = data.get("damageBoost")
        self.width = data.get("width", self.width)
        self.height = data.get("height", self.height)

    def interpolated(self, now: int, duration: float = TICK_INTERVAL) -> Tuple[float, float, float]:
        """Position and angle blended by the time elapsed since the last update."""
        t = min(1.0, max(0.0, (now - self.update_time) / duration)) if duration > 0 else 1.0
        return (
            lerp(self.prev_x, self.x, t),
            lerp(self.prev_y, self.y, t),
            lerp_angle(self.prev_angle, self.angle, t),
        )


class ClientState:
    """Everything the client knows about the world."""

    def __init__(self, player_id: Optional[str] = None, clock: Callable[[], int] = now_ms):
        self.player_id = player_id
        self.clock = clock
        self.config: dict = {}
        self.predicted: Optional[PredictedState] = None
        self.remote: Dict[str, RemotePlayer] = {}
        self.players: Dict[str, dict] = {}
        self.bullets: List[dict] = []
        self.walls: List[dict] = []
        self.items: List[dict] = []
        self.last_update: Optional[int] = None
        self._wall_boxes: List[Box] = []

    def apply_welcome(self, message: dict):
        self.player_id = message["playerId"]
        self.config = message.get("config", {})

    def apply_snapshot(self, state: dict):
        """Fold an authoritative snapshot into local state."""
        now = self.clock()
        players = state.get("players", {})

        for player_id, data in players.items():
            if player_id == self.player_id:
                continue
            remote = self.remote.get(player_id)
            if remote is None:
                self.remote[player_id] = RemotePlayer.from_server(data, now)
            else:
                remote.update(data, now)

        for player_id in list(self.remote):
            if player_id not in players:
                del self.remote[player_id]

        me = players.get(self.player_id) if self.player_id else None
        if me is not None:
            self._reconcile(me)

        self.players = players
        self.bullets = state.get("bullets", [])
        self.items = state.get("items", [])
        walls = state.get("walls", [])
        if walls != self.walls:
            self.walls = walls
            self._wall_boxes = [Box(w["x"], w["y"], w["width"], w["height"]) for w in walls]
        self.last_update = state.get("lastUpdate")

    def _reconcile(self, server: dict):
        """Pull the prediction towards the server's position for our player."""
        if self.predicted is None:
            self.predicted = PredictedState(
                x=server["x"],
                y=server["y"],
                angle=server["angle"],
                width=server.get("width", PLAYER_WIDTH),
                height=server.get("height", PLAYER_HEIGHT),
            )
            return

        predicted = self.predicted
        diff_x = server["x"] - predicted.x
        diff_y = server["y"] - predicted.y

        if abs(diff_x) > RECONCILE_THRESHOLD or abs(diff_y) > RECONCILE_THRESHOLD:
            predicted.x += diff_x * RECONCILE_BLEND
            predicted.y += diff_y * RECONCILE_BLEND
        else:
            predicted.x = server["x"]
            predicted.y = server["y"]

        predicted.angle = server["angle"]

    def predict(self, keys: Dict[str, bool], angle: Optional[float] = None):
        """Apply one movement command locally, mirroring the server's rules."""
        if self.predicted is None:
            return

        me = self.players.get(self.player_id, {})
        boost = me.get("speedBoost")
        speed = PLAYER_SPEED_BOOST if boost is not None and boost > self.clock() else PLAYER_SPEED
        dx, dy = movement_delta(keys, speed)

        predicted = self.predicted
        if angle is not None:
            predicted.angle = angle

        candidate = Box(predicted.x + dx, predicted.y + dy, predicted.width, predicted.height)
        if not overlaps_any(candidate, self._wall_boxes):
            predicted.x = candidate.x
            predicted.y = candidate.y

    def build_move_command(self, snapshot: InputSnapshot) -> Optional[dict]:
        """The playerMove message for this client tick, or None before we exist."""
        if self.predicted is None or self.player_id not in self.players:
            return None

        angle = aim_angle(self.predicted, snapshot.aim_x, snapshot.aim_y)
        return {"type": "playerMove", "keys": dict(snapshot.keys), "angle": angle}

    def entities(self) -> dict:
        """What a renderer needs to draw this frame."""
        return {
            "me": self.predicted,
            "players": list(self.remote.values()),
            "bullets": self.bullets,
            "walls": self.walls,
            "items": self.items,
        }

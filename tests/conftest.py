import pytest

from tank_arena.models.entities import Bullet
from tank_arena.services.game_service import GameService


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = 1_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def game(clock):
    return GameService(walls=[], clock=clock)


def add_player(game, player_id, x, y, **fields):
    player = game.create_player(player_id)
    player.x = x
    player.y = y
    for name, value in fields.items():
        setattr(player, name, value)
    return player


def shoot_at(game, shooter_id, target):
    """Place a bullet just left of target that reaches it on the next tick."""
    bullet = Bullet(
        id=game.next_bullet_id,
        x=target.x - 10,
        y=target.y + 10,
        vx=5,
        vy=0,
        playerId=shooter_id,
    )
    game.next_bullet_id += 1
    game.bullets.append(bullet)
    return bullet

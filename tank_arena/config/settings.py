# tank_arena/config/settings.py
"""Game configuration constants and settings."""

import os

# Server settings
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "8000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "info")

TICK_RATE = 60  # simulation ticks per second
TICK_INTERVAL = 1000 / TICK_RATE  # ms
MIN_MOVE_INTERVAL = TICK_INTERVAL  # ms between accepted move commands
SEND_QUEUE_SIZE = 4  # pending outbound messages per session

# World settings
GRID_SIZE = 20
TILE_SIZE = 32
WORLD_SIZE = GRID_SIZE * TILE_SIZE  # 640
INNER_WALL_STEP = 3
INNER_WALL_CHANCE = 0.5

# Player settings
PLAYER_WIDTH = 32
PLAYER_HEIGHT = 32
PLAYER_SPEED = 3
PLAYER_SPEED_BOOST = 5
MAX_HEALTH = 100
DEFAULT_NAME = "Player"
MAX_NAME_LENGTH = 15
SPAWN_MIN = 100
SPAWN_RANGE = 400

# Bullet settings
BULLET_SPEED = 5
BULLET_WIDTH = 8
BULLET_HEIGHT = 8
BULLET_DAMAGE = 10
BULLET_DAMAGE_BOOSTED = 20

# Item settings
ITEM_TYPES = ("health", "speed", "damage")
ITEM_WIDTH = 20
ITEM_HEIGHT = 20
ITEM_SPAWN_INTERVAL = 5000  # ms
ITEM_LIFETIME = 15000  # ms
MAX_ITEMS = 5
ITEM_SPAWN_MARGIN = 50
ITEM_SPAWN_ATTEMPTS = 50
ITEM_FALLBACK_POSITION = (100, 100)
HEALTH_PICKUP_AMOUNT = 30
BOOST_DURATION = 10000  # ms

# Kill feed
KILLFEED_SIZE = 10

# Client settings
CLIENT_TICK_RATE = TICK_RATE
RECONCILE_THRESHOLD = 5
RECONCILE_BLEND = 0.2
JOYSTICK_DEAD_ZONE = 20
JOYSTICK_AXIS_THRESHOLD = 0.5


def get_game_config():
    """Get the client-facing game configuration as a dictionary."""
    return {
        "worldSize": WORLD_SIZE,
        "tileSize": TILE_SIZE,
        "tickRate": TICK_RATE,
        "playerWidth": PLAYER_WIDTH,
        "playerHeight": PLAYER_HEIGHT,
        "playerSpeed": PLAYER_SPEED,
        "playerSpeedBoost": PLAYER_SPEED_BOOST,
        "maxHealth": MAX_HEALTH,
        "maxNameLength": MAX_NAME_LENGTH,
        "bulletSpeed": BULLET_SPEED,
        "bulletWidth": BULLET_WIDTH,
        "bulletHeight": BULLET_HEIGHT,
        "bulletDamage": BULLET_DAMAGE,
        "bulletDamageBoosted": BULLET_DAMAGE_BOOSTED,
        "itemTypes": list(ITEM_TYPES),
        "itemLifetime": ITEM_LIFETIME,
        "itemSpawnInterval": ITEM_SPAWN_INTERVAL,
        "maxItems": MAX_ITEMS,
        "boostDuration": BOOST_DURATION,
    }

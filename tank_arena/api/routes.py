# tank_arena/api/routes.py
"""API routes for the game server."""

from fastapi import APIRouter

from tank_arena.config.settings import get_game_config
from tank_arena.services.game_service import GameService


class GameAPI:
    """API routes for game-related endpoints."""

    def __init__(self, game_service: GameService):
        self.game_service = game_service
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Set up all API routes."""

        @self.router.get("/")
        async def root():
            """Root endpoint."""
            return {"message": "Tank Arena Server Running"}

        @self.router.get("/api/game/config")
        async def get_game_config_endpoint():
            """Get shared game constants (box sizes, speeds, timings)."""
            return get_game_config()

        @self.router.get("/api/game/scoreboard")
        async def get_scoreboard():
            """Get players ranked by kills."""
            return {"scoreboard": self.game_service.get_scoreboard()}

        @self.router.get("/api/game/killfeed")
        async def get_killfeed():
            """Get the most recent kills."""
            return {"killfeed": self.game_service.get_killfeed()}

        @self.router.get("/api/game/stats")
        async def get_game_stats():
            """Get game statistics."""
            return self.game_service.get_stats()

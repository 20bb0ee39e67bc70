# tank_arena/main.py
"""Application wiring and server entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from tank_arena.api.routes import GameAPI
from tank_arena.config.settings import HOST, LOG_LEVEL, PORT
from tank_arena.services.game_service import GameService
from tank_arena.services.websocket_service import WebSocketService


def create_app(game_service: Optional[GameService] = None) -> FastAPI:
    """Build the FastAPI app around a single authoritative game."""
    game_service = game_service or GameService()
    websocket_service = WebSocketService(game_service)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        websocket_service.start_background_tasks()
        yield
        await websocket_service.stop_background_tasks()

    app = FastAPI(lifespan=lifespan)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, specify your client URL
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(GameAPI(game_service).router)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await websocket_service.handle_connection(websocket)

    app.state.game_service = game_service
    app.state.websocket_service = websocket_service
    return app


app = create_app()


def main():
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(levelname)s:     %(name)s - %(message)s",
    )
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL)


if __name__ == "__main__":
    main()

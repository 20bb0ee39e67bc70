# tank_arena/services/websocket_service.py
"""WebSocket connection management and message handling."""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from tank_arena.config.settings import SEND_QUEUE_SIZE, TICK_RATE, get_game_config
from tank_arena.models.messages import (
    PlayerMoveMessage,
    SetNameMessage,
    ShootMessage,
    parse_message,
)
from .game_service import GameService

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """One connected client and its outbound queue."""

    websocket: WebSocket
    player_id: str
    queue: asyncio.Queue
    sender: Optional[asyncio.Task] = None


class WebSocketService:
    """Manages WebSocket sessions, routes commands and drives the tick."""

    def __init__(self, game_service: GameService):
        self.game_service = game_service
        self.sessions: Dict[str, Session] = {}
        self._tick_task = None

    def start_background_tasks(self):
        """Start the fixed-rate game loop."""
        if not self._tick_task:
            self._tick_task = asyncio.create_task(self._game_loop())

    async def stop_background_tasks(self):
        if self._tick_task:
            self._tick_task.cancel()
            try:
                await self._tick_task
            except asyncio.CancelledError:
                pass
            self._tick_task = None

    async def _game_loop(self):
        """Run one simulation step per tick and broadcast the snapshot."""
        loop = asyncio.get_running_loop()
        interval = 1 / TICK_RATE
        next_tick = loop.time()

        while True:
            try:
                snapshot = self.game_service.step()
                self.broadcast({"type": "gameState", "state": snapshot})
            except Exception:
                logger.exception("Tick %d failed", self.game_service.tick_count)

            next_tick += interval
            delay = next_tick - loop.time()
            if delay < 0:
                # Running behind; don't try to catch up with a burst of ticks
                next_tick = loop.time()
                delay = 0
            await asyncio.sleep(delay)

    async def handle_connection(self, websocket: WebSocket):
        """Handle a new WebSocket connection."""
        await websocket.accept()
        logger.info("WebSocket connection accepted for %s", websocket.client)

        player = self.game_service.create_player()
        session = Session(
            websocket=websocket,
            player_id=player.id,
            queue=asyncio.Queue(maxsize=SEND_QUEUE_SIZE),
        )
        self.sessions[player.id] = session
        receiver = None

        try:
            await self._send_initial_state(session)
            session.sender = asyncio.create_task(self._send_loop(session))
            receiver = asyncio.create_task(
                self._handle_client_messages(websocket, player.id)
            )
            await asyncio.wait(
                {receiver, session.sender}, return_when=asyncio.FIRST_COMPLETED
            )
            if receiver.done():
                receiver.result()
            else:
                # Send side failed; the client can no longer hear us
                logger.info("Dropping player %s after failed send", player.id)
                await self._close(websocket)
        except WebSocketDisconnect:
            logger.info("Player %s disconnected", player.id)
        except Exception as e:
            logger.warning("WebSocket error for player %s: %s", player.id, e)
        finally:
            await _cancel(receiver)
            await self._handle_disconnect(session)

    async def _send_initial_state(self, session: Session):
        """Tell a new session who it is and send the current world."""
        await session.websocket.send_json(
            {
                "type": "welcome",
                "playerId": session.player_id,
                "config": get_game_config(),
            }
        )
        await session.websocket.send_json(
            {"type": "gameState", "state": self.game_service.get_snapshot()}
        )

    async def _handle_client_messages(self, websocket: WebSocket, player_id: str):
        """Read messages from a client until it disconnects."""
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000), frame.get("reason"))

            text = frame.get("text")
            if text is None:
                logger.debug("Ignoring binary frame from %s", player_id)
                continue
            try:
                data = json.loads(text)
            except ValueError:
                logger.debug("Ignoring non-JSON message from %s", player_id)
                continue
            self._process_message(player_id, data)

    def _process_message(self, player_id: str, data):
        """Validate a single message and queue it for the next tick."""
        try:
            message = parse_message(data)
        except ValidationError as e:
            logger.debug("Ignoring malformed message from %s: %s", player_id, e)
            return

        if isinstance(message, PlayerMoveMessage):
            self.game_service.submit_move(
                player_id, message.keys.model_dump(), message.angle
            )
        elif isinstance(message, ShootMessage):
            self.game_service.submit_fire(player_id)
        elif isinstance(message, SetNameMessage):
            self.game_service.submit_name(player_id, message.name)

    async def _send_loop(self, session: Session):
        """Deliver queued messages to one client; returns when a send fails."""
        try:
            while True:
                text = await session.queue.get()
                await session.websocket.send_text(text)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug("Send to %s failed: %s", session.player_id, e)

    async def _close(self, websocket: WebSocket):
        try:
            await websocket.close(code=1011)
        except Exception as e:
            logger.debug("Close failed: %s", e)

    async def _handle_disconnect(self, session: Session):
        """Handle client disconnection."""
        self.sessions.pop(session.player_id, None)
        await _cancel(session.sender)
        self.game_service.remove_player(session.player_id)

    def broadcast(self, message: dict):
        """Queue a message for every session without waiting on any of them."""
        text = json.dumps(message)
        for session in list(self.sessions.values()):
            self._enqueue(session, text)

    def _enqueue(self, session: Session, text: str):
        try:
            session.queue.put_nowait(text)
        except asyncio.QueueFull:
            # Slow client; newer snapshots supersede the oldest pending one
            session.queue.get_nowait()
            session.queue.put_nowait(text)


async def _cancel(task: Optional[asyncio.Task]):
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass

# tank_arena/client/connection.py
"""WebSocket client that feeds snapshots into ClientState and emits commands."""

import asyncio
import json
import logging
from typing import List

import websockets
from websockets.exceptions import ConnectionClosed

from tank_arena.config.settings import CLIENT_TICK_RATE, DEFAULT_NAME

from .input_source import InputSource
from .reconciliation import ClientState

logger = logging.getLogger(__name__)


class GameClient:
    """Connects to the arena, tracks the world and sends input at a fixed rate."""

    def __init__(
        self,
        url: str,
        input_source: InputSource,
        name: str = DEFAULT_NAME,
        tick_rate: int = CLIENT_TICK_RATE,
    ):
        self.url = url
        self.input_source = input_source
        self.name = name
        self.tick_rate = tick_rate
        self.state = ClientState()

    async def run(self):
        """Run until the server closes the connection."""
        async with websockets.connect(self.url) as ws:
            logger.info("Connected to %s", self.url)
            await ws.send(json.dumps({"type": "setPlayerName", "name": self.name}))
            emitter = asyncio.create_task(self._emit_loop(ws))
            try:
                async for raw in ws:
                    self.handle_message(json.loads(raw))
            except ConnectionClosed:
                logger.info("Connection to %s closed", self.url)
            finally:
                emitter.cancel()
                try:
                    await emitter
                except (asyncio.CancelledError, ConnectionClosed):
                    pass

    def handle_message(self, message: dict):
        message_type = message.get("type")
        if message_type == "welcome":
            self.state.apply_welcome(message)
        elif message_type == "gameState":
            self.state.apply_snapshot(message["state"])

    def next_commands(self) -> List[dict]:
        """Poll input once and build this tick's outgoing messages."""
        snapshot = self.input_source.poll()
        commands = []

        move = self.state.build_move_command(snapshot)
        if move is not None:
            self.state.predict(move["keys"], move["angle"])
            commands.append(move)

        if snapshot.fire:
            commands.append({"type": "shoot"})
        return commands

    async def _emit_loop(self, ws):
        interval = 1 / self.tick_rate
        while True:
            for command in self.next_commands():
                await ws.send(json.dumps(command))
            await asyncio.sleep(interval)

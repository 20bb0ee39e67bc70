import asyncio
import json
import time

from fastapi.testclient import TestClient

from tank_arena.main import create_app
from tank_arena.services.game_service import GameService
from tank_arena.services.websocket_service import Session, WebSocketService


def receive_state(ws, predicate, limit=200):
    """Read gameState messages until predicate(state) holds."""
    for _ in range(limit):
        message = ws.receive_json()
        if message["type"] == "gameState" and predicate(message["state"]):
            return message["state"]
    raise AssertionError("expected state never arrived")


def wait_for(condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


def test_connect_receives_welcome_then_full_state():
    game = GameService(walls=[])
    with TestClient(create_app(game)) as client:
        with client.websocket_connect("/ws") as ws:
            welcome = ws.receive_json()
            assert welcome["type"] == "welcome"
            assert welcome["config"]["playerWidth"] == 32

            first = ws.receive_json()
            assert first["type"] == "gameState"
            me = first["state"]["players"][welcome["playerId"]]
            assert me["health"] == 100
            assert me["name"] == "Player"
            assert set(first["state"]) == {"players", "bullets", "walls", "items", "lastUpdate"}


def test_commands_reach_the_simulation():
    game = GameService(walls=[])
    with TestClient(create_app(game)) as client:
        with client.websocket_connect("/ws") as ws:
            player_id = ws.receive_json()["playerId"]

            ws.send_json({"type": "setPlayerName", "name": "  <Tank>  "})
            receive_state(ws, lambda s: s["players"][player_id]["name"] == "Tank")

            ws.send_json({"type": "playerMove", "keys": {"d": True}, "angle": 1.5})
            receive_state(ws, lambda s: s["players"][player_id]["angle"] == 1.5)

            ws.send_json({"type": "shoot"})
            state = receive_state(ws, lambda s: len(s["bullets"]) > 0)
            assert state["bullets"][0]["playerId"] == player_id


def test_malformed_messages_are_ignored():
    game = GameService(walls=[])
    with TestClient(create_app(game)) as client:
        with client.websocket_connect("/ws") as ws:
            player_id = ws.receive_json()["playerId"]

            ws.send_text("not json")
            ws.send_json({"type": "teleport", "x": 0})
            ws.send_json({"type": "playerMove", "keys": {"d": True}, "angle": "north"})
            ws.send_json({"type": "setPlayerName", "name": "Still here"})

            state = receive_state(ws, lambda s: s["players"][player_id]["name"] == "Still here")
            assert player_id in state["players"]


def test_disconnect_removes_player():
    game = GameService(walls=[])
    app = create_app(game)
    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws:
            player_id = ws.receive_json()["playerId"]
            assert player_id in game.players

        assert wait_for(lambda: player_id not in game.players)
        assert wait_for(lambda: not app.state.websocket_service.sessions)
        assert player_id not in game.last_move_time


def test_two_clients_see_each_other():
    game = GameService(walls=[])
    with TestClient(create_app(game)) as client:
        with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
            first_id = first.receive_json()["playerId"]
            second_id = second.receive_json()["playerId"]
            receive_state(first, lambda s: second_id in s["players"])
            receive_state(second, lambda s: first_id in s["players"])


def test_http_endpoints():
    game = GameService(walls=[])
    with TestClient(create_app(game)) as client:
        assert client.get("/").status_code == 200
        assert client.get("/api/game/config").json()["tickRate"] == 60
        assert client.get("/api/game/scoreboard").json() == {"scoreboard": []}
        assert client.get("/api/game/killfeed").json() == {"killfeed": []}
        assert client.get("/api/game/stats").json()["totalWalls"] == 0


def test_broadcast_drops_oldest_for_slow_session():
    service = WebSocketService(GameService(walls=[]))
    session = Session(websocket=None, player_id="p", queue=asyncio.Queue(maxsize=2))
    service.sessions["p"] = session

    for tick in range(3):
        service.broadcast({"type": "gameState", "tick": tick})

    pending = [json.loads(session.queue.get_nowait())["tick"] for _ in range(2)]
    assert pending == [1, 2]


def test_process_message_routes_to_command_queue():
    game = GameService(walls=[])
    service = WebSocketService(game)
    game.create_player("p")

    service._process_message("p", {"type": "playerMove", "keys": {"w": True}, "angle": 0.5})
    service._process_message("p", {"type": "shoot"})
    service._process_message("p", {"type": "setPlayerName", "name": "Zed"})
    service._process_message("p", {"type": "playerMove", "keys": "wasd"})
    service._process_message("p", ["not", "an", "object"])

    assert [kind for kind, _, _ in game.commands] == ["move", "fire", "name"]
    _, _, (keys, angle) = game.commands[0]
    assert keys == {"w": True, "a": False, "s": False, "d": False}
    assert angle == 0.5


def test_binary_frames_are_skipped():
    game = GameService(walls=[])
    with TestClient(create_app(game)) as client:
        with client.websocket_connect("/ws") as ws:
            player_id = ws.receive_json()["playerId"]

            ws.send_bytes(b"\x00garbage")
            ws.send_json({"type": "setPlayerName", "name": "After bytes"})

            state = receive_state(ws, lambda s: s["players"][player_id]["name"] == "After bytes")
            assert player_id in state["players"]


def test_numeric_name_is_stringified():
    game = GameService(walls=[])
    service = WebSocketService(game)
    game.create_player("p")

    service._process_message("p", {"type": "setPlayerName", "name": 42})
    game.step()

    assert game.players["p"].name == "42"


class BrokenSendSocket:
    """Accepts and reads forever, but every outbound frame fails."""

    client = ("test", 0)

    def __init__(self):
        self.closed_with = None

    async def accept(self):
        pass

    async def send_json(self, data):
        pass

    async def send_text(self, text):
        raise RuntimeError("connection reset")

    async def receive(self):
        await asyncio.Event().wait()

    async def close(self, code=1000):
        self.closed_with = code


def test_failed_send_drops_the_session():
    game = GameService(walls=[])
    service = WebSocketService(game)
    websocket = BrokenSendSocket()

    async def scenario():
        handler = asyncio.create_task(service.handle_connection(websocket))
        while not service.sessions:
            await asyncio.sleep(0)
        service.broadcast({"type": "gameState", "state": game.step()})
        await asyncio.wait_for(handler, 1)

    asyncio.run(scenario())

    assert (len(game.players), len(service.sessions)) == (0, 0)
    assert websocket.closed_with == 1011

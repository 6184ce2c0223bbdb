"""Integration test against a loopback relay served with websockets."""

import asyncio
import json
import threading
import time

import pytest
import websockets
from websockets.exceptions import ConnectionClosed

from sync.client import ScoreboardClient
from sync.protocol import ClientType, Role


class LoopbackRelay:
    """Minimal relay: first operation console is master, boards are viewers."""

    MASTER_TOKEN = "T1"

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self.clients = []
        self.master = None
        self.port = None
        self.server = None
        self._ready = threading.Event()
        self.thread = threading.Thread(target=self._run, daemon=True, name="LoopbackRelay")

    def start(self):
        self.thread.start()
        if not self._ready.wait(timeout=5.0):
            raise RuntimeError("Relay did not start")

    async def _serve(self):
        return await websockets.serve(self._handler, "127.0.0.1", 0)

    def _run(self):
        asyncio.set_event_loop(self.loop)
        self.server = self.loop.run_until_complete(self._serve())
        self.port = self.server.sockets[0].getsockname()[1]
        self._ready.set()
        self.loop.run_forever()

    async def _handler(self, websocket, path=None):
        self.clients.append(websocket)
        try:
            async for raw in websocket:
                message = json.loads(raw)
                if message["type"] == "handshake":
                    await websocket.send(json.dumps(self._assign(websocket, message)))
                elif message["type"] == "game_state_update" and websocket is self.master:
                    outgoing = json.dumps({"type": "game_state", "boardData": message["boardData"]})
                    for client in list(self.clients):
                        await client.send(outgoing)
        except ConnectionClosed:
            pass
        finally:
            self.clients.remove(websocket)
            if self.master is websocket:
                self.master = None

    def _assign(self, websocket, handshake):
        client_id = f"c{len(self.clients)}"
        if handshake["clientType"] == "board":
            return {"type": "role_assignment", "role": "viewer", "clientId": client_id}
        if self.master is None or handshake.get("masterToken") == self.MASTER_TOKEN:
            self.master = websocket
            return {"type": "role_assignment", "role": "master", "clientId": client_id,
                    "masterClientId": client_id, "masterToken": self.MASTER_TOKEN}
        return {"type": "role_assignment", "role": "slave", "clientId": client_id}

    def stop(self):
        async def close():
            self.server.close()
            await self.server.wait_closed()

        asyncio.run_coroutine_threadsafe(close(), self.loop).result(timeout=5.0)
        self.loop.call_soon_threadsafe(self.loop.stop)
        self.thread.join(timeout=5.0)


def wait_for(predicate, timeout=5.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


@pytest.fixture
def relay():
    relay = LoopbackRelay()
    relay.start()
    yield relay
    relay.stop()


def test_master_update_reaches_slave_and_board(relay):
    page_url = f"http://127.0.0.1:{relay.port}/"
    master = ScoreboardClient(ClientType.OPERATION, page_url)
    slave = ScoreboardClient(ClientType.OPERATION, page_url)
    board = ScoreboardClient(ClientType.BOARD, page_url)
    clients = [master, slave, board]

    try:
        master.start()
        assert wait_for(lambda: master.roles.is_master)
        assert master.store.get() == LoopbackRelay.MASTER_TOKEN

        slave.start()
        board.start()
        assert wait_for(lambda: slave.roles.role is Role.SLAVE)
        assert wait_for(lambda: board.roles.role is Role.VIEWER)

        assert slave.perform("ball_up") is False
        assert master.perform("ball_up") is True

        assert wait_for(lambda: slave.model.state.balls == 1)
        assert wait_for(lambda: board.model.state.balls == 1)
        assert wait_for(lambda: master.receiver.updates_applied == 1)

        # handshake plus one snapshot; the echoed game_state is not sent back
        assert master.connection.messages_sent == 2
        assert "B1 S0 O0" in board.board.last_line
    finally:
        for client in clients:
            client.shutdown()

import asyncio
import json

import pytest

from backend import RoomBroadcaster
from registry import ConnectionRegistry


class FakeConnection:
    """In-memory stand-in for a WebSocket connection."""

    def __init__(self, name, open=True, fail=False, delay=None):
        self.name = name
        self.open = open
        self.fail = fail
        self.delay = delay
        self.sent = []

    def is_open(self):
        return self.open

    async def send(self, text):
        if self.fail:
            raise ConnectionResetError(f"{self.name} is gone")
        if self.delay:
            await asyncio.sleep(self.delay)
        self.sent.append(text)

    def messages(self):
        return [json.loads(text) for text in self.sent]

    def __repr__(self):
        return f"FakeConnection({self.name})"


@pytest.fixture
def make_connection():
    return FakeConnection


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def broadcaster(registry):
    return RoomBroadcaster(registry=registry, send_timeout=0.2)


def join(room_id, sender, **extra):
    return json.dumps({"type": "join-room", "roomId": room_id, "sender": sender, **extra})


@pytest.fixture
def join_frame():
    return join

import time
import uuid

import pytest
from fastapi.testclient import TestClient

from app import app
from backend import room_broadcaster


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def room_id():
    return f"room-{uuid.uuid4().hex[:8]}"


def join(room_id, sender):
    return {"type": "join-room", "roomId": room_id, "sender": sender}


def wait_for_peers(client, room_id, count, timeout=5.0):
    """Block until the relay reports ``count`` peers in the room."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if client.get(f"/rooms/{room_id}").json()["online_count"] == count:
            return
        time.sleep(0.01)
    raise AssertionError(f"room {room_id} never reached {count} peers")


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.text == "ok"
    assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.parametrize("path", ["/", "/index.html", "/some/deep/path"])
def test_unknown_paths_are_acknowledged(client, path):
    response = client.get(path)
    assert response.status_code == 200
    assert response.text == "signaling-ok"


def test_other_methods_are_acknowledged(client):
    assert client.post("/health").text == "signaling-ok"
    assert client.delete("/anything").status_code == 200


def test_unknown_room_is_reported_empty(client, room_id):
    response = client.get(f"/rooms/{room_id}")
    assert response.status_code == 200
    assert response.json() == {"room_id": room_id, "online_count": 0, "peers": []}


def test_signaling_flow(client, room_id):
    with client.websocket_connect("/") as p1:
        p1.send_json(join(room_id, "P1"))
        wait_for_peers(client, room_id, 1)

        with client.websocket_connect("/signal") as p2:
            p2.send_json(join(room_id, "P2"))
            assert p1.receive_json() == {"type": "new-peer", "roomId": room_id, "sender": "P2"}

            details = client.get(f"/rooms/{room_id}").json()
            assert details["online_count"] == 2
            assert sorted(details["peers"]) == ["P1", "P2"]
            assert room_id in client.get("/rooms").json()["rooms"]

            offer = '{"type": "offer", "sdp": "v=0", "target": "P1"}'
            p2.send_text(offer)
            assert p1.receive_text() == offer

            # first thing p2 sees is p1's answer: no new-peer for itself, no echo of its offer
            p1.send_json({"type": "answer", "sdp": "v=0"})
            assert p2.receive_json() == {"type": "answer", "sdp": "v=0"}

        assert p1.receive_json() == {"type": "peer-left", "roomId": room_id, "sender": "P2"}
        assert client.get(f"/rooms/{room_id}").json()["peers"] == ["P1"]

    assert room_id not in room_broadcaster.room_ids()


def test_garbage_and_unjoined_messages_are_ignored(client, room_id):
    with client.websocket_connect("/") as member, client.websocket_connect("/") as stranger:
        member.send_json(join(room_id, "M"))
        wait_for_peers(client, room_id, 1)
        stranger.send_text("not json")
        stranger.send_text("42")
        stranger.send_text("null")
        stranger.send_json({"type": "chat", "roomId": room_id, "text": "hello?"})

        stranger.send_json(join(room_id, "S"))
        # the first frame the member gets is the stranger's join; nothing before it leaked through
        assert member.receive_json() == {"type": "new-peer", "roomId": room_id, "sender": "S"}

    assert room_id not in room_broadcaster.room_ids()


def test_binary_frames_are_relayed_as_text(client, room_id):
    with client.websocket_connect("/") as p1, client.websocket_connect("/") as p2:
        p1.send_json(join(room_id, "P1"))
        wait_for_peers(client, room_id, 1)
        p2.send_json(join(room_id, "P2"))
        assert p1.receive_json()["type"] == "new-peer"

        p2.send_bytes(b'{"type":"ice-candidate","candidate":"x"}')
        assert p1.receive_text() == '{"type":"ice-candidate","candidate":"x"}'


def test_malformed_frames_do_not_drop_the_sender(client, room_id):
    with client.websocket_connect("/") as p1, client.websocket_connect("/") as p2:
        p1.send_json(join(room_id, "P1"))
        wait_for_peers(client, room_id, 1)
        p2.send_json(join(room_id, "P2"))
        assert p1.receive_json()["type"] == "new-peer"

        p2.send_text("[" * 100000)
        p2.send_bytes('{"type":"offer"}'.encode("utf-16"))
        p2.send_bytes(b'\xef\xbb\xbf{"type":"answer"}')
        p2.send_text('{"type":"offer","sdp":"v=0"}')

        # the next frame p1 sees is the valid offer, not a peer-left or a mangled relay
        assert p1.receive_text() == '{"type":"offer","sdp":"v=0"}'
        assert client.get(f"/rooms/{room_id}").json()["online_count"] == 2

"""WebSocket endpoint tests — frames in, registry changes out.

Learn: Starlette's TestClient drives the app in a background thread.
Leaving the websocket_connect() block closes the socket and waits for
the handler to finish, so the registry can be checked right after.
"""

from fastapi.testclient import TestClient

from directline.main import app
from directline.realtime.registry import connection_registry


def test_register_frame_adds_registry_entry():
    client = TestClient(app)
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "register", "userId": 7})
        assert ws.receive_json() == {"type": "registered", "userId": 7}
        assert 7 in connection_registry

    assert 7 not in connection_registry


def test_reregister_then_close_removes_all_ids():
    client = TestClient(app)
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "register", "userId": 1})
        ws.receive_json()
        ws.send_json({"type": "register", "userId": 2})
        ws.receive_json()
        assert connection_registry.online_user_ids() == [1, 2]

    assert connection_registry.online_user_ids() == []


def test_second_connection_replaces_first():
    client = TestClient(app)
    with client.websocket_connect("/ws") as first:
        first.send_json({"type": "register", "userId": 3})
        first.receive_json()
        with client.websocket_connect("/ws") as second:
            second.send_json({"type": "register", "userId": 3})
            second.receive_json()
        # second closed: its entry for 3 is gone, first no longer owns it
        assert 3 not in connection_registry


def test_string_user_id_accepted():
    client = TestClient(app)
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "register", "userId": "12"})
        assert ws.receive_json() == {"type": "registered", "userId": 12}


def test_ping_pong():
    client = TestClient(app)
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}


def test_bad_frames_get_error_and_keep_connection():
    client = TestClient(app)
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "register"})
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "dance"})
        assert ws.receive_json()["type"] == "error"

        ws.send_json([1, 2, 3])
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "register", "userId": "\u00b2"})
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "register", "userId": "-3"})
        assert ws.receive_json()["type"] == "error"

        ws.send_bytes(b"\x80\x81 not utf-8")
        assert ws.receive_json()["type"] == "error"

        # still usable afterwards
        ws.send_json({"type": "register", "userId": 4})
        assert ws.receive_json() == {"type": "registered", "userId": 4}

    assert len(connection_registry) == 0


def test_binary_register_frame_accepted():
    client = TestClient(app)
    with client.websocket_connect("/ws") as ws:
        ws.send_bytes(b'{"type": "register", "userId": 5}')
        assert ws.receive_json() == {"type": "registered", "userId": 5}
        assert 5 in connection_registry

    assert 5 not in connection_registry

import uuid

from fastapi import WebSocket
from starlette.websockets import WebSocketState


class WebSocketConnection:
    """Adapts a FastAPI WebSocket to the connection interface the broadcaster expects."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.connection_id = str(uuid.uuid4())
        self._closed = False

    def is_open(self) -> bool:
        if self._closed:
            return False
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def mark_closed(self) -> None:
        self._closed = True

    async def send(self, text: str) -> None:
        await self.websocket.send_text(text)

    def __repr__(self):
        return f"WebSocketConnection({self.connection_id[:8]})"

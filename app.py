from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from starlette.websockets import WebSocketState
from routers.rooms import rooms_router
from routers.health import health_router
from backend import room_broadcaster
from transport import WebSocketConnection
from constants import CORS_ORIGINS, LOG_FILE, LOG_LEVEL
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

app = FastAPI(title="signaling-relay")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(rooms_router)
# Catch-all acknowledgement route, must stay last
app.include_router(health_router)

logger.info("FastAPI application initialized")


@app.websocket("/{path:path}")
async def websocket_endpoint(websocket: WebSocket, path: str = ""):
    """Signaling socket. Accepted on any path; the room comes from the join-room envelope."""
    await websocket.accept()
    connection = WebSocketConnection(websocket)
    client_host = websocket.client.host if websocket.client else "unknown"
    logger.info(f"WebSocket connection {connection!r} accepted from {client_host} on /{path}")

    message_count = 0
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket {connection!r} disconnected (code {message.get('code')})")
                break

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            message_count += 1
            logger.debug(f"Received message #{message_count} from {connection!r}")
            await room_broadcaster.handle_message(connection, raw)
    except WebSocketDisconnect:
        logger.info(f"WebSocket {connection!r} disconnected")
    except Exception as e:
        logger.error(f"WebSocket error on {connection!r}: {e}", exc_info=True)
    finally:
        connection.mark_closed()
        await room_broadcaster.handle_close(connection)
        if websocket.client_state == WebSocketState.CONNECTED:
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket {connection!r}: {e}")
        logger.debug(f"Cleaned up {connection!r}")

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from routers.rooms import rooms_router
from routers.config import config_router
from registry import RoomRegistry
from coordinator import SignalingCoordinator
from connections import ConnectionHub, pump_outbox
from constants import CORS_ORIGINS, LOG_LEVEL, LOG_FILE
import uuid
import asyncio
from typing import Optional
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


async def websocket_endpoint(websocket: WebSocket):
    """Signaling channel for one participant.

    Every text frame is a JSON object ``{"type": ..., "data": {...}}``. The
    first frame the server sends is ``connected`` carrying the connection id
    the client must use as ``from`` in its negotiation messages.
    """
    coordinator: SignalingCoordinator = websocket.app.state.coordinator
    hub: ConnectionHub = websocket.app.state.hub

    await websocket.accept()
    connection_id = str(uuid.uuid4())
    outbox = hub.open(connection_id)
    writer = asyncio.create_task(pump_outbox(websocket, outbox, connection_id))
    logger.info(f"WebSocket connection accepted: {connection_id}")

    try:
        coordinator.connect(connection_id)

        message_count = 0
        while True:
            try:
                data = await websocket.receive_text()
                message_count += 1
                logger.debug(f"Received message #{message_count} from connection {connection_id}")
                coordinator.handle_text(connection_id, data)
            except WebSocketDisconnect:
                logger.info(f"WebSocket disconnected normally for connection {connection_id}")
                break
            except Exception as e:
                logger.error(f"Error receiving message from connection {connection_id}: {e}", exc_info=True)
                break
    finally:
        # Stop outbound delivery first so nothing is queued for a dead socket
        hub.close(connection_id)
        coordinator.disconnect(connection_id)

        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass
        logger.debug(f"Stopped writer for connection {connection_id}")


def create_app(registry: Optional[RoomRegistry] = None) -> FastAPI:
    """Build the application with its own registry, hub and coordinator."""
    app = FastAPI(title="Call signaling relay")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    registry = registry if registry is not None else RoomRegistry()
    hub = ConnectionHub()
    app.state.registry = registry
    app.state.hub = hub
    app.state.coordinator = SignalingCoordinator(registry, hub)

    app.include_router(rooms_router)
    app.include_router(config_router)
    app.add_api_websocket_route("/ws", websocket_endpoint)

    logger.info("FastAPI application initialized")
    return app


app = create_app()

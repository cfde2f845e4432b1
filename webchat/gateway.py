# webchat/gateway.py
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from websockets.asyncio.server import ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from webchat.bridge import WebchatBridge
from webchat.nucleus.registry import SubscriberRegistry

logger = logging.getLogger(__name__)

SendChat = Callable[[str], Awaitable[None]]


class ClientGateway:
    """
    The entry point for web clients. New clients receive the stored history
    of the current context, then every broadcast. Text they send is handed
    to the host as an outgoing chat message.

    A client is registered before its history is sent, so a live message can
    arrive in the middle of the history batch. Web clients tell the two apart
    by `payload.history`, place messages by `timestamp` and drop repeats by
    `payload.uuid`.
    """
    def __init__(
        self,
        registry: SubscriberRegistry,
        bridge: WebchatBridge,
        host: str,
        port: int,
        history_limit: int = 100,
        send_chat: Optional[SendChat] = None,
    ):
        self._registry = registry
        self._bridge = bridge
        self._host = host
        self._port = port
        self._history_limit = history_limit
        self._send_chat = send_chat
        logger.info("ClientGateway initialized.")

    async def start(self):
        """Starts the WebSocket server to listen for web client connections."""
        logger.info(f"ClientGateway starting on {self._host}:{self._port}")
        async with serve(self.handle_connection, self._host, self._port):
            await asyncio.Future()  # Run forever

    async def handle_connection(self, websocket: ServerConnection):
        """Manages a single web client connection."""
        client_name = self._registry.register(websocket)
        try:
            await self._send_history(websocket)

            async for message in websocket:
                if isinstance(message, bytes):
                    logger.warning(f"[Gateway] Ignoring binary frame from '{client_name}'.")
                    continue
                await self._forward_chat(client_name, message)
        except ConnectionClosed as e:
            logger.info(f"[Gateway] Web client '{client_name}' connection closed: {e}")
        finally:
            self._registry.unregister(client_name)

    async def _send_history(self, websocket: ServerConnection):
        history = await self._bridge.fetch_current_history(self._history_limit)
        for message in history:
            await websocket.send(message.to_json())
        if history:
            logger.info(f"[Gateway] Sent {len(history)} history messages to {websocket.remote_address}.")

    async def _forward_chat(self, client_name: str, text: str):
        if not text.strip():
            return
        if self._send_chat is None:
            logger.warning(f"[Gateway] No chat sender configured. Message from '{client_name}' dropped.")
            return
        try:
            await self._send_chat(text)
        except Exception as e:
            logger.error(f"[Gateway] Failed to send chat from '{client_name}': {e}", exc_info=True)

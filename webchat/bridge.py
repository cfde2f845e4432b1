# webchat/bridge.py
import asyncio
import logging
from typing import Any, Dict, List, Optional

from webchat.engine import PipelineEngine
from webchat.nucleus.builder import (
    MessageBuildError,
    RawTextEvent,
    build_connection_state,
    build_live,
    web_chat_link,
)
from webchat.nucleus.identity import ClientContext, resolve_server_info
from webchat.nucleus.protocol import ChatMessage, ConnectionStateMessage, ServerConnectionState
from webchat.storage.repository import ChatMessageRepository

logger = logging.getLogger(__name__)


class WebchatBridge:
    """
    The surface the host adapter talks to.

    Every coroutine here must run on the bridge's event loop. A host that
    delivers events on its own thread should hand them over with
    `asyncio.run_coroutine_threadsafe`.
    """
    def __init__(
        self,
        pipeline: PipelineEngine,
        repository: Optional[ChatMessageRepository] = None,
        web_chat_url: Optional[str] = None,
    ):
        self._pipeline = pipeline
        self._repository = repository
        self._web_chat_url = web_chat_url
        self.context = ClientContext()
        logger.info(f"WebchatBridge initialized (persistence: {'on' if repository else 'off'}).")

    @property
    def has_persistence(self) -> bool:
        return self._repository is not None

    async def on_live_chat_or_system_event(
        self, event: RawTextEvent, context: ClientContext
    ) -> ChatMessage:
        """
        Builds the wire message for a chat or game message and broadcasts it.
        MessageBuildError is raised to the caller and nothing is broadcast.
        """
        self.context = context
        try:
            message = build_live(event, context)
        except MessageBuildError as e:
            logger.warning(f"[Bridge] Ignoring {event.source} message: {e}")
            raise

        await self._pipeline.process_message(message)
        return message

    async def on_connection_lifecycle(
        self, state: ServerConnectionState, context: ClientContext
    ) -> ConnectionStateMessage:
        self.context = context
        message = build_connection_state(state, context)
        await self._pipeline.process_message(message)
        return message

    async def drain(self) -> None:
        """Waits until every message handed to the pipeline has been fully processed."""
        await self._pipeline.drain()

    async def persist(self, message: ChatMessage) -> None:
        """Saves a message to history. StoreSaveError is propagated to the caller."""
        if self._repository is None:
            return
        await asyncio.to_thread(self._repository.save, message)

    async def fetch_history(self, server_id: str, limit: int) -> List[ChatMessage]:
        """Stored messages for `server_id`, most recent first. Empty without a store."""
        if self._repository is None:
            return []
        return await asyncio.to_thread(self._repository.get_messages, server_id, limit)

    async def fetch_current_history(self, limit: int) -> List[ChatMessage]:
        """History for the context seen with the most recent event."""
        return await self.fetch_history(resolve_server_info(self.context).identifier, limit)

    def join_notice(self) -> Optional[Dict[str, Any]]:
        """The component the host shows the player after joining, if a URL is known."""
        if not self._web_chat_url:
            return None
        return web_chat_link(self._web_chat_url)

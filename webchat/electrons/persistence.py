# webchat/electrons/persistence.py
import asyncio
import logging
from typing import Callable, Awaitable, Set

from webchat.electrons.base import AnyWireMessage, BaseElectron
from webchat.nucleus.protocol import ChatMessage
from webchat.storage.repository import ChatMessageRepository, StoreClosedError, StoreSaveError

logger = logging.getLogger(__name__)


class PersistenceElectron(BaseElectron):
    """
    Writes live chat messages to the history store in the background.
    The message continues down the pipeline without waiting for the disk;
    a failed write is logged and dropped.
    """
    def __init__(self, repository: ChatMessageRepository):
        self._repository = repository
        self._pending: Set[asyncio.Task] = set()
        logger.info("PersistenceElectron initialized.")

    async def process(
        self,
        message: AnyWireMessage,
        next_electron: Callable[[], Awaitable[None]],
    ) -> None:
        # Replayed history is already stored; connection states are never stored.
        if isinstance(message, ChatMessage) and not message.payload.is_history:
            task = asyncio.create_task(self._save(message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        await next_electron()

    async def drain(self) -> None:
        """Waits for every scheduled write to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _save(self, message: ChatMessage) -> None:
        try:
            await asyncio.to_thread(self._repository.save, message)
        except (StoreSaveError, StoreClosedError) as e:
            logger.error(f"[Persistence] Dropping history row for {message.payload.uuid}: {e}")
        except Exception as e:
            logger.error(f"[Persistence] Unexpected error saving {message.payload.uuid}: {e}", exc_info=True)

# webchat/electrons/logger.py
import logging
from typing import Callable, Awaitable

from webchat.electrons.base import AnyWireMessage, BaseElectron
from webchat.nucleus.protocol import ChatMessage

logger = logging.getLogger(__name__)


class LoggerElectron(BaseElectron):
    """
    A simple electron that logs key information about each outbound message.
    """

    async def process(
        self,
        message: AnyWireMessage,
        next_electron: Callable[[], Awaitable[None]],
    ) -> None:
        if isinstance(message, ChatMessage):
            detail = f"uuid: {message.payload.uuid}"
        else:
            detail = f"state: {message.payload.value}"

        logger.info(
            f"[LoggerElectron] Processing {message.type} ({detail}) "
            f"for server '{message.server.name}' ({message.server.identifier})"
        )

        await next_electron()

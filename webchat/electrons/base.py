# webchat/electrons/base.py
from abc import ABC, abstractmethod
from typing import Callable, Awaitable

from webchat.nucleus.protocol import ChatMessage, ConnectionStateMessage

AnyWireMessage = ChatMessage | ConnectionStateMessage


class BaseElectron(ABC):
    """
    Abstract base class for all "Electrons" (middleware components).

    An Electron is a processing unit in the outbound pipeline that can inspect
    a wire message, act on it, or halt it before it reaches the Nucleus
    (the broadcaster).
    """

    @abstractmethod
    async def process(
        self,
        message: AnyWireMessage,
        next_electron: Callable[[], Awaitable[None]],
    ) -> None:
        """
        Processes an outbound wire message.

        Args:
            message: The message about to be broadcast.
            next_electron: An awaitable callable that invokes the next electron
                           in the pipeline. It is the responsibility of the
                           current electron to call `await next_electron()` to
                           continue the processing chain. If it is not called,
                           the message is never broadcast.
        """
        pass

    async def drain(self) -> None:
        """Waits for background work started by this electron. Most electrons have none."""
        return None

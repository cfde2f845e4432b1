# webchat/nucleus/router.py
import logging

from webchat.electrons.base import AnyWireMessage
from webchat.nucleus.registry import SubscriberRegistry

logger = logging.getLogger(__name__)


class Router:
    """
    The Nucleus Router. The final destination in the pipeline.
    It fans each message out to every registered web client.
    """
    def __init__(self, registry: SubscriberRegistry):
        self._registry = registry

    async def route(self, message: AnyWireMessage) -> None:
        """
        Broadcasts the message. Delivery is best effort: a client whose send
        fails is dropped from the registry.
        """
        clients = self._registry.snapshot()
        if not clients:
            logger.debug(f"No web clients connected. {message.type} message not broadcast.")
            return

        data = message.to_json()
        for name, websocket in clients:
            try:
                await websocket.send(data)
            except Exception as e:
                logger.error(f"Failed to send message to '{name}': {e}")
                self._registry.unregister(name)

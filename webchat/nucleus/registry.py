# webchat/nucleus/registry.py
import logging
import uuid
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


def new_client_id() -> str:
    """Generates a new unique client ID in the format 'web_uuid'."""
    return f"web_{uuid.uuid4()}"


class SubscriberRegistry:
    """Tracks the web clients that receive broadcasts."""

    def __init__(self):
        self._connections: Dict[str, Any] = {}
        logger.info("SubscriberRegistry initialized.")

    def register(self, websocket: Any) -> str:
        name = new_client_id()
        self._connections[name] = websocket
        logger.info(f"[Registry] Web client '{name}' registered from {getattr(websocket, 'remote_address', None)}.")
        return name

    def unregister(self, name: str) -> Any | None:
        if name in self._connections:
            ws = self._connections.pop(name)
            logger.info(f"[Registry] Web client '{name}' unregistered.")
            return ws
        return None

    def snapshot(self) -> List[tuple]:
        """(name, websocket) pairs, safe to iterate while clients come and go."""
        return list(self._connections.items())

    def __len__(self) -> int:
        return len(self._connections)

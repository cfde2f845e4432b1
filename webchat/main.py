# webchat/main.py
import asyncio
import logging

from webchat.settings import Settings
from webchat.bridge import WebchatBridge
from webchat.engine import PipelineEngine
from webchat.gateway import ClientGateway
from webchat.electrons.logger import LoggerElectron
from webchat.electrons.persistence import PersistenceElectron
from webchat.nucleus.registry import SubscriberRegistry
from webchat.nucleus.router import Router
from webchat.storage.repository import ChatMessageRepository, StoreInitError


def open_repository(settings: Settings) -> ChatMessageRepository | None:
    """Opens the history store, or returns None so chat keeps working without history."""
    logger = logging.getLogger("Webchat_Main")
    try:
        return ChatMessageRepository.open(settings.database_path)
    except StoreInitError as e:
        logger.error(f"Chat history disabled: {e}", exc_info=True)
        return None


def build_bridge(settings: Settings, registry: SubscriberRegistry, repository: ChatMessageRepository | None) -> WebchatBridge:
    """Wires the outbound pipeline: log, persist (when a store is open), broadcast."""
    router = Router(registry)

    active_electrons = [LoggerElectron()]
    if repository is not None:
        active_electrons.append(PersistenceElectron(repository))

    pipeline_engine = PipelineEngine(
        electrons=active_electrons,
        nucleus_handler=router.route,
    )
    return WebchatBridge(pipeline_engine, repository, web_chat_url=settings.web_chat_url)


async def main(settings: Settings | None = None):
    """
    The main entry point for the web chat bridge.
    """
    settings = settings or Settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] (%(name)s) %(message)s"
    )
    logger = logging.getLogger("Webchat_Main")

    repository = open_repository(settings)
    registry = SubscriberRegistry()
    bridge = build_bridge(settings, registry, repository)
    try:
        client_gateway = ClientGateway(
            registry,
            bridge,
            settings.SERVER_HOST,
            settings.SERVER_PORT,
            history_limit=settings.HISTORY_LIMIT,
        )

        logger.info("Starting web chat bridge... Now accepting web client connections.")
        await client_gateway.start()
    finally:
        # Pending history writes must land before the store goes away.
        await bridge.drain()
        if repository is not None:
            repository.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nServer is shutting down.")

# webchat/engine.py
import logging
from typing import List, Callable, Awaitable

from webchat.electrons.base import AnyWireMessage, BaseElectron

logger = logging.getLogger(__name__)


class PipelineEngine:
    """
    The engine that runs the outbound middleware pipeline.

    It takes a list of Electrons (middleware) and a final Nucleus handler,
    and chains them together for every wire message the bridge produces.
    """

    def __init__(
        self,
        electrons: List[BaseElectron],
        nucleus_handler: Callable[[AnyWireMessage], Awaitable[None]],
    ):
        self._electrons = electrons
        self._nucleus_handler = nucleus_handler
        logger.info(f"PipelineEngine initialized with {len(self._electrons)} electrons.")

    async def process_message(self, message: AnyWireMessage) -> None:
        """
        Runs one message through the pipeline. Errors are logged, never raised,
        so a faulty electron cannot break the host's event delivery.
        """
        try:
            await self._execute_pipeline(message)
        except Exception as e:
            logger.error(f"Error processing {message.type} message: {e}", exc_info=True)

    async def drain(self) -> None:
        """Waits for background work started by any electron, e.g. pending history writes."""
        for electron in self._electrons:
            await electron.drain()

    async def _execute_pipeline(self, message: AnyWireMessage) -> None:
        """
        Constructs and executes the chain of electron calls for a single message.
        """
        # Start with the nucleus handler as the final step in the chain.
        async def nucleus():
            await self._nucleus_handler(message)

        next_handler = nucleus

        # Wrap the handlers in reverse order so each electron receives the
        # *next* handler in the chain.
        for electron in reversed(self._electrons):
            def create_closure(current_electron, next_step):
                async def closure():
                    await current_electron.process(message, next_step)
                return closure

            next_handler = create_closure(electron, next_handler)

        await next_handler()

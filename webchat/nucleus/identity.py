# webchat/nucleus/identity.py
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict

from webchat.nucleus.protocol import DISCONNECTED, ServerInfo
from webchat.utils.uuids import name_uuid

logger = logging.getLogger(__name__)


class ServerEntry(BaseModel):
    """A remote server as configured by the user in the host client."""
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    address: str


class ClientContext(BaseModel):
    """
    Snapshot of the host client's ambient play context.
    The host adapter builds one whenever an event is handed over.
    """
    model_config = ConfigDict(frozen=True)

    has_world: bool = False
    singleplayer: bool = False
    run_directory: Optional[Path] = None
    save_path: Optional[Path] = None
    server_entry: Optional[ServerEntry] = None
    minecraft_version: str = ""


def resolve_server_info(context: ClientContext) -> ServerInfo:
    """
    Gets the name and identifier of the world or server the player is on.

    Singleplayer (including LAN):
        name is the save folder name, identifier is derived from the save path
        relative to the game directory. Relocating the whole game directory
        keeps the identifier, renaming the save does not.

    Multiplayer:
        name is the configured server name or its address, identifier is
        derived from the address exactly as the user typed it.

    Returns DISCONNECTED whenever there is no usable context.
    """
    if not context.has_world:
        return DISCONNECTED

    if context.singleplayer:
        if context.save_path is None or context.run_directory is None:
            return DISCONNECTED

        world_name = context.save_path.name
        try:
            raw_identifier = os.path.relpath(context.save_path, context.run_directory)
        except ValueError:
            # No relative path exists (e.g. different drives on Windows).
            raw_identifier = str(context.save_path)
            logger.debug(f"[Identity] Save path {raw_identifier} is not relative to {context.run_directory}.")
        logger.debug(
            f"[Identity] Game dir: {context.run_directory}, save path: {context.save_path}, "
            f"world: {world_name}, raw identifier: {raw_identifier}"
        )
        return ServerInfo(name=world_name, identifier=name_uuid(raw_identifier))

    entry = context.server_entry
    if entry is None:
        return DISCONNECTED

    return ServerInfo(
        name=entry.name if entry.name is not None else entry.address,
        identifier=name_uuid(entry.address),
    )

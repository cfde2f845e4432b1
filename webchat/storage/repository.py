# webchat/storage/repository.py
import logging
import threading
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import (
    BigInteger,
    Column,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
    inspect,
    insert,
    select,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from webchat.nucleus.builder import build_historic, serialize_component
from webchat.nucleus.protocol import ChatMessage

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 1

# Largest value SQLite accepts as an INTEGER bind parameter.
SQLITE_MAX_INTEGER = 2**63 - 1

metadata = MetaData()

messages = Table(
    "messages",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("timestamp", BigInteger, nullable=False),
    Column("server_id", Text, nullable=False),
    Column("server_name", Text, nullable=False),
    Column("message_id", Text, nullable=False),
    Column("message_json", Text, nullable=False),
    Column("minecraft_version", Text, nullable=True),
    sqlite_autoincrement=True,
)

Index("idx_server_id_timestamp", messages.c.server_id, messages.c.timestamp.desc())

schema_version = Table(
    "schema_version",
    metadata,
    Column("version", Integer, primary_key=True, autoincrement=False),
)


class StoreInitError(Exception):
    """The history store could not be created or opened."""


class SchemaVersionError(StoreInitError):
    """The on-disk schema version is not the one this code understands."""

    def __init__(self, stored: int, supported: int):
        relation = "newer" if stored > supported else "older"
        super().__init__(
            f"Database schema version {stored} is {relation} than supported version {supported}"
        )
        self.stored = stored
        self.supported = supported


class SaveFailure(str, Enum):
    INVALID_PAYLOAD = "invalid_payload"
    WRITE_FAILED = "write_failed"


class StoreSaveError(Exception):
    def __init__(self, reason: SaveFailure, message: str):
        super().__init__(message)
        self.reason = reason


class StoreClosedError(Exception):
    """The store was used after close()."""


class HistoryRecord(BaseModel):
    """One persisted chat message. Rows are never updated."""
    model_config = ConfigDict(frozen=True)

    id: int
    timestamp: int
    server_id: str
    server_name: str
    message_id: str
    message_json: str
    minecraft_version: Optional[str] = None


def create_sqlite_engine(path: Path) -> Engine:
    """File-backed SQLite engine usable from worker threads."""
    return create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )


class ChatMessageRepository:
    """
    SQLite-backed log of chat messages, partitioned by server identifier.

    Access to the engine is serialized by a lock, so the handle can be used
    from worker threads. Use `open()` to create one and call `close()` once
    during shutdown.
    """

    def __init__(self, engine: Engine, path: Path):
        self._engine = engine
        self._path = path
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def open(cls, path: Path | str) -> "ChatMessageRepository":
        """
        Opens (or creates) the database at `path` and checks its schema.
        Raises StoreInitError if the store cannot be used.
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreInitError(f"Failed to create web chat database directory {path.parent}") from e

        engine = create_sqlite_engine(path)
        try:
            with engine.begin() as conn:
                _initialize_schema(conn)
        except StoreInitError:
            engine.dispose()
            raise
        except SQLAlchemyError as e:
            engine.dispose()
            logger.error(f"[Store] Failed to initialize chat storage database {path}: {e}")
            raise StoreInitError(f"Failed to initialize chat storage database {path}") from e

        logger.info(f"[Store] Chat history database ready at {path}.")
        return cls(engine, path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def save(self, message: ChatMessage) -> None:
        """Inserts one row. The same uuid saved twice yields two rows."""
        if not isinstance(message, ChatMessage):
            raise StoreSaveError(
                SaveFailure.INVALID_PAYLOAD,
                f"Message payload is not a chat payload (type: {getattr(message, 'type', None)})",
            )

        stmt = insert(messages).values(
            timestamp=message.timestamp,
            server_id=message.server.identifier,
            server_name=message.server.name,
            message_id=message.payload.uuid,
            message_json=serialize_component(message.payload.component),
            minecraft_version=message.minecraft_version,
        )
        with self._lock:
            self._ensure_open()
            try:
                with self._engine.begin() as conn:
                    conn.execute(stmt)
            except SQLAlchemyError as e:
                raise StoreSaveError(SaveFailure.WRITE_FAILED, f"Failed to save chat message: {e}") from e

    def query(self, server_id: str, limit: int) -> List[HistoryRecord]:
        """
        Returns up to `limit` records for `server_id`, most recent first.
        Storage faults are logged and yield an empty list.
        """
        if limit <= 0:
            return []

        stmt = (
            select(messages)
            .where(messages.c.server_id == server_id)
            .order_by(messages.c.timestamp.desc(), messages.c.id.desc())
            .limit(min(limit, SQLITE_MAX_INTEGER))
        )
        with self._lock:
            self._ensure_open()
            try:
                with self._engine.connect() as conn:
                    rows = conn.execute(stmt).mappings().all()
            except SQLAlchemyError as e:
                logger.error(f"[Store] Failed to retrieve chat messages for server {server_id}: {e}")
                return []

        return [HistoryRecord(**row) for row in rows]

    def get_messages(self, server_id: str, limit: int) -> List[ChatMessage]:
        """History for `server_id` as wire messages, most recent first."""
        return [build_historic(record) for record in self.query(server_id, limit)]

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._engine.dispose()
        logger.info(f"[Store] Chat history database {self._path} closed.")

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError(f"Chat history database {self._path} is closed")


def _read_schema_version(conn: Connection) -> Optional[int]:
    if not inspect(conn).has_table(schema_version.name):
        return None
    return conn.execute(select(schema_version.c.version)).scalar()


def _initialize_schema(conn: Connection) -> None:
    """
    Uninitialized -> create tables and record CURRENT_SCHEMA_VERSION.
    Recorded version equal to current -> accept.
    Anything else -> SchemaVersionError, before any table is touched.
    """
    stored = _read_schema_version(conn)

    if stored is not None:
        if stored > CURRENT_SCHEMA_VERSION:
            # Likely a downgrade from a release with a newer layout.
            logger.error(
                f"[Store] Database schema version {stored} is newer than supported version {CURRENT_SCHEMA_VERSION}"
            )
            raise SchemaVersionError(stored, CURRENT_SCHEMA_VERSION)
        if stored < CURRENT_SCHEMA_VERSION:
            logger.error(
                f"[Store] Database schema version {stored} is older than supported version {CURRENT_SCHEMA_VERSION}"
            )
            raise SchemaVersionError(stored, CURRENT_SCHEMA_VERSION)
        return

    metadata.create_all(conn)
    conn.execute(insert(schema_version).values(version=CURRENT_SCHEMA_VERSION))
    logger.info(f"[Store] New database, recorded schema version {CURRENT_SCHEMA_VERSION}.")

# webchat/utils/uuids.py
import hashlib
import uuid


def name_uuid(seed: str | bytes) -> str:
    """
    Returns a name-based (version 3) UUID for the given seed.

    No namespace is prepended to the seed, so the result is identical to
    Java's UUID.nameUUIDFromBytes for the same UTF-8 bytes.
    """
    if isinstance(seed, str):
        seed = seed.encode("utf-8")
    digest = hashlib.md5(seed).digest()
    return str(uuid.UUID(bytes=digest, version=3))

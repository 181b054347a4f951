"""
Identifier Generator

Derives room and event IDs from stable inputs with SHA-256, so fixtures running
against a frozen clock always get the same IDs back.
"""
import hashlib
import time

ROOM_ID_LENGTH = 18
EVENT_ID_LENGTH = 44


def current_timestamp() -> int:
    """Clock used for room IDs (whole seconds). Patched in tests to freeze time."""
    return int(time.time())


def _sha256_hex(*parts: str) -> str:
    return hashlib.sha256("".join(parts).encode("utf-8")).hexdigest()


def room_id(server_id: str, room_name: str, host: str, timestamp: int | None = None) -> str:
    """
    Build a room ID: ``"!" + sha256(serverID + name + timestamp)[:18] + ":" + host``.

    Two rooms with the same name created on the same server within the same
    clock tick get the same ID; the registry reports that as a Conflict.
    """
    if timestamp is None:
        timestamp = current_timestamp()
    digest = _sha256_hex(server_id, str(room_name), str(timestamp))
    return f"!{digest[:ROOM_ID_LENGTH]}:{host}"


def event_id(server_id: str, room_id: str, event_type: str) -> str:
    """
    Build a state event ID: ``sha256(serverID + roomID + eventType)[:44]``.

    The new state value is not part of the input, so every update of the same
    event type in the same room yields the same event ID.
    """
    return _sha256_hex(server_id, room_id, event_type)[:EVENT_ID_LENGTH]


def room_alias(alias_local_part: str, host: str) -> str:
    """Full alias string for a local part: ``#<local>:<host>``."""
    return f"#{alias_local_part}:{host}"

"""
Room Registry

Owns room records: creation with alias reservation, state updates (topic, name,
avatar) and lookups by ID or alias.
"""
import logging
import random
from typing import Any, Optional

from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction

from matrix_mock.core.errors import AliasInUse, Conflict, InvalidParam, NotFound, Unrecognized
from matrix_mock.models import Room, RoomMember, MembershipState
from matrix_mock.services import identifiers

logger = logging.getLogger("uvicorn.error")

# Upper bound of the placeholder name given to rooms created without one
PLACEHOLDER_NAME_MAX = 2**31 - 1

# state event type -> (body field, Room attribute)
STATE_EVENTS = {
    "m.room.topic": ("topic", "topic"),
    "m.room.name": ("name", "name"),
    "m.room.avatar": ("url", "avatar"),
}


async def get_room(room_id: str) -> Room:
    """
    Raises:
        NotFound: If no room has this ID
    """
    room = await Room.get_or_none(room_id=room_id)
    if room is None:
        raise NotFound("Unknown room")
    return room


async def resolve_alias(alias: str) -> Room:
    """
    Raises:
        NotFound: If no room carries this alias
    """
    room = await Room.get_or_none(room_alias=alias)
    if room is None:
        raise NotFound(f"Room alias {alias} not found")
    return room


async def alias_taken(alias: str) -> bool:
    return await Room.filter(room_alias=alias).exists()


async def get_room_by_id_or_alias(room_id_or_alias: str) -> Room:
    if room_id_or_alias.startswith("#"):
        return await resolve_alias(room_id_or_alias)
    return await get_room(room_id_or_alias)


async def create_room(
    server_id: str,
    creator: str,
    host: str,
    name: Optional[str] = None,
    topic: Optional[str] = None,
    alias_local_part: Optional[str] = None,
) -> dict:
    """
    Create a room and join its creator to it.

    Args:
        server_id: Owning virtual server
        creator: Matrix user ID of the authenticated caller
        host: Request host, used in the room ID and alias
        name: Room name; a random placeholder when omitted
        topic: Optional topic
        alias_local_part: Optional local part for "#<local>:<host>"

    Returns:
        dict: room_id, plus room_alias when one was reserved

    Raises:
        AliasInUse: If the alias is already taken
        Conflict: If a room with the same generated ID already exists
            (same server, name and clock second)
    """
    room_name = name if name is not None else str(random.randint(0, PLACEHOLDER_NAME_MAX))
    room_id = identifiers.room_id(server_id, room_name, host)
    alias = identifiers.room_alias(alias_local_part, host) if alias_local_part else None

    if alias and await alias_taken(alias):
        raise AliasInUse()

    try:
        async with in_transaction():
            await Room.create(
                room_id=room_id,
                server_id=server_id,
                name=room_name,
                topic=topic,
                room_alias=alias,
                creator=creator,
            )
            await RoomMember.create(
                room_id=room_id,
                user_id=creator,
                server_id=server_id,
                state=MembershipState.JOINED,
            )
    except IntegrityError:
        # Lost a race (or a same-second duplicate): tell the two constraints apart
        if alias and await alias_taken(alias):
            raise AliasInUse()
        logger.warning("[rooms] room id %s already exists on %s", room_id, server_id)
        raise Conflict(f"Room {room_id} already exists")

    logger.info("[rooms] %s created %s on %s (alias=%s)", creator, room_id, server_id, alias)
    response = {"room_id": room_id}
    if alias:
        response["room_alias"] = alias
    return response


async def update_room_state(server_id: str, room_id: str, event_type: str, body: Optional[dict[str, Any]]) -> str:
    """
    Apply a state event to a room.

    Supported event types and the body field they need:
    m.room.topic -> topic, m.room.name -> name, m.room.avatar -> url.

    Returns:
        str: Event ID. It depends on (server_id, room_id, event_type) only, so
        repeated updates of one type in one room report the same ID.

    Raises:
        NotFound: Unknown room
        Unrecognized: Unsupported event type
        InvalidParam: Required body field missing or not a string
    """
    room = await get_room(room_id)
    if event_type not in STATE_EVENTS:
        raise Unrecognized()

    field, attribute = STATE_EVENTS[event_type]
    value = (body or {}).get(field)
    if not isinstance(value, str):
        raise InvalidParam.for_field(field)

    setattr(room, attribute, value)
    await room.save(update_fields=[attribute])
    logger.info("[rooms] %s set on %s", event_type, room_id)
    return identifiers.event_id(server_id, room_id, event_type)


async def get_room_state(room_id: str, event_type: str) -> dict:
    """
    Read the current content of a state event.

    Raises:
        NotFound: Unknown room, or the room has no value for this event type
        Unrecognized: Unsupported event type
    """
    room = await get_room(room_id)
    if event_type not in STATE_EVENTS:
        raise Unrecognized()

    field, attribute = STATE_EVENTS[event_type]
    value = getattr(room, attribute)
    if value is None:
        raise NotFound("Event not found.")
    return {field: value}

"""
Membership Engine

Per-room membership state machine:

    (no row) --join--> JOINED --kick/leave--> LEFT --join--> JOINED

Transitions out of JOINED are conditional UPDATEs on the current state, so two
concurrent kicks of the same user cannot both succeed.
"""
import logging
from typing import Optional

from tortoise.exceptions import IntegrityError

from matrix_mock.core.errors import InvalidParam, NotMember
from matrix_mock.models import MembershipState, RoomMember, User
from matrix_mock.services import rooms

logger = logging.getLogger("uvicorn.error")


async def _mark_left(room_id: str, user_id: str, reason: Optional[str]) -> bool:
    updated = await RoomMember.filter(
        room_id=room_id, user_id=user_id, state=MembershipState.JOINED
    ).update(state=MembershipState.LEFT, reason=reason)
    return bool(updated)


async def kick(room_id: str, actor: str, target: str, reason: Optional[str] = None) -> dict:
    """
    Remove a joined user from a room.

    Any authenticated caller may kick; there is no power-level model.

    Raises:
        NotFound: Unknown room
        InvalidParam: Target user_id missing or not a string
        NotMember: Target has no membership or has already left
    """
    await rooms.get_room(room_id)
    if not isinstance(target, str) or not target:
        raise InvalidParam.for_field("user_id")
    if not isinstance(reason, str):
        reason = None
    if not await _mark_left(room_id, target, reason):
        raise NotMember()
    logger.info("[membership] %s kicked %s from %s", actor, target, room_id)
    return {}


async def leave(room_id: str, user_id: str, reason: Optional[str] = None) -> dict:
    """
    Leave a room as the caller.

    Raises:
        NotFound: Unknown room
        NotMember: Caller is not joined
    """
    await rooms.get_room(room_id)
    if not await _mark_left(room_id, user_id, reason):
        raise NotMember("You are not a member of this room.")
    logger.info("[membership] %s left %s", user_id, room_id)
    return {}


async def join(server_id: str, room_id_or_alias: str, user_id: str) -> dict:
    """
    Join a room (by ID or alias). Joining again while joined changes nothing;
    joining after leaving flips the row back and clears the leave reason.

    Raises:
        NotFound: Unknown room or alias
    """
    room = await rooms.get_room_by_id_or_alias(room_id_or_alias)
    rejoined = await RoomMember.filter(room_id=room.room_id, user_id=user_id).update(
        state=MembershipState.JOINED, reason=None
    )
    if not rejoined:
        try:
            await RoomMember.create(
                room_id=room.room_id,
                user_id=user_id,
                server_id=server_id,
                state=MembershipState.JOINED,
            )
        except IntegrityError:
            # A concurrent join inserted the same row; the user is joined either way
            logger.info("[membership] concurrent join of %s to %s", user_id, room.room_id)
    logger.info("[membership] %s joined %s", user_id, room.room_id)
    return {"room_id": room.room_id}


async def list_joined_members(server_id: str, room_id: str) -> dict[str, dict]:
    """
    Map every joined user of a room to their profile.

    Returns:
        dict: user_id -> {"avatar_url", "display_name"}; empty when nobody is joined.
        A membership whose User row is missing is still listed, with an empty profile.
    """
    members = await RoomMember.filter(
        room_id=room_id, server_id=server_id, state=MembershipState.JOINED
    ).order_by("id")
    if not members:
        return {}

    user_ids = [m.user_id for m in members]
    profiles = {
        u.user_id: u for u in await User.filter(server_id=server_id, user_id__in=user_ids)
    }

    joined = {}
    for member in members:
        user = profiles.get(member.user_id)
        if user is None:
            logger.warning("[membership] %s is joined to %s but has no user on %s",
                           member.user_id, room_id, server_id)
            joined[member.user_id] = {"avatar_url": None, "display_name": None}
            continue
        joined[member.user_id] = {"avatar_url": user.avatar_url, "display_name": user.display_name}
    return joined

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from matrix_mock.api.v1.deps import ALL_METHODS, require
from matrix_mock.api.v1.routers.auth import request_host
from matrix_mock.models.user import User
from matrix_mock.schemas.room import CreateRoomIn, LeaveIn
from matrix_mock.services import membership, rooms

router = APIRouter(prefix="/{serverID}/_matrix/client/r0", tags=["rooms"])


@router.api_route("/createRoom", methods=ALL_METHODS)
async def create_room(
    serverID: str,
    request: Request,
    body: CreateRoomIn | None = None,
    user: User = Depends(require("POST")),
):
    """
    Create a room owned by the caller, who joins it immediately.

    Args:
        serverID: Virtual server taken from the path
        body: Optional request body containing:
            - name: str (random placeholder when omitted)
            - topic: str
            - room_alias_name: str (alias local part)

    Returns:
        dict: room_id, plus room_alias when an alias was requested

    Errors:
        - 400 M_ROOM_IN_USE: Alias already taken
        - 409 M_UNKNOWN: Same room ID generated twice (same name, same second)
    """
    body = body or CreateRoomIn()
    return await rooms.create_room(
        serverID,
        user.user_id,
        request_host(request),
        name=body.name,
        topic=body.topic,
        alias_local_part=body.room_alias_name,
    )


@router.api_route("/rooms/{roomID}/kick", methods=ALL_METHODS)
async def kick(
    roomID: str,
    body: dict[str, Any] | None = Body(default=None),
    user: User = Depends(require("POST")),
):
    """
    Kick a joined user out of a room.

    Args:
        roomID: Room to kick from
        body: Request body containing:
            - user_id: str (user to remove)
            - reason: str (optional, stored on the membership)

    Errors:
        - 404 M_NOT_FOUND: Unknown room (checked before the body)
        - 400 M_INVALID_PARAM: user_id missing
        - 403 M_NOT_MEMBER: Target is not a joined member
    """
    body = body or {}
    return await membership.kick(roomID, user.user_id, body.get("user_id"), reason=body.get("reason"))


@router.api_route("/rooms/{roomID}/join", methods=ALL_METHODS)
async def join_room(serverID: str, roomID: str, user: User = Depends(require("POST"))):
    """Join a room by ID."""
    return await membership.join(serverID, roomID, user.user_id)


@router.api_route("/join/{roomIdOrAlias}", methods=ALL_METHODS)
async def join_room_by_id_or_alias(serverID: str, roomIdOrAlias: str, user: User = Depends(require("POST"))):
    """Join a room by ID or by "#alias:host"."""
    return await membership.join(serverID, roomIdOrAlias, user.user_id)


@router.api_route("/rooms/{roomID}/leave", methods=ALL_METHODS)
async def leave_room(roomID: str, body: LeaveIn | None = None, user: User = Depends(require("POST"))):
    """
    Leave a room.

    Errors:
        - 403 M_NOT_MEMBER: Caller is not joined
    """
    return await membership.leave(roomID, user.user_id, reason=body.reason if body else None)


@router.api_route("/rooms/{roomID}/state/{eventType}", methods=ALL_METHODS)
@router.api_route("/rooms/{roomID}/state/{eventType}/", methods=ALL_METHODS)
async def room_state(
    serverID: str,
    roomID: str,
    eventType: str,
    request: Request,
    body: dict[str, Any] | None = Body(default=None),
    user: User = Depends(require("GET", "PUT")),
):
    """
    Read (GET) or set (PUT) one piece of room state.

    Supported event types: m.room.topic (topic), m.room.name (name), m.room.avatar (url).
    The trailing-slash form (empty state key) is accepted as well.

    Returns:
        GET: the state content, e.g. {"topic": "..."}
        PUT: {"event_id": ...}; the ID does not depend on the new value, so
        repeated updates of one type in one room return the same event_id

    Errors:
        - 404 M_NOT_FOUND: Unknown room (or no value yet, on GET)
        - 404 M_UNRECOGNIZED: Unsupported event type
        - 400 M_INVALID_PARAM: Required body field missing
    """
    if request.method == "PUT":
        event_id = await rooms.update_room_state(serverID, roomID, eventType, body)
        return {"event_id": event_id}
    return await rooms.get_room_state(roomID, eventType)


@router.api_route("/rooms/{roomID}/joined_members", methods=ALL_METHODS)
async def joined_members(serverID: str, roomID: str, _: User = Depends(require("GET"))):
    """
    List joined members with their profile.

    Returns:
        dict: {"joined": {user_id: {"avatar_url", "display_name"}}}
    """
    return {"joined": await membership.list_joined_members(serverID, roomID)}


@router.api_route("/directory/room/{roomAlias}", methods=ALL_METHODS)
async def resolve_room_alias(roomAlias: str, request: Request, _: User = Depends(require("GET"))):
    """
    Resolve "#alias:host" to a room ID.

    Errors:
        - 404 M_NOT_FOUND: Unknown alias
    """
    room = await rooms.resolve_alias(roomAlias)
    return {"room_id": room.room_id, "servers": [request_host(request)]}

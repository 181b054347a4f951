# matrix_mock/models/room.py
"""
Database models for rooms and their memberships.
"""
from enum import Enum
from tortoise import fields, models


class MembershipState(str, Enum):
    """Membership state machine: joined <-> left. Invite/ban are not modelled yet."""
    JOINED = "join"
    LEFT = "leave"


class Room(models.Model):
    """
    Room database model.

    Rooms are never deleted. room_id and room_alias are unique at the schema
    level, so a racing duplicate insert fails with IntegrityError instead of
    silently creating a second row.
    """
    id = fields.IntField(pk=True)
    room_id = fields.CharField(max_length=255, unique=True)  # "!<18 hex>:<host>"
    server_id = fields.CharField(max_length=255, index=True)  # Owning virtual server namespace
    name = fields.CharField(max_length=255)
    topic = fields.TextField(null=True)
    avatar = fields.CharField(max_length=1024, null=True)  # Avatar content URI
    room_alias = fields.CharField(max_length=255, null=True, unique=True)  # "#<local>:<host>"
    creator = fields.CharField(max_length=255)  # Matrix user ID of the creator
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "rooms"


class RoomMember(models.Model):
    """
    Membership of one user in one room; at most one row per (room_id, user_id).
    reason is only meaningful once the state is LEFT.
    """
    id = fields.IntField(pk=True)
    room_id = fields.CharField(max_length=255, index=True)
    user_id = fields.CharField(max_length=255, index=True)
    server_id = fields.CharField(max_length=255, index=True)
    state = fields.CharEnumField(MembershipState, max_length=16, default=MembershipState.JOINED)
    reason = fields.TextField(null=True)

    class Meta:
        table = "room_members"
        unique_together = (("room_id", "user_id"),)

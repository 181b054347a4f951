"""
Pydantic schemas for room endpoints.
"""
from pydantic import BaseModel

class CreateRoomIn(BaseModel):
    """
    Request model for createRoom. Every field is optional; a room without a
    name gets a random placeholder.
    """
    name: str | None = None
    topic: str | None = None
    room_alias_name: str | None = None  # Local part only; the alias becomes "#<local>:<host>"
    visibility: str | None = None  # Accepted for client compatibility, not stored
    preset: str | None = None  # Accepted for client compatibility, not stored

class LeaveIn(BaseModel):
    reason: str | None = None

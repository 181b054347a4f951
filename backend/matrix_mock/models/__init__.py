# matrix_mock/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: Account scoped to one virtual server
- Password: Password digest (one per User)
- Token: Bearer session (access/refresh tokens)
- Room: Room record (name, topic, avatar, alias)
- RoomMember: Membership of a user in a room, with MembershipState
- Media: Content URI registry entry
"""
from .user import User, Password
from .token import Token
from .room import Room, RoomMember, MembershipState
from .media import Media

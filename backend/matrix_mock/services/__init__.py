"""
Services Module

Business logic behind the client-server API routes:
- identifiers: Deterministic room/event ID derivation
- tokens: Token Manager (issue, rotate, validate bearer sessions)
- credentials: Password login on top of the Token Manager
- rooms: Room Registry (creation, aliases, room state)
- membership: Membership Engine (join, leave, kick, joined members)
- media: Content URI registry
"""

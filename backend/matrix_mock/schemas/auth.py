"""
Pydantic schemas for session endpoints.
Defines request models for login and token refresh.
"""
from typing import Any
from pydantic import BaseModel

class LoginRequest(BaseModel):
    """
    Request model for the login endpoint.
    Only the password flow with an m.id.user identifier is accepted.
    """
    type: str  # Login flow, e.g. "m.login.password"
    identifier: Any  # {"type": "m.id.user", "user": "<user id>"}
    password: str | None = None  # Plain text password (digested server-side)
    refresh_token: Any = False  # Only a literal JSON true asks for a new refresh token
    device_id: str | None = None
    initial_device_display_name: str | None = None

class RefreshRequest(BaseModel):
    """
    Request model for the refresh endpoint.
    """
    refresh_token: str  # Refresh token issued by an earlier login/refresh

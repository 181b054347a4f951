from typing import Iterable, Optional

from fastapi import Request

from matrix_mock.core.errors import MethodNotAllowed
from matrix_mock.models.user import User
from matrix_mock.services import tokens

# Routes are registered for every method; the authorizer decides which ones pass
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def extract_access_token(request: Request) -> Optional[str]:
    """
    Read the bearer token from either:
    1. Authorization header (Bearer token) - preferred method
    2. access_token query parameter - fallback method
    """
    token = None
    authorization = request.headers.get("authorization")
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly ?access_token=xxx
    if not token:
        token = request.query_params.get("access_token")
    return token or None


async def authorize(
    required_methods: Iterable[str],
    request: Request,
    server_id: str,
    require_token: bool = True,
) -> Optional[User]:
    """
    Decide whether a request may proceed.

    Args:
        required_methods: HTTP methods the endpoint accepts
        request: Incoming request
        server_id: Virtual server taken from the path
        require_token: False only for the unauthenticated login/refresh endpoints

    Returns:
        User: Owner of the bearer token, or None when no token is required

    Raises:
        MethodNotAllowed (405): Method not in required_methods
        MissingToken (401): No token presented
        UnknownToken (401): Token unknown on this server
    """
    if request.method not in required_methods:
        raise MethodNotAllowed()
    if not require_token:
        return None
    return await tokens.validate(server_id, extract_access_token(request))


def require(*methods: str, require_token: bool = True):
    """
    Build a FastAPI dependency running authorize() for an endpoint.

    Usage:
        @router.api_route("/createRoom", methods=ALL_METHODS)
        async def create_room(serverID: str, user: User = Depends(require("POST"))):
            ...
    """
    async def dependency(serverID: str, request: Request) -> Optional[User]:
        return await authorize(methods, request, serverID, require_token=require_token)

    return dependency

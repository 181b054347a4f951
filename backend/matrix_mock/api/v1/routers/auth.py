from fastapi import APIRouter, Depends, Request
from matrix_mock.api.v1.deps import ALL_METHODS, require
from matrix_mock.models.user import User
from matrix_mock.schemas.auth import LoginRequest, RefreshRequest
from matrix_mock.services import credentials, tokens

router = APIRouter(prefix="/{serverID}/_matrix/client/r0", tags=["auth"])


def request_host(request: Request) -> str:
    """Host the client addressed, without port (what clients see as home_server)."""
    return request.url.hostname or request.headers.get("host", "").split(":")[0]


@router.api_route("/login", methods=ALL_METHODS)
async def login(
    serverID: str,
    payload: LoginRequest,
    request: Request,
    _: None = Depends(require("POST", require_token=False)),
):
    """
    Log a user in with a password.

    Args:
        serverID: Virtual server taken from the path
        payload: Request body containing:
            - type: "m.login.password"
            - identifier: {"type": "m.id.user", "user": "<user id>"}
            - password: str
            - refresh_token: bool (optional; only JSON true issues a refresh token)

    Returns:
        dict: user_id, access_token, home_server, refresh_token (when requested)

    Errors:
        - 400 M_INVALID_PARAM: Bad identifier or missing password
        - 403 M_FORBIDDEN: Invalid username or password
        - 403 M_UNKNOWN: Login type other than m.login.password
    """
    return await credentials.login(
        serverID,
        request_host(request),
        payload.type,
        payload.identifier,
        password=payload.password,
        refresh_token=payload.refresh_token,
    )


@router.api_route("/refresh", methods=ALL_METHODS)
async def refresh(
    serverID: str,
    payload: RefreshRequest,
    _: None = Depends(require("POST", require_token=False)),
):
    """
    Exchange a refresh token for a new access/refresh token pair.
    The session is rebound to this serverID.

    Errors:
        - 401 M_UNKNOWN_TOKEN: Refresh token unknown or already used
    """
    token = await tokens.rotate_on_refresh_request(serverID, payload.refresh_token)
    return {"access_token": token.access_token, "refresh_token": token.refresh_token}


@router.api_route("/account/whoami", methods=ALL_METHODS)
async def whoami(user: User = Depends(require("GET"))):
    """Return the Matrix user ID the bearer token belongs to."""
    return {"user_id": user.user_id}

"""
Token Manager

Issues, rotates and validates opaque bearer tokens. Every write is a single
conditional UPDATE so the database, not a prior read, decides who wins a race:
- the serverID binding on login only applies while it is still NULL
- a refresh only applies while the presented refresh token is still current
- access/refresh tokens are unique columns; a collision is regenerated
"""
import logging
from typing import Iterable, Optional

from tortoise.exceptions import IntegrityError

from matrix_mock.core.errors import Conflict, MethodNotAllowed, MissingToken, NoSuchSession, UnknownToken
from matrix_mock.core.security import generate_token
from matrix_mock.models import Token, User

logger = logging.getLogger("uvicorn.error")

# Attempts at drawing a token that does not collide with an existing one
MAX_TOKEN_ATTEMPTS = 5


async def _write_fresh_tokens(token_id: int, rotate_refresh: bool, guard: Optional[dict] = None, **changes) -> int:
    """
    Store a newly generated access token (and refresh token when asked) on a row.

    Args:
        token_id: Primary key of the Token row
        rotate_refresh: Also regenerate the refresh token
        guard: Extra column filters that must still hold for the write to apply
        changes: Additional columns to set in the same statement

    Returns:
        Number of rows updated (0 when the guard no longer matches)

    Raises:
        Conflict: If every attempt collided with an existing token
    """
    for attempt in range(1, MAX_TOKEN_ATTEMPTS + 1):
        values = dict(changes, access_token=generate_token("access"))
        if rotate_refresh:
            values["refresh_token"] = generate_token("refresh")
        try:
            return await Token.filter(id=token_id, **(guard or {})).update(**values)
        except IntegrityError:
            logger.warning("[tokens] token collision for row %s (attempt %d), regenerating", token_id, attempt)
    raise Conflict("Could not allocate a unique token")


async def issue_or_refresh(user: User, server_id: str, rotate_refresh: bool = False) -> Token:
    """
    Give a user a fresh access token on login.

    The serverID binding is first-write-wins: it is only set while the row has
    none, and later logins from another server leave it untouched.

    Raises:
        NoSuchSession: If no Token row was provisioned for the user
    """
    token = await Token.filter(user_id=user.id).order_by("id").first()
    if token is None:
        logger.error("[tokens] no token row provisioned for %s on %s", user.user_id, user.server_id)
        raise NoSuchSession()

    if token.server_id is None:
        bound = await Token.filter(id=token.id, server_id__isnull=True).update(server_id=server_id)
        if bound:
            logger.info("[tokens] bound session of %s to server %s", user.user_id, server_id)

    await _write_fresh_tokens(token.id, rotate_refresh)
    await token.refresh_from_db()
    return token


async def lookup_by_refresh_token(server_id: str, refresh_token: str) -> Optional[Token]:
    """
    Find the session holding a refresh token.

    The lookup is by token alone: a refresh may come from another server than
    the one the session is bound to, and then rebinds it.
    """
    if not refresh_token:
        return None
    token = await Token.get_or_none(refresh_token=refresh_token)
    if token is not None and token.server_id not in (None, server_id):
        logger.info("[tokens] refresh for row %s moves it from %s to %s", token.id, token.server_id, server_id)
    return token


async def rotate_on_refresh_request(server_id: str, refresh_token: str) -> Token:
    """
    Exchange a refresh token for a new access/refresh pair.

    Unlike login, the serverID is overwritten with the requesting server.

    Raises:
        UnknownToken: If the refresh token is unknown or was already used
    """
    token = await lookup_by_refresh_token(server_id, refresh_token)
    if token is None:
        raise UnknownToken("Invalid token")

    updated = await _write_fresh_tokens(
        token.id, True, guard={"refresh_token": refresh_token}, server_id=server_id
    )
    if not updated:
        # Another request consumed this refresh token first
        raise UnknownToken("Invalid token")

    await token.refresh_from_db()
    logger.info("[tokens] rotated session row %s via refresh", token.id)
    return token


async def validate(
    server_id: str,
    bearer_token: Optional[str],
    method: Optional[str] = None,
    required_methods: Optional[Iterable[str]] = None,
) -> User:
    """
    Resolve a bearer token to the user it belongs to on this server.

    Args:
        server_id: Virtual server the request targets
        bearer_token: Access token presented by the client
        method: HTTP method of the request (checked when required_methods is given)
        required_methods: Methods the endpoint accepts

    Returns:
        User: Owner of the session

    Raises:
        MethodNotAllowed: If method is not in required_methods
        MissingToken: If no token was presented
        UnknownToken: If the token is not a current access token for this server
    """
    if required_methods is not None and method not in required_methods:
        raise MethodNotAllowed()
    if not bearer_token:
        raise MissingToken()

    token = await Token.filter(access_token=bearer_token, server_id=server_id).select_related("user").first()
    if token is None:
        raise UnknownToken()
    return token.user

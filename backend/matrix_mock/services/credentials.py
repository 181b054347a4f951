"""
Credential Store / Login

Verifies a password login against the stored digest and hands the session over
to the Token Manager. An unknown user and a wrong password end in the same
Forbidden response so that logins cannot be used to enumerate accounts.
"""
import logging
from typing import Any, Optional

from matrix_mock.core.errors import Forbidden, InvalidParam, UnknownLoginType
from matrix_mock.core.security import PasswordPatternError, hash_password, new_password_pattern
from matrix_mock.models import Password, User
from matrix_mock.services import tokens

logger = logging.getLogger("uvicorn.error")

PASSWORD_LOGIN_TYPE = "m.login.password"

# identifier type -> field of the identifier object holding the lookup value
IDENTIFIER_FIELDS = {
    "m.id.user": "user",
}

# Digested for unknown users so both failure paths do the same amount of work
_DECOY_PATTERN = new_password_pattern()


def resolve_identifier(identifier: Any) -> str:
    """
    Extract the user ID from a login ``identifier`` object.

    Raises:
        InvalidParam: For a non-object identifier, an unsupported identifier
            type, or a missing/empty lookup field
    """
    if not isinstance(identifier, dict):
        raise InvalidParam.for_field("identifier")
    id_type = identifier.get("type")
    field = IDENTIFIER_FIELDS.get(id_type)
    if field is None:
        raise InvalidParam.for_field("identifier.type")
    value = identifier.get(field)
    if not isinstance(value, str) or not value:
        raise InvalidParam.for_field(f"identifier.{field}")
    return value


def digest_for(user: Optional[User], password: str) -> Optional[str]:
    """Digest a candidate password under the user's pattern (None if it cannot be computed)."""
    pattern = user.password_pattern if user is not None else _DECOY_PATTERN
    try:
        digest = hash_password(password, pattern)
    except PasswordPatternError:
        logger.warning("[auth] user %s has an unusable password pattern", user.user_id if user else "-")
        return None
    return digest if user is not None else None


async def authenticate(server_id: str, user_id: str, password: str) -> User:
    """
    Look up the user and the matching credential.

    Raises:
        Forbidden: If the user does not exist or the password does not match
    """
    user = await User.get_or_none(user_id=user_id, server_id=server_id)
    digest = digest_for(user, password)
    credential = None
    if user is not None and digest is not None:
        credential = await Password.get_or_none(user_id=user.id, digest=digest)

    if credential is None:
        logger.warning("[auth] rejected password login on %s", server_id)
        raise Forbidden("Invalid username or password")
    return user


async def login(
    server_id: str,
    host: str,
    login_type: str,
    identifier: Any,
    password: Optional[str] = None,
    refresh_token: Any = False,
) -> dict:
    """
    Log a user in with a password.

    Args:
        server_id: Virtual server the request targets
        host: Host the request was addressed to (reported as home_server)
        login_type: Login flow; only "m.login.password" is supported
        identifier: Identifier object, e.g. {"type": "m.id.user", "user": "alice"}
        password: Plain text password
        refresh_token: Also issue a new refresh token; only the literal True counts

    Returns:
        dict: user_id, access_token, home_server, plus refresh_token when requested

    Raises:
        InvalidParam: Bad identifier or missing password
        UnknownLoginType: Login type other than m.login.password
        Forbidden: Unknown user or wrong password
        NoSuchSession: No token row provisioned for the user
    """
    user_id = resolve_identifier(identifier)

    if login_type != PASSWORD_LOGIN_TYPE:
        raise UnknownLoginType()
    if not isinstance(password, str):
        raise InvalidParam.for_field("password")

    rotate = refresh_token is True
    user = await authenticate(server_id, user_id, password)
    token = await tokens.issue_or_refresh(user, server_id, rotate_refresh=rotate)
    logger.info("[auth] %s logged in on %s", user.user_id, server_id)

    response = {
        "user_id": user.user_id,
        "access_token": token.access_token,
        "home_server": host,
    }
    if rotate:
        response["refresh_token"] = token.refresh_token
    return response

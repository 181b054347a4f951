# matrix_mock/core/bootstrap.py
"""
Bootstrap module for application initialization.
Provisions accounts: registration is not part of the mocked API, so users are
seeded here (by tests, fixtures, or the SEED_* environment variables).
"""
import logging
from tortoise.transactions import in_transaction

from matrix_mock.config import settings
from matrix_mock.core.security import hash_password, new_password_pattern
from matrix_mock.models import Password, Token, User

logger = logging.getLogger("uvicorn.error")

async def seed_user(
    server_id: str,
    user_id: str,
    password: str,
    display_name: str | None = None,
    avatar_url: str | None = None,
) -> User:
    """
    Create an account that can log in right away.

    Creates the User with a fresh password pattern, its Password digest and an
    empty Token row (no server bound, no tokens yet) for the Token Manager to
    fill on first login. If the user already exists on this server it is
    returned unchanged.

    Args:
        server_id: Virtual server namespace
        user_id: Matrix user ID (e.g. "alice")
        password: Plain text password (only its digest is stored)
        display_name: Optional profile display name
        avatar_url: Optional profile avatar content URI

    Returns:
        User: The created or existing user
    """
    existing = await User.get_or_none(user_id=user_id, server_id=server_id)
    if existing:
        return existing  # Seeding is idempotent per (user_id, server_id)

    pattern = new_password_pattern()
    async with in_transaction():
        user = await User.create(
            user_id=user_id,
            server_id=server_id,
            password_pattern=pattern,
            display_name=display_name,
            avatar_url=avatar_url,
        )
        await Password.create(user=user, digest=hash_password(password, pattern))  # Digest before storing
        await Token.create(user=user)
    logger.info("[bootstrap] Seeded user %s on %s", user_id, server_id)
    return user

async def ensure_seed_user() -> None:
    """
    Seed the account described by SEED_USER_ID / SEED_PASSWORD on SEED_SERVER_ID.
    Does nothing unless both are set.
    """
    if not settings.seed_user_id or not settings.seed_password:
        return
    await seed_user(
        settings.seed_server_id,
        settings.seed_user_id,
        settings.seed_password,
        display_name=settings.seed_display_name,
    )

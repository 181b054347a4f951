# matrix_mock/core/security.py
"""
Security module for credentials and session tokens.
Handles deterministic password digesting and opaque bearer token generation.
"""
import secrets
from passlib.context import CryptContext

from matrix_mock.config import settings

# Password hashing context
# Only salted PBKDF2 schemes: the salt and round count come from the user's stored
# pattern, so the same plaintext always produces the same digest and a credential
# can be found by (user, digest).
pwd_context = CryptContext(
    schemes=["pbkdf2_sha256", "pbkdf2_sha512"],
)

PATTERN_SEPARATOR = "$"

# Token prefixes make access and refresh tokens easy to tell apart in logs and fixtures
ACCESS_TOKEN_PREFIX = "syt_"
REFRESH_TOKEN_PREFIX = "syr_"


class PasswordPatternError(ValueError):
    """Raised when a stored password pattern cannot be parsed."""


def parse_password_pattern(pattern: str) -> tuple[str, int, bytes]:
    """
    Split a password pattern descriptor into its parts.

    A pattern looks like ``pbkdf2_sha256$1000$9f86d081884c7d65``:
    scheme name, round count and hex-encoded salt.

    Returns:
        (scheme, rounds, salt bytes)

    Raises:
        PasswordPatternError: If the descriptor is malformed or names an unknown scheme
    """
    try:
        scheme, rounds, salt_hex = pattern.split(PATTERN_SEPARATOR)
        parsed = (scheme, int(rounds), bytes.fromhex(salt_hex))
    except (AttributeError, ValueError) as e:
        raise PasswordPatternError(f"malformed password pattern: {pattern!r}") from e
    if scheme not in pwd_context.schemes():
        raise PasswordPatternError(f"unsupported password scheme: {scheme!r}")
    return parsed


def new_password_pattern(scheme: str | None = None, rounds: int | None = None) -> str:
    """
    Mint a fresh pattern descriptor with a random 16-byte salt.

    Args:
        scheme: Hash scheme (defaults to settings.password_scheme)
        rounds: PBKDF2 iteration count (defaults to settings.password_rounds)
    """
    scheme = scheme or settings.password_scheme
    rounds = rounds or settings.password_rounds
    pattern = PATTERN_SEPARATOR.join([scheme, str(rounds), secrets.token_hex(16)])
    parse_password_pattern(pattern)  # reject unknown schemes early
    return pattern


def hash_password(plain: str, pattern: str) -> str:
    """
    Digest a plain text password under a user's stored pattern.

    The result is deterministic for a given (plain, pattern) pair, which is what
    lets login look the credential up by digest instead of comparing plaintext.

    Args:
        plain: Plain text password
        pattern: Pattern descriptor stored on the user (see parse_password_pattern)

    Returns:
        Digest string (safe to store in database)
    """
    scheme, rounds, salt = parse_password_pattern(pattern)
    handler = pwd_context.handler(scheme).using(salt=salt, rounds=rounds)
    return handler.hash(plain)


def generate_token(kind: str = "access") -> str:
    """
    Create an opaque bearer token.

    Args:
        kind: "access" or "refresh"; only selects the prefix

    Returns:
        Prefixed URL-safe token carrying settings.token_bytes (>= 32) bytes of entropy
    """
    prefix = REFRESH_TOKEN_PREFIX if kind == "refresh" else ACCESS_TOKEN_PREFIX
    return prefix + secrets.token_urlsafe(max(settings.token_bytes, 32))

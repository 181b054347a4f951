# matrix_mock/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _as_bool(raw: str) -> bool:
    return raw.lower() in ("true", "1", "yes")


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Matrix Client-Server API Mock"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for browser-based clients under test
    CORS_ORIGINS: list[str] = [
        o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
    ]

    # Create tables on startup (handy for throwaway SQLite databases; use aerich otherwise)
    generate_schemas: bool = _as_bool(os.getenv("GENERATE_SCHEMAS", "false"))

    # Optional account seeded on startup so a client can log in right away
    seed_server_id: str = os.getenv("SEED_SERVER_ID", "default")
    seed_user_id: str | None = os.getenv("SEED_USER_ID")
    seed_password: str | None = os.getenv("SEED_PASSWORD")
    seed_display_name: str | None = os.getenv("SEED_DISPLAY_NAME")

    # Password pattern defaults for newly seeded users
    password_scheme: str = os.getenv("PASSWORD_SCHEME", "pbkdf2_sha256")
    password_rounds: int = int(os.getenv("PASSWORD_ROUNDS", "1000"))

    # Entropy of access/refresh tokens, in bytes before encoding
    token_bytes: int = int(os.getenv("TOKEN_BYTES", "32"))

settings = Settings()  # Instantiate configuration

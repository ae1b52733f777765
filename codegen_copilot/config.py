import os
from dataclasses import dataclass

from dotenv import load_dotenv


class ConfigError(Exception):
    pass


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigError(f"{name} environment variable is not set")
    return value


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Database
    database_url: str
    # JWT
    jwt_secret: str
    # LLM (OpenAI-compatible API)
    openai_api_key: str
    openai_api_base: str | None = None
    model: str = "gpt-4o-mini"
    # Password hashing
    bcrypt_rounds: int = 12
    # Connection pool
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout: int = 30
    db_command_timeout: int = 30
    db_echo: bool = False
    # Server
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8080

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            database_url=_required("DATABASE_URL"),
            jwt_secret=_required("JWT_SECRET"),
            openai_api_key=_required("OPENAI_API_KEY"),
            openai_api_base=os.getenv("OPENAI_API_BASE") or None,
            model=os.getenv("MODEL") or "gpt-4o-mini",
            bcrypt_rounds=_int("BCRYPT_ROUNDS", 12),
            db_pool_size=_int("DB_POOL_SIZE", 5),
            db_max_overflow=_int("DB_MAX_OVERFLOW", 5),
            db_pool_timeout=_int("DB_POOL_TIMEOUT", 30),
            db_command_timeout=_int("DB_COMMAND_TIMEOUT", 30),
            db_echo=_bool("DB_ECHO"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int("PORT", 8080),
        )

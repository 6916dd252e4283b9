import os
import threading
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()

SUPPORTED_DATABASE_SCHEMES = {"postgresql+asyncpg", "sqlite+aiosqlite"}
PERMISSION_DEFAULTS = {"deny", "allow"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean value")


class Settings(BaseModel):
    app_name: str = Field(default="Forum Core")
    debug: bool = Field(default=False)
    database_url: str = Field(default="")
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_recycle: int = Field(default=1800)
    db_pool_pre_ping: bool = Field(default=True)
    guest_role_name: str = Field(default="guest")
    permission_default: str = Field(default="deny")
    permission_max_depth: int = Field(default=32)
    online_minutes: int = Field(default=15)
    online_setting_name: str = Field(default="user.showonline")

    @classmethod
    def from_env(cls) -> "Settings":
        database_url = os.getenv("DATABASE_URL", "").strip()
        if not database_url:
            raise ValueError("DATABASE_URL environment variable must be set")

        parsed_db = urlparse(database_url)
        if parsed_db.scheme not in SUPPORTED_DATABASE_SCHEMES:
            raise ValueError(
                "DATABASE_URL must start with 'postgresql+asyncpg://' or 'sqlite+aiosqlite://'"
            )
        if parsed_db.scheme == "postgresql+asyncpg" and not parsed_db.hostname:
            raise ValueError("DATABASE_URL must include hostname")

        db_pool_size = int(os.getenv("DB_POOL_SIZE", cls.model_fields["db_pool_size"].default))
        if db_pool_size <= 0:
            raise ValueError("DB_POOL_SIZE must be greater than 0")

        db_max_overflow = int(
            os.getenv("DB_MAX_OVERFLOW", cls.model_fields["db_max_overflow"].default)
        )
        if db_max_overflow < 0:
            raise ValueError("DB_MAX_OVERFLOW must be greater than or equal to 0")

        db_pool_recycle = int(
            os.getenv("DB_POOL_RECYCLE", cls.model_fields["db_pool_recycle"].default)
        )
        if db_pool_recycle <= 0:
            raise ValueError("DB_POOL_RECYCLE must be greater than 0")

        db_pool_pre_ping = _parse_bool(
            "DB_POOL_PRE_PING",
            os.getenv("DB_POOL_PRE_PING", str(cls.model_fields["db_pool_pre_ping"].default)),
        )

        guest_role_name = os.getenv(
            "GUEST_ROLE_NAME", cls.model_fields["guest_role_name"].default
        ).strip()
        if not guest_role_name:
            raise ValueError("GUEST_ROLE_NAME must not be empty")

        # UNSET at every level falls back to this value
        permission_default = os.getenv(
            "PERMISSION_DEFAULT", cls.model_fields["permission_default"].default
        ).strip().lower()
        if permission_default not in PERMISSION_DEFAULTS:
            raise ValueError("PERMISSION_DEFAULT must be 'deny' or 'allow'")

        permission_max_depth = int(
            os.getenv("PERMISSION_MAX_DEPTH", cls.model_fields["permission_max_depth"].default)
        )
        if permission_max_depth <= 0:
            raise ValueError("PERMISSION_MAX_DEPTH must be greater than 0")

        online_minutes = int(
            os.getenv("ONLINE_MINUTES", cls.model_fields["online_minutes"].default)
        )
        if online_minutes <= 0:
            raise ValueError("ONLINE_MINUTES must be greater than 0")

        return cls(
            app_name=os.getenv("APP_NAME", cls.model_fields["app_name"].default),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            database_url=database_url,
            db_pool_size=db_pool_size,
            db_max_overflow=db_max_overflow,
            db_pool_recycle=db_pool_recycle,
            db_pool_pre_ping=db_pool_pre_ping,
            guest_role_name=guest_role_name,
            permission_default=permission_default,
            permission_max_depth=permission_max_depth,
            online_minutes=online_minutes,
            online_setting_name=os.getenv(
                "ONLINE_SETTING_NAME", cls.model_fields["online_setting_name"].default
            ),
        )


# Deferred so that importing the package never validates the environment
_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get settings instance, creating it on first access.

    Uses double-checked locking so concurrent first accesses build a single
    instance.

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    global _settings_instance

    if _settings_instance is not None:
        return _settings_instance

    with _settings_lock:
        if _settings_instance is None:
            _settings_instance = Settings.from_env()

    return _settings_instance


def reset_settings() -> None:
    """Drop the cached instance so the next access re-reads the environment."""
    global _settings_instance
    with _settings_lock:
        _settings_instance = None


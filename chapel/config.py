import json
import os
import threading
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean value")


def _parse_positive_int(name: str, raw: str | int, *, allow_zero: bool = False) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 0 or (value == 0 and not allow_zero):
        bound = "greater than or equal to 0" if allow_zero else "greater than 0"
        raise ValueError(f"{name} must be {bound}")
    return value


def parse_admin_emails(raw: str | None) -> list[str]:
    """Split the ADMIN_EMAILS value into a trimmed list, dropping empty entries."""
    if not raw:
        return []
    return [email.strip() for email in raw.split(",") if email.strip()]


class Settings(BaseModel):
    app_name: str = Field(default="Chapel Blog")
    debug: bool = Field(default=False)
    database_url: str = Field(default="")
    allowed_origins: list[str] = Field(default_factory=list)
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_recycle: int = Field(default=1800)
    db_pool_pre_ping: bool = Field(default=True)
    secret_key: str | None = Field(default=None)
    algorithm: str = Field(default="HS256")
    session_expire_minutes: int = Field(default=60 * 24 * 30)
    admin_emails: list[str] = Field(default_factory=list)
    google_client_id: str | None = Field(default=None)
    log_level: str = Field(default="INFO")
    log_dir: str | None = Field(default=None)
    log_retention_days: int = Field(default=10)

    @classmethod
    def from_env(cls) -> "Settings":
        secret_key = os.getenv("SECRET_KEY", "").strip()
        if not secret_key:
            raise ValueError("SECRET_KEY environment variable must be set")

        raw_allowed_origins = os.getenv("ALLOWED_ORIGINS", "").strip()
        if not raw_allowed_origins:
            raise ValueError("ALLOWED_ORIGINS environment variable must be set")

        # Support both CSV format and JSON array format
        allowed_origins: list[str] = []
        if raw_allowed_origins.startswith("["):
            try:
                parsed_list = json.loads(raw_allowed_origins)
                if not isinstance(parsed_list, list):
                    raise ValueError("ALLOWED_ORIGINS JSON must be an array")
                allowed_origins = [
                    origin.strip() for origin in parsed_list if isinstance(origin, str) and origin.strip()
                ]
            except json.JSONDecodeError as exc:
                raise ValueError(f"ALLOWED_ORIGINS JSON is malformed: {exc}") from exc
        else:
            allowed_origins = [
                origin.strip() for origin in raw_allowed_origins.split(",") if origin.strip()
            ]

        if not allowed_origins:
            raise ValueError("ALLOWED_ORIGINS must contain at least one origin")

        if "*" in allowed_origins:
            raise ValueError(
                "ALLOWED_ORIGINS cannot contain '*' when credentialed requests are used"
            )

        for origin in allowed_origins:
            parsed = urlparse(origin)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ValueError(
                    "ALLOWED_ORIGINS must contain valid http/https origins with host"
                )

        database_url = os.getenv("DATABASE_URL", "").strip()
        if not database_url:
            raise ValueError("DATABASE_URL environment variable must be set")

        parsed_db = urlparse(database_url)
        if parsed_db.scheme != "postgresql+asyncpg":
            raise ValueError("DATABASE_URL must start with 'postgresql+asyncpg://'")
        if not parsed_db.hostname:
            raise ValueError("DATABASE_URL must include hostname")

        fields = cls.model_fields

        db_pool_size = _parse_positive_int(
            "DB_POOL_SIZE", os.getenv("DB_POOL_SIZE", fields["db_pool_size"].default)
        )
        db_max_overflow = _parse_positive_int(
            "DB_MAX_OVERFLOW",
            os.getenv("DB_MAX_OVERFLOW", fields["db_max_overflow"].default),
            allow_zero=True,
        )
        db_pool_recycle = _parse_positive_int(
            "DB_POOL_RECYCLE", os.getenv("DB_POOL_RECYCLE", fields["db_pool_recycle"].default)
        )
        db_pool_pre_ping = _parse_bool(
            "DB_POOL_PRE_PING",
            os.getenv("DB_POOL_PRE_PING", str(fields["db_pool_pre_ping"].default)),
        )
        session_expire_minutes = _parse_positive_int(
            "SESSION_EXPIRE_MINUTES",
            os.getenv("SESSION_EXPIRE_MINUTES", fields["session_expire_minutes"].default),
        )
        log_retention_days = _parse_positive_int(
            "LOG_RETENTION_DAYS",
            os.getenv("LOG_RETENTION_DAYS", fields["log_retention_days"].default),
        )

        google_client_id = os.getenv("GOOGLE_CLIENT_ID", "").strip() or None
        log_dir = os.getenv("LOG_DIR", "").strip() or None

        return cls(
            app_name=os.getenv("APP_NAME", fields["app_name"].default),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            database_url=database_url,
            allowed_origins=allowed_origins,
            secret_key=secret_key,
            algorithm=os.getenv("ALGORITHM", fields["algorithm"].default),
            session_expire_minutes=session_expire_minutes,
            admin_emails=parse_admin_emails(os.getenv("ADMIN_EMAILS")),
            google_client_id=google_client_id,
            log_level=os.getenv("LOG_LEVEL", fields["log_level"].default).strip().upper(),
            log_dir=log_dir,
            log_retention_days=log_retention_days,
            db_pool_size=db_pool_size,
            db_max_overflow=db_max_overflow,
            db_pool_recycle=db_pool_recycle,
            db_pool_pre_ping=db_pool_pre_ping,
        )


# Settings are built on first access so the module imports without a full environment
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


class _SettingsProxy:
    """Proxy to defer settings creation until first attribute access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)


settings = _SettingsProxy()  # type: ignore[assignment]

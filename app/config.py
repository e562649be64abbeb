"""Environment-driven settings for the AI-Solutions API."""

import re
from dataclasses import dataclass, field
from os import getenv
from typing import List, Optional, Tuple
from urllib.parse import quote_plus

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "postgresql+asyncpg://ai_user:@localhost:5432/ai_solutions_db"


def _as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value not in (None, "") else default
    except ValueError:
        return default


def normalize_database_url(url: str) -> str:
    """Force the asyncpg driver onto plain postgres URLs."""
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def database_url_from_env() -> str:
    """DATABASE_URL wins; otherwise build one from the discrete PG* variables."""
    url = getenv("DATABASE_URL")
    if url:
        return normalize_database_url(url.strip())

    if not getenv("PGHOST") and not getenv("PGUSER"):
        return DEFAULT_DATABASE_URL

    host = getenv("PGHOST", "localhost")
    port = getenv("PGPORT", "5432")
    database = getenv("PGDATABASE", "ai_solutions_db")
    user = quote_plus(getenv("PGUSER", "ai_user"))
    password = quote_plus(getenv("PGPASSWORD", ""))
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{database}"


def parse_origins(raw: Optional[str]) -> List[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


def split_origin_patterns(origins: List[str]) -> Tuple[List[str], Optional[str]]:
    """
    Separate exact origins from wildcard-subdomain patterns.

    ``https://*.example.app`` becomes a regex alternative matching one DNS label
    in place of the ``*``. Returns the exact list and a combined regex (or None).
    """
    exact: List[str] = []
    patterns: List[str] = []
    for origin in origins:
        if "*" in origin:
            escaped = re.escape(origin.rstrip("/")).replace(r"\*", r"[a-z0-9-]+")
            patterns.append(escaped)
        else:
            exact.append(origin.rstrip("/"))
    regex = f"^(?i:{'|'.join(patterns)})$" if patterns else None
    return exact, regex


def parse_rate_limit(raw: Optional[str], default: Tuple[str, int] = ("minute", 5)) -> Tuple[str, int]:
    """Parse ``5/minute`` style limits."""
    if not raw:
        return default
    try:
        count, unit = raw.split("/", 1)
        unit = unit.strip().lower()
        if unit not in ("second", "minute", "hour", "day"):
            return default
        return unit, max(1, int(count))
    except ValueError:
        return default


@dataclass
class Settings:
    """Runtime configuration, built once at process start."""

    database_url: str = DEFAULT_DATABASE_URL
    db_ssl_mode: Optional[str] = None
    db_pool_size: int = 5
    db_connect_timeout: int = 10
    db_idle_timeout: int = 30

    debug: bool = False
    auto_migrate: bool = False
    host: str = "0.0.0.0"
    port: int = 3000

    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])

    jwt_secret: str = "change-me"
    jwt_expires_hours: int = 8

    admin_email: str = "admin@example.com"
    admin_password: str = "Admin@123"
    otp_enabled: bool = True
    otp_ttl_minutes: int = 10
    otp_max_attempts: int = 5
    allow_direct_login: bool = False

    email_host: str = "smtp.gmail.com"
    email_port: int = 587
    email_secure: bool = False
    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    email_from: Optional[str] = None
    email_timeout: int = 30
    mail_retries: int = 2

    blob_token: Optional[str] = None
    blob_api_url: str = "https://blob.vercel-storage.com"
    upload_dir: str = "uploads"

    max_body_size: int = 10 * 1024 * 1024
    inquiry_rate_limit: Tuple[str, int] = ("minute", 5)

    @property
    def is_postgres(self) -> bool:
        return self.database_url.startswith("postgresql")

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        debug = _as_bool(getenv("APP_DEBUG"))

        origins = parse_origins(getenv("CORS_ORIGINS"))
        frontend_url = (getenv("FRONTEND_URL") or "").strip()
        if frontend_url:
            origins.append(frontend_url)

        return cls(
            database_url=database_url_from_env(),
            db_ssl_mode=getenv("PGSSLMODE") or None,
            db_pool_size=_as_int(getenv("DB_POOL_SIZE"), 5),
            db_connect_timeout=_as_int(getenv("DB_CONNECT_TIMEOUT"), 10),
            db_idle_timeout=_as_int(getenv("DB_IDLE_TIMEOUT"), 30),
            debug=debug,
            auto_migrate=_as_bool(getenv("AUTO_MIGRATE"), default=debug),
            host=getenv("HOST", "0.0.0.0"),
            port=_as_int(getenv("PORT"), 3000),
            cors_origins=origins or ["http://localhost:5173"],
            jwt_secret=getenv("JWT_SECRET", "change-me"),
            jwt_expires_hours=_as_int(getenv("JWT_EXPIRES_HOURS"), 8),
            admin_email=getenv("ADMIN_EMAIL", "admin@example.com").strip().lower(),
            admin_password=getenv("ADMIN_PASSWORD", "Admin@123"),
            otp_enabled=_as_bool(getenv("OTP_ENABLED"), default=True),
            otp_ttl_minutes=_as_int(getenv("OTP_TTL_MINUTES"), 10),
            otp_max_attempts=_as_int(getenv("OTP_MAX_ATTEMPTS"), 5),
            allow_direct_login=_as_bool(getenv("ALLOW_DIRECT_LOGIN")),
            email_host=getenv("EMAIL_HOST", "smtp.gmail.com"),
            email_port=_as_int(getenv("EMAIL_PORT"), 587),
            email_secure=_as_bool(getenv("EMAIL_SECURE")),
            email_user=getenv("EMAIL_USER") or None,
            email_pass=getenv("EMAIL_PASS") or None,
            email_from=getenv("EMAIL_FROM") or None,
            mail_retries=_as_int(getenv("MAIL_RETRIES"), 2),
            blob_token=getenv("BLOB_READ_WRITE_TOKEN") or None,
            blob_api_url=getenv("BLOB_API_URL", "https://blob.vercel-storage.com"),
            upload_dir=getenv("UPLOAD_DIR", "uploads"),
            max_body_size=_as_int(getenv("MAX_BODY_SIZE"), 10 * 1024 * 1024),
            inquiry_rate_limit=parse_rate_limit(getenv("INQUIRY_RATE_LIMIT")),
        )

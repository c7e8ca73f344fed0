import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        value = default
    else:
        try:
            value = int(raw)
        except ValueError:
            value = default
    if min_value is not None:
        return max(min_value, value)
    return value


@dataclass(frozen=True)
class Settings:
    app_name: str
    secret_key: str
    algorithm: str
    access_token_expire_minutes: int
    issuer: str
    cors_origins: tuple[str, ...]
    database_url: str
    auto_create_schema: bool
    log_level: str
    bootstrap_admin_username: str
    bootstrap_admin_password: str
    default_low_stock_threshold: int
    invoice_prefix: str


def load_settings() -> Settings:
    return Settings(
        app_name=os.getenv("APP_NAME", "Shop POS API"),
        secret_key=os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION_32_CHAR_MIN_SECRET_KEY"),
        algorithm=os.getenv("ALGORITHM", "HS256"),
        access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 720, min_value=1),
        issuer=os.getenv("TOKEN_ISSUER", "shoppos-api"),
        cors_origins=tuple(
            origin.strip().rstrip("/")
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
            if origin.strip()
        ),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./shoppos.db"),
        auto_create_schema=_env_bool("AUTO_CREATE_SCHEMA", True),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        bootstrap_admin_username=os.getenv("BOOTSTRAP_ADMIN_USERNAME", "").strip(),
        bootstrap_admin_password=os.getenv("BOOTSTRAP_ADMIN_PASSWORD", ""),
        default_low_stock_threshold=_env_int("DEFAULT_LOW_STOCK_THRESHOLD", 5, min_value=1),
        invoice_prefix=os.getenv("INVOICE_PREFIX", "INV").strip().upper() or "INV",
    )


settings = load_settings()

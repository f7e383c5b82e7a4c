import os
from pathlib import Path


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or "=" not in stripped:
                continue
            key, value = stripped.split("=", 1)
            key = key.strip()
            if not key or key in os.environ:
                continue
            cleaned = value.strip().strip('"').strip("'")
            os.environ[key] = cleaned
    except OSError:
        return


def _load_env() -> None:
    current = Path(__file__).resolve()
    for candidate in (current.parents[2] / ".env", Path.cwd() / ".env"):
        _load_env_file(candidate)


_load_env()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def _normalize_cors(origins: str) -> list[str]:
    items: list[str] = []
    for raw in origins.split(","):
        value = raw.strip()
        if value and value not in items:
            items.append(value)
    return items


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./gamehub.db")
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-prod")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "3600"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
CORS_ORIGINS = _normalize_cors(os.getenv("CORS_ORIGINS", _DEFAULT_CORS_ORIGINS))

STEAM_WEB_API_KEY = os.getenv("STEAM_WEB_API_KEY", os.getenv("STEAM_API_KEY", ""))
STEAM_WEB_API_URL = os.getenv("STEAM_WEB_API_URL", "https://api.steampowered.com")
STEAM_STORE_API_URL = os.getenv("STEAM_STORE_API_URL", "https://store.steampowered.com/api")
STEAM_STORE_SEARCH_URL = os.getenv(
    "STEAM_STORE_SEARCH_URL", "https://store.steampowered.com/api/storesearch/"
)
STEAM_REQUEST_TIMEOUT_SECONDS = int(os.getenv("STEAM_REQUEST_TIMEOUT_SECONDS", "12"))

# Catalog outlives details, details outlive the featured summary.
STEAM_CATALOG_CACHE_TTL_SECONDS = int(os.getenv("STEAM_CATALOG_CACHE_TTL_SECONDS", "86400"))
STEAM_DETAIL_CACHE_TTL_SECONDS = int(os.getenv("STEAM_DETAIL_CACHE_TTL_SECONDS", "3600"))
STEAM_FEATURED_CACHE_TTL_SECONDS = int(os.getenv("STEAM_FEATURED_CACHE_TTL_SECONDS", "300"))

STEAM_IMPORT_PAGE_SIZE = int(os.getenv("STEAM_IMPORT_PAGE_SIZE", "30"))
STEAM_IMPORT_SOFT_CAP = int(os.getenv("STEAM_IMPORT_SOFT_CAP", "100"))
STEAM_FETCH_MAX_RETRIES = int(os.getenv("STEAM_FETCH_MAX_RETRIES", "0"))
STEAM_FETCH_RETRY_BACKOFF_SECONDS = float(os.getenv("STEAM_FETCH_RETRY_BACKOFF_SECONDS", "0.5"))
STEAM_DETAIL_MAX_CONCURRENCY = int(os.getenv("STEAM_DETAIL_MAX_CONCURRENCY", "8"))

RATE_LIMIT_ENABLED = _env_flag("RATE_LIMIT_ENABLED", "true")
RATE_LIMIT_DEFAULT_PER_MINUTE = int(os.getenv("RATE_LIMIT_DEFAULT_PER_MINUTE", "120"))

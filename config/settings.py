"""
Application configuration loaded from environment.
"""
import os


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Application settings."""

    # Storefront backend
    STORE_API_URL = os.getenv("STORE_API_URL", "http://localhost:3000")
    STORE_API_TOKEN = os.getenv("STORE_API_TOKEN", "")
    STORE_ID = os.getenv("STORE_ID", "")

    # HTTP behaviour
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))
    MAX_ATTEMPTS = int(os.getenv("MAX_ATTEMPTS", "2"))
    RETRY_BACKOFF = float(os.getenv("RETRY_BACKOFF", "0.5"))

    # Backend default page size is 99
    PAGE_LIMIT = int(os.getenv("PAGE_LIMIT", "99"))

    # Refuse status changes out of CANCELLED / FINISHED
    LOCK_TERMINAL_ORDERS = _env_bool("LOCK_TERMINAL_ORDERS")

    # App
    ENV = os.getenv("ENV", "development")
    DEBUG = ENV == "development"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    FLASK_SECRET_KEY = os.getenv("FLASK_SECRET_KEY") or os.getenv("SECRET_KEY") or "CHANGE_ME_DEV_ONLY"

    # Export paths
    DATA_PATH = os.path.join(os.path.dirname(__file__), "..", "data")
    EXPORT_XLSX = os.path.join(DATA_PATH, "orders_export.xlsx")


settings = Settings()

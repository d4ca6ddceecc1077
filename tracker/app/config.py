# tracker/app/config.py
import os
from pathlib import Path
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

TRUTHY = {"1", "true", "yes", "on"}
DEFAULT_AUTH_SECRET = "change-me"
DEFAULT_ASSET_SIGNING_SECRET = "change-me-too"


def env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY


class Settings:
    # --- database ---
    DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{PROJECT_ROOT / 'tracker.db'}")

    # --- auth (tokens are issued by the external identity provider) ---
    AUTH_SECRET = os.getenv("AUTH_SECRET", DEFAULT_AUTH_SECRET)
    AUTH_ALGORITHM = os.getenv("AUTH_ALGORITHM", "HS256")

    # --- asset storage ---
    ASSET_STORAGE_DIR = os.getenv("ASSET_STORAGE_DIR", str(PROJECT_ROOT / "storage"))
    ASSET_BUCKET = os.getenv("ASSET_BUCKET", "assets")
    ASSET_SIGNING_SECRET = os.getenv("ASSET_SIGNING_SECRET", DEFAULT_ASSET_SIGNING_SECRET)
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://127.0.0.1:8000")
    SIGNED_URL_TTL = int(os.getenv("SIGNED_URL_TTL", "3600"))

    # --- server ---
    SEED_DEMO_DATA = env_flag("SEED_DEMO_DATA", True)
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "8000"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "info")


def default_secrets(conf) -> list:
    """Names of signing secrets still set to their shipped defaults."""
    found = []
    if conf.AUTH_SECRET == DEFAULT_AUTH_SECRET:
        found.append("AUTH_SECRET")
    if conf.ASSET_SIGNING_SECRET == DEFAULT_ASSET_SIGNING_SECRET:
        found.append("ASSET_SIGNING_SECRET")
    return found


settings = Settings()

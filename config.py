"""Application configuration."""
import logging
import os
from pathlib import Path
from typing import Optional

APP_DIR = Path(__file__).resolve().parent

DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{APP_DIR / 'photo_revive.db'}")

# External prediction API
REPLICATE_API_BASE = os.getenv("REPLICATE_API_BASE", "https://api.replicate.com/v1")
RESTORE_MODEL = os.getenv("RESTORE_MODEL", "flux-kontext-apps/restore-image")
EDIT_MODEL = os.getenv("EDIT_MODEL", "black-forest-labs/flux-kontext-max")

# Anonymous usage
ANON_LIMIT = int(os.getenv("ANON_LIMIT", "2"))
ANON_COOKIE_NAME = "anon-id"
ANON_COOKIE_MAX_AGE = 60 * 60 * 24 * 30  # 30 days

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CACHE_SEED_DIR = Path(os.getenv("CACHE_SEED_DIR", str(APP_DIR / "img_cache")))


def get_api_token() -> Optional[str]:
    """Read the prediction API token; checked per call, not at import."""
    return os.getenv("REPLICATE_API_TOKEN") or None


def configure_logging() -> None:
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

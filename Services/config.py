import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


FIGMA_API_KEY = os.getenv("FIGMA_API_KEY") or os.getenv("FIGMA_TOKEN") or ""
FIGMA_OAUTH_TOKEN = os.getenv("FIGMA_OAUTH_TOKEN") or ""
FIGMA_API_BASE = os.getenv("FIGMA_API_BASE", "https://api.figma.com/v1")
FIGMA_REQUEST_TIMEOUT = float(os.getenv("FIGMA_REQUEST_TIMEOUT", "30"))
FIGMA_IMAGE_CONCURRENCY = int(os.getenv("FIGMA_IMAGE_CONCURRENCY", "5"))
FIGMA_PNG_SCALE = float(os.getenv("FIGMA_PNG_SCALE", "2"))
FIGMA_ENABLE_LOGGING = _env_bool("FIGMA_ENABLE_LOGGING")
ENV = os.getenv("ENV", "production")

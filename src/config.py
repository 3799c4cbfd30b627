"""Service settings, read once from the environment.

    TRANSFORM_MODULE_PATH    comma-separated dirs/archives with custom
                             transform classes (empty for none); requests
                             may only name paths inside it
    TRANSFORM_TEMPLATES_DIR  where saved specification templates live
    TRANSFORM_CACHE_TTL      seconds a compiled transform stays cached
    TRANSFORM_CACHE_MAX_ENTRIES  how many compiled transforms are kept
    LOG_LEVEL                root log level (default INFO)
    CORS_ORIGINS             comma-separated allowed origins (default *)
    API_HOST / API_PORT      bind address for ``python -m src.api.main``
"""

import os
from pathlib import Path

MODULE_PATH = os.environ.get("TRANSFORM_MODULE_PATH", "")

TEMPLATES_DIR = Path(
    os.environ.get(
        "TRANSFORM_TEMPLATES_DIR",
        str(Path(__file__).parent / "transformations" / "definitions"),
    )
)

# Cache TTL: 1 hour
CACHE_TTL = int(os.environ.get("TRANSFORM_CACHE_TTL", "3600"))

# Compiled transforms kept at once
CACHE_MAX_ENTRIES = int(os.environ.get("TRANSFORM_CACHE_MAX_ENTRIES", "256"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Comma-separated allowed CORS origins ("*" for any, without credentials)
CORS_ORIGINS = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
]

API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8001"))

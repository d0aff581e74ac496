# core/config.py
import os
from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv(filename=".env", usecwd=True), override=False)

from .endpoints import ENDPOINTS, NCDOT_BASE_URL  # noqa: E402

# Timeouts / retries
DEFAULT_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "6.0"))
RETRY_TOTAL = int(os.getenv("HTTP_RETRY_TOTAL", "2"))
USER_AGENT = os.getenv("HTTP_USER_AGENT", "nc-closures/1.0")

# Cache
CLOSURE_CACHE_TTL_SEC = int(os.getenv("CLOSURE_CACHE_TTL_SEC", "60"))
REGION_CACHE_TTL_SEC = int(os.getenv("REGION_CACHE_TTL_SEC", "3600"))

# Default region: Cumberland County
DEFAULT_REGION_ID = int(os.getenv("DEFAULT_REGION_ID", "26"))
DEFAULT_REGION_NAME = os.getenv("DEFAULT_REGION_NAME", "Cumberland")

# URLs are managed in endpoints.py
INCIDENTS_URL = ENDPOINTS["incidents"]
REGIONS_URL = ENDPOINTS["regions"]

# Storage
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./closures.db")
SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "1") not in ("0", "false", "False", "")

# Web
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

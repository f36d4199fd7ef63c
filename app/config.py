"""Environment-driven settings for the catalog API."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DB_FILE = Path(os.getenv("CATALOG_DB_FILE", "catalog.db"))

# uvicorn bind address
HOST = os.getenv("CATALOG_HOST", "127.0.0.1")
PORT = int(os.getenv("CATALOG_PORT", "8085"))

LOG_LEVEL = os.getenv("CATALOG_LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [o.strip() for o in os.getenv("CATALOG_CORS_ORIGINS", "*").split(",") if o.strip()]

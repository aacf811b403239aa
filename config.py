"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── Database ──────────────────────────────────────────────
# DSN handed verbatim to the driver's connect(); empty means "not configured".
DB_CONNECTION_STRING: str = os.getenv("DB_CONNECTION_STRING", "")

# Maximum number of idle connections kept by the pool.
DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", str(os.cpu_count() or 1)))

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

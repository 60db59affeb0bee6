import os
from dotenv import load_dotenv

# Load .env (VS Code terminals sometimes don't inject env vars)
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL")

CRON_SECRET = os.getenv("CRON_SECRET") or None

COUPON_SCHEDULER_ENABLED = _flag("COUPON_SCHEDULER_ENABLED", "true")
COUPON_STATUS_INTERVAL_MINUTES = float(os.getenv("COUPON_STATUS_INTERVAL_MINUTES", "30"))
COUPON_STATUS_LOCK_TIMEOUT_SECONDS = float(os.getenv("COUPON_STATUS_LOCK_TIMEOUT_SECONDS", "60"))

DB_POOL_TIMEOUT_SECONDS = int(os.getenv("DB_POOL_TIMEOUT_SECONDS", "30"))
DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "30000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

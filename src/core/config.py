import os


def _env_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value in (None, ""):
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Database configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./rental_inventory.db")
SQL_ECHO = _env_bool("SQL_ECHO")
# Seconds a SQLite writer waits for another writer's transaction to finish
SQLITE_BUSY_TIMEOUT = float(os.getenv("SQLITE_BUSY_TIMEOUT", "15"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Server
APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
APP_PORT = int(os.getenv("APP_PORT", "8000"))

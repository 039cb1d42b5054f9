# padel_league/config.py
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./padel.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# League-level defaults; each League row can override them.
DEFAULT_POINTS_PER_WIN = int(os.getenv("DEFAULT_POINTS_PER_WIN", "2"))
DEFAULT_POINTS_PER_LOSS = int(os.getenv("DEFAULT_POINTS_PER_LOSS", "0"))


def is_testing() -> bool:
    return os.getenv("TESTING", "0") == "1"

# Responses kept by the idempotency replay cache before the oldest are dropped
IDEMPOTENCY_CACHE_SIZE = int(os.getenv("IDEMPOTENCY_CACHE_SIZE", "1024"))

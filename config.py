from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    database_url: str
    database_name: str
    log_level: str

    # Change streams are polled with try_next(); this bounds unsubscribe latency
    watch_poll_seconds: float

    port: int
    seed_count: int


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name, default)
    if v is None:
        return None
    v = v.strip()
    return v if v else default


def get_settings() -> Settings:
    """
    Centralized config: this is the ONLY place env vars are read.
    - Loads `.env` if present (local dev)
    - Real environment variables win over `.env` values
    """
    load_dotenv(override=False)

    return Settings(
        database_url=_getenv("DATABASE_URL", "mongodb://localhost:27017") or "",
        database_name=_getenv("DATABASE_NAME", "restaurants") or "",
        log_level=(_getenv("LOG_LEVEL", "INFO") or "INFO").upper(),
        watch_poll_seconds=float(_getenv("WATCH_POLL_SECONDS", "0.5") or "0.5"),
        port=int(_getenv("PORT", "8000") or "8000"),
        seed_count=int(_getenv("SEED_COUNT", "20") or "20"),
    )

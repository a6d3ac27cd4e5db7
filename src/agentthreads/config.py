"""Settings loaded from the environment (and a local .env file)."""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:3000"


def _as_int(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _as_float(raw: str | None, default: float) -> float:
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    work_dir: str | None = None
    default_model: str = "claude-sonnet-4-5"
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = tuple(DEFAULT_CORS_ORIGINS.split(","))
    event_buffer_size: int = 500
    heartbeat_seconds: float = 30.0


def load_settings() -> Settings:
    load_dotenv(override=False)
    cors = os.getenv("CORS_ORIGINS") or DEFAULT_CORS_ORIGINS
    return Settings(
        work_dir=os.getenv("AGENTTHREADS_WORK_DIR") or None,
        default_model=os.getenv("AGENTTHREADS_DEFAULT_MODEL") or "claude-sonnet-4-5",
        log_level=(os.getenv("AGENTTHREADS_LOG_LEVEL") or "INFO").upper(),
        cors_origins=tuple(o.strip() for o in cors.split(",") if o.strip()),
        event_buffer_size=_as_int(os.getenv("AGENTTHREADS_EVENT_BUFFER"), 500),
        heartbeat_seconds=_as_float(os.getenv("AGENTTHREADS_HEARTBEAT_SECONDS"), 30.0),
    )


def configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level)

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional


def _split_csv(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _as_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value else default
    except ValueError:
        return default


CORS_ORIGINS = _split_csv(os.environ.get("CHART_API_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"))
SEED_PATH: Optional[Path] = Path(os.environ["CHART_API_SEED_PATH"]) if os.environ.get("CHART_API_SEED_PATH") else None
LOG_LEVEL = os.environ.get("CHART_API_LOG_LEVEL", "INFO").upper()
HOST = os.environ.get("CHART_API_HOST", "127.0.0.1")
PORT = _as_int(os.environ.get("CHART_API_PORT"), 8000)
USER_HEADER = os.environ.get("CHART_API_USER_HEADER", "X-User")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_API_URL = "https://student-backend-api-fnlo.onrender.com"

HEALTH_INTERVAL_SECONDS = 20.0
HISTORY_LIMIT = 20
HISTORY_KEY = "pred_history"


@dataclass(frozen=True)
class Config:
    # Remote service
    api_base: str = DEFAULT_API_URL
    request_timeout: Optional[float] = None

    # Health polling
    health_interval: float = HEALTH_INTERVAL_SECONDS

    # History
    history_dir: Path = Path(".pass_predictor")
    history_key: str = HISTORY_KEY
    history_limit: int = HISTORY_LIMIT

    # Logging
    log_level: str = "INFO"


def _read_timeout(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"API_TIMEOUT must be a number of seconds, got {value!r}") from None


def load_config() -> Config:
    """Read settings from the environment once at startup."""
    return Config(
        api_base=(os.getenv("API_URL") or DEFAULT_API_URL).rstrip("/"),
        request_timeout=_read_timeout(os.getenv("API_TIMEOUT")),
        history_dir=Path(os.getenv("PRED_HISTORY_DIR", ".pass_predictor")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

# seafood_pos/config.py

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    timeout_seconds: float
    dashboard_refresh_seconds: int
    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    return Settings(
        api_base_url=os.getenv("SEAFOOD_API_URL", "http://localhost:8003").rstrip("/"),
        timeout_seconds=float(os.getenv("API_TIMEOUT_SECONDS", "15")),
        dashboard_refresh_seconds=int(os.getenv("DASHBOARD_REFRESH_SECONDS", "30")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def setup_logging() -> None:
    """
    Configure the root logger once per process. Streamlit re-executes every
    page script on each interaction, so repeated calls must be no-ops.
    """
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(get_settings().log_level)
        return
    logging.basicConfig(level=get_settings().log_level, format=LOG_FORMAT)

"""Service configuration.

Settings come from environment variables, optionally loaded from a .env
file at the project root:
- PRODUCER_DB_PATH: SQLite catalogue path (default: producers.db)
- LOG_LEVEL: Logging level name (default: INFO)
- LOG_JSON: "1"/"true" for JSON log lines
- API_HOST / API_PORT: Bind address for the API server
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Load .env file if it exists
from dotenv import load_dotenv
PROJECT_ROOT = Path(__file__).resolve().parents[1]
env_path = PROJECT_ROOT / ".env"
if env_path.exists():
    load_dotenv(env_path)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings for the resolver service."""
    producer_db_path: Path
    log_level: int = logging.INFO
    log_json: bool = False
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        level_name = os.getenv("LOG_LEVEL", "INFO").upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            level = logging.INFO

        return cls(
            producer_db_path=Path(os.getenv("PRODUCER_DB_PATH", str(PROJECT_ROOT / "producers.db"))),
            log_level=level,
            log_json=_env_bool("LOG_JSON"),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("API_PORT", "8000")),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide settings (read from the environment once)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None

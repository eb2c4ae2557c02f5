"""
Darts Scorer - Application Settings

Loads configuration from environment variables using Pydantic Settings.
"""

import logging
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

PLAYER_ID_FILE = "player-id"


def load_player_id(storage_dir: Path) -> str:
    """Player id stored under `storage_dir`, created on first use.

    The id keys persisted snapshots and stamps relayed events, so it must
    survive restarts.
    """
    path = storage_dir / PLAYER_ID_FILE
    try:
        stored = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        stored = ""
    if stored:
        return stored

    player_id = str(uuid.uuid4())
    try:
        storage_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(player_id, encoding="utf-8")
    except OSError:
        logger.exception("Could not store player id in %s", path)
    return player_id


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase (online play and remote persistence only)
    supabase_url: str | None = None
    supabase_anon_key: str | None = None

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # Persistence
    persistence_backend: Literal["local", "supabase"] = "local"
    storage_dir: Path = Path(".darts")

    # Identity stamped on relayed events; read from storage_dir if unset
    player_id: str | None = None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @model_validator(mode="after")
    def _ensure_player_id(self) -> "Settings":
        if not self.player_id:
            self.player_id = load_player_id(self.storage_dir)
        return self

    @property
    def online_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached singleton settings instance."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured log level to the root logger."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

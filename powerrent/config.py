# powerrent/config.py
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    """Configuration lue depuis l'environnement (préfixe POWERRENT_) ou un fichier .env."""

    data_dir: Path = Field(default=Path("data"))
    backup_enabled: bool = Field(default=True)
    backup_keep: int = Field(default=5, ge=0)
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="POWERRENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """À appeler par l'application hôte ; la librairie ne configure rien à l'import."""
    name = (level or get_settings().log_level).upper()
    level_no = getattr(logging, name, logging.INFO)
    logging.basicConfig(level=level_no, format=LOG_FORMAT)
    logging.getLogger("powerrent").setLevel(level_no)

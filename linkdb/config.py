from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from LINKDB_* environment variables (or a .env file)."""

    model_config = SettingsConfigDict(
        env_prefix="LINKDB_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    datastore: Path = Path("data/datastore.php")
    cache_dir: Path = Path("cache")
    hide_public_links: bool = False
    api_token: Optional[str] = None  # None: nobody can log in
    host: str = "127.0.0.1"
    port: int = 8765
    fetch_titles: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()

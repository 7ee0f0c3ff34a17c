"""Application settings loaded from the environment."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Storage
    audio_output_dir: Path = Path("./data/audio")
    metadata_file: Path = Path("./data/episodes.json")
    max_episodes: int = Field(default=25, ge=1)
    lock_retries: int = Field(default=10, ge=1)
    lock_retry_delay: float = Field(default=0.1, ge=0)

    # Podcast feed
    base_url: str = "http://localhost:8000"
    podcast_title: str = "Text to Podcast"
    podcast_description: str = "Personal podcast feed for text content"
    podcast_author: str = "Podcast Generator"
    podcast_email: str = "noreply@example.com"
    podcast_language: str = "en"
    feed_cache_ttl: float = 300.0
    feed_episode_limit: int = 25

    # Synthesis
    tts_engine: str = "edge"
    default_voice: str = "neutral-wavenet"
    regular_limit: int = Field(default=4500, gt=0)
    long_form_limit: int = Field(default=1_000_000, gt=0)
    synthesis_timeout: float = Field(default=60.0, gt=0)


@lru_cache
def get_settings() -> Settings:
    return Settings()

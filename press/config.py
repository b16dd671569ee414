"""Application configuration via environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    debug: bool = False
    environment: str = "development"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:4321",
        "http://localhost:8000",
    ]

    # Content
    content_dir: str = "content"
    site_url: str = "http://localhost:4321"
    site_name: str = "Article Press"

    # Fenced code blocks must be tagged with one of these
    allowed_code_languages: list[str] = [
        "javascript",
        "typescript",
        "kotlin",
        "bash",
        "json",
        "text",
    ]

    # Pygments highlighting for fenced code (plain <pre><code> when off)
    highlight_code: bool = False

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()

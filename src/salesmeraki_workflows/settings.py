"""Environment-driven settings via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings

__all__ = ["ClientSettings", "ServiceSettings"]


class ClientSettings(BaseSettings):
    """Settings for the sync client (``SALESMERAKI_`` prefix)."""

    api_base_url: str = "http://localhost:8000/api"
    request_timeout: float = 10.0
    cache_path: Path = Path("~/.salesmeraki/workflows-cache.json")

    model_config = {"env_prefix": "SALESMERAKI_", "env_file": ".env", "extra": "ignore"}


class ServiceSettings(BaseSettings):
    """Settings for the mock API service (``SALESMERAKI_API_`` prefix).

    ``api_tokens`` maps accepted bearer tokens to team member ids, e.g.
    ``SALESMERAKI_API_API_TOKENS='{"s3cret": "1"}'``. When empty, any token
    is accepted as a demo user.
    """

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    seed_demo_data: bool = True
    api_tokens: dict[str, str] = {}

    model_config = {"env_prefix": "SALESMERAKI_API_", "env_file": ".env", "extra": "ignore"}

"""Controller settings via pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from chalsync.challenges.schemas import Behavior, DecayFunction


class Settings(BaseSettings):
    """Controller configuration loaded from environment variables with CHALSYNC_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="CHALSYNC_",
        env_file=".env",
        case_sensitive=False,
    )

    # --- CTFd ---
    ctfd_url: str = "http://localhost:8000"
    ctfd_api_key: str = ""
    request_timeout_seconds: float = 10.0
    http_retries: int = 0
    verify_tls: bool = True

    # --- Field policy defaults ---
    default_function: DecayFunction = DecayFunction.LOGARITHMIC
    default_behavior: Behavior = Behavior.HIDDEN

    # --- State ---
    state_file: str = "chalsync.state.json"

    # --- Logging ---
    log_level: str = "INFO"
    log_format: str = "console"


@lru_cache
def get_settings() -> Settings:
    """Get cached controller settings."""
    return Settings()

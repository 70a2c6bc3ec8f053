"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file).

    Variables carry the ``PERIOD_CALCULATOR_`` prefix, e.g.
    ``PERIOD_CALCULATOR_LOG_LEVEL=DEBUG``.
    """

    # --- App ---
    app_name: str = "Period Calculator"
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Calculator ---
    calculator_config_path: str | None = None  # None = bundled calculator_config.yaml

    model_config = {
        "env_prefix": "PERIOD_CALCULATOR_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    return Settings()

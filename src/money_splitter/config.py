"""Configuration management for Money Splitter."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MONEY_SPLITTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # The person using the app
    current_user_id: str = "current_user"
    current_user_name: str = "Me"

    # Display settings
    currency_symbol: str = "Rs."

    # Storage
    use_database: bool = True  # False keeps everything in memory
    database_path: Path = Path.home() / ".money_splitter" / "money_splitter.db"

    def __init__(self, **kwargs):
        """Initialize settings and create database directory if needed."""
        super().__init__(**kwargs)
        if self.use_database and str(self.database_path) != ":memory:":
            self.database_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the MONEY_SPLITTER_* variables "
            f"in your environment or .env file.\n"
            f"Error: {e}"
        ) from e

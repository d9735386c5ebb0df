"""Application settings loaded from .env file."""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigurationError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # SQL Server (ODBC connection string without a Database= key)
    SQLSERVER_CONNECTION_STRING: str = ""

    # OpenAI-compatible chat completions
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TIMEOUT_SECONDS: int = 60
    LLM_MAX_TOKENS: int = 2000
    LLM_TEMPERATURE: float = 0.0
    LLM_TOP_P: float = 0.95
    LLM_MAX_RETRIES: int = Field(default=3, ge=1)

    # Schema cache
    SCHEMA_CACHE_PATH: str = "schema_cache.json"

    # Result display
    RESULT_MAX_CELL_WIDTH: int = 40

    # Logging
    LOG_LEVEL: str = "WARNING"

    def require_credentials(self) -> None:
        """Raise ConfigurationError unless both the connection string and API key are set."""
        if not self.SQLSERVER_CONNECTION_STRING.strip():
            raise ConfigurationError(
                "SQLSERVER_CONNECTION_STRING is not set. Add it to your environment or .env file."
            )
        if not self.OPENAI_API_KEY.strip():
            raise ConfigurationError("OPENAI_API_KEY is not set. Add it to your environment or .env file.")


settings = Settings()

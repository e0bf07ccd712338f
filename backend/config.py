"""Application settings loaded from .env file."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Storage
    DATABASE_URL: str = "sqlite:///./game_insights.db"

    # Ollama (optional LLM column analysis)
    OLLAMA_HOST: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "qwen2.5-coder:3b"
    OLLAMA_TIMEOUT_SECONDS: int = 120
    LLM_COLUMN_ANALYSIS: bool = False

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:5173"

    # Uploads
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024
    ALLOWED_EXTENSIONS: str = "csv,json"

    # Alert delivery
    NOTIFY_TIMEOUT_SECONDS: int = 10

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def allowed_extension_list(self) -> list[str]:
        return [e.strip().lower() for e in self.ALLOWED_EXTENSIONS.split(",") if e.strip()]


settings = Settings()

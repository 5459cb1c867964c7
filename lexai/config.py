from pydantic_settings import BaseSettings, SettingsConfigDict
from lexai.utils.logging import logger


class Settings(BaseSettings):
    database_url: str
    openai_api_key: str
    jwt_secret: str
    jwt_algo: str = "HS256"
    token_expire_days: int = 7

    chat_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"
    llm_temperature: float = 0.7
    llm_timeout: float = 60.0

    chunk_size: int = 1000
    chunk_overlap: int = 200
    top_k: int = 5
    max_upload_bytes: int = 10 * 1024 * 1024

    rate_limit: int = 10
    rate_limit_window: int = 60

    api_prefix: str = "/api"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore any truly extra env vars
    )


settings = Settings()
logger.info("Settings loaded successfully from .env")

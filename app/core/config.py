import json
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    env: Literal["dev", "prod"] = "dev"
    project_name: str = "Help Desk"
    api_prefix: str = "/api"

    # No default: the service refuses to boot without a database.
    database_url: str
    db_pool_size: int = 5
    db_max_overflow: int = 10
    redis_url: str = "redis://redis:6379/0"

    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    frontend_origins: list[str] = Field(default_factory=list)

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_chat_model: str = "gpt-4o"
    openai_embedding_model: str = "text-embedding-3-small"
    ai_timeout_ms: int = 30000
    ai_temperature: float = 0.7
    ai_max_tokens: int = 1000
    ai_context_articles: int = 3
    ai_history_messages: int = 16
    embedding_dimensions: int = 256

    realtime_broker: Literal["local", "redis"] = "local"
    realtime_channel: str = "helpdesk:rooms"

    seed_on_startup: bool = False

    @field_validator("frontend_origins", mode="before")
    @classmethod
    def parse_origins(cls, value: object) -> list[str]:
        def _normalize_origin(origin_value: object) -> str:
            origin = str(origin_value).strip()
            if not origin:
                return ""
            # Browser `Origin` header never includes a trailing slash.
            return origin.rstrip("/")

        if isinstance(value, str):
            if not value.strip():
                return []
            if value.strip().startswith("["):
                try:
                    parsed = json.loads(value)
                    if isinstance(parsed, list):
                        return [_normalize_origin(origin) for origin in parsed if _normalize_origin(origin)]
                except json.JSONDecodeError:
                    pass
            return [_normalize_origin(origin) for origin in value.split(",") if _normalize_origin(origin)]
        if isinstance(value, list):
            return [_normalize_origin(item) for item in value if _normalize_origin(item)]
        return []

    @model_validator(mode="after")
    def apply_frontend_origin_defaults(self) -> "Settings":
        if self.frontend_origins:
            self.frontend_origins = list(dict.fromkeys(self.frontend_origins))
            return self

        if self.env == "dev":
            self.frontend_origins = [
                "http://localhost:5173",
                "http://127.0.0.1:5173",
            ]
        else:
            self.frontend_origins = []
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

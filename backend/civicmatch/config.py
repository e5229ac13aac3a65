import json
from typing import Any, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MAPPING_STRATEGIES = ("scored", "keyword")


class Settings(BaseSettings):
    APP_NAME: str = "CivicMatch Terminology Service"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)
    API_RELOAD: bool = Field(default=True)

    DATABASE_URL: str = Field(default="sqlite:///./civicmatch.db")
    DB_ECHO: bool = Field(default=False)
    DB_POOL_PRE_PING: bool = Field(default=True)

    CORS_ORIGINS: str = Field(default="http://localhost:5173")

    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: Optional[str] = Field(default=None)
    LOG_FORMAT: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # Terminology engine
    TAXONOMY_PATH: Optional[str] = Field(default=None)
    DEFAULT_MAPPING_STRATEGY: str = Field(default="scored")
    MEANINGFUL_SCORE_THRESHOLD: float = Field(default=1.0)
    MAX_KEYWORD_TERMS: int = Field(default=3, ge=1)
    MAX_PRIORITY_LENGTH: int = Field(default=250, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("DEFAULT_MAPPING_STRATEGY", mode="before")
    @classmethod
    def validate_strategy(cls, v: Any) -> str:
        name = str(v or "scored").strip().lower()
        if name not in MAPPING_STRATEGIES:
            raise ValueError(f"DEFAULT_MAPPING_STRATEGY must be one of {', '.join(MAPPING_STRATEGIES)}")
        return name

    @field_validator("TAXONOMY_PATH", mode="before")
    @classmethod
    def blank_path_is_unset(cls, v: Any) -> Any:
        if v is None or not str(v).strip():
            return None
        return str(v).strip()

    @property
    def cors_origins_list(self) -> List[str]:
        raw = (self.CORS_ORIGINS or "").strip()
        if not raw:
            return ["http://localhost:5173"]

        if raw.startswith("["):
            try:
                origins = json.loads(raw)
                if isinstance(origins, list):
                    return [str(x) for x in origins if str(x).strip()]
            except json.JSONDecodeError:
                pass

        return [x.strip() for x in raw.split(",") if x.strip()]

    def is_production(self) -> bool:
        return str(self.ENVIRONMENT).lower() in ("production", "prod")

    def is_development(self) -> bool:
        return str(self.ENVIRONMENT).lower() in ("development", "dev")

    def is_testing(self) -> bool:
        return str(self.ENVIRONMENT).lower() in ("testing", "test")

    @property
    def expose_error_details(self) -> bool:
        # never leak exception text from a production deployment
        return bool(self.DEBUG) and not self.is_production()

    @property
    def reload_enabled(self) -> bool:
        return bool(self.API_RELOAD) and self.is_development()


settings = Settings()


__all__ = ["settings", "Settings", "MAPPING_STRATEGIES"]

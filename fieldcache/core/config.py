"""Environment-driven configuration with Pydantic v2."""

from typing import Literal, Optional
from urllib.parse import urlparse
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from fieldcache.constants import DEFAULT_REDIS_URL, REDIS_URL_SCHEMES


class Settings(BaseSettings):
    """Cache settings driven entirely by environment variables."""

    # Redis Connection (hosted override first, then generic URL, then localhost)
    redistogo_url: Optional[str] = Field(default=None, env="REDISTOGO_URL")
    redis_url: Optional[str] = Field(default=None, env="REDIS_URL")
    redis_db_num: int = Field(default=0, env="REDIS_DB_NUM", ge=0, le=15)
    redis_socket_timeout: float = Field(default=5.0, env="REDIS_SOCKET_TIMEOUT", gt=0)

    # Cache Behaviour
    cache_single_flight: bool = Field(default=False, env="CACHE_SINGLE_FLIGHT")

    # Database Configuration (entity loader for read-through by identifier)
    database_url: str = Field(default="sqlite://", env="DATABASE_URL")
    database_echo: bool = Field(default=False, env="DATABASE_ECHO")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", env="LOG_FORMAT")
    log_file: Optional[str] = Field(default=None, env="LOG_FILE")

    @field_validator("redistogo_url", "redis_url")
    @classmethod
    def validate_redis_url(cls, v):
        """Reject URLs that redis-py cannot connect to."""
        if v and urlparse(v).scheme not in REDIS_URL_SCHEMES:
            raise ValueError(f"Unsupported Redis URL scheme: {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        return v.upper()

    @property
    def resolved_redis_url(self) -> str:
        """Connection URL in priority order: REDISTOGO_URL, REDIS_URL, localhost."""
        return self.redistogo_url or self.redis_url or DEFAULT_REDIS_URL

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "env_parse_none_str": "none",
    }

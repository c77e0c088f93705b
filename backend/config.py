"""
Process configuration loaded from environment variables (and a .env file)
"""
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env(key: str, default: str) -> str:
    value = os.getenv(key)
    return value if value else default


def _env_int(key: str, default: int) -> int:
    raw = _env(key, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


def _env_float(key: str, default: float) -> float:
    raw = _env(key, str(default))
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Config:
    """Settings for the API process"""
    database_url: str = 'postgresql://localhost/space'
    db_pool_min: int = 5
    db_pool_max: int = 60
    server_host: str = '0.0.0.0'
    server_port: int = 5000
    spacex_url: str = 'https://api.spacexdata.com/v4'
    spacex_timeout: float = 15.0
    request_timeout: float = 30.0
    page_default_limit: int = 10
    page_max_limit: int = 100
    log_level: str = 'INFO'
    log_format: str = 'text'

    @classmethod
    def from_env(cls) -> "Config":
        """Build configuration from the environment, falling back to defaults"""
        config = cls(
            database_url=_env('DATABASE_URL', cls.database_url),
            db_pool_min=_env_int('DB_POOL_MIN', cls.db_pool_min),
            db_pool_max=_env_int('DB_POOL_MAX', cls.db_pool_max),
            server_host=_env('SERVER_HOST', cls.server_host),
            server_port=_env_int('SERVER_PORT', cls.server_port),
            spacex_url=_env('SPACEX_URL', cls.spacex_url).rstrip('/'),
            spacex_timeout=_env_float('SPACEX_TIMEOUT', cls.spacex_timeout),
            request_timeout=_env_float('REQUEST_TIMEOUT', cls.request_timeout),
            page_default_limit=_env_int('PAGE_DEFAULT_LIMIT', cls.page_default_limit),
            page_max_limit=_env_int('PAGE_MAX_LIMIT', cls.page_max_limit),
            log_level=_env('LOG_LEVEL', cls.log_level),
            log_format=_env('LOG_FORMAT', cls.log_format),
        )
        if config.page_default_limit <= 0 or config.page_max_limit < config.page_default_limit:
            raise ValueError("PAGE_DEFAULT_LIMIT must be positive and not exceed PAGE_MAX_LIMIT")
        return config

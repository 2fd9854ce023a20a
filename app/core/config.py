"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class RedisSettings(BaseSettings):
    """Key-value backend configuration."""

    url: str = Field(
        "redis://localhost:6379",
        description="Redis connection URL",
    )
    backend: str = Field(
        "redis",
        description="Key-value backend: redis or memory (single process only)",
    )
    socket_timeout_seconds: float = Field(
        5.0,
        description="Socket timeout applied to every Redis command",
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class CacheSettings(BaseSettings):
    """TTLs used by the cache-aside layer and its callers."""

    default_ttl_seconds: int = Field(
        300,
        description="TTL applied by get_or_set when the caller passes none",
        ge=1,
    )
    btc_price_ttl_seconds: int = Field(60, description="BTC price cache TTL", ge=1)
    balance_ttl_seconds: int = Field(30, description="Wallet balance cache TTL", ge=1)
    vault_info_ttl_seconds: int = Field(300, description="Vault APY cache TTL", ge=1)
    borrow_position_ttl_seconds: int = Field(
        30, description="Borrow position cache TTL", ge=1
    )

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Fixed-window rate limiting configuration."""

    enabled: bool = Field(True, description="Enable per-IP rate limiting")
    fail_open: bool = Field(
        True,
        description="Allow requests through when the key-value backend fails",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    api_window_ms: int = Field(
        15 * 60 * 1000,
        description="Window length for general API routes in milliseconds",
        ge=1000,
    )
    api_max: int = Field(100, description="Max requests per window for API routes", ge=1)
    strict_window_ms: int = Field(
        15 * 60 * 1000,
        description="Window length for sensitive routes in milliseconds",
        ge=1000,
    )
    strict_max: int = Field(5, description="Max requests per window for sensitive routes", ge=1)

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class MezoSettings(BaseSettings):
    """Upstream endpoints used for balance and price lookups."""

    rpc_url: str = Field(
        "https://rpc.test.mezo.org",
        description="JSON-RPC endpoint of the Mezo network",
    )
    musd_token_address: str = Field(
        "0x0000000000000000000000000000000000000000",
        description="MUSD ERC-20 token contract",
    )
    vault_contract_address: str = Field(
        "0x0000000000000000000000000000000000000000",
        description="Savings vault contract",
    )
    borrow_contract_address: str = Field(
        "",
        description="Borrower operations contract; borrow lookups fail until set",
    )
    price_api_url: str = Field(
        "https://api.coingecko.com/api/v3",
        description="Base URL of the CoinGecko-compatible price API",
    )
    timeout_seconds: float = Field(10.0, description="Upstream request timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="MEZO_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    service_name: str = Field("BitSave API", description="Name reported by /health")
    cors_origin: str = Field(
        "http://localhost:3000",
        description="Allowed CORS origin for the web frontend",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    mezo: MezoSettings = Field(default_factory=MezoSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()

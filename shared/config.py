"""
Shared configuration management for the Market Insights API gateway.
"""

from typing import TYPE_CHECKING

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError
from shared.retry import RetryPolicy

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from api_gateway.models import CacheConfig, GatewayConfig


class GatewaySettings(BaseSettings):
    """Environment-driven gateway settings (``MARKET_GATEWAY_*``)."""

    model_config = SettingsConfigDict(
        env_prefix="MARKET_GATEWAY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Backend
    base_url: str = Field(default="https://osbackend-zl1h.onrender.com")
    timeout: float = Field(default=30.0)
    debug: bool = Field(default=False)
    health_path: str = Field(default="/health")

    # Retries
    retry_enabled: bool = Field(default=True)
    max_retries: int = Field(default=3)
    retry_delay: float = Field(default=1.0)
    max_retry_delay: float = Field(default=30.0)

    # Response cache
    cache_enabled: bool = Field(default=True)
    cache_ttl: float = Field(default=60.0)
    cache_max_size: int = Field(default=100)

    def to_gateway_config(self) -> "GatewayConfig":
        """Translate settings into a ``GatewayConfig``."""
        from api_gateway.models import GatewayConfig

        if not self.base_url:
            raise ConfigurationError("base_url must not be empty", details={"env": self.env})

        retry_policy = None
        if self.retry_enabled:
            retry_policy = RetryPolicy(
                max_retries=self.max_retries,
                retry_delay=self.retry_delay,
                max_retry_delay=self.max_retry_delay,
            )

        return GatewayConfig(
            base_url=self.base_url,
            timeout=self.timeout,
            debug=self.debug,
            retry_policy=retry_policy,
        )

    def to_cache_config(self) -> "CacheConfig":
        """Translate settings into a ``CacheConfig``."""
        from api_gateway.models import CacheConfig

        return CacheConfig(
            enabled=self.cache_enabled,
            ttl=self.cache_ttl,
            max_size=self.cache_max_size,
        )


def get_settings(**overrides) -> GatewaySettings:
    """Load gateway settings from the environment, applying ``overrides``."""
    return GatewaySettings(**overrides)

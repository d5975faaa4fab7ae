"""Application configuration using Pydantic Settings with YAML support.

This module provides centralized configuration management with:
- YAML-based configuration files organized by domain
- Environment-specific overrides (local, test, development, staging, production)
- Environment variable loading for secrets
- Type validation and coercion
- Computed properties for derived values
- Caching for performance
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_source import MultiYamlConfigSettingsSource


if TYPE_CHECKING:
    from pydantic_settings import PydanticBaseSettingsSource


class AttemptStoreBackend(StrEnum):
    """Where pending login attempts are kept between redirect and callback."""

    MEMORY = "memory"
    REDIS = "redis"


class LinkStoreBackend(StrEnum):
    """Where user links and local users are persisted."""

    MEMORY = "memory"
    POSTGRES = "postgres"


def parse_list(v: str | list[str]) -> list[str]:
    """Parse comma-separated string or list into list of strings."""
    if isinstance(v, str):
        return [x.strip() for x in v.split(",") if x.strip()]
    return v


# =============================================================================
# Nested Configuration Models (from YAML)
# =============================================================================


class AppSettings(BaseModel):
    """Application identity settings."""

    name: str = "OpenID Connect Login Service"
    version: str = "0.1.0"
    debug: bool = False


class ServerSettings(BaseModel):
    """Server configuration settings."""

    host: str = "127.0.0.1"
    port: int = 8000


class ApiSettings(BaseModel):
    """API configuration settings."""

    v1_prefix: str = "/api/v1/openid-connect"
    cors_origins: Annotated[list[str], BeforeValidator(parse_list)] = []


class ProviderSettings(BaseModel):
    """One configured OpenID Connect client.

    Endpoints left unset are filled from the family presets or, when
    ``discovery_url`` is set, from the provider's discovery document.
    """

    id: str
    label: str = ""
    family: str = "generic"
    client_id: str = ""
    authorization_endpoint: str | None = None
    token_endpoint: str | None = None
    userinfo_endpoint: str | None = None
    jwks_uri: str | None = None
    issuer: str | None = None
    discovery_url: str | None = None
    scopes: list[str] = ["openid", "email", "profile"]
    use_pkce: bool = True


class OpenIDConnectSettings(BaseModel):
    """Settings administered through the module's settings form.

    ``clients_enabled``, ``always_save_userinfo``, ``user_pictures`` and
    ``userinfo_mapping`` mirror the administrative toggles; the remaining
    values tune the login flow itself.
    """

    providers: list[ProviderSettings] = []
    clients_enabled: Annotated[list[str], BeforeValidator(parse_list)] = []
    always_save_userinfo: bool = True
    user_pictures: bool = False
    # Local attribute name -> claim name, applied in order
    userinfo_mapping: dict[str, str] = {"email": "email", "name": "name", "timezone": "zoneinfo"}

    public_url: str = "http://127.0.0.1:8000"
    post_login_redirect: str = "/"
    attempt_ttl: int = 600
    clock_skew: int = 60
    http_timeout: float = 10.0
    jwks_cache_ttl: int = 3600
    jwks_min_refresh_interval: int = 60

    attempt_store: AttemptStoreBackend = AttemptStoreBackend.MEMORY
    link_store: LinkStoreBackend = LinkStoreBackend.MEMORY


class SessionSettings(BaseModel):
    """Session cookie settings."""

    cookie_name: str = "oidc_session"
    ttl_minutes: int = 480
    algorithm: str = "HS256"
    secure_cookie: bool = True


class RedisSettings(BaseModel):
    """Redis configuration settings."""

    host: str = "localhost"
    port: int = 6379
    user: str | None = None  # Redis ACL username (Redis 6.0+)
    db: int = 0
    max_connections: int = 20


class DatabaseSettings(BaseModel):
    """PostgreSQL database configuration settings."""

    host: str = "localhost"
    port: int = 5432
    name: str = "openid_connect"
    user: str | None = None
    min_pool_size: int = 2
    max_pool_size: int = 10
    command_timeout: float = 10.0
    ssl: bool = False


class RateLimitingSettings(BaseModel):
    """Rate limiting configuration."""

    enabled: bool = True
    storage_uri: str = "memory://"
    default: str = "100/minute"
    login: str = "20/minute"


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "json"


class TracingSettings(BaseModel):
    """Tracing configuration settings."""

    enabled: bool = False
    otlp_endpoint: str | None = None


class MetricsSettings(BaseModel):
    """Metrics configuration settings."""

    enabled: bool = True


class ObservabilitySettings(BaseModel):
    """Observability configuration settings."""

    tracing: TracingSettings = TracingSettings()
    metrics: MetricsSettings = MetricsSettings()


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """Application settings with YAML + environment variable support.

    Configuration is loaded from multiple sources with the following priority
    (highest to lowest):
    1. Environment variables
    2. .env file (secrets only)
    3. Environment-specific YAML files (config/environments/{APP_ENV}/)
    4. Base YAML files (config/base/)
    5. Default values in code

    Environment variables can override any setting using the nested delimiter '__'.
    For example: OPENID_CONNECT__CLOCK_SKEW=30 overrides openid_connect.clock_skew.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
        env_nested_delimiter="__",
    )

    APP_ENV: str = "development"

    app: AppSettings = AppSettings()
    server: ServerSettings = ServerSettings()
    api: ApiSettings = ApiSettings()
    openid_connect: OpenIDConnectSettings = OpenIDConnectSettings()
    session: SessionSettings = SessionSettings()
    redis: RedisSettings = RedisSettings()
    database: DatabaseSettings = DatabaseSettings()
    rate_limiting: RateLimitingSettings = RateLimitingSettings()
    logging: LoggingSettings = LoggingSettings()
    observability: ObservabilitySettings = ObservabilitySettings()

    # =========================================================================
    # Secrets (from .env only - never in YAML)
    # =========================================================================
    SESSION_SECRET_KEY: str = ""
    REDIS_PASSWORD: str = ""
    DATABASE_PASSWORD: str = ""
    # Provider id -> client secret, e.g. OIDC_CLIENT_SECRETS='{"google": "..."}'
    OIDC_CLIENT_SECRETS: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings loading order.

        Priority (highest to lowest):
        1. init_settings - Values passed to Settings()
        2. env_settings - Environment variables
        3. dotenv_settings - .env file (secrets)
        4. yaml_settings - YAML files (base + environment)
        5. file_secret_settings - Docker secrets
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            MultiYamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    # =========================================================================
    # Computed Fields
    # =========================================================================

    @property
    def callback_base_url(self) -> str:
        """Absolute URL under which the provider callbacks are mounted."""
        base = self.openid_connect.public_url.rstrip("/")
        return f"{base}{self.api.v1_prefix}/callback"

    def callback_url(self, provider_id: str) -> str:
        """Redirect URI registered with the provider for ``provider_id``."""
        return f"{self.callback_base_url}/{provider_id}"

    @property
    def redis_url(self) -> str:
        """Build Redis connection URL with optional authentication.

        URL format: redis://[user:password@]host:port/db
        """
        auth_part = ""
        if self.redis.user and self.REDIS_PASSWORD:
            auth_part = f"{self.redis.user}:{self.REDIS_PASSWORD}@"
        elif self.REDIS_PASSWORD:
            auth_part = f":{self.REDIS_PASSWORD}@"
        elif self.redis.user:
            auth_part = f"{self.redis.user}@"

        return f"redis://{auth_part}{self.redis.host}:{self.redis.port}/{self.redis.db}"

    # =========================================================================
    # Environment Helpers
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.APP_ENV == "production"

    @property
    def is_non_production(self) -> bool:
        """Check if running in a non-production environment."""
        return self.APP_ENV in ("local", "test", "development")

    @property
    def is_testing(self) -> bool:
        """Check if running in test environment."""
        return self.APP_ENV == "test"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Using lru_cache ensures settings are only loaded once,
    improving performance and consistency.
    """
    return Settings()

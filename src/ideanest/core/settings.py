"""Application settings and configuration.

This module defines all configuration options for the IdeaNest API.
Settings are loaded from environment variables (or a ``.env`` file) with
sensible defaults for local development.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Secrets for signing access and refresh tokens are required; everything
    else has a development default.
    """

    # Application metadata
    app_name: str = Field(default="IdeaNest API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    api_prefix: str = Field(default="/api/v1", alias="API_PREFIX")

    # Database configuration
    database_url: str = Field(default="sqlite:///./ideanest.db", alias="DATABASE_URL")
    db_pool_size: int = Field(default=10, alias="DB_POOL_SIZE")
    db_pool_timeout: float = Field(default=30.0, alias="DB_POOL_TIMEOUT")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Redis cache
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    cache_enabled: bool = Field(default=True, alias="CACHE_ENABLED")
    cache_prefix: str = Field(default="ideanest", alias="CACHE_PREFIX")
    cache_default_ttl: int = Field(default=300, alias="CACHE_DEFAULT_TTL")
    cache_socket_timeout: float = Field(default=0.5, alias="CACHE_SOCKET_TIMEOUT")

    # JWT authentication settings
    jwt_access_secret: str = Field(alias="JWT_ACCESS_SECRET")
    jwt_refresh_secret: str = Field(alias="JWT_REFRESH_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=15, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    refresh_token_expire_days: int = Field(default=7, alias="REFRESH_TOKEN_EXPIRE_DAYS")
    jwt_issuer: str = Field(default="IdeaNest", alias="JWT_ISSUER")
    jwt_audience: str = Field(default="idea-app-users", alias="JWT_AUDIENCE")
    max_refresh_sessions: int = Field(default=5, alias="MAX_REFRESH_SESSIONS")

    # Refresh token cookie
    refresh_cookie_name: str = Field(default="refreshToken", alias="REFRESH_COOKIE_NAME")
    cookie_secure: bool = Field(default=False, alias="COOKIE_SECURE")
    cookie_samesite: str = Field(default="strict", alias="COOKIE_SAMESITE")
    cookie_domain: str | None = Field(default=None, alias="COOKIE_DOMAIN")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "Authorization"],
        alias="CORS_ALLOW_HEADERS",
    )

    # Content rules
    duplicate_idea_window_minutes: int = Field(default=60, alias="DUPLICATE_IDEA_WINDOW_MINUTES")
    anonymous_like_retention_days: int = Field(default=30, alias="ANONYMOUS_LIKE_RETENTION_DAYS")

    # Trending scorer
    trending_time_window_hours: float = Field(default=24.0, alias="TRENDING_TIME_WINDOW_HOURS")
    trending_decay_factor: float = Field(default=0.8, alias="TRENDING_DECAY_FACTOR")
    trending_min_likes: int = Field(default=1, alias="TRENDING_MIN_LIKES")
    trending_limit: int = Field(default=20, alias="TRENDING_LIMIT")
    trending_recent_boost: float = Field(default=1.3, alias="TRENDING_RECENT_BOOST")
    trending_recent_hours: float = Field(default=2.0, alias="TRENDING_RECENT_HOURS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync driver URL for tooling such as Alembic."""
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+psycopg://", 1)
        return url

    @property
    def refresh_cookie_max_age(self) -> int:
        """Lifetime of the refresh cookie in seconds."""
        return self.refresh_token_expire_days * 24 * 60 * 60


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()  # type: ignore[call-arg]

"""Application settings and configuration.

This module defines all configuration options for the Trailpost core.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Trailpost", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(default="dev-secret-change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # Database configuration
    database_url: str = Field(default="sqlite:///./trailpost.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Flag reporting limits
    flag_rate_limit: int = Field(default=10, alias="FLAG_RATE_LIMIT")
    flag_rate_window_minutes: int = Field(default=60, alias="FLAG_RATE_WINDOW_MINUTES")
    flag_description_max_length: int = Field(
        default=1000,
        alias="FLAG_DESCRIPTION_MAX_LENGTH",
    )
    admin_notes_max_length: int = Field(default=1000, alias="ADMIN_NOTES_MAX_LENGTH")
    flags_default_page_size: int = Field(default=50, alias="FLAGS_DEFAULT_PAGE_SIZE")
    flags_max_page_size: int = Field(default=100, alias="FLAGS_MAX_PAGE_SIZE")
    flag_preview_length: int = Field(default=150, alias="FLAG_PREVIEW_LENGTH")
    flag_detail_preview_length: int = Field(default=500, alias="FLAG_DETAIL_PREVIEW_LENGTH")

    # Comment threads
    comment_max_length: int = Field(default=1000, alias="COMMENT_MAX_LENGTH")
    comments_default_page_size: int = Field(default=20, alias="COMMENTS_DEFAULT_PAGE_SIZE")
    comments_max_page_size: int = Field(default=100, alias="COMMENTS_MAX_PAGE_SIZE")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
        return self.effective_database_url


settings = Settings()

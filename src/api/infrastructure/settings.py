"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppwriteSettings(BaseSettings):
    """Appwrite backend connection settings.

    Environment variables:
        MURAI_APPWRITE_ENDPOINT: REST endpoint including /v1 (default: http://localhost/v1)
        MURAI_APPWRITE_PROJECT_ID: Appwrite project id
        MURAI_APPWRITE_API_KEY: Server API key
        MURAI_APPWRITE_JWT: Session JWT for user-scoped calls (optional)
        MURAI_APPWRITE_DATABASE_ID: Database holding the group collections
        MURAI_APPWRITE_GROUPS_COLLECTION_ID: Groups collection (default: groups)
        MURAI_APPWRITE_MEMBERSHIPS_COLLECTION_ID: Memberships collection (default: group_members)
        MURAI_APPWRITE_INVITE_REDIRECT_URL: Redirect url for team invites (default: http://localhost:8082)
        MURAI_APPWRITE_REQUEST_TIMEOUT_SECONDS: Per-request timeout (default: 10)
    """

    model_config = SettingsConfigDict(
        env_prefix="MURAI_APPWRITE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    endpoint: str = Field(
        default="http://localhost/v1",
        description="Appwrite REST endpoint",
    )
    project_id: str = Field(default="", description="Appwrite project id")
    api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Server API key",
    )
    jwt: SecretStr | None = Field(
        default=None,
        description="Session JWT used for current-user lookups",
    )
    database_id: str = Field(default="murai", description="Database id")
    groups_collection_id: str = Field(
        default="groups",
        description="Collection holding group records",
    )
    memberships_collection_id: str = Field(
        default="group_members",
        description="Collection holding membership records",
    )
    invite_redirect_url: str = Field(
        default="http://localhost:8082",
        description="Redirect url required by the team membership endpoint",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for each HTTP request",
        gt=0,
    )

    @model_validator(mode="after")
    def validate_credentials(self) -> "AppwriteSettings":
        """Require some credential when a project is configured."""
        if self.project_id and not (self.api_key.get_secret_value() or self.jwt):
            raise ValueError(
                "MURAI_APPWRITE_API_KEY or MURAI_APPWRITE_JWT must be set "
                f"for project {self.project_id}"
            )
        return self

    @property
    def base_url(self) -> str:
        """Endpoint without a trailing slash."""
        return self.endpoint.rstrip("/")


class GroupSettings(BaseSettings):
    """Group membership behaviour settings.

    Environment variables:
        MURAI_GROUPS_SHORT_CODE_LENGTH: Join code length (default: 6)
        MURAI_GROUPS_SHORT_CODE_MAX_ATTEMPTS: Short code allocation attempts (default: 10)
        MURAI_GROUPS_BEST_EFFORT_TIMEOUT_SECONDS: Bound on non-critical steps (default: 5)
    """

    model_config = SettingsConfigDict(
        env_prefix="MURAI_GROUPS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    short_code_length: int = Field(
        default=6,
        description="Length of generated join codes",
        ge=4,
        le=12,
    )
    short_code_max_attempts: int = Field(
        default=10,
        description="Attempts before short code allocation gives up",
        ge=1,
        le=100,
    )
    best_effort_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for team renames, compensations and re-invites",
        gt=0,
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="MURAI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Murai Groups", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Minimum log level")

    @property
    def appwrite(self) -> AppwriteSettings:
        """Get Appwrite settings."""
        return get_appwrite_settings()

    @property
    def groups(self) -> GroupSettings:
        """Get group settings."""
        return get_group_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_appwrite_settings() -> AppwriteSettings:
    """Get cached Appwrite settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return AppwriteSettings()


@lru_cache
def get_group_settings() -> GroupSettings:
    """Get cached group settings."""
    return GroupSettings()

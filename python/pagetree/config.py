"""Application settings loaded from environment variables.

Environment Configuration:
    PAGETREE_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: PostgreSQL connection string (required)
    LOG_JSON: Emit JSON logs (default true); false selects the console renderer

Hierarchy Configuration:
    TREE_DEFAULT_MAX_DEPTH: Depth used by tree reads when none is requested
    TREE_MAX_DEPTH_LIMIT: Largest max_depth a caller may request
    ANCESTOR_WALK_MAX_STEPS: Step ceiling for ancestor walks (cycle guard, breadcrumbs)

Listing Configuration:
    DEFAULT_PAGE_LIMIT: Page size when the caller gives none
    MAX_PAGE_LIMIT: Page sizes above this are clamped
"""

from enum import Enum
from functools import lru_cache
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - DATABASE_URL is always required
    - TREE_DEFAULT_MAX_DEPTH may not exceed TREE_MAX_DEPTH_LIMIT
    - DEFAULT_PAGE_LIMIT may not exceed MAX_PAGE_LIMIT
    """

    pagetree_env: Environment = Field(default=Environment.LOCAL, alias="PAGETREE_ENV")
    database_url: Annotated[str, Field(alias="DATABASE_URL")]
    log_json: bool = Field(default=True, alias="LOG_JSON")

    # Hierarchy bounds
    tree_default_max_depth: int = Field(default=5, ge=0, alias="TREE_DEFAULT_MAX_DEPTH")
    tree_max_depth_limit: int = Field(default=20, ge=0, alias="TREE_MAX_DEPTH_LIMIT")
    ancestor_walk_max_steps: int = Field(default=1000, ge=1, alias="ANCESTOR_WALK_MAX_STEPS")

    # Pagination
    default_page_limit: int = Field(default=10, ge=1, alias="DEFAULT_PAGE_LIMIT")
    max_page_limit: int = Field(default=100, ge=1, alias="MAX_PAGE_LIMIT")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def validate_bounds(self) -> "Settings":
        """Ensure defaults sit inside their limits."""
        if self.tree_default_max_depth > self.tree_max_depth_limit:
            raise ValueError(
                "TREE_DEFAULT_MAX_DEPTH "
                f"({self.tree_default_max_depth}) exceeds TREE_MAX_DEPTH_LIMIT "
                f"({self.tree_max_depth_limit})"
            )
        if self.default_page_limit > self.max_page_limit:
            raise ValueError(
                f"DEFAULT_PAGE_LIMIT ({self.default_page_limit}) exceeds "
                f"MAX_PAGE_LIMIT ({self.max_page_limit})"
            )
        return self

    @property
    def is_production(self) -> bool:
        """Whether this is a deployed (staging/prod) environment."""
        return self.pagetree_env in (Environment.STAGING, Environment.PROD)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()

"""
Configuration for newsdelta.

Uses Pydantic Settings for type-safe environment variable loading.
"""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings

from newsdelta.exceptions import ConfigurationError

load_dotenv()

DEFAULT_STATE_PATH = Path.home() / ".newsdelta" / "seen.json"


class NewsDeltaSettings(BaseSettings):
    """newsdelta settings, read from NEWSDELTA_* environment variables."""

    model_config = ConfigDict(
        env_prefix="NEWSDELTA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Fetching
    user_agent: str = Field(
        default="NewsSitemapBot/1.0 (+contact@example.com)",
        description="User-Agent header sent when fetching robots.txt and sitemaps",
    )
    robots_timeout: float = Field(default=15.0, gt=0, description="robots.txt fetch timeout (seconds)")
    sitemap_timeout: float = Field(default=20.0, gt=0, description="Sitemap fetch timeout (seconds)")
    max_redirects: int = Field(default=3, ge=0, le=20, description="Maximum redirects to follow")

    # Robots matching
    robots_user_agent: str = Field(default="*", description="Agent name matched against robots.txt groups")

    # Delta
    hash_bits: int = Field(default=128, description="Dedup hash width: 64 or 128")
    max_depth: int = Field(default=3, ge=1, le=10, description="Maximum sitemap index nesting to follow")

    # Seen-hash state
    state_path: str | None = Field(default=None, description="Seen-hash state file")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper

    @field_validator("hash_bits")
    @classmethod
    def validate_hash_bits(cls, v: int) -> int:
        """Ensure hash width is supported."""
        if v not in (64, 128):
            raise ValueError(f"Invalid hash_bits: {v}. Must be 64 or 128")
        return v

    @field_validator("robots_user_agent")
    @classmethod
    def normalise_robots_user_agent(cls, v: str) -> str:
        """Robots agent names are compared lowercased."""
        return v.strip().lower() or "*"

    def get_state_path(self) -> Path:
        """Get seen-hash state file as Path, expanding ~ if present."""
        if self.state_path:
            return Path(self.state_path).expanduser()
        return DEFAULT_STATE_PATH


@lru_cache
def get_settings() -> NewsDeltaSettings:
    """
    Get cached settings instance.

    Raises:
        ConfigurationError: If an environment value fails validation.
    """
    try:
        return NewsDeltaSettings()
    except PydanticValidationError as e:
        fields = [".".join(str(loc) for loc in err["loc"]) for err in e.errors()]
        raise ConfigurationError(
            f"Invalid newsdelta configuration: {', '.join(fields)}",
            context={"fields": fields},
        ) from e

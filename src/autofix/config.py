"""Process settings using pydantic-settings.

This module defines the AutoFixSettings class that reads runtime settings
from environment variables. User-editable behavior (labels, repositories,
concurrency) lives in the JSON configuration store instead; see
src/autofix/store.py.

The GitHub token and webhook secret are read from the conventional
GITHUB_TOKEN and GITHUB_WEBHOOK_SECRET variables. Everything else uses the
AUTOFIX_ prefix (e.g., AUTOFIX_HOST).
"""

from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CONFIG_PATH = "github-auto-fix-config.json"


class AutoFixSettings(BaseSettings):
    """Auto-fix service settings from environment variables.

    Required fields (must be set via environment variables):
    - github_token: GitHub API token for comments and labels

    A missing token is a fatal startup error, surfaced as a
    pydantic.ValidationError from get_settings().
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTOFIX_",
        case_sensitive=False,
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # GitHub Configuration
    # -------------------------------------------------------------------------
    github_token: str = Field(
        validation_alias=AliasChoices("GITHUB_TOKEN", "AUTOFIX_GITHUB_TOKEN"),
    )

    # Webhook signatures are only verified when this is set
    github_webhook_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "GITHUB_WEBHOOK_SECRET", "AUTOFIX_GITHUB_WEBHOOK_SECRET"
        ),
    )

    # Base URL for GitHub API (supports GitHub Enterprise)
    github_base_url: str = "https://api.github.com"

    # -------------------------------------------------------------------------
    # Server Configuration
    # -------------------------------------------------------------------------
    host: str = "0.0.0.0"

    # Prefix placed in front of /github-webhook, e.g. "/hooks"
    webhook_path_prefix: str = ""

    # JSON configuration store location, relative to the working directory
    config_path: str = DEFAULT_CONFIG_PATH

    # -------------------------------------------------------------------------
    # External Command Configuration
    # -------------------------------------------------------------------------
    sparc_command: str = "claude-flow"

    swarm_command: str = "npx ruv-swarm"

    # None means the analyze/fix commands run without a time limit
    command_timeout_seconds: Optional[int] = None

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("github_token")
    @classmethod
    def validate_github_token(cls, v: str) -> str:
        """Validate that GitHub token is not empty."""
        if not v or not v.strip():
            raise ValueError("GITHUB_TOKEN cannot be empty")
        return v

    @field_validator("github_webhook_secret")
    @classmethod
    def normalize_webhook_secret(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank webhook secret as unset."""
        if v is None or not v.strip():
            return None
        return v

    @field_validator("webhook_path_prefix")
    @classmethod
    def validate_path_prefix(cls, v: str) -> str:
        """Normalize the prefix to "" or "/segment" without trailing slash."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    @field_validator("sparc_command", "swarm_command")
    @classmethod
    def validate_command(cls, v: str) -> str:
        """Validate that command prefixes are not empty."""
        if not v or not v.strip():
            raise ValueError("command cannot be empty")
        return v.strip()

    @field_validator("command_timeout_seconds")
    @classmethod
    def validate_command_timeout(cls, v: Optional[int]) -> Optional[int]:
        """Validate that the command timeout is positive when set."""
        if v is not None and v < 1:
            raise ValueError("command_timeout_seconds must be at least 1")
        return v

    @property
    def webhook_path(self) -> str:
        """Full path of the webhook endpoint."""
        return f"{self.webhook_path_prefix}/github-webhook"


def get_settings(**overrides) -> AutoFixSettings:
    """Create and return an AutoFixSettings instance.

    Args:
        **overrides: Explicit values that take precedence over the
            environment (used by the CLI for --config).

    Returns:
        AutoFixSettings: Configured settings instance.

    Raises:
        pydantic.ValidationError: If GITHUB_TOKEN is missing or a value
            is invalid.
    """
    return AutoFixSettings(**overrides)

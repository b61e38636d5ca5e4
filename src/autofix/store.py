"""JSON configuration store for the auto-fix service.

The store keeps the user-editable behavior of the service in a JSON file
in the working directory. The file uses camelCase keys:

{
  "enabled": true,
  "repositories": ["owner/repo"],
  "autoFixLabels": ["bug", "auto-fix", "good first issue"],
  "ignoredLabels": ["wontfix", "duplicate", "invalid"],
  "maxConcurrentIssues": 3,
  "webhookPort": 3001,
  "sparc": {"enabled": true, "mode": "debug_specialist",
            "memory_namespace": "github_autofix"},
  "swarm": {"enabled": true, "topology": "hierarchical", "maxAgents": 5,
            "roles": ["analyzer", "debugger", "tester", "fixer", "reviewer"]},
  "notifications": {"slack": null, "email": null, "github_comments": true}
}

Values from the file are shallow-merged over the defaults, one level deep
for the nested sections. A corrupt file is reported and ignored; it is
never overwritten by load().
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel


logger = logging.getLogger(__name__)


# Sections merged key-by-key instead of replaced wholesale
NESTED_SECTIONS = ("sparc", "swarm", "notifications")


class ConfigStoreError(Exception):
    """Raised when the configuration file cannot be written.

    Attributes:
        path: The configuration file path.
    """

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SparcConfig(_CamelModel):
    """Settings for the SPARC methodology backend."""

    enabled: bool = True
    mode: str = "debug_specialist"
    memory_namespace: str = Field(
        default="github_autofix",
        alias="memory_namespace",
    )


class SwarmConfig(_CamelModel):
    """Settings for the swarm coordination backend."""

    enabled: bool = True
    topology: str = "hierarchical"
    max_agents: int = Field(default=5, gt=0)
    roles: List[str] = Field(
        default_factory=lambda: [
            "analyzer",
            "debugger",
            "tester",
            "fixer",
            "reviewer",
        ]
    )


class NotificationConfig(_CamelModel):
    """Notification channels. Only GitHub comments are delivered."""

    slack: Optional[str] = None
    email: Optional[str] = None
    github_comments: bool = Field(default=True, alias="github_comments")


class AutoFixConfig(_CamelModel):
    """User-editable auto-fix configuration.

    Attributes:
        enabled: Master switch for webhook-driven processing.
        repositories: Allow-list of "owner/repo" names. Empty allows all.
        auto_fix_labels: Labels that make an issue eligible.
        ignored_labels: Labels that make an issue ineligible. These win
            over auto_fix_labels when both are present.
        max_concurrent_issues: Admission queue capacity.
        webhook_port: Port the webhook server listens on.
        sparc: SPARC backend settings.
        swarm: Swarm backend settings.
        notifications: Notification channel settings.
    """

    enabled: bool = True
    repositories: List[str] = Field(default_factory=list)
    auto_fix_labels: List[str] = Field(
        default_factory=lambda: ["bug", "auto-fix", "good first issue"]
    )
    ignored_labels: List[str] = Field(
        default_factory=lambda: ["wontfix", "duplicate", "invalid"]
    )
    max_concurrent_issues: int = Field(default=3, gt=0)
    webhook_port: int = Field(default=3001, gt=0, lt=65536)
    sparc: SparcConfig = Field(default_factory=SparcConfig)
    swarm: SwarmConfig = Field(default_factory=SwarmConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)

    def to_json_dict(self) -> Dict[str, Any]:
        """Serialize using the on-disk camelCase keys."""
        return self.model_dump(by_alias=True)


class ConfigUpdate(BaseModel):
    """A partial configuration change accepted by ConfigStore.configure().

    Every field is optional; unset fields leave the configuration alone.

    Attributes:
        enabled: Toggle the whole system.
        repository: A single repository to add if not already present.
        repositories: Replacement repository allow-list.
        webhook_port: New webhook port.
        max_concurrent_issues: New admission queue capacity.
        sparc: Enable or disable the SPARC backend.
        swarm: Enable or disable the swarm backend.
        auto_fix_labels: Replacement auto-fix label list.
    """

    enabled: Optional[bool] = None
    repository: Optional[str] = None
    repositories: Optional[List[str]] = None
    webhook_port: Optional[int] = Field(default=None, gt=0, lt=65536)
    max_concurrent_issues: Optional[int] = Field(default=None, gt=0)
    sparc: Optional[bool] = None
    swarm: Optional[bool] = None
    auto_fix_labels: Optional[List[str]] = None


def merge_config_data(
    defaults: Dict[str, Any],
    overrides: Dict[str, Any],
) -> Dict[str, Any]:
    """Shallow-merge file values over defaults.

    Top-level keys from overrides replace defaults. The nested sections
    (sparc, swarm, notifications) are merged key-by-key one level deep.

    Args:
        defaults: Default configuration as a camelCase dict.
        overrides: Values read from the configuration file.

    Returns:
        A new merged dictionary.
    """
    merged = dict(defaults)
    for key, value in overrides.items():
        if (
            key in NESTED_SECTIONS
            and isinstance(value, dict)
            and isinstance(merged.get(key), dict)
        ):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


class ConfigStore:
    """Loads, saves and updates the JSON configuration file.

    Attributes:
        path: Location of the configuration file.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> AutoFixConfig:
        """Load the configuration, falling back to defaults.

        A missing file is created with the defaults. An unreadable or
        invalid file is logged and left untouched, and the defaults are
        returned.

        Returns:
            The loaded (or default) configuration.

        Raises:
            ConfigStoreError: If the default file cannot be written.
        """
        if not self.path.exists():
            config = AutoFixConfig()
            self.save(config)
            logger.info("Wrote default configuration to %s", self.path)
            return config

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(
                    f"expected a JSON object, got {type(data).__name__}"
                )
            merged = merge_config_data(AutoFixConfig().to_json_dict(), data)
            return AutoFixConfig.model_validate(merged)
        except (OSError, ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(
                "Invalid config file %s, using defaults: %s",
                self.path,
                e,
            )
            return AutoFixConfig()

    def save(self, config: AutoFixConfig) -> None:
        """Write the configuration as pretty-printed JSON.

        Args:
            config: Configuration to persist.

        Raises:
            ConfigStoreError: If the file cannot be written.
        """
        try:
            self.path.write_text(
                json.dumps(config.to_json_dict(), indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            raise ConfigStoreError(self.path, str(e)) from e

    def configure(
        self,
        config: AutoFixConfig,
        update: ConfigUpdate,
    ) -> AutoFixConfig:
        """Apply a partial update in place and persist it.

        Args:
            config: The configuration to mutate.
            update: Fields to change.

        Returns:
            The same configuration object, updated.

        Raises:
            ConfigStoreError: If the file cannot be written.
        """
        if update.enabled is not None:
            config.enabled = update.enabled

        if update.repositories is not None:
            config.repositories = _unique(update.repositories)

        if update.repository:
            if update.repository not in config.repositories:
                config.repositories.append(update.repository)

        if update.webhook_port is not None:
            config.webhook_port = update.webhook_port

        if update.max_concurrent_issues is not None:
            config.max_concurrent_issues = update.max_concurrent_issues

        if update.sparc is not None:
            config.sparc.enabled = update.sparc

        if update.swarm is not None:
            config.swarm.enabled = update.swarm

        if update.auto_fix_labels is not None:
            config.auto_fix_labels = _unique(update.auto_fix_labels)

        self.save(config)
        logger.info(
            "Configuration updated",
            extra={
                "path": str(self.path),
                "fields": sorted(update.model_dump(exclude_none=True)),
            },
        )
        return config


def _unique(values: List[str]) -> List[str]:
    """Drop blanks and duplicates, keeping first-seen order."""
    seen: List[str] = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return seen

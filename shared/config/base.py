"""Base configuration management shared by pipeline entry points."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Environments an analysis can run in."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    TEACHING = "teaching"
    PRODUCTION = "production"


class BaseConfiguration(BaseSettings):
    """Settings base class read from the environment and an optional ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Current execution environment",
    )
    version: str = Field(default="0.1.0", description="Configuration version")
    loaded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When this configuration object was created",
    )

    def to_dict(self, exclude_sensitive: bool = True) -> dict[str, Any]:
        """Convert configuration to a dictionary, masking sensitive-looking keys."""
        data = self.model_dump()

        if not exclude_sensitive:
            return data

        sensitive_patterns = ["password", "token", "secret"]
        return {
            k: "***REDACTED***"
            if any(pattern in k.lower() for pattern in sensitive_patterns)
            else v
            for k, v in data.items()
        }

    def validate_configuration(self) -> list[str]:
        """Return a list of non-fatal issues with the current configuration."""
        return []


class ConfigurationManager:
    """Registry of named configuration objects."""

    def __init__(self) -> None:
        self._configurations: dict[str, BaseConfiguration] = {}

    def register_configuration(self, name: str, config: BaseConfiguration) -> None:
        """Register a configuration instance under ``name``."""
        self._configurations[name] = config

    def get_configuration(self, name: str) -> BaseConfiguration | None:
        """Get a registered configuration by name."""
        return self._configurations.get(name)

    def get_all_configurations(self) -> dict[str, dict[str, Any]]:
        """Get all configurations as dictionaries."""
        return {
            name: config.to_dict(exclude_sensitive=True)
            for name, config in self._configurations.items()
        }

    def validate_all_configurations(self) -> dict[str, list[str]]:
        """Validate all registered configurations, keeping only those with issues."""
        validation_results = {}
        for name, config in self._configurations.items():
            issues = config.validate_configuration()
            if issues:
                validation_results[name] = issues
        return validation_results


config_manager = ConfigurationManager()

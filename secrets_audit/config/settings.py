"""
Configuration system using Pydantic for type-safe settings management.

Settings come from ``SECRETS_AUDIT_*`` environment variables, optionally
overlaid by a YAML file passed with ``--settings``. They control where the
registry file lives, the free-tier cap, the default rotation policy and the
self-update check. Credential records themselves live in the registry file,
not here.

Example YAML::

    log_level: INFO
    free_tier_limit: 10
    default_rotation_days: 60
    global_dir: ${HOME}/.config/secrets-audit
"""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from secrets_audit.exceptions import ConfigurationError


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _default_global_dir() -> Path:
    return Path.home() / ".config" / "secrets-audit"


class AuditSettings(BaseSettings):
    """Runtime settings for the CLI, MCP server and registry store."""

    model_config = SettingsConfigDict(
        env_prefix="SECRETS_AUDIT_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    local_file: str = Field(
        default=".secrets-audit.json", description="Registry file name in the working directory"
    )
    global_dir: Path = Field(
        default_factory=_default_global_dir, description="Directory holding the global registry file"
    )
    global_file: str = Field(default="config.json", description="Registry file name inside global_dir")
    log_level: str = Field(default="WARNING", description="Minimum structlog level")
    free_tier_limit: int = Field(default=10, ge=1, description="Maximum records in a free-tier registry")
    default_rotation_days: int = Field(
        default=90, ge=1, description="Rotation policy applied when add omits one"
    )
    update_timeout: float = Field(default=10.0, gt=0, description="Timeout for the PyPI update check")
    package_name: str = Field(default="secrets-audit", description="Distribution name checked for updates")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def local_path(self) -> Path:
        """Registry file in the current working directory."""
        return Path.cwd() / self.local_file

    @property
    def global_path(self) -> Path:
        return Path(self.global_dir).expanduser() / self.global_file

    @classmethod
    def from_yaml(cls, config_path: str) -> AuditSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} and ${VAR_NAME:-default} substitution.

        Args:
            config_path: Path to YAML settings file

        Returns:
            AuditSettings instance

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Settings file not found: {config_path}")

        try:
            yaml_content = config_file.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read settings file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in settings: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Settings must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except Exception as e:
            raise ConfigurationError(f"Failed to validate settings: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Replace ${VAR} and ${VAR:-default} placeholders outside comment lines.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            value = os.getenv(match.group(1))
            if value is not None:
                return value
            if match.group(2) is not None:
                return match.group(2)
            raise ValueError(f"Environment variable {match.group(1)} is not set")

        lines = []
        for line in content.splitlines():
            if line.lstrip().startswith("#"):
                lines.append(line)
            else:
                lines.append(pattern.sub(replace_var, line))
        return "\n".join(lines)

"""Settings for secrets-audit, loaded from the environment and an optional YAML file."""

from secrets_audit.config.settings import AuditSettings

__all__ = ["AuditSettings"]

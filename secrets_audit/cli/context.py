"""Shared state and output helpers for CLI commands.

The top-level ``secrets-audit`` group stores a ``CLIContext`` in
``ctx.obj``. Commands use it to open the registry, print human output that
respects ``--quiet`` and ``--no-color``, print ``--json`` payloads, and exit
with a consistent error format.
"""

import json
import sys
from dataclasses import dataclass, field
from typing import Any, NoReturn

import click
import structlog

from secrets_audit.config.settings import AuditSettings
from secrets_audit.engine.registry import CredentialRegistry
from secrets_audit.enums import Tier
from secrets_audit.exceptions import ScannerError, SecretsAuditError, TierFeatureError
from secrets_audit.storage.registry_store import RegistryStore

log = structlog.get_logger(__name__)

STATUS_COLORS = {
    "healthy": "green",
    "warning": "yellow",
    "critical": "red",
    "expired": "red",
}


@dataclass
class CLIContext:
    """Options given to the top-level command, shared with every subcommand."""

    settings: AuditSettings = field(default_factory=AuditSettings)
    json_output: bool = False
    quiet: bool = False
    color: bool = True

    def store(self) -> RegistryStore:
        return RegistryStore(self.settings)

    def open_registry(self) -> CredentialRegistry:
        return self.store().open_registry()

    def require_paid_tier(self, registry: CredentialRegistry, feature: str) -> None:
        """Raise TierFeatureError if ``feature`` is used on a free registry."""
        if registry.tier == Tier.FREE.value:
            raise TierFeatureError(f"{feature} requires a Pro tier registry. Upgrade to use this feature.")

    def echo(self, message: str = "", fg: str | None = None, bold: bool = False, err: bool = False) -> None:
        """Print a line of human output, styled unless --no-color was given."""
        if fg or bold:
            message = click.style(message, fg=fg, bold=bold)
        click.echo(message, err=err, color=None if self.color else False)

    def info(self, message: str = "", fg: str | None = None, bold: bool = False) -> None:
        """Print non-essential output, suppressed by --quiet and --json."""
        if self.quiet or self.json_output:
            return
        self.echo(message, fg=fg, bold=bold)

    def emit_json(self, payload: dict[str, Any]) -> None:
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))

    def success(self, payload: dict[str, Any]) -> None:
        """Print a ``{"success": true, ...}`` payload in --json mode."""
        self.emit_json({"success": True, **payload})

    def fail(self, error: SecretsAuditError, exit_code: int = 1) -> NoReturn:
        """Report an error and exit.

        In --json mode the error envelope goes to stdout so callers can parse
        it; otherwise a red message goes to stderr.
        """
        log.debug("command_failed", code=error.code, error=error.message)
        if self.json_output:
            self.emit_json(error.to_dict())
        else:
            self.echo(f"Error: {error.message}", fg="red", err=True)
            if isinstance(error, ScannerError) and error.suggestion:
                self.echo(f"Suggestion: {error.suggestion}", fg="yellow", err=True)
        sys.exit(exit_code)


pass_cli_context = click.make_pass_decorator(CLIContext, ensure=True)

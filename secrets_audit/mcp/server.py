"""
MCP server for secrets-audit.

Each tool maps to exactly one registry operation. Results come back as
``{"success": True, ...}``; failures come back as the exception's
``{"error": message, "code": "ERR_..."}`` envelope instead of raising, so an
agent always receives a structured answer.

The registry is reopened on every call, so the server always sees edits made
through the CLI while it runs.

Example client configuration::

    {"mcpServers": {"secrets-audit": {"command": "secrets-audit", "args": ["mcp"]}}}
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog
from fastmcp import FastMCP

from secrets_audit.config.settings import AuditSettings
from secrets_audit.enums import Status
from secrets_audit.exceptions import SecretsAuditError, ValidationError
from secrets_audit.schema import get_schema as build_schema
from secrets_audit.storage.registry_store import RegistryStore

log = structlog.get_logger(__name__)

SERVER_NAME = "secrets-audit"
INSTRUCTIONS = (
    "Track metadata about API keys, tokens and passwords (never their values) "
    "and report which ones are expired, expiring or overdue for rotation."
)


def _envelope(operation: Callable[[], dict[str, Any]], tool: str) -> dict[str, Any]:
    try:
        return {"success": True, **operation()}
    except SecretsAuditError as e:
        log.info("mcp_tool_failed", tool=tool, code=e.code, error=e.message)
        return e.to_dict()


def register_tools(mcp: FastMCP, store: RegistryStore) -> None:
    """Register secrets-audit tools with the MCP server."""

    @mcp.tool()
    def init(use_global: bool = False) -> dict:
        """
        Create a new secrets audit registry file.

        Args:
            use_global: Create the registry in ~/.config/secrets-audit/ instead
                of the current directory

        Returns:
            Dict with the registry path, or an error with code ERR_CONFIG_EXISTS
        """

        def run() -> dict[str, Any]:
            location = store.init(use_global=use_global)
            return {"configPath": str(location.path), "message": "Config file created"}

        return _envelope(run, "init")

    @mcp.tool()
    def add_secret(
        name: str,
        provider: str | None = None,
        secret_type: str = "api_key",
        created_at: str | None = None,
        expires_at: str | None = None,
        last_rotated: str | None = None,
        rotation_policy: int | None = 90,
        notes: str = "",
    ) -> dict:
        """
        Add a new secret to track. Only metadata is stored, never the value.

        Args:
            name: Unique identifier for the secret
            provider: Service provider (e.g., stripe, aws, github)
            secret_type: Secret type (api_key, token, password)
            created_at: Creation date (YYYY-MM-DD). Defaults to today.
            expires_at: Expiry date (YYYY-MM-DD). Omit for no expiry.
            last_rotated: Last rotation date (YYYY-MM-DD). Defaults to created_at.
            rotation_policy: Rotation policy in days, or null for none
            notes: Additional notes

        Returns:
            Dict with the created secret and its status, or an error
        """

        def run() -> dict[str, Any]:
            data: dict[str, Any] = {
                "name": name,
                "provider": provider,
                "type": secret_type,
                "createdAt": created_at,
                "expiresAt": expires_at,
                "lastRotated": last_rotated,
                "rotationPolicy": rotation_policy,
                "notes": notes,
            }
            added = store.open_registry().add(data)
            return {"secret": added.to_dict()}

        return _envelope(run, "add_secret")

    @mcp.tool()
    def list_secrets(status: str | None = None) -> dict:
        """
        List all tracked secrets with status, age and expiry information.

        Args:
            status: Only return secrets with this status
                (healthy, warning, critical, expired)

        Returns:
            Dict with count and secrets, or an error
        """

        def run() -> dict[str, Any]:
            if status is not None and status not in {s.value for s in Status}:
                raise ValidationError(f"Unknown status: {status}", field="status")
            records = store.open_registry().list()
            if status is not None:
                records = [r for r in records if r.status.value == status]
            return {"count": len(records), "secrets": [r.to_dict() for r in records]}

        return _envelope(run, "list_secrets")

    @mcp.tool()
    def check_secrets() -> dict:
        """
        Audit every secret and group the results by status.

        Returns:
            Dict with total, per-status summary, secrets grouped by status and
            actionRequired (true when anything is critical or expired)
        """

        def run() -> dict[str, Any]:
            buckets = store.open_registry().categorize()
            summary = {status: len(records) for status, records in buckets.items()}
            return {
                "total": sum(summary.values()),
                "summary": summary,
                "secrets": {status: [r.to_dict() for r in records] for status, records in buckets.items()},
                "actionRequired": bool(summary[Status.CRITICAL.value] or summary[Status.EXPIRED.value]),
            }

        return _envelope(run, "check_secrets")

    @mcp.tool()
    def remove_secret(name: str) -> dict:
        """
        Stop tracking a secret.

        Args:
            name: Name of the secret to remove

        Returns:
            Dict with the removed secret, or an error with code ERR_NOT_FOUND
        """

        def run() -> dict[str, Any]:
            removed = store.open_registry().remove(name)
            return {"removed": removed.to_dict(), "message": f'Secret "{name}" removed'}

        return _envelope(run, "remove_secret")

    @mcp.tool()
    def rotate_secret(name: str) -> dict:
        """
        Mark a secret as rotated today and return its recomputed status.

        Args:
            name: Name of the secret that was rotated

        Returns:
            Dict with the updated secret, or an error with code ERR_NOT_FOUND
        """

        def run() -> dict[str, Any]:
            rotated = store.open_registry().rotate(name)
            return {"secret": rotated.to_dict(), "message": f'Secret "{name}" marked as rotated'}

        return _envelope(run, "rotate_secret")

    @mcp.tool()
    def get_schema() -> dict:
        """
        Get the JSON schema describing every secrets-audit command and flag.

        Returns:
            Dict describing commands, flags, outputs and exit codes
        """
        return build_schema()


def create_server(settings: AuditSettings | None = None, store: RegistryStore | None = None) -> FastMCP:
    """Build a FastMCP server with all secrets-audit tools registered."""
    mcp = FastMCP(SERVER_NAME, instructions=INSTRUCTIONS)
    register_tools(mcp, store or RegistryStore(settings))
    return mcp


def run_server(settings: AuditSettings | None = None) -> None:
    """Serve over stdio until the client disconnects."""
    log.info("mcp_server_starting", name=SERVER_NAME)
    create_server(settings).run()

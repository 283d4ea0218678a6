"""CLI command that serves secrets-audit over MCP (Model Context Protocol).

Example:
    Register the server with an MCP client::

        {"mcpServers": {"secrets-audit": {"command": "secrets-audit", "args": ["mcp"]}}}
"""

import click
import structlog

from secrets_audit.cli.context import CLIContext, pass_cli_context
from secrets_audit.mcp.server import run_server

log = structlog.get_logger(__name__)


@click.command(name="mcp")
@pass_cli_context
def mcp_command(out: CLIContext) -> None:
    """Start the MCP stdio server for AI agents.

    Exposes init, add_secret, list_secrets, check_secrets, remove_secret,
    rotate_secret and get_schema as MCP tools.
    """
    log.debug("mcp_command_invoked")
    run_server(out.settings)

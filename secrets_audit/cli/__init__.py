"""CLI commands for secrets-audit.

The top-level ``secrets-audit`` group lives in ``secrets_audit.main``; this
package holds the shared ``CLIContext`` and the commands that are registered
on it with ``cli.add_command``.

Module Structure:
    - context.py: CLIContext, output helpers and error reporting
    - scan.py: ``scan aws`` and ``scan github`` credential discovery
    - mcp.py: ``mcp`` stdio server
    - update.py: ``update-check`` self-update from PyPI
"""

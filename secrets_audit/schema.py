"""Machine-readable description of the CLI for agent discovery.

``secrets-audit --schema`` prints this, and the MCP server returns it from
its ``get_schema`` tool.
"""

from typing import Any

from secrets_audit import __version__
from secrets_audit.enums import ReportFormat, Status

TOOL_NAME = "secrets-audit"
DESCRIPTION = "Track credential metadata and flag secrets that are expiring or overdue for rotation"

STATUS_VALUES = [status.value for status in Status]

SECRET_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "provider": {"type": "string"},
        "type": {"type": "string"},
        "createdAt": {"type": "string", "format": "date"},
        "expiresAt": {"type": "string", "format": "date", "nullable": True},
        "lastRotated": {"type": "string", "format": "date"},
        "rotationPolicy": {"type": "integer", "nullable": True},
        "notes": {"type": "string"},
        "status": {"type": "string", "enum": STATUS_VALUES},
        "age": {"type": "integer", "nullable": True},
        "daysUntilExpiry": {"type": "integer", "nullable": True},
        "statusMessage": {"type": "string"},
    },
}

SUMMARY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {key: {"type": "integer"} for key in ["total", *STATUS_VALUES]},
}


def _flag(type_: str, description: str, **extra: Any) -> dict[str, Any]:
    return {"type": type_, "description": description, **extra}


def _name_argument(description: str) -> dict[str, Any]:
    return {"name": {"type": "string", "required": True, "description": description}}


def _secret_output(description: str) -> dict[str, Any]:
    return {
        "json": {
            "description": description,
            "schema": {
                "type": "object",
                "properties": {"success": {"type": "boolean"}, "secret": SECRET_SCHEMA},
            },
        }
    }


FIELD_FLAGS: dict[str, Any] = {
    "--provider": _flag("string", "Service provider (e.g., stripe, aws, github)"),
    "--type": _flag("string", "Secret type (api_key, token, password)", default="api_key"),
    "--created": _flag("string", "Creation date (YYYY-MM-DD)", format="date"),
    "--expires": _flag("string", "Expiry date (YYYY-MM-DD)", format="date"),
    "--rotation": _flag("integer", "Rotation policy in days", default=90),
    "--no-rotation-policy": _flag("boolean", "Track without a rotation requirement", default=False),
    "--notes": _flag("string", "Additional notes"),
}


def _commands() -> dict[str, Any]:
    return {
        "init": {
            "description": "Create a new secrets audit registry file",
            "usage": f"{TOOL_NAME} init [--global]",
            "arguments": {},
            "flags": {
                "--global": _flag(
                    "boolean", "Create the registry in ~/.config/secrets-audit/ instead of here", default=False
                ),
            },
            "output": {
                "json": {
                    "description": "Registry path on success",
                    "schema": {
                        "type": "object",
                        "properties": {
                            "success": {"type": "boolean"},
                            "configPath": {"type": "string"},
                            "message": {"type": "string"},
                        },
                    },
                }
            },
            "exitCodes": {0: "Success", 1: "Registry already exists or cannot be written"},
        },
        "add": {
            "description": "Add a new secret to track",
            "usage": f"{TOOL_NAME} add <name> [options]",
            "arguments": _name_argument("Unique identifier for the secret"),
            "flags": {
                **FIELD_FLAGS,
                "--interactive": _flag("boolean", "Prompt for every field", default=False),
            },
            "output": _secret_output("The added secret"),
            "exitCodes": {0: "Success", 1: "Validation error, duplicate name or tier limit"},
        },
        "list": {
            "description": "List all tracked secrets",
            "usage": f"{TOOL_NAME} list [--status STATUS]",
            "arguments": {},
            "flags": {"--status": _flag("string", "Filter by status", enum=STATUS_VALUES)},
            "output": {
                "json": {
                    "description": "Tracked secrets with fresh status",
                    "schema": {"type": "array", "items": SECRET_SCHEMA},
                }
            },
        },
        "check": {
            "description": "Audit all secrets and report problems",
            "usage": f"{TOOL_NAME} check [--ci] [--fail-on LEVEL]",
            "arguments": {},
            "flags": {
                "--ci": _flag("boolean", "Exit non-zero when problems are found", default=False),
                "--fail-on": _flag(
                    "string",
                    "Lowest status that fails the check in CI mode",
                    enum=["warning", "critical", "expired"],
                    default="critical",
                ),
            },
            "output": {
                "json": {
                    "description": "Summary and secrets grouped by status",
                    "schema": {
                        "type": "object",
                        "properties": {
                            "summary": SUMMARY_SCHEMA,
                            "secrets": {
                                "type": "object",
                                "properties": {
                                    status: {"type": "array", "items": SECRET_SCHEMA} for status in STATUS_VALUES
                                },
                            },
                        },
                    },
                }
            },
            "exitCodes": {
                0: "No problems at or above the --fail-on level",
                1: "Warnings found with --fail-on warning",
                2: "Critical or expired secrets found",
            },
        },
        "remove": {
            "description": "Stop tracking a secret",
            "usage": f"{TOOL_NAME} remove <name>",
            "arguments": _name_argument("Name of the secret to remove"),
            "flags": {},
            "output": _secret_output("The removed secret"),
        },
        "rotate": {
            "description": "Mark a secret as rotated today",
            "usage": f"{TOOL_NAME} rotate <name>",
            "arguments": _name_argument("Name of the rotated secret"),
            "flags": {},
            "output": _secret_output("The secret with its new status"),
        },
        "update": {
            "description": "Change fields of a tracked secret",
            "usage": f"{TOOL_NAME} update <name> [options]",
            "arguments": _name_argument("Name of the secret to change"),
            "flags": {
                **FIELD_FLAGS,
                "--rename": _flag("string", "New name for the secret"),
                "--no-expiry": _flag("boolean", "Clear the expiry date", default=False),
            },
            "output": _secret_output("The updated secret"),
        },
        "report": {
            "description": "Generate an audit report",
            "usage": f"{TOOL_NAME} report [--format FORMAT] [--pdf FILE] [-o FILE]",
            "arguments": {},
            "flags": {
                "--format": _flag(
                    "string",
                    "Report format (non-text formats require a paid tier)",
                    enum=[f.value for f in ReportFormat if not f.is_binary],
                    default="text",
                ),
                "--pdf": _flag("string", "Write a PDF report to this path (paid tier)"),
                "--output, -o": _flag("string", "Write the report to a file instead of stdout"),
            },
        },
        "scan": {
            "description": "Discover credentials in a cloud account (paid tier)",
            "usage": f"{TOOL_NAME} scan aws|github [--auto-add]",
            "arguments": {"provider": {"type": "string", "enum": ["aws", "github"], "required": True}},
            "flags": {"--auto-add": _flag("boolean", "Add discovered credentials to the registry", default=False)},
        },
        "mcp": {
            "description": "Start the MCP (Model Context Protocol) stdio server",
            "usage": f"{TOOL_NAME} mcp",
            "arguments": {},
            "flags": {},
        },
        "update-check": {
            "description": "Check PyPI for a newer release and optionally install it",
            "usage": f"{TOOL_NAME} update-check [--check]",
            "arguments": {},
            "flags": {"--check": _flag("boolean", "Only check, do not install", default=False)},
        },
        "schema": {
            "description": "Output this JSON schema",
            "usage": f"{TOOL_NAME} --schema",
            "flags": {"--schema": _flag("boolean", "Output JSON schema")},
        },
    }


def get_schema() -> dict[str, Any]:
    """Describe every command, its flags and outputs, and how to wire up MCP."""
    return {
        "tool": TOOL_NAME,
        "version": __version__,
        "description": DESCRIPTION,
        "commands": _commands(),
        "globalFlags": {
            "--json": _flag("boolean", "Output as JSON (machine-readable)", default=False),
            "-q, --quiet": _flag("boolean", "Suppress non-essential output", default=False),
            "--no-color": _flag("boolean", "Disable colored output", default=False),
            "--schema": _flag("boolean", "Output this schema as JSON", default=False),
            "--log-level": _flag("string", "structlog level written to stderr", default="WARNING"),
            "--settings": _flag("string", "YAML settings file"),
            "--version": _flag("boolean", "Show version number"),
        },
        "exitCodes": {
            0: "Success",
            1: "Error or warnings (depending on command)",
            2: "Critical issues (check command in CI mode)",
        },
        "mcpConfig": {
            "description": f"Add to your MCP client configuration to use {TOOL_NAME} as an AI tool",
            "config": {"mcpServers": {TOOL_NAME: {"command": TOOL_NAME, "args": ["mcp"]}}},
        },
    }

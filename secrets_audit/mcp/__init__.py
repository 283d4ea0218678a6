"""MCP (Model Context Protocol) server exposing the registry as agent tools."""

from secrets_audit.mcp.server import create_server, register_tools, run_server

__all__ = ["create_server", "register_tools", "run_server"]

"""Shared utilities: logging setup, date helpers and the self-update check."""

"""secrets-audit: track credential metadata and flag what needs rotating."""

__version__ = "1.0.0"

"""Enumerations for credential status, registry tier and report formats."""

from enum import Enum


class Status(str, Enum):
    """Health status of a tracked credential.

    Values are ordered by increasing severity; use ``severity`` to compare.
    """

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    EXPIRED = "expired"

    def __str__(self) -> str:
        return self.value

    @property
    def severity(self) -> int:
        """Numeric severity, 0 for healthy up to 3 for expired."""
        return _SEVERITY[self]

    @property
    def emoji(self) -> str:
        return _EMOJI[self]


_SEVERITY = {
    Status.HEALTHY: 0,
    Status.WARNING: 1,
    Status.CRITICAL: 2,
    Status.EXPIRED: 3,
}

_EMOJI = {
    Status.HEALTHY: "🟢",
    Status.WARNING: "🟡",
    Status.CRITICAL: "🔴",
    Status.EXPIRED: "⛔",
}


class Tier(str, Enum):
    """Registry capacity and feature tier.

    Registry files may carry any tier string; everything other than ``free``
    is treated as a paid tier.
    """

    FREE = "free"
    PRO = "pro"

    def __str__(self) -> str:
        return self.value


class ReportFormat(str, Enum):
    """Output formats supported by the report renderers."""

    TEXT = "text"
    JSON = "json"
    MARKDOWN = "markdown"
    PDF = "pdf"

    def __str__(self) -> str:
        return self.value

    @property
    def is_binary(self) -> bool:
        """Check if this format renders to bytes rather than text."""
        return self is ReportFormat.PDF

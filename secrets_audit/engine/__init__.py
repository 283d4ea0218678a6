"""Status engine and in-memory credential registry.

Key Components:
    - assess / calculate_status: Classify a credential as healthy, warning,
      critical or expired for a given day
    - CredentialRegistry: Add, update, rotate, remove and list credentials,
      enforcing name uniqueness and the free tier limit

Example:
    >>> from secrets_audit.engine import CredentialRegistry
    >>> registry = CredentialRegistry()
    >>> registry.add({"name": "stripe-live", "provider": "stripe"})
"""

from secrets_audit.engine.registry import (
    DEFAULT_ROTATION_DAYS,
    FREE_TIER_LIMIT,
    CredentialRegistry,
    categorize_records,
    summarize,
)
from secrets_audit.engine.status import (
    assess,
    calculate_age,
    calculate_status,
    days_until_expiry,
    status_emoji,
    status_message,
)

__all__ = [
    "DEFAULT_ROTATION_DAYS",
    "FREE_TIER_LIMIT",
    "CredentialRegistry",
    "assess",
    "calculate_age",
    "calculate_status",
    "categorize_records",
    "days_until_expiry",
    "status_emoji",
    "status_message",
    "summarize",
]

"""Cloud credential scanners.

Each scanner reports whether its SDK is installed through ``available`` and
turns what it finds into ordinary ``add`` payloads.
"""

from secrets_audit.scanners.aws import AWSAccessKeyScanner
from secrets_audit.scanners.base import CredentialScanner, DiscoveredCredential
from secrets_audit.scanners.github import GitHubTokenScanner

SCANNERS: dict[str, type] = {
    "aws": AWSAccessKeyScanner,
    "github": GitHubTokenScanner,
}

__all__ = [
    "AWSAccessKeyScanner",
    "CredentialScanner",
    "DiscoveredCredential",
    "GitHubTokenScanner",
    "SCANNERS",
]

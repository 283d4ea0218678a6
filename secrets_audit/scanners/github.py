"""GitHub personal access token scanner.

GitHub does not let a token list its sibling tokens, so the scanner reports
the token it authenticates with (``GITHUB_TOKEN``): its owner, its scopes and,
for expiring tokens, the expiry date GitHub announces in the
``github-authentication-token-expiration`` response header.
"""

import os
from datetime import date
from typing import Any

import structlog

try:
    from github import Auth, BadCredentialsException, Github, GithubException

    PYGITHUB_AVAILABLE = True
except ImportError:
    PYGITHUB_AVAILABLE = False

from secrets_audit.exceptions import ScannerError, ScannerUnavailableError
from secrets_audit.scanners.base import DiscoveredCredential
from secrets_audit.utils.dates import parse_calendar_date

log = structlog.get_logger(__name__)

TOKEN_ENV_VAR = "GITHUB_TOKEN"
GITHUB_ROTATION_DAYS = 90
EXPIRATION_HEADER = "github-authentication-token-expiration"
SCOPES_HEADER = "x-oauth-scopes"


def _header(headers: dict[str, Any], name: str) -> str | None:
    for key, value in headers.items():
        if key.lower() == name:
            return str(value)
    return None


class GitHubTokenScanner:
    """Describe the GitHub token found in the environment.

    Args:
        token: Token to inspect; read from ``GITHUB_TOKEN`` when omitted
        client: Preconfigured ``github.Github`` instance, mainly for tests
        today: Date recorded as creation and rotation date for the token
    """

    def __init__(self, token: str | None = None, client: Any = None, today: date | None = None) -> None:
        self._token = token
        self._client = client
        self._today = today

    @property
    def name(self) -> str:
        return "github"

    @property
    def available(self) -> bool:
        return self._client is not None or PYGITHUB_AVAILABLE

    def _github(self) -> Any:
        if self._client is not None:
            return self._client
        token = self._token or os.environ.get(TOKEN_ENV_VAR)
        if not token:
            raise ScannerError(
                f"{TOKEN_ENV_VAR} environment variable not set",
                scanner=self.name,
                suggestion="Export your token to scan GitHub PATs",
            )
        self._client = Github(auth=Auth.Token(token))
        return self._client

    def scan(self) -> list[DiscoveredCredential]:
        """Verify the token and describe it."""
        if not self.available:
            raise ScannerUnavailableError(
                "PyGithub not installed",
                scanner=self.name,
                suggestion="pip install PyGithub",
            )

        client = self._github()
        try:
            user = client.get_user()
            login = user.login
            headers = dict(user.raw_headers or {})
        except Exception as e:
            if PYGITHUB_AVAILABLE and isinstance(e, BadCredentialsException):
                raise ScannerError("GitHub token is invalid or expired", scanner=self.name) from e
            if PYGITHUB_AVAILABLE and isinstance(e, GithubException):
                raise ScannerError(f"GitHub scan failed: {e.status} {e.data}", scanner=self.name) from e
            raise ScannerError(f"GitHub scan failed: {e}", scanner=self.name) from e

        expiration = _header(headers, EXPIRATION_HEADER)
        expires = parse_calendar_date(expiration[:10]) if expiration else None
        scopes = _header(headers, SCOPES_HEADER)

        found = DiscoveredCredential(
            name=f"github-pat-{login}",
            provider="github",
            kind="personal_access_token",
            details={
                "username": login,
                "scopes": scopes if scopes is not None else "not reported",
                "expiresAt": expires.isoformat() if expires else None,
            },
            notes=(
                f"GitHub PAT for {login}"
                if expires
                else "Token verification successful. Manually add expiry date if known."
            ),
        )
        log.info("github_scan_complete", user=login, expires=found.details["expiresAt"])
        return [found]

    def to_registry_input(self, found: list[DiscoveredCredential]) -> list[dict[str, Any]]:
        today = (self._today or date.today()).isoformat()
        return [
            {
                "name": item.name,
                "provider": "github",
                "type": "personal_access_token",
                "createdAt": item.created_at or today,
                "expiresAt": item.details.get("expiresAt"),
                "lastRotated": item.created_at or today,
                "rotationPolicy": GITHUB_ROTATION_DAYS,
                "notes": item.notes or f"GitHub PAT for {item.details.get('username', 'unknown')}",
            }
            for item in found
        ]

"""Tests for the cloud credential scanners."""

from datetime import date, datetime
from unittest.mock import MagicMock, patch

import pytest
from github import BadCredentialsException

from secrets_audit.engine.registry import CredentialRegistry
from secrets_audit.exceptions import ScannerError, ScannerUnavailableError
from secrets_audit.scanners import SCANNERS, AWSAccessKeyScanner, GitHubTokenScanner
from secrets_audit.scanners.base import DiscoveredCredential

TODAY = date(2024, 6, 1)


def _iam_client(keys, last_used=None):
    client = MagicMock()
    client.get_paginator.return_value.paginate.return_value = [{"AccessKeyMetadata": keys}]
    client.get_access_key_last_used.return_value = {"AccessKeyLastUsed": last_used or {}}
    return client


@pytest.fixture
def aws_keys():
    return [
        {"AccessKeyId": "AKIAEXAMPLEKEY1234", "Status": "Active", "CreateDate": datetime(2024, 1, 15, 10, 0)},
        {"AccessKeyId": "AKIAEXAMPLEKEY9876", "Status": "Inactive", "CreateDate": datetime(2023, 11, 2, 8, 30)},
    ]


class TestAWSAccessKeyScanner:
    """Tests for AWSAccessKeyScanner."""

    def test_scan_lists_keys(self, aws_keys):
        """Test that each key becomes a discovered credential."""
        client = _iam_client(aws_keys, {"LastUsedDate": datetime(2024, 5, 30, 12, 0)})

        found = AWSAccessKeyScanner(client=client).scan()

        assert [f.name for f in found] == ["aws-key-1234", "aws-key-9876"]
        assert found[0].created_at == "2024-01-15"
        assert found[0].details == {"keyId": "1234", "status": "Active", "lastUsed": "2024-05-30"}
        client.get_paginator.assert_called_once_with("list_access_keys")

    def test_full_key_id_never_kept(self, aws_keys):
        """Test that only the last four characters of the key id are kept."""
        found = AWSAccessKeyScanner(client=_iam_client(aws_keys)).scan()

        assert "AKIAEXAMPLEKEY1234" not in repr(found[0].to_dict())

    def test_never_used_key(self, aws_keys):
        """Test a key without a last-used date."""
        found = AWSAccessKeyScanner(client=_iam_client(aws_keys[:1])).scan()
        assert found[0].details["lastUsed"] == "Never"

    def test_last_used_failure_does_not_abort(self, aws_keys):
        """Test that one unreadable key is reported, not fatal."""
        client = _iam_client(aws_keys)
        client.get_access_key_last_used.side_effect = RuntimeError("AccessDenied")

        found = AWSAccessKeyScanner(client=client).scan()

        assert len(found) == 2
        assert found[0].scan_error == "AccessDenied"
        assert found[0].details["lastUsed"] == "Unknown"

    def test_listing_failure(self):
        """Test that a failed listing raises ScannerError."""
        client = MagicMock()
        client.get_paginator.side_effect = RuntimeError("throttled")

        with pytest.raises(ScannerError) as exc_info:
            AWSAccessKeyScanner(client=client).scan()

        assert "AWS scan failed: throttled" in exc_info.value.message
        assert exc_info.value.scanner == "aws"

    def test_unavailable_without_sdk(self):
        """Test that a missing boto3 makes the scanner unavailable."""
        with patch("secrets_audit.scanners.aws.BOTO3_AVAILABLE", False):
            scanner = AWSAccessKeyScanner()

            assert not scanner.available
            with pytest.raises(ScannerUnavailableError) as exc_info:
                scanner.scan()

        assert "secrets-audit[aws]" in exc_info.value.suggestion

    def test_registry_input(self, aws_keys):
        """Test the add payloads built from discovered keys."""
        scanner = AWSAccessKeyScanner(client=_iam_client(aws_keys))
        payloads = scanner.to_registry_input(scanner.scan())

        assert payloads[0] == {
            "name": "aws-key-1234",
            "provider": "aws",
            "type": "access_key",
            "expiresAt": None,
            "rotationPolicy": 90,
            "notes": "AWS IAM Access Key ****1234 | Status: Active | Last used: Never",
            "createdAt": "2024-01-15",
            "lastRotated": "2024-01-15",
        }

    def test_payloads_enter_through_add(self, aws_keys):
        """Test that payloads are accepted by the registry."""
        scanner = AWSAccessKeyScanner(client=_iam_client(aws_keys))
        registry = CredentialRegistry(clock=lambda: TODAY)

        for payload in scanner.to_registry_input(scanner.scan()):
            registry.add(payload)

        statuses = {r.name: r.status.value for r in registry.list()}
        assert statuses == {"aws-key-1234": "critical", "aws-key-9876": "critical"}


class TestGitHubTokenScanner:
    """Tests for GitHubTokenScanner."""

    def _client(self, login="octocat", headers=None):
        client = MagicMock()
        client.get_user.return_value.login = login
        client.get_user.return_value.raw_headers = headers or {}
        return client

    def test_scan_with_expiration(self):
        """Test that the expiration header becomes expiresAt."""
        client = self._client(
            headers={
                "github-authentication-token-expiration": "2024-08-01 12:00:00 UTC",
                "X-OAuth-Scopes": "repo, read:org",
            }
        )

        found = GitHubTokenScanner(client=client).scan()

        assert len(found) == 1
        assert found[0].name == "github-pat-octocat"
        assert found[0].details == {"username": "octocat", "scopes": "repo, read:org", "expiresAt": "2024-08-01"}
        assert found[0].notes == "GitHub PAT for octocat"

    def test_scan_without_expiration(self):
        """Test a token that does not expire."""
        found = GitHubTokenScanner(client=self._client()).scan()

        assert found[0].details["expiresAt"] is None
        assert found[0].details["scopes"] == "not reported"
        assert "Manually add expiry date" in found[0].notes

    def test_missing_token(self, monkeypatch):
        """Test that a missing GITHUB_TOKEN raises ScannerError."""
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)

        with pytest.raises(ScannerError) as exc_info:
            GitHubTokenScanner().scan()

        assert "GITHUB_TOKEN" in exc_info.value.message

    def test_token_from_environment(self, monkeypatch):
        """Test that the client is built from GITHUB_TOKEN."""
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
        with patch("secrets_audit.scanners.github.Github") as mock_github:
            mock_github.return_value = self._client(login="me")
            found = GitHubTokenScanner().scan()

        assert found[0].name == "github-pat-me"
        mock_github.assert_called_once()

    def test_api_failure(self):
        """Test that API errors raise ScannerError."""
        client = MagicMock()
        client.get_user.side_effect = RuntimeError("network down")

        with pytest.raises(ScannerError) as exc_info:
            GitHubTokenScanner(client=client).scan()

        assert "network down" in exc_info.value.message

    def test_bad_credentials(self):
        """Test the message for a rejected token."""
        client = MagicMock()
        client.get_user.side_effect = BadCredentialsException(401, {"message": "Bad credentials"}, {})

        with pytest.raises(ScannerError) as exc_info:
            GitHubTokenScanner(client=client).scan()

        assert exc_info.value.message == "GitHub token is invalid or expired"

    def test_registry_input(self):
        """Test the add payload for a discovered token."""
        scanner = GitHubTokenScanner(client=self._client(), today=TODAY)
        found = [
            DiscoveredCredential(
                name="github-pat-octocat",
                provider="github",
                kind="personal_access_token",
                details={"username": "octocat", "expiresAt": "2024-08-01"},
                notes="GitHub PAT for octocat",
            )
        ]

        payload = scanner.to_registry_input(found)[0]

        assert payload["createdAt"] == "2024-06-01"
        assert payload["lastRotated"] == "2024-06-01"
        assert payload["expiresAt"] == "2024-08-01"
        assert payload["rotationPolicy"] == 90
        assert payload["type"] == "personal_access_token"


class TestScannerRegistry:
    """The scanner lookup table."""

    def test_known_scanners(self):
        """Test that both scanners are registered by name."""
        assert SCANNERS == {"aws": AWSAccessKeyScanner, "github": GitHubTokenScanner}

    def test_scanner_names(self):
        """Test that each scanner reports its own name."""
        assert AWSAccessKeyScanner(client=MagicMock()).name == "aws"
        assert GitHubTokenScanner(client=MagicMock()).name == "github"

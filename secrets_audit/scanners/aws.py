"""AWS IAM access key scanner.

Lists the access keys of the IAM user the ambient boto3 credentials belong
to. Requires the optional ``boto3`` dependency (``pip install
secrets-audit[aws]``).
"""

from datetime import date
from typing import Any

import structlog

try:
    import boto3
    from botocore.exceptions import NoCredentialsError

    BOTO3_AVAILABLE = True
except ImportError:
    BOTO3_AVAILABLE = False

from secrets_audit.exceptions import ScannerError, ScannerUnavailableError
from secrets_audit.scanners.base import DiscoveredCredential

log = structlog.get_logger(__name__)

AWS_ROTATION_DAYS = 90


def _day(value: Any) -> str | None:
    if value is None:
        return None
    if hasattr(value, "date"):
        value = value.date()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)[:10]


class AWSAccessKeyScanner:
    """Discover IAM access keys.

    Args:
        client: IAM client to use; created with ``boto3.client("iam")`` when
            omitted
    """

    def __init__(self, client: Any = None) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return "aws"

    @property
    def available(self) -> bool:
        return self._client is not None or BOTO3_AVAILABLE

    def _iam(self) -> Any:
        if self._client is None:
            self._client = boto3.client("iam")
        return self._client

    def _describe(self, client: Any, metadata: dict[str, Any]) -> DiscoveredCredential:
        key_id = str(metadata.get("AccessKeyId", ""))
        suffix = key_id[-4:]
        found = DiscoveredCredential(
            name=f"aws-key-{suffix}",
            provider="aws",
            kind="access_key",
            created_at=_day(metadata.get("CreateDate")),
            details={"keyId": suffix, "status": metadata.get("Status", "Unknown"), "lastUsed": "Unknown"},
        )
        try:
            response = client.get_access_key_last_used(AccessKeyId=key_id)
            last_used = (response.get("AccessKeyLastUsed") or {}).get("LastUsedDate")
            found.details["lastUsed"] = _day(last_used) or "Never"
        except Exception as e:
            # One unreadable key must not abort the whole scan
            log.warning("aws_key_last_used_failed", key=suffix, error=str(e))
            found.scan_error = str(e)
        return found

    def scan(self) -> list[DiscoveredCredential]:
        """List access keys and when each was last used."""
        if not self.available:
            raise ScannerUnavailableError(
                "AWS SDK not installed",
                scanner=self.name,
                suggestion="pip install 'secrets-audit[aws]'",
            )

        client = self._iam()
        found: list[DiscoveredCredential] = []
        try:
            paginator = client.get_paginator("list_access_keys")
            for page in paginator.paginate():
                for metadata in page.get("AccessKeyMetadata", []):
                    found.append(self._describe(client, metadata))
        except Exception as e:
            if BOTO3_AVAILABLE and isinstance(e, NoCredentialsError):
                raise ScannerError(
                    "AWS credentials not configured",
                    scanner=self.name,
                    suggestion="Set up ~/.aws/credentials or the AWS_* environment variables",
                ) from e
            raise ScannerError(f"AWS scan failed: {e}", scanner=self.name) from e

        log.info("aws_scan_complete", keys=len(found))
        return found

    def to_registry_input(self, found: list[DiscoveredCredential]) -> list[dict[str, Any]]:
        payloads = []
        for item in found:
            details = item.details
            payload: dict[str, Any] = {
                "name": item.name,
                "provider": "aws",
                "type": "access_key",
                "expiresAt": None,
                "rotationPolicy": AWS_ROTATION_DAYS,
                "notes": (
                    f"AWS IAM Access Key ****{details.get('keyId', '')} | "
                    f"Status: {details.get('status', 'Unknown')} | "
                    f"Last used: {details.get('lastUsed', 'Unknown')}"
                ),
            }
            if item.created_at:
                payload["createdAt"] = item.created_at
                payload["lastRotated"] = item.created_at
            payloads.append(payload)
        return payloads

"""Scanner protocol and the descriptor scanners return."""

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass
class DiscoveredCredential:
    """A credential found in a cloud account.

    Only metadata is kept; for AWS keys that includes just the last four
    characters of the key id.
    """

    name: str
    provider: str
    kind: str
    created_at: str | None = None
    """Creation date as YYYY-MM-DD, when the provider reports it."""

    details: dict[str, Any] = field(default_factory=dict)
    """Provider-specific extras used to build the notes field."""

    notes: str = ""
    scan_error: str | None = None
    """Set when the credential was listed but its details could not be read."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "provider": self.provider,
            "type": self.kind,
            "createdAt": self.created_at,
            "notes": self.notes,
            "details": dict(self.details),
            "scanError": self.scan_error,
        }


class CredentialScanner(Protocol):
    """Interface every credential scanner implements.

    Scanners never write to a registry. Their ``to_registry_input`` payloads
    go through ``CredentialRegistry.add`` like any user input.
    """

    @property
    def name(self) -> str:
        """Scanner identifier (e.g., 'aws', 'github')."""
        ...

    @property
    def available(self) -> bool:
        """Check if the SDK this scanner needs is installed."""
        ...

    def scan(self) -> list[DiscoveredCredential]:
        """Discover credentials.

        Raises:
            ScannerUnavailableError: If the SDK is not installed
            ScannerError: If the provider cannot be queried
        """
        ...

    def to_registry_input(self, found: list[DiscoveredCredential]) -> list[dict[str, Any]]:
        """Convert discoveries into payloads accepted by ``CredentialRegistry.add``."""
        ...

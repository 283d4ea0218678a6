"""
Registry file persistence.

The registry lives in a JSON file, either ``.secrets-audit.json`` in the
working directory or ``~/.config/secrets-audit/config.json``. When both
exist the local file wins.

``load()`` returns the location it read from alongside the document, and
``save()`` takes that location back, so writes always go to the file that was
read without any process-wide "last loaded" state. ``open_registry()`` wires
the two together into a ``CredentialRegistry`` that persists itself after
each mutation.

File Structure::

    {
      "version": "1.0.0",
      "tier": "free",
      "secrets": [
        {"name": "stripe-prod", "provider": "stripe", "type": "api_key",
         "createdAt": "2024-01-01", "expiresAt": null, "lastRotated": "2024-01-01",
         "rotationPolicy": 90, "notes": "", "status": "healthy"}
      ]
    }

Example:
    >>> store = RegistryStore(AuditSettings())
    >>> registry = store.open_registry()
    >>> registry.rotate("stripe-prod")  # written back to the same file
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import structlog
from pydantic import ValidationError as PydanticValidationError

from secrets_audit.config.settings import AuditSettings
from secrets_audit.engine.registry import CredentialRegistry
from secrets_audit.enums import Tier
from secrets_audit.exceptions import ConfigExistsError, ConfigNotFoundError, PersistenceError
from secrets_audit.models.domain import RegistryDocument

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StoreLocation:
    """Where a registry document was read from or will be written to."""

    path: Path
    is_global: bool = False

    @property
    def scope(self) -> str:
        return "global" if self.is_global else "local"


class RegistryStore:
    """Load and save registry documents with local-over-global precedence.

    Args:
        settings: Supplies the local file name and global directory
        clock: Passed to registries opened through this store
    """

    def __init__(
        self,
        settings: AuditSettings | None = None,
        clock: Callable[[], date] | None = None,
    ) -> None:
        self.settings = settings or AuditSettings()
        self._clock = clock

    @property
    def local_location(self) -> StoreLocation:
        return StoreLocation(self.settings.local_path, is_global=False)

    @property
    def global_location(self) -> StoreLocation:
        return StoreLocation(self.settings.global_path, is_global=True)

    def locate(self) -> StoreLocation | None:
        """Find the registry file in effect, or None if neither exists."""
        for location in (self.local_location, self.global_location):
            if location.path.exists():
                return location
        return None

    def exists(self) -> bool:
        return self.locate() is not None

    def init(self, use_global: bool = False, tier: str = Tier.FREE.value) -> StoreLocation:
        """Create an empty registry file.

        Args:
            use_global: Create the global file instead of the local one
            tier: Tier recorded in the new file

        Returns:
            Location of the created file

        Raises:
            ConfigExistsError: If the target file already exists
            PersistenceError: If the file cannot be written
        """
        location = self.global_location if use_global else self.local_location
        if location.path.exists():
            raise ConfigExistsError(str(location.path))

        self.save(location, RegistryDocument(tier=tier))
        log.info("registry_initialized", path=str(location.path), scope=location.scope)
        return location

    def read(self, location: StoreLocation) -> RegistryDocument:
        """Read and validate the document at a specific location."""
        path = location.path
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ConfigNotFoundError() from e
        except OSError as e:
            raise PersistenceError(f"Cannot read registry file {path}: {e}", path=str(path)) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Corrupt registry file {path}: {e}", path=str(path)) from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Corrupt registry file {path}: expected a JSON object", path=str(path))

        try:
            return RegistryDocument.model_validate(data)
        except PydanticValidationError as e:
            raise PersistenceError(f"Invalid registry file {path}: {e}", path=str(path)) from e

    def load(self) -> tuple[StoreLocation, RegistryDocument]:
        """Load the registry in effect.

        Raises:
            ConfigNotFoundError: If no registry file exists
            PersistenceError: If the file is unreadable or corrupt
        """
        location = self.locate()
        if location is None:
            raise ConfigNotFoundError()
        document = self.read(location)
        log.debug("registry_loaded", path=str(location.path), secrets=len(document.secrets))
        return location, document

    def save(self, location: StoreLocation, document: RegistryDocument) -> None:
        """Write a document as indented JSON, replacing the file atomically.

        Raises:
            PersistenceError: If the file cannot be written
        """
        path = location.path
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(document.to_json_dict(), indent=2) + "\n", encoding="utf-8")
            tmp_path.replace(path)
        except OSError as e:
            raise PersistenceError(f"Cannot write registry file {path}: {e}", path=str(path)) from e

        log.debug("registry_saved", path=str(path), secrets=len(document.secrets))

    def open_registry(self) -> CredentialRegistry:
        """Load the registry and bind it to the file it came from."""
        location, document = self.load()
        return CredentialRegistry.from_document(
            document,
            persist=lambda registry: self.save(location, registry.to_document()),
            clock=self._clock,
            free_tier_limit=self.settings.free_tier_limit,
            default_rotation_days=self.settings.default_rotation_days,
        )

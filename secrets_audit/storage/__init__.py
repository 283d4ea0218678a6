"""File persistence for the credential registry."""

from secrets_audit.storage.registry_store import RegistryStore, StoreLocation

__all__ = ["RegistryStore", "StoreLocation"]

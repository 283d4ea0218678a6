"""Tests for secrets_audit.storage.registry_store."""

import json
from datetime import date
from unittest.mock import patch

import pytest

from secrets_audit.exceptions import ConfigExistsError, ConfigNotFoundError, PersistenceError, ValidationError
from secrets_audit.models.domain import RegistryDocument, TrackedCredential
from secrets_audit.storage.registry_store import RegistryStore, StoreLocation


class TestLocate:
    """Resolution of the registry file in effect."""

    def test_nothing_found(self, store):
        """Test that locate returns None without any registry file."""
        assert store.locate() is None
        assert not store.exists()

    def test_local_file(self, store):
        """Test that the local file is found in the working directory."""
        store.init()
        location = store.locate()

        assert location.path.name == ".secrets-audit.json"
        assert location.scope == "local"

    def test_global_file(self, store, settings):
        """Test that the global file is used when no local file exists."""
        store.init(use_global=True)
        location = store.locate()

        assert location.is_global
        assert location.path == settings.global_dir / "config.json"

    def test_local_takes_precedence(self, store):
        """Test that a local file wins over the global one."""
        store.init(use_global=True)
        store.init()

        assert store.locate().scope == "local"


class TestInit:
    """Creating registry files."""

    def test_init_writes_empty_document(self, store):
        """Test that init writes version, tier and an empty list."""
        location = store.init()
        data = json.loads(location.path.read_text())

        assert data == {"version": "1.0.0", "tier": "free", "secrets": []}

    def test_init_creates_global_directory(self, store, settings):
        """Test that init --global creates missing parent directories."""
        assert not settings.global_dir.exists()
        store.init(use_global=True)
        assert (settings.global_dir / "config.json").exists()

    def test_init_refuses_to_overwrite(self, store):
        """Test that init fails when the file exists."""
        store.init()
        with pytest.raises(ConfigExistsError) as exc_info:
            store.init()

        assert exc_info.value.code == "ERR_CONFIG_EXISTS"


class TestLoad:
    """Reading registry files."""

    def test_load_missing(self, store):
        """Test that load raises ConfigNotFoundError without a file."""
        with pytest.raises(ConfigNotFoundError) as exc_info:
            store.load()

        assert "secrets-audit init" in exc_info.value.message

    def test_load_corrupt_json(self, store):
        """Test that invalid JSON raises PersistenceError."""
        location = store.init()
        location.path.write_text("{not json")

        with pytest.raises(PersistenceError) as exc_info:
            store.load()

        assert exc_info.value.path == str(location.path)

    def test_load_non_object(self, store):
        """Test that a JSON array is rejected."""
        location = store.init()
        location.path.write_text("[]")

        with pytest.raises(PersistenceError):
            store.load()

    def test_load_invalid_document(self, store):
        """Test that records without a name are rejected."""
        location = store.init()
        location.path.write_text(json.dumps({"secrets": [{"provider": "aws"}]}))

        with pytest.raises(PersistenceError):
            store.load()

    def test_load_unreadable(self, store):
        """Test that OS errors are wrapped in PersistenceError."""
        store.init()
        with patch("pathlib.Path.read_text", side_effect=PermissionError("denied")):
            with pytest.raises(PersistenceError) as exc_info:
                store.load()

        assert "denied" in exc_info.value.message

    def test_load_tolerates_hand_edits(self, store):
        """Test that malformed values in stored records still load."""
        location = store.init()
        location.path.write_text(
            json.dumps(
                {
                    "version": "1.0.0",
                    "tier": "free",
                    "secrets": [
                        {"name": "odd", "createdAt": "someday", "rotationPolicy": "ninety", "extra": 1}
                    ],
                }
            )
        )

        _, document = store.load()
        record = document.secrets[0]

        assert record.created_at == "someday"
        assert record.rotation_policy_days is None


class TestSave:
    """Writing registry files."""

    def test_save_load_round_trip(self, store):
        """Test that saving then loading reproduces the document."""
        location = store.init()
        document = RegistryDocument(
            tier="pro",
            secrets=[
                TrackedCredential(name="a", provider="aws", createdAt="2024-01-01", rotationPolicy=30),
                TrackedCredential(name="b", expiresAt="2025-01-01", rotationPolicy=None, notes="n"),
            ],
        )

        store.save(location, document)
        _, loaded = store.load()

        assert loaded == document

    def test_save_uses_camel_case_keys(self, store):
        """Test that the file uses the persisted key names."""
        location = store.init()
        store.save(location, RegistryDocument(secrets=[TrackedCredential(name="a", type="token")]))

        record = json.loads(location.path.read_text())["secrets"][0]

        assert record["type"] == "token"
        assert {"createdAt", "expiresAt", "lastRotated", "rotationPolicy"} <= set(record)

    def test_save_leaves_no_temp_file(self, store):
        """Test that the temporary file is renamed into place."""
        location = store.init()
        store.save(location, RegistryDocument())

        assert not location.path.with_suffix(".json.tmp").exists()

    def test_save_unwritable(self, store, tmp_path):
        """Test that write failures raise PersistenceError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        location = StoreLocation(blocker / "sub" / "config.json", is_global=True)

        with pytest.raises(PersistenceError):
            store.save(location, RegistryDocument())


class TestOpenRegistry:
    """Registries bound to their file."""

    def test_mutations_written_to_loaded_file(self, store):
        """Test that an opened registry persists to the file it came from."""
        store.init(use_global=True)
        registry = store.open_registry()
        registry.add({"name": "stripe-prod", "provider": "stripe"})

        data = json.loads(store.global_location.path.read_text())

        assert [s["name"] for s in data["secrets"]] == ["stripe-prod"]
        assert data["secrets"][0]["createdAt"] == "2024-06-01"
        assert not store.local_location.path.exists()

    def test_registry_uses_store_clock(self, store):
        """Test that the store's clock reaches the registry."""
        store.init()
        registry = store.open_registry()

        assert registry.today() == date(2024, 6, 1)

    def test_registry_uses_settings_limits(self, settings, tmp_path, monkeypatch):
        """Test that tier limit and default policy come from settings."""
        monkeypatch.chdir(tmp_path)
        settings = settings.model_copy(update={"free_tier_limit": 2, "default_rotation_days": 45})
        store = RegistryStore(settings)
        store.init()

        registry = store.open_registry()

        assert registry.free_tier_limit == 2
        assert registry.default_rotation_days == 45

    def test_failed_mutation_not_written(self, store):
        """Test that a rejected add leaves the file untouched."""
        location = store.init()
        before = location.path.read_text()

        registry = store.open_registry()
        with pytest.raises(ValidationError):
            registry.add({"name": ""})

        assert location.path.read_text() == before

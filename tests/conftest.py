"""Pytest configuration and shared fixtures."""

from datetime import date, timedelta
from pathlib import Path

import pytest

from secrets_audit.config.settings import AuditSettings
from secrets_audit.engine.registry import CredentialRegistry
from secrets_audit.models.domain import TrackedCredential
from secrets_audit.storage.registry_store import RegistryStore

TODAY = date(2024, 6, 1)


def days_ago(n: int, today: date = TODAY) -> str:
    """ISO date ``n`` days before ``today``."""
    return (today - timedelta(days=n)).isoformat()


def days_from_now(n: int, today: date = TODAY) -> str:
    """ISO date ``n`` days after ``today``."""
    return (today + timedelta(days=n)).isoformat()


@pytest.fixture
def today() -> date:
    """Fixed reference day used by registry clocks in tests."""
    return TODAY


@pytest.fixture
def registry() -> CredentialRegistry:
    """Empty free-tier registry with a fixed clock and no persistence."""
    return CredentialRegistry(clock=lambda: TODAY)


@pytest.fixture
def pro_registry() -> CredentialRegistry:
    """Empty pro-tier registry with a fixed clock."""
    return CredentialRegistry(tier="pro", clock=lambda: TODAY)


@pytest.fixture
def sample_credential() -> TrackedCredential:
    """Credential created and rotated 10 days ago with a 90 day policy."""
    return TrackedCredential(
        name="stripe-prod",
        provider="stripe",
        type="api_key",
        createdAt=days_ago(10),
        lastRotated=days_ago(10),
        rotationPolicy=90,
        notes="Production key",
    )


@pytest.fixture
def settings(tmp_path: Path) -> AuditSettings:
    """Settings whose global registry lives under tmp_path."""
    return AuditSettings(global_dir=tmp_path / "global")


@pytest.fixture
def store(settings: AuditSettings, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> RegistryStore:
    """RegistryStore working in an isolated directory with a fixed clock."""
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return RegistryStore(settings, clock=lambda: TODAY)

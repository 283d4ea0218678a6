"""Tests for secrets_audit.config.settings."""

from pathlib import Path

import pytest

from secrets_audit.config.settings import AuditSettings
from secrets_audit.exceptions import ConfigurationError


class TestAuditSettingsDefaults:
    """Defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        """Test the built-in defaults."""
        monkeypatch.delenv("SECRETS_AUDIT_LOG_LEVEL", raising=False)
        monkeypatch.delenv("SECRETS_AUDIT_FREE_TIER_LIMIT", raising=False)
        settings = AuditSettings()

        assert settings.local_file == ".secrets-audit.json"
        assert settings.global_file == "config.json"
        assert settings.log_level == "WARNING"
        assert settings.free_tier_limit == 10
        assert settings.default_rotation_days == 90
        assert settings.package_name == "secrets-audit"

    def test_env_prefix(self, monkeypatch, tmp_path: Path):
        """Test that SECRETS_AUDIT_* variables override defaults."""
        monkeypatch.setenv("SECRETS_AUDIT_FREE_TIER_LIMIT", "25")
        monkeypatch.setenv("SECRETS_AUDIT_GLOBAL_DIR", str(tmp_path))

        settings = AuditSettings()

        assert settings.free_tier_limit == 25
        assert settings.global_path == tmp_path / "config.json"

    def test_local_path_follows_cwd(self, monkeypatch, tmp_path: Path):
        """Test that the local registry lives in the working directory."""
        monkeypatch.chdir(tmp_path)
        assert AuditSettings().local_path == tmp_path / ".secrets-audit.json"

    def test_log_level_normalized(self):
        """Test that log levels are upper-cased."""
        assert AuditSettings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValueError):
            AuditSettings(log_level="chatty")

    def test_limits_must_be_positive(self):
        """Test field constraints on numeric settings."""
        with pytest.raises(ValueError):
            AuditSettings(free_tier_limit=0)
        with pytest.raises(ValueError):
            AuditSettings(default_rotation_days=0)


class TestFromYaml:
    """Loading settings from YAML files."""

    def test_load(self, tmp_path: Path):
        """Test loading a valid file."""
        config = tmp_path / "settings.yaml"
        config.write_text("log_level: INFO\nfree_tier_limit: 3\ndefault_rotation_days: 60\n")

        settings = AuditSettings.from_yaml(str(config))

        assert settings.log_level == "INFO"
        assert settings.free_tier_limit == 3
        assert settings.default_rotation_days == 60

    def test_empty_file_uses_defaults(self, tmp_path: Path):
        """Test that an empty file yields default settings."""
        config = tmp_path / "settings.yaml"
        config.write_text("")

        assert AuditSettings.from_yaml(str(config)).default_rotation_days == 90

    def test_missing_file(self, tmp_path: Path):
        """Test that a missing file raises ConfigurationError."""
        with pytest.raises(ConfigurationError) as exc_info:
            AuditSettings.from_yaml(str(tmp_path / "nope.yaml"))

        assert "Settings file not found" in exc_info.value.message

    def test_invalid_yaml(self, tmp_path: Path):
        """Test that malformed YAML raises ConfigurationError."""
        config = tmp_path / "settings.yaml"
        config.write_text("log_level: [unclosed\n")

        with pytest.raises(ConfigurationError) as exc_info:
            AuditSettings.from_yaml(str(config))

        assert "Invalid YAML syntax" in exc_info.value.message

    def test_non_mapping(self, tmp_path: Path):
        """Test that a YAML list is rejected."""
        config = tmp_path / "settings.yaml"
        config.write_text("- one\n- two\n")

        with pytest.raises(ConfigurationError) as exc_info:
            AuditSettings.from_yaml(str(config))

        assert "YAML object" in exc_info.value.message

    def test_env_interpolation(self, tmp_path: Path, monkeypatch):
        """Test ${VAR} substitution."""
        monkeypatch.setenv("AUDIT_TEST_DIR", str(tmp_path / "registry"))
        config = tmp_path / "settings.yaml"
        config.write_text("global_dir: ${AUDIT_TEST_DIR}\n")

        settings = AuditSettings.from_yaml(str(config))

        assert settings.global_path == tmp_path / "registry" / "config.json"

    def test_env_interpolation_default(self, tmp_path: Path, monkeypatch):
        """Test ${VAR:-default} substitution when the variable is unset."""
        monkeypatch.delenv("AUDIT_TEST_LIMIT", raising=False)
        config = tmp_path / "settings.yaml"
        config.write_text("free_tier_limit: ${AUDIT_TEST_LIMIT:-7}\n")

        assert AuditSettings.from_yaml(str(config)).free_tier_limit == 7

    def test_missing_env_var(self, tmp_path: Path, monkeypatch):
        """Test that an unset variable without default is an error."""
        monkeypatch.delenv("AUDIT_TEST_MISSING", raising=False)
        config = tmp_path / "settings.yaml"
        config.write_text("global_dir: ${AUDIT_TEST_MISSING}\n")

        with pytest.raises(ConfigurationError) as exc_info:
            AuditSettings.from_yaml(str(config))

        assert "AUDIT_TEST_MISSING" in exc_info.value.message

    def test_comments_not_interpolated(self, tmp_path: Path, monkeypatch):
        """Test that placeholders in comment lines are left alone."""
        monkeypatch.delenv("AUDIT_TEST_MISSING", raising=False)
        config = tmp_path / "settings.yaml"
        config.write_text("# global_dir: ${AUDIT_TEST_MISSING}\nlog_level: ERROR\n")

        assert AuditSettings.from_yaml(str(config)).log_level == "ERROR"

    def test_validation_failure(self, tmp_path: Path):
        """Test that invalid values raise ConfigurationError."""
        config = tmp_path / "settings.yaml"
        config.write_text("free_tier_limit: lots\n")

        with pytest.raises(ConfigurationError) as exc_info:
            AuditSettings.from_yaml(str(config))

        assert "Failed to validate settings" in exc_info.value.message

"""Tests for config.py module."""

from pathlib import Path
from unittest.mock import patch

import pytest

from openbao_unseal.config import Settings, default_config_path, load_settings
from openbao_unseal.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def isolated_config_home(tmp_path, monkeypatch):
    """Point the default config location at an empty directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    return tmp_path / "xdg"


class TestDefaults:
    """Tests for built-in defaults."""

    def test_defaults(self):
        """Test values used when nothing is configured."""
        settings = load_settings()

        assert settings == Settings()
        assert settings.namespace == "openbao"
        assert settings.pod_label == "app.kubernetes.io/name=openbao"
        assert settings.local_port == 8200
        assert settings.timeout == 30
        assert settings.key_threshold == 3
        assert settings.age_key_file == Path.home() / ".age" / "openbao-key.txt"
        assert settings.encrypted_file == Path.home() / ".openbao" / "openbao-init.json.age"

    def test_address(self):
        """Test the forwarded API address."""
        assert Settings(local_port=18200).address == "http://localhost:18200"

    def test_settings_are_frozen(self):
        """Test that settings cannot be changed after construction."""
        settings = Settings()

        with pytest.raises(AttributeError):
            settings.timeout = 5

    def test_default_config_path(self, isolated_config_home):
        """Test the XDG config location."""
        assert default_config_path() == isolated_config_home / "openbao-unseal" / "config.yaml"

    def test_default_config_path_without_xdg(self, monkeypatch):
        """Test fallback to ~/.config."""
        monkeypatch.delenv("XDG_CONFIG_HOME")

        assert default_config_path() == Path.home() / ".config" / "openbao-unseal" / "config.yaml"


class TestConfigFile:
    """Tests for YAML config files."""

    def test_explicit_file(self, tmp_path):
        """Test values read from a config file."""
        path = tmp_path / "config.yaml"
        path.write_text("namespace: vault\nlocal_port: 18200\nage_key_file: ~/keys/age.txt\n")

        settings = load_settings(path)

        assert settings.namespace == "vault"
        assert settings.local_port == 18200
        assert settings.age_key_file == Path.home() / "keys" / "age.txt"

    def test_default_file_used_when_present(self, isolated_config_home):
        """Test that the XDG config file is picked up automatically."""
        path = isolated_config_home / "openbao-unseal" / "config.yaml"
        path.parent.mkdir(parents=True)
        path.write_text("pod_label: app=bao\n")

        assert load_settings().pod_label == "app=bao"

    def test_empty_file(self, tmp_path):
        """Test that an empty file means defaults."""
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_settings(path) == Settings()

    def test_overrides_win(self, tmp_path):
        """Test that command-line values replace file values."""
        path = tmp_path / "config.yaml"
        path.write_text("timeout: 10\n")

        assert load_settings(path, timeout=60).timeout == 60

    def test_none_overrides_ignored(self, tmp_path):
        """Test that unset command-line options keep file values."""
        path = tmp_path / "config.yaml"
        path.write_text("timeout: 10\n")

        assert load_settings(path, timeout=None).timeout == 10

    def test_unknown_setting(self, tmp_path):
        """Test error for misspelled settings."""
        path = tmp_path / "config.yaml"
        path.write_text("namespce: vault\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(path)

        assert "namespce" in str(exc_info.value)

    def test_malformed_yaml(self, tmp_path):
        """Test error for invalid YAML."""
        path = tmp_path / "config.yaml"
        path.write_text("namespace: [unclosed\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(path)

        assert "malformed YAML" in str(exc_info.value)

    def test_not_a_mapping(self, tmp_path):
        """Test error for a YAML list."""
        path = tmp_path / "config.yaml"
        path.write_text("- namespace\n- openbao\n")

        with pytest.raises(ConfigurationError):
            load_settings(path)

    def test_unreadable_file(self, tmp_path):
        """Test error when the file cannot be opened."""
        path = tmp_path / "config.yaml"
        path.write_text("namespace: vault\n")

        with patch.object(Path, "open", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(ConfigurationError):
                load_settings(path)


class TestValueChecks:
    """Tests for setting types and ranges."""

    @pytest.mark.parametrize(
        ("line", "name"),
        [
            ("timeout: fast", "timeout"),
            ("timeout: true", "timeout"),
            ("timeout: 0", "timeout"),
            ("probe_timeout: 2.5", "probe_timeout"),
            ("settle_delay: -1", "settle_delay"),
            ("settle_delay: .inf", "settle_delay"),
            ("settle_delay: soon", "settle_delay"),
            ('local_port: "x"', "local_port"),
            ("remote_port: 70000", "remote_port"),
            ("key_threshold: 0", "key_threshold"),
            ("namespace: ''", "namespace"),
            ("pod_label: [app]", "pod_label"),
            ("keys_field: 3", "keys_field"),
            ("age_key_file: null", "age_key_file"),
            ("encrypted_file: 42", "encrypted_file"),
        ],
    )
    def test_bad_value(self, tmp_path, line, name):
        """Test that a value of the wrong type or range is rejected by name."""
        path = tmp_path / "config.yaml"
        path.write_text(f"{line}\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(path)

        assert f"'{name}'" in str(exc_info.value)

    def test_bad_override(self):
        """Test that command-line overrides are checked too."""
        with pytest.raises(ConfigurationError):
            load_settings(timeout=-5)

    def test_accepted_values(self, tmp_path):
        """Test boundary values that are allowed."""
        path = tmp_path / "config.yaml"
        path.write_text("settle_delay: 0\nprobe_timeout: 1\nlocal_port: 65535\nkey_threshold: 1\n")

        settings = load_settings(path)

        assert settings.settle_delay == 0
        assert settings.probe_timeout == 1
        assert settings.local_port == 65535
        assert settings.key_threshold == 1

    def test_fractional_settle_delay(self, tmp_path):
        """Test that the settle delay may be fractional."""
        path = tmp_path / "config.yaml"
        path.write_text("settle_delay: 0.5\n")

        assert load_settings(path).settle_delay == 0.5

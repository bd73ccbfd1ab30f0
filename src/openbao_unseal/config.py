"""Run configuration for openbao-unseal.

Settings are built once at startup from built-in defaults, an optional
YAML config file and command-line overrides, then passed by reference to
every component.
"""

import dataclasses
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from icecream import ic

from openbao_unseal.exceptions import ConfigurationError

_PATH_FIELDS = ("age_key_file", "encrypted_file")
_TEXT_FIELDS = ("namespace", "pod_label", "keys_field")
_POSITIVE_INT_FIELDS = ("local_port", "remote_port", "timeout", "probe_timeout", "key_threshold")
_PORT_FIELDS = ("local_port", "remote_port")
_MAX_PORT = 65535


def default_config_path() -> Path:
    """Return the XDG-compliant location of the optional config file."""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    base_path = Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"
    return base_path / "openbao-unseal" / "config.yaml"


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable settings for a single run.

    Attributes:
        age_key_file: Private age identity used to decrypt the init file.
        encrypted_file: age-encrypted OpenBao init document.
        namespace: Namespace the OpenBao pods run in.
        pod_label: Label selector matching the OpenBao pods.
        local_port: Local end of the port-forward.
        remote_port: OpenBao API port inside the pod.
        timeout: Timeout in seconds for decryption and API calls.
        probe_timeout: Timeout in seconds for the port-forward reachability probe.
        settle_delay: Seconds to wait for kubectl port-forward to bind.
        key_threshold: Number of key shares required to unseal.
        keys_field: Field of the init document holding the key shares.

    """

    age_key_file: Path = field(default_factory=lambda: Path.home() / ".age" / "openbao-key.txt")
    encrypted_file: Path = field(default_factory=lambda: Path.home() / ".openbao" / "openbao-init.json.age")
    namespace: str = "openbao"
    pod_label: str = "app.kubernetes.io/name=openbao"
    local_port: int = 8200
    remote_port: int = 8200
    timeout: int = 30
    probe_timeout: int = 5
    settle_delay: float = 2.0
    key_threshold: int = 3
    keys_field: str = "unseal_keys_b64"

    @property
    def address(self) -> str:
        """Base URL of the forwarded OpenBao API."""
        return f"http://localhost:{self.local_port}"


def _read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file into a mapping.

    Args:
        path: Path to the config file.

    Returns:
        The parsed mapping, empty if the file is empty.

    Raises:
        ConfigurationError: If the file is unreadable, malformed or not a mapping.

    """
    try:
        with path.open() as stream:
            data = yaml.safe_load(stream)
    except OSError as err:
        raise ConfigurationError(f"Cannot read config file '{path}': {err}") from err
    except yaml.YAMLError as err:
        raise ConfigurationError(f"Config file '{path}' contains malformed YAML: {err}") from err

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file '{path}' does not contain a YAML mapping")
    return data


def _check_value(name: str, value: Any) -> None:
    """Reject a setting value of the wrong type or out of range.

    Raises:
        ConfigurationError: If the value cannot be used for the setting.

    """
    if name in _PATH_FIELDS:
        if not isinstance(value, (str, os.PathLike)) or not str(value):
            raise ConfigurationError(f"Setting '{name}' must be a file path, got {value!r}")
    elif name in _TEXT_FIELDS:
        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"Setting '{name}' must be a non-empty string, got {value!r}")
    elif name in _POSITIVE_INT_FIELDS:
        # bool is a subclass of int
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ConfigurationError(f"Setting '{name}' must be a positive integer, got {value!r}")
        if name in _PORT_FIELDS and value > _MAX_PORT:
            raise ConfigurationError(f"Setting '{name}' must be a port number up to {_MAX_PORT}, got {value!r}")
    elif name == "settle_delay":
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value < math.inf:
            raise ConfigurationError(f"Setting '{name}' must be a non-negative number, got {value!r}")


def load_settings(path: Path | None = None, **overrides: Any) -> Settings:
    """Build the run settings.

    Values from the config file replace the defaults; overrides that are
    not None replace both.

    Args:
        path: Explicit config file. If None, the default location is used
              when it exists.
        **overrides: Setting values from the command line.

    Returns:
        The resolved Settings.

    Raises:
        ConfigurationError: If the config file is invalid or names unknown settings,
            or a value has the wrong type or range.

    """
    if path is None and default_config_path().is_file():
        path = default_config_path()

    values: dict[str, Any] = _read_config_file(path) if path is not None else {}
    values.update({key: value for key, value in overrides.items() if value is not None})

    known = {f.name for f in dataclasses.fields(Settings)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f"Unknown settings: {', '.join(unknown)}")

    for name, value in values.items():
        _check_value(name, value)

    for name in _PATH_FIELDS:
        if name in values:
            values[name] = Path(values[name]).expanduser()

    settings = Settings(**values)
    ic(settings)
    return settings

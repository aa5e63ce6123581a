"""YAML defaults for the sqldeploy command."""

import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml

from sqldeployer.constants import DEFAULT_CONFIG_FILE
from sqldeployer.errors import DeployerError


def _as_text(key: str, value: Any) -> str:
    if isinstance(value, (dict, list)) or value is None:
        raise DeployerError(f"Config key '{key}' must be a string.")
    return str(value)


def _as_timeout(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise DeployerError(f"Config key '{key}' must be a number of seconds.")
    try:
        seconds = float(value)
    except (TypeError, ValueError) as exc:
        raise DeployerError(f"Config key '{key}' must be a number of seconds, got '{value}'.") from exc
    if seconds <= 0:
        raise DeployerError(f"Config key '{key}' must be greater than zero.")
    return seconds


def _as_flag(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise DeployerError(f"Config key '{key}' must be true or false.")
    return value


class ConfigLoader:
    """Reads CLI defaults from a YAML mapping and coerces each value to its option type."""

    CONVERTERS: Dict[str, Callable[[str, Any], Any]] = {
        "server_name": _as_text,
        "connection_string": _as_text,
        "path": _as_text,
        "action": _as_text,
        "sqlpackage_action": _as_text,
        "arguments": _as_text,
        "sqlpackage_path": _as_text,
        "sqlcmd_path": _as_text,
        "log_file": _as_text,
        "timeout": _as_timeout,
        "verbose": _as_flag,
    }

    def resolve_path(self, config_path: Optional[str], cwd: Optional[str] = None) -> Optional[str]:
        """Explicit path, else the default file in ``cwd`` when it exists."""
        if config_path:
            return config_path
        default_path = os.path.join(cwd or os.getcwd(), DEFAULT_CONFIG_FILE)
        return default_path if os.path.exists(default_path) else None

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.is_file():
            raise DeployerError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise DeployerError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise DeployerError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(str(key) for key in parsed if key not in self.CONVERTERS)
        if unknown:
            raise DeployerError(f"Unknown configuration keys: {', '.join(unknown)}")

        return {key: self.CONVERTERS[key](key, value) for key, value in parsed.items()}

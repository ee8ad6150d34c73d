"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for specshift:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.specshift/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Service config** -- A single :class:`~specshift.models.ServiceConfig`
  JSON file storing defaults (bind address, store URL, resolver limits).
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and the user config into
  the effective configuration.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  such as the store API key from env vars or files, so they never live in
  the config file itself.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from specshift.exceptions import ConfigError
from specshift.models import ServiceConfig

_APP_NAME = "specshift"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "specshift.json"

# Environment variable -> dotted config key
_ENV_OVERRIDES: dict[str, str] = {
    "SPECSHIFT_HOST": "host",
    "SPECSHIFT_PORT": "port",
    "SPECSHIFT_LOG_LEVEL": "log_level",
    "SPECSHIFT_STORE_URL": "store.url",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/specshift/`` (default ``~/.config/specshift/``).
    On macOS/Windows: ``~/.specshift/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/specshift/`` (default ``~/.local/share/specshift/``).
    On macOS/Windows: ``~/.specshift/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Service config ---


def _config_path() -> Path:
    """Path to the user config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_service_config() -> ServiceConfig:
    """Load the user configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~specshift.models.ServiceConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _config_path()
    if not path.is_file():
        return ServiceConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ServiceConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_service_config(config: ServiceConfig) -> None:
    """Persist the user configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local overrides from ``./specshift.json``.

    Returns:
        The parsed JSON as a dict, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Project config at {path} must be a JSON object")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into a copy of *base*."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _set_dotted(data: dict[str, Any], dotted_key: str, value: Any) -> None:
    """Assign *value* at a dot-separated key path, creating nested dicts."""
    keys = dotted_key.split(".")
    target = data
    for key in keys[:-1]:
        target = target.setdefault(key, {})
    target[keys[-1]] = value


# --- Precedence resolution ---


def resolve_config(
    cli_host: Optional[str] = None,
    cli_port: Optional[int] = None,
    cli_log_level: Optional[str] = None,
) -> ServiceConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_host``, ``cli_port``, ``cli_log_level``)
        2. Environment variables (``SPECSHIFT_HOST``, ``SPECSHIFT_PORT``,
           ``SPECSHIFT_LOG_LEVEL``, ``SPECSHIFT_STORE_URL``)
        3. Project config (``./specshift.json``)
        4. User config (``~/.config/specshift/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer is invalid or the merged result fails
            validation.
    """
    data = load_service_config().model_dump(mode="json")

    project = load_project_config()
    if project is not None:
        data = _deep_merge(data, project)

    for env_var, dotted_key in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            _set_dotted(data, dotted_key, value)

    if cli_host is not None:
        data["host"] = cli_host
    if cli_port is not None:
        data["port"] = cli_port
    if cli_log_level is not None:
        data["log_level"] = cli_log_level

    try:
        return ServiceConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")


def resolve_store_key(config: ServiceConfig) -> Optional[str]:
    """Return the store API key from ``SPECSHIFT_STORE_KEY`` or ``store.key_source``."""
    env_key = os.environ.get("SPECSHIFT_STORE_KEY")
    if env_key:
        return env_key
    if config.store.key_source:
        return resolve_credential(config.store.key_source)
    return None

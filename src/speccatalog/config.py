"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for speccatalog:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.speccatalog/`` on macOS and Windows. See :func:`get_config_dir`
  and :func:`get_data_dir`.
* **Global config** -- A single :class:`~speccatalog.models.GlobalConfig`
  JSON file storing defaults (output format, parser settings).
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.

The parsing core never calls into this module; the CLI resolves a
configuration and hands the :class:`~speccatalog.models.ParserConfig` to
:class:`~speccatalog.service.SpecificationParsingService`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from speccatalog.exceptions import ConfigError
from speccatalog.models import GlobalConfig

_APP_NAME = "speccatalog"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "speccatalog.json"

ENV_PROTOCOL = "SPECCATALOG_PROTOCOL"
ENV_PREVIEW_CHARS = "SPECCATALOG_PREVIEW_CHARS"
ENV_MAX_WORKERS = "SPECCATALOG_MAX_WORKERS"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/speccatalog/`` (default
    ``~/.config/speccatalog/``). On macOS/Windows: ``~/.speccatalog/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/speccatalog/`` (default
    ``~/.local/share/speccatalog/``). On macOS/Windows: ``~/.speccatalog/logs/``.
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
    ``os.replace`` is an atomic rename on POSIX systems. On failure the temp
    file is removed.
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


# --- Global config ---


def global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~speccatalog.models.GlobalConfig`, or a
        default instance if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./speccatalog.json``.

    The file uses the same shape as the global config; any subset of keys
    may be given, e.g. ``{"parser": {"protocol_hint": "kafka"}}``.

    Returns:
        The parsed JSON as a dict, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or is not
            an object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into a copy of *base*."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"Environment variable {name} must be an integer, got {value!r}") from exc


def resolve_config(
    cli_protocol: Optional[str] = None,
    cli_format: Optional[str] = None,
    cli_max_workers: Optional[int] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_protocol``, ``cli_format``, ``cli_max_workers``)
        2. Environment variables (``SPECCATALOG_PROTOCOL``,
           ``SPECCATALOG_PREVIEW_CHARS``, ``SPECCATALOG_MAX_WORKERS``)
        3. Project config (``./speccatalog.json``)
        4. User config (``~/.config/speccatalog/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer holds an invalid value.
    """
    data = load_global_config().model_dump(mode="json")

    project = load_project_config()
    if project is not None:
        data = _merge(data, project)

    parser_overrides: dict[str, Any] = {}
    env_protocol = os.environ.get(ENV_PROTOCOL)
    if env_protocol:
        parser_overrides["protocol_hint"] = env_protocol
    env_preview = _env_int(ENV_PREVIEW_CHARS)
    if env_preview is not None:
        parser_overrides["preview_chars"] = env_preview
    env_workers = _env_int(ENV_MAX_WORKERS)
    if env_workers is not None:
        parser_overrides["max_workers"] = env_workers

    if cli_protocol is not None:
        parser_overrides["protocol_hint"] = cli_protocol
    if cli_max_workers is not None:
        parser_overrides["max_workers"] = cli_max_workers
    data = _merge(data, {"parser": parser_overrides})

    if cli_format is not None:
        data = _merge(data, {"output": {"format": cli_format}})

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

"""Configuration loading, persistence and precedence resolution.

* **Location** -- ``$XDG_CONFIG_HOME/iterableapi/config.json`` on Linux/BSD
  (default ``~/.config/iterableapi/``), ``~/.iterableapi/config.json``
  elsewhere. See :func:`get_config_dir`.
* **Project config** -- an optional ``./iterableapi.json`` whose keys
  override the user config for commands run from that directory.
* **Precedence** -- :func:`resolve_config` merges CLI flags, environment
  variables, project config and user config, highest first.
* **Credentials** -- the API key is never written to disk by this module.
  The config stores a *source* (``env:VAR``, ``file:/path`` or ``prompt``)
  that :func:`resolve_credential` reads at run time.

Writes go through :func:`_atomic_write` (temp file in the same directory,
then ``os.replace``).
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from iterableapi.exceptions import ConfigError
from iterableapi.models import GlobalConfig, ServiceConfig

_APP_NAME = "iterableapi"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "iterableapi.json"

ENV_API_KEY_SOURCE = "ITERABLE_API_KEY_SOURCE"
ENV_BASE_URL = "ITERABLE_BASE_URL"


# --- Paths ---


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary."""
    system = platform.system()
    if system == "Linux" or system.endswith("BSD"):
        xdg = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(xdg) if xdg else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* without ever leaving a partial file.

    The temp file lives next to *path* so the final ``os.replace`` is a
    same-filesystem rename. It is removed if anything fails before then.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, path)
    except BaseException:
        try:
            os.unlink(handle.name)
        except OSError:
            pass
        raise


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


# --- User config ---


def load_global_config() -> GlobalConfig:
    """Load the user config, or return defaults when none has been saved.

    Raises:
        ConfigError: If the file exists but is not valid JSON or does not
            validate as a :class:`~iterableapi.models.GlobalConfig`.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "config")
    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    payload = json.dumps(config.model_dump(mode="json"), indent=2) + "\n"
    _atomic_write(global_config_path(), payload)


def reset_global_config() -> GlobalConfig:
    """Overwrite the user config with defaults and return them."""
    config = GlobalConfig()
    save_global_config(config)
    return config


def set_config_value(config: GlobalConfig, key: str, value: str) -> GlobalConfig:
    """Return a copy of *config* with the dotted *key* set to *value*.

    *value* is parsed as JSON when possible (so ``300`` becomes a number and
    ``false`` a boolean) and used as a plain string otherwise. The result is
    re-validated.

    Raises:
        ConfigError: If *key* does not name a setting, or the new value
            fails validation.

    Example::

        set_config_value(cfg, "cache.ttl_seconds", "60")
    """
    data = config.model_dump(mode="json")
    parts = key.split(".")
    target = data
    for part in parts[:-1]:
        child = target.get(part)
        if not isinstance(child, dict):
            raise ConfigError(f"Unknown config key: {key}")
        target = child
    if parts[-1] not in target or isinstance(target[parts[-1]], dict):
        raise ConfigError(f"Unknown config key: {key}")

    try:
        parsed: Any = json.loads(value)
    except ValueError:
        parsed = value
    target[parts[-1]] = parsed

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid value for {key}: {exc}") from exc


# --- Project config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load ``./iterableapi.json`` from the working directory, if present.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Precedence resolution ---


def resolve_config(
    cli_api_key_source: Optional[str] = None,
    cli_base_url: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> GlobalConfig:
    """Build the effective configuration.

    Precedence (high to low):
        1. CLI flags
        2. Environment (``ITERABLE_API_KEY_SOURCE``, ``ITERABLE_BASE_URL``)
        3. Project config (``./iterableapi.json``)
        4. User config
        5. Defaults

    Raises:
        ConfigError: If any layer is malformed.
    """
    data = load_global_config().model_dump(mode="json")

    project = load_project_config()
    if project is not None:
        data = _merge(data, project)

    env_source = os.environ.get(ENV_API_KEY_SOURCE)
    if env_source:
        data["api_key_source"] = env_source
    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        data["base_url"] = env_base_url

    if cli_api_key_source is not None:
        data["api_key_source"] = cli_api_key_source
    if cli_base_url is not None:
        data["base_url"] = cli_base_url
    if cli_format is not None:
        data.setdefault("output", {})["format"] = cli_format

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Credentials ---


def resolve_credential(source: str) -> str:
    """Read a secret from its source descriptor.

    Supported forms:
        - ``env:VAR_NAME`` -- the value of an environment variable
        - ``file:/path/to/file`` -- file contents, whitespace stripped
        - ``prompt`` -- asked interactively (stdin must be a TTY)

    Raises:
        ConfigError: If the source is unknown or yields nothing.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if not value:
            raise ConfigError(f"Environment variable '{var_name}' is not set (source: {source})")
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc
        if not value:
            raise ConfigError(f"Credential file is empty: {path}")
        return value

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for the API key: stdin is not a TTY")
        value = getpass.getpass("Iterable API key: ")
        if not value:
            raise ConfigError("No API key entered")
        return value

    raise ConfigError(f"Unknown credential source format: {source}")


def build_service_config(config: GlobalConfig) -> ServiceConfig:
    """Resolve the API key and assemble a :class:`ServiceConfig`."""
    return ServiceConfig(
        api_key=resolve_credential(config.api_key_source),
        base_url=config.base_url,
        request=config.request,
        cache=config.cache,
    )

"""
Load showcase settings from every layer and merge them.

Layers, lowest to highest priority:
    built-in defaults -> ~/.config/showcase/config.json -> .showcase.json -> SHOWCASE_* env

The merged result is validated once and memoised for the rest of the process;
call clear_cache() to force a reload.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import ShowcaseConfig

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("json", "memory", "http")
PROJECT_CONFIG_NAME = ".showcase.json"

_config_cache: ShowcaseConfig | None = None


def get_xdg_config_home() -> Path:
    """Base directory for user config files ($XDG_CONFIG_HOME or ~/.config)."""
    configured = os.environ.get("XDG_CONFIG_HOME")
    return Path(configured) if configured else Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/showcase/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "showcase" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """Location of the project's .showcase.json (``cwd`` defaults to the current directory)."""
    return (cwd or Path.cwd()) / PROJECT_CONFIG_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Return ``base`` updated with ``override``, recursing into nested dicts.

    Neither argument is modified.

    Example:
        >>> deep_merge({"store": {"backend": "json"}}, {"store": {"token": "t"}})
        {'store': {'backend': 'json', 'token': 't'}}
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Read a JSON object from ``path``.

    A missing file, unreadable file, malformed JSON or a non-object top
    level all yield None; only the unreadable and malformed cases are logged.
    """
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


def _env_port() -> int | None:
    raw = os.environ.get("SHOWCASE_PORT")
    if not raw:
        return None
    try:
        port = int(raw)
    except ValueError:
        logger.warning("Invalid SHOWCASE_PORT value '%s', ignoring", raw)
        return None
    if not 1 <= port <= 65535:
        logger.warning("SHOWCASE_PORT must be 1-65535, got %d, ignoring", port)
        return None
    return port


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Layer SHOWCASE_* environment variables over ``config_dict``.

    SHOWCASE_STORE        store.backend (json, memory or http)
    SHOWCASE_DATA_PATH    store.path
    SHOWCASE_STORE_URL    store.base_url
    SHOWCASE_STORE_TOKEN  store.token
    SHOWCASE_PORT         server.port

    Invalid values are logged and ignored.
    """
    store: dict[str, Any] = {}
    server: dict[str, Any] = {}

    backend = os.environ.get("SHOWCASE_STORE", "").lower()
    if backend in STORE_BACKENDS:
        store["backend"] = backend
    elif backend:
        logger.warning("Invalid SHOWCASE_STORE value '%s', ignoring", backend)

    for env_name, key in (
        ("SHOWCASE_DATA_PATH", "path"),
        ("SHOWCASE_STORE_URL", "base_url"),
        ("SHOWCASE_STORE_TOKEN", "token"),
    ):
        if value := os.environ.get(env_name):
            store[key] = value

    if (port := _env_port()) is not None:
        server["port"] = port

    overrides: dict[str, Any] = {}
    if store:
        overrides["store"] = store
    if server:
        overrides["server"] = server
    return deep_merge(config_dict, overrides)


def get_default_config() -> dict[str, Any]:
    """Built-in settings used when no file or variable says otherwise."""
    return {
        "store": {"backend": "json", "path": "showcase-data.json", "poll_interval": 2.0},
        "server": {"host": "127.0.0.1", "port": 8080},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> ShowcaseConfig:
    """
    Build the effective ShowcaseConfig.

    A relative ``store.path`` is resolved against ``project_dir`` (or the
    current directory), so the CLI finds the data file from any subdirectory.

    Args:
        project_dir: Directory holding .showcase.json (defaults to cwd)
        use_cache: Return the config memoised by an earlier call, if any

    Returns:
        Validated configuration

    Raises:
        ValidationError: If a layer supplies a value the models reject
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()
    for layer in (get_user_config_path(), get_project_config_path(project_dir)):
        if data := load_json_file(layer):
            logger.debug("Merging config from %s", layer)
            merged = deep_merge(merged, data)
    merged = apply_env_overrides(merged)

    config = ShowcaseConfig(**merged)
    if not config.store.path.is_absolute():
        config.store.path = (project_dir or Path.cwd()) / config.store.path

    _config_cache = config
    return config


def clear_cache() -> None:
    """Forget the memoised config so the next load_config() reads every layer again."""
    global _config_cache
    _config_cache = None

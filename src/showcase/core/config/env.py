"""
Populate os.environ from .env files.

Two layers are read: the user file (~/.config/showcase/.env) and the
project files (.env, then .env.local). A variable exported in the shell
always wins; a project file may override what the user file set.

Effective precedence:
    shell environment > project .env files > user .env file
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)

PROJECT_ENV_FILES = (".env", ".env.local")


def _read_env(path: Path) -> dict[str, str]:
    """Key/value pairs of one .env file; keys without a value are skipped."""
    if not path.is_file():
        return {}
    values = {key: value for key, value in dotenv_values(path).items() if value is not None}
    logger.debug("Read %d variable(s) from %s", len(values), path)
    return values


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> None:
    """
    Load user and project .env files into os.environ.

    Args:
        project_dir: Directory holding the project .env files (defaults to cwd)
        user_env_paths: Override the user-level files to read
        project_env_paths: Override the project-level files to read
    """
    base = project_dir or Path.cwd()
    if user_env_paths is None:
        user_env_paths = [get_xdg_config_home() / "showcase" / ".env"]
    if project_env_paths is None:
        project_env_paths = [base / name for name in PROJECT_ENV_FILES]

    shell_keys = set(os.environ)

    for path in user_env_paths:
        for key, value in _read_env(Path(path)).items():
            os.environ.setdefault(key, value)

    for path in project_env_paths:
        for key, value in _read_env(Path(path)).items():
            if key not in shell_keys:
                os.environ[key] = value

"""Config file discovery and loading.

Settings come from ``iamctl.toml`` or from a ``[tool.iamctl]`` table in
``pyproject.toml``, whichever is found first walking up from the start
directory (a directory holding both prefers ``iamctl.toml``). The
``IAMCTL_CONFIG`` env var and the ``--config`` flag bypass discovery.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from iamctl.config.models import IamConfig

CONFIG_FILENAME = "iamctl.toml"
PYPROJECT_FILENAME = "pyproject.toml"
CONFIG_ENV_VAR = "IAMCTL_CONFIG"


def _has_tool_table(pyproject: Path) -> bool:
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return isinstance(data.get("tool", {}).get("iamctl"), dict)


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for a config source.

    Returns the path to the file, or None if nothing was found.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        pyproject = directory / PYPROJECT_FILENAME
        if pyproject.is_file() and _has_tool_table(pyproject):
            return pyproject
    return None


def read_config_data(path: Path) -> dict[str, Any]:
    """Parse *path* and return the iamctl settings table.

    Raises:
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    data: dict[str, Any] = tomllib.loads(path.read_text(encoding="utf-8"))
    if path.name == PYPROJECT_FILENAME:
        table = data.get("tool", {}).get("iamctl", {})
        return dict(table) if isinstance(table, dict) else {}
    return data


def load_config(path: Path | None = None, cwd: Path | None = None) -> IamConfig:
    """Load and validate the config sections only (no CLI flags or env).

    Returns the default IamConfig if no file is found.
    """
    if path is None:
        path = find_config(cwd)
    if path is None:
        return IamConfig()
    data = read_config_data(path)
    sections = {key: data[key] for key in IamConfig.model_fields if key in data}
    return IamConfig.model_validate(sections)

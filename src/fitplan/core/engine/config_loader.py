"""
YAML exercise library loader.

Loads the exercise library from exercises.yaml (bundled with the package)
and optionally merges user overrides from <data root>/exercises.yaml.

Usage:
    from fitplan.core.engine.config_loader import load_library_config
    library = load_library_config()
    splits = library["splits"]

If the user override file has parse errors, a warning is logged and the
file is ignored.  A broken bundled file is an installation error and
raises GenerationError when the library is requested.
"""

from __future__ import annotations

import importlib.resources
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..config import LIBRARY_FILENAME, get_data_root
from ..errors import GenerationError

_REQUIRED_SECTIONS: frozenset[str] = frozenset({"goals", "levels", "splits", "exercises"})

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file that must contain a mapping."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path:
    """Return the path to the bundled exercises.yaml."""
    ref = importlib.resources.files("fitplan").joinpath(LIBRARY_FILENAME)
    with importlib.resources.as_file(ref) as p:
        return p


def get_user_yaml_path(data_root: Path | None = None) -> Path | None:
    """Return <data root>/exercises.yaml if it exists, else None."""
    root = data_root if data_root is not None else get_data_root()
    p = root / LIBRARY_FILENAME
    return p if p.exists() else None


def load_library_config(data_root: Path | None = None) -> dict[str, Any]:
    """
    Load and merge the exercise library from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/fitplan/exercises.yaml
    2. User override at <data root>/exercises.yaml

    Args:
        data_root: Storage root holding the optional override file

    Returns:
        Merged library dict with goals, levels, splits and exercises

    Raises:
        GenerationError: If the bundled library is missing or invalid
    """
    try:
        library = _load_yaml_file(get_bundled_yaml_path())
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise GenerationError(f"Bundled exercise library could not be loaded: {e}") from e

    user = get_user_yaml_path(data_root)
    if user is not None:
        try:
            library = _deep_merge(library, _load_yaml_file(user))
            logger.debug(f"Merged user exercise library from {user}")
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring invalid exercise library override {user}: {e}")

    missing = _REQUIRED_SECTIONS - set(library)
    if missing:
        raise GenerationError(f"Exercise library missing sections: {sorted(missing)}")
    return library

"""Tool configuration for kitconf.

Loads the optional kitconf.yaml file from the project root. It selects the
theme variant and where the metadata and output files live; the adapter
settings themselves stay in the metadata file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .metadata import DEFAULT_METADATA_FILE

CONFIG_FILE = "kitconf.yaml"

DEFAULT_CONFIG = {
    "metadata_file": DEFAULT_METADATA_FILE,
    "css_lib": "scss",
    "fixed_adapter": False,
    "output": "svelte.config.js",
}


def load_config(project_root: Path) -> dict[str, Any]:
    """Load tool configuration from kitconf.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.
    """
    config_path = project_root / CONFIG_FILE
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                config.update(loaded)
    return config

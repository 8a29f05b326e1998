"""Project configuration and site data loading.

Key functions:
- load_config: Loads build settings from folio.yaml.
- load_data: Loads site data from YAML files in the data directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "folio.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "source_dir": "site",
    "output_dir": "output",
    "assets_dir": "assets",
    "data_dir": "data",
    "root_url": "",
    "default_layout": "post",
    "permalink": "/:folder/:slug/",
    "paginate": 0,
    "index_layout": "index",
    "tag_layout": "tag",
    "tags_layout": "tags",
    "feed_limit": 20,
}


def load_config(project_root: Path) -> dict[str, Any]:
    """Load build configuration from folio.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    config_path = project_root / CONFIG_FILENAME
    config = DEFAULT_CONFIG.copy()
    if not config_path.exists():
        logger.debug("No %s found in %s; using defaults", CONFIG_FILENAME, project_root)
        return config
    loaded = _read_yaml(config_path)
    if loaded is None:
        return config
    if not isinstance(loaded, dict):
        raise ConfigError(config_path, "Configuration must be a mapping")
    config.update(loaded)
    for key in ("paginate", "feed_limit"):
        try:
            config[key] = int(config.get(key) or 0)
        except (TypeError, ValueError) as exc:
            raise ConfigError(config_path, f"'{key}' must be an integer", exc) from exc
        if config[key] < 0:
            raise ConfigError(config_path, f"'{key}' must not be negative")
    return config


def load_data(data_dir: Path) -> dict[str, Any]:
    """Load site data from YAML files in the data directory.

    ``site.yaml`` is merged at the top level; every other ``<name>.yaml``
    is exposed under ``<name>``.

    Args:
        data_dir: Directory holding the data files.

    Returns:
        Dictionary containing merged data from all YAML files.
    """
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    for path in sorted(data_dir.glob("*.yaml")):
        payload = _read_yaml(path)
        if payload is None:
            continue
        if path.name == "site.yaml":
            if not isinstance(payload, dict):
                raise ConfigError(path, "site.yaml must be a mapping")
            data.update(payload)
        else:
            data[path.stem] = payload
    return data


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(path, f"Invalid YAML: {exc}", exc) from exc
    except OSError as exc:
        raise ConfigError(path, exc.strerror or str(exc), exc) from exc

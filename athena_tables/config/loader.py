from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from athena_tables.exceptions import TableValidationError

from .env_substitution import apply_env_substitution

logger = logging.getLogger(__name__)


def load_service_config(path: str, *, enable_env_substitution: bool = True) -> Dict[str, Any]:
    """Load a service YAML file (``serverless.yml`` style) into a dict.

    Args:
        path: Path to the service YAML file
        enable_env_substitution: Substitute ${VAR} and ${VAR:default} with environment variables
    """
    logger.info(f"Loading config from {path}")

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(config_path, "r", encoding="utf-8") as handle:
            cfg = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in config file: {exc}")

    if not isinstance(cfg, dict):
        raise ValueError("Config must be a YAML dictionary/object")

    if enable_env_substitution:
        cfg = apply_env_substitution(cfg)

    return cfg


def get_athena_tables(config: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the ``custom.athenaTables`` section, or an empty dict.

    Raises:
        TableValidationError: If either section is present but not a mapping
    """
    custom = config.get("custom") or {}
    if not isinstance(custom, Mapping):
        raise TableValidationError("'custom' section must be a mapping", key="custom")
    tables = custom.get("athenaTables") or {}
    if not isinstance(tables, Mapping):
        raise TableValidationError(
            "'custom.athenaTables' must be a mapping of table name to definition",
            key="athenaTables",
        )
    return dict(tables)


def get_region(config: Mapping[str, Any]) -> Optional[str]:
    provider = config.get("provider") or {}
    if isinstance(provider, Mapping):
        return provider.get("region")
    return None

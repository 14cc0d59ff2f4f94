"""Configuration models and loaders for athena-tables."""

from .loader import get_athena_tables, get_region, load_service_config
from .models import (
    DDLSource,
    FileDDL,
    InlineDDL,
    TableConfig,
    TableDefinition,
)
from .settings import PollSettings, resolve_poll_settings

__all__ = [
    "DDLSource",
    "FileDDL",
    "InlineDDL",
    "PollSettings",
    "TableConfig",
    "TableDefinition",
    "get_athena_tables",
    "get_region",
    "load_service_config",
    "resolve_poll_settings",
]

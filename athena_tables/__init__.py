"""Create and drop AWS Athena tables as part of a stack deploy/remove lifecycle."""

__version__ = "1.0.0"

from athena_tables.exceptions import (
    AthenaTablesError,
    DDLReadError,
    QueryTimeoutError,
    RemoteQueryError,
    TableNotFoundError,
    TableValidationError,
)
from athena_tables.plugin import AthenaTablesPlugin
from athena_tables.registry import TableRegistry

__all__ = [
    "AthenaTablesError",
    "AthenaTablesPlugin",
    "DDLReadError",
    "QueryTimeoutError",
    "RemoteQueryError",
    "TableNotFoundError",
    "TableRegistry",
    "TableValidationError",
    "__version__",
]

"""DDL text resolution and statement helpers."""

from __future__ import annotations

import logging
from typing import Mapping

from athena_tables.config.models import FileDDL, InlineDDL, TableDefinition
from athena_tables.exceptions import DDLReadError

logger = logging.getLogger(__name__)


def read_ddl_file(source: FileDDL) -> str:
    """Read a DDL file as UTF-8 text.

    Raises:
        DDLReadError: If the file is missing, unreadable or not valid UTF-8
    """
    try:
        return source.path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DDLReadError(
            f"Unable to read DDL file {source.path}",
            file_path=str(source.path),
            original_error=exc,
        ) from exc


def apply_substitutions(
    ddl: str, substitutions: Mapping[str, str], replace_all: bool = False
) -> str:
    """Replace ``{token}`` placeholders in mapping order.

    Only the first occurrence of each placeholder is replaced unless
    ``replace_all`` is set.
    """
    count = -1 if replace_all else 1
    for token, value in substitutions.items():
        ddl = ddl.replace("{" + token + "}", value, count)
    return ddl


def resolve_ddl(definition: TableDefinition) -> str:
    """Return the DDL text to submit for a table, substitutions applied."""
    source = definition.ddl_source
    if isinstance(source, InlineDDL):
        ddl = source.text
    else:
        logger.debug("Reading DDL for %s from %s", definition.name, source.path)
        ddl = read_ddl_file(source)

    if definition.substitutions:
        ddl = apply_substitutions(ddl, definition.substitutions, definition.substitute_all)
    return ddl


def drop_table_statement(table_name: str, if_exists: bool = False) -> str:
    if if_exists:
        return f"DROP TABLE IF EXISTS {table_name}"
    return f"DROP TABLE {table_name}"


SHOW_TABLES_STATEMENT = "SHOW TABLES"

"""Registry of the Athena tables declared in service configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from athena_tables.config.loader import get_athena_tables
from athena_tables.config.models import (
    DDLSource,
    FileDDL,
    InlineDDL,
    TableConfig,
    TableDefinition,
)
from athena_tables.exceptions import TableNotFoundError, TableValidationError
from athena_tables.logging_config import log_context

logger = logging.getLogger(__name__)

RawTable = Union[TableConfig, Mapping[str, Any]]


class TableRegistry:
    """Named table definitions, in the order they were declared.

    The registry never talks to Athena and never reads DDL files, so every
    check here can run for all tables before the first query is submitted.
    """

    def __init__(
        self,
        tables: Optional[Mapping[str, RawTable]] = None,
        base_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self._tables: Dict[str, RawTable] = dict(tables or {})
        self.base_dir = Path(base_dir) if base_dir is not None else None

    @classmethod
    def from_service_config(
        cls,
        config: Mapping[str, Any],
        base_dir: Optional[Union[str, Path]] = None,
    ) -> "TableRegistry":
        return cls(get_athena_tables(config), base_dir=base_dir)

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def list_tables(self) -> Dict[str, TableConfig]:
        """Return every declared table; an empty dict means nothing to do."""
        return {name: self._parse(name, raw) for name, raw in self._tables.items()}

    def get(self, name: str) -> TableConfig:
        if name not in self._tables:
            raise TableNotFoundError(name)
        return self._parse(name, self._tables[name])

    def validate(self, name: str, config: RawTable) -> TableDefinition:
        """Check one definition and return its validated form.

        Checks run in a fixed order: DDL source, OutputLocation, TableName.
        A missing DatabaseName is only a warning.

        Raises:
            TableValidationError: If the definition cannot be used
        """
        table = self._parse(name, config)

        if not table.ddl and not table.ddl_file:
            raise TableValidationError(
                f"Definition for Athena table {name} must include one of a DDLFile or DDL entry.",
                table=name,
                key="DDL",
            )
        if table.ddl and table.ddl_file:
            raise TableValidationError(
                f"Definition for Athena table {name} must include one of a DDLFile or DDL entry, not both.",
                table=name,
                key="DDLFile",
            )
        if not table.output_location:
            raise TableValidationError(
                f"Definition for Athena table {name} must include OutputLocation.",
                table=name,
                key="OutputLocation",
            )
        if not table.table_name:
            raise TableValidationError(
                f"Definition for Athena table {name} must include TableName "
                "to allow dropping the table on remove.",
                table=name,
                key="TableName",
            )
        if not table.database_name:
            logger.warning(
                "Athena table %s definition does not include DatabaseName; "
                "default database will be used",
                name,
                extra=log_context(table=name),
            )

        return TableDefinition(
            name=name,
            ddl_source=self._ddl_source(table),
            output_location=table.output_location,
            table_name=table.table_name,
            database_name=table.database_name or None,
            substitutions={
                str(token): str(value)
                for token, value in (table.ddl_substitutions or {}).items()
            },
            substitute_all=table.substitute_all,
        )

    def validate_all(self) -> Dict[str, TableDefinition]:
        """Validate every table; the first invalid one fails the whole batch."""
        return {name: self.validate(name, raw) for name, raw in self._tables.items()}

    def _ddl_source(self, table: TableConfig) -> DDLSource:
        if table.ddl:
            return InlineDDL(table.ddl)
        path = Path(table.ddl_file)
        if self.base_dir is not None and not path.is_absolute():
            path = self.base_dir / path
        return FileDDL(path)

    @staticmethod
    def _parse(name: str, raw: RawTable) -> TableConfig:
        if isinstance(raw, TableConfig):
            return raw
        if not isinstance(raw, Mapping):
            raise TableValidationError(
                f"Definition for Athena table {name} must be a mapping.", table=name
            )
        try:
            return TableConfig.model_validate(dict(raw))
        except ValidationError as exc:
            raise TableValidationError(
                f"Definition for Athena table {name} is invalid: {exc}", table=name
            ) from exc

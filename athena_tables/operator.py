"""Create and drop single Athena tables."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List

from athena_tables.athena.poller import QueryExecution, QueryPoller
from athena_tables.athena.service import AthenaQueryService
from athena_tables.config.models import TableDefinition
from athena_tables.ddl import SHOW_TABLES_STATEMENT, drop_table_statement, resolve_ddl
from athena_tables.exceptions import AthenaTablesError
from athena_tables.logging_config import log_context

logger = logging.getLogger(__name__)


@contextmanager
def _table_context(name: str) -> Iterator[None]:
    # Tag errors with the registry name so the host can say which table failed.
    try:
        yield
    except AthenaTablesError as exc:
        exc.details.setdefault("table", name)
        raise


class TableOperator:
    """Runs the create/drop queries for one table definition at a time."""

    def __init__(self, service: AthenaQueryService, poller: QueryPoller):
        self.service = service
        self.poller = poller

    def run_query(self, query: str, definition: TableDefinition) -> QueryExecution:
        """Submit ``query`` in the table's output location/database and wait for it."""
        execution_id = self.service.submit_query(query, **definition.query_context)
        logger.debug(
            "Waiting for Athena query %s",
            execution_id,
            extra=log_context(table=definition.name, execution_id=execution_id),
        )
        return self.poller.wait(execution_id)

    def create_table(self, definition: TableDefinition) -> QueryExecution:
        """Drop the table if it exists, then run its CREATE DDL."""
        with _table_context(definition.name):
            self.delete_table(definition, if_exists=True)
            ddl = resolve_ddl(definition)
            logger.info(
                "Creating Athena table %s...",
                definition.name,
                extra=log_context(table=definition.name),
            )
            return self.run_query(ddl, definition)

    def delete_table(self, definition: TableDefinition, if_exists: bool = False) -> QueryExecution:
        """Drop the table.

        ``if_exists`` is used by the pre-clean step of ``create_table``. An
        explicit removal leaves it unset, so dropping a missing table fails.
        """
        with _table_context(definition.name):
            logger.info(
                "Removing Athena table %s (%s)...",
                definition.name,
                definition.table_name,
                extra=log_context(table=definition.name),
            )
            return self.run_query(
                drop_table_statement(definition.table_name, if_exists=if_exists), definition
            )

    def list_tables(self, database_name: str, output_location: str) -> List[str]:
        """Return the table names Athena reports for ``database_name``."""
        execution_id = self.service.submit_query(
            SHOW_TABLES_STATEMENT, output_location, database_name
        )
        execution = self.poller.wait(execution_id)
        rows = self.service.fetch_result_rows(execution.id)
        return [row[0] for row in rows if row and row[0]]

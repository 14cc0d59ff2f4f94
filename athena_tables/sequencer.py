"""Sequential execution of table operations.

Tables are processed strictly one after another in declaration order. The
first failure stops the batch; tables handled before it keep whatever state
their query left them in.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Mapping

from athena_tables.config.models import TableDefinition
from athena_tables.logging_config import log_context
from athena_tables.operator import TableOperator

logger = logging.getLogger(__name__)

TableOperation = Callable[[TableDefinition], object]


def run_sequentially(
    tables: Mapping[str, TableDefinition], operation: TableOperation
) -> List[str]:
    """Apply ``operation`` to each table in order and return the completed names.

    Raises:
        Exception: Whatever the failing operation raised; later tables are skipped
    """
    completed: List[str] = []
    for name, definition in tables.items():
        try:
            operation(definition)
        except Exception:
            skipped = len(tables) - len(completed) - 1
            logger.error(
                "Athena table %s failed; %d completed, %d skipped",
                name,
                len(completed),
                skipped,
                extra=log_context(table=name),
            )
            raise
        completed.append(name)
    return completed


class BatchSequencer:
    def __init__(self, operator: TableOperator):
        self.operator = operator

    def create_all(self, tables: Mapping[str, TableDefinition]) -> List[str]:
        completed = run_sequentially(tables, self.operator.create_table)
        logger.info("Athena tables created successfully.")
        return completed

    def delete_all(self, tables: Mapping[str, TableDefinition]) -> List[str]:
        completed = run_sequentially(tables, self.operator.delete_table)
        logger.info("Athena tables deleted successfully.")
        return completed

"""Deploy-lifecycle plugin that keeps Athena tables in step with a stack.

The host framework calls the entries of ``AthenaTablesPlugin.hooks``:

- ``before:deploy:deploy``       validate every table definition
- ``after:deploy:deploy``        create every table
- ``after:remove:remove``        drop every table
- ``deploy:athenatables:deploy`` create one table (``table`` option) or all
- ``remove:athenatables:remove`` drop one table (``table`` option) or all

Any error propagates out of the hook so the host reports a failed deploy.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from athena_tables.athena.poller import QueryPoller
from athena_tables.athena.service import AthenaQueryService, create_athena_client
from athena_tables.config.loader import get_region
from athena_tables.config.models import TableDefinition
from athena_tables.config.settings import PollSettings, resolve_poll_settings
from athena_tables.operator import TableOperator
from athena_tables.registry import TableRegistry
from athena_tables.sequencer import BatchSequencer

logger = logging.getLogger(__name__)

NO_TABLES_MESSAGE = (
    "No Athena tables found.  Define them in a custom.athenaTables section in serverless.yml."
)


def _table_command(usage: str, lifecycle_event: str, option_usage: str) -> Dict[str, Any]:
    return {
        "usage": usage,
        "lifecycleEvents": [lifecycle_event],
        "options": {
            "table": {"usage": option_usage, "required": False},
        },
    }


class AthenaTablesPlugin:
    """Athena table lifecycle for one service configuration."""

    def __init__(
        self,
        service_config: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None,
        *,
        service: Optional[AthenaQueryService] = None,
        base_dir: Optional[Union[str, Path]] = None,
        poll_settings: Optional[PollSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            service_config: Loaded service configuration (``custom.athenaTables``,
                ``provider.region``)
            options: Command options; ``table`` selects a single table
            service: Query service; built from ``provider.region`` when omitted
            base_dir: Directory relative DDLFile paths are resolved against
            poll_settings: Poll interval and optional deadline
            sleep: Sleep function used between status checks
        """
        self.service_config = service_config
        self.options: Dict[str, Any] = dict(options or {})
        self.base_dir = base_dir
        self.poll_settings = poll_settings or resolve_poll_settings()
        self._sleep = sleep
        self._service = service

        self.commands = {
            "deploy": {
                "commands": {
                    "athenatables": _table_command(
                        "Deploy Athena tables", "deploy", "Table name to deploy"
                    ),
                },
            },
            "remove": {
                "commands": {
                    "athenatables": _table_command(
                        "Remove Athena tables", "remove", "Table name to remove"
                    ),
                },
            },
        }

        self.hooks: Dict[str, Callable[[], Any]] = {
            "before:deploy:deploy": self.validate_tables_global,
            "after:deploy:deploy": self.create_tables_global,
            "after:remove:remove": self.delete_tables_global,
            "deploy:athenatables:deploy": self.deploy_tables_command,
            "remove:athenatables:remove": self.remove_tables_command,
        }

    @property
    def service(self) -> AthenaQueryService:
        if self._service is None:
            self._service = AthenaQueryService(
                create_athena_client(region=get_region(self.service_config))
            )
        return self._service

    def get_registry(self) -> TableRegistry:
        # Re-read on every call; nothing is cached between invocations.
        return TableRegistry.from_service_config(self.service_config, base_dir=self.base_dir)

    def get_operator(self) -> TableOperator:
        poller = QueryPoller(
            self.service,
            interval=self.poll_settings.interval,
            timeout=self.poll_settings.timeout,
            sleep=self._sleep,
        )
        return TableOperator(self.service, poller)

    def validate_tables_global(self) -> Dict[str, TableDefinition]:
        registry = self.get_registry()
        if not len(registry):
            return {}
        logger.info("Validating Athena tables...")
        return registry.validate_all()

    def create_tables_global(self) -> List[str]:
        registry = self.get_registry()
        if not len(registry):
            return []
        logger.info("Creating Athena tables...")
        return self._create_all(registry)

    def delete_tables_global(self) -> List[str]:
        registry = self.get_registry()
        if not len(registry):
            return []
        logger.info("Removing Athena tables...")
        return self._delete_all(registry)

    def deploy_tables_command(self) -> List[str]:
        registry = self.get_registry()
        table = self.options.get("table")

        if table:
            definition = registry.validate(table, registry.get(table))
            logger.info("Creating Athena table %s...", table)
            self.get_operator().create_table(definition)
            return [table]

        if len(registry):
            logger.info("Creating all Athena tables...")
            return self._create_all(registry)

        logger.info(NO_TABLES_MESSAGE)
        return []

    def remove_tables_command(self) -> List[str]:
        registry = self.get_registry()
        table = self.options.get("table")

        if table:
            definition = registry.validate(table, registry.get(table))
            logger.info("Removing Athena table %s...", table)
            self.get_operator().delete_table(definition)
            return [table]

        if len(registry):
            logger.info("Removing all Athena tables...")
            return self._delete_all(registry)

        logger.info(NO_TABLES_MESSAGE)
        return []

    def _create_all(self, registry: TableRegistry) -> List[str]:
        definitions = registry.validate_all()
        return BatchSequencer(self.get_operator()).create_all(definitions)

    def _delete_all(self, registry: TableRegistry) -> List[str]:
        definitions = registry.validate_all()
        return BatchSequencer(self.get_operator()).delete_all(definitions)

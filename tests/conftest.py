"""Pytest configuration and fixtures."""

import re
import sys
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, Iterator, List, Optional, Set

import pytest
from botocore.exceptions import ClientError

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from athena_tables.athena import AthenaQueryService, QueryPoller  # noqa: E402
from athena_tables.config.settings import PollSettings  # noqa: E402
from athena_tables.operator import TableOperator  # noqa: E402
from athena_tables.plugin import AthenaTablesPlugin  # noqa: E402

OUTPUT_LOCATION = "s3://athena-results/athena-plugin-test/"
TEST_DATABASE = "plugintest"

_DROP_RE = re.compile(r"^\s*DROP\s+TABLE\s+(IF\s+EXISTS\s+)?`?([\w.]+)`?", re.IGNORECASE)
_CREATE_RE = re.compile(
    r"^\s*CREATE\s+(?:EXTERNAL\s+)?TABLE\s+(IF\s+NOT\s+EXISTS\s+)?`?([\w.]+)`?",
    re.IGNORECASE,
)
_SHOW_RE = re.compile(r"^\s*SHOW\s+TABLES\s*$", re.IGNORECASE)


class _FakePaginator:
    def __init__(self, client: "FakeAthenaClient", page_size: int = 2):
        self.client = client
        self.page_size = page_size

    def paginate(self, QueryExecutionId: str) -> Iterator[Dict[str, Any]]:
        rows = self.client.executions[QueryExecutionId]["rows"]
        if not rows:
            yield {"ResultSet": {"Rows": []}}
            return
        for start in range(0, len(rows), self.page_size):
            chunk = rows[start:start + self.page_size]
            yield {"ResultSet": {"Rows": [{"Data": [{"VarCharValue": value}]} for value in chunk]}}


class FakeAthenaClient:
    """In-memory stand-in for a boto3 ``athena`` client.

    Understands just enough SQL (DROP TABLE, CREATE [EXTERNAL] TABLE,
    SHOW TABLES) to track which tables exist per database.
    """

    def __init__(self, pending_states: Optional[List[str]] = None):
        self.pending_states = list(pending_states or [])
        self.tables: Dict[str, Set[str]] = {}
        self.executions: Dict[str, Dict[str, Any]] = {}
        self.submissions: List[Dict[str, Any]] = []
        self.status_checks: List[str] = []
        self.reject_queries_containing: Optional[str] = None

    @property
    def queries(self) -> List[str]:
        return [params["QueryString"] for params in self.submissions]

    def start_query_execution(self, **params: Any) -> Dict[str, str]:
        query = params["QueryString"]
        if self.reject_queries_containing and self.reject_queries_containing in query:
            raise ClientError(
                {"Error": {"Code": "InvalidRequestException", "Message": "line 1:8: mismatched input"}},
                "StartQueryExecution",
            )
        self.submissions.append(params)
        database = params.get("QueryExecutionContext", {}).get("Database", "default")
        final_state, reason, rows = self._execute(query, database)

        execution_id = f"exec-{len(self.executions) + 1}"
        states: Deque[str] = deque(self.pending_states + [final_state])
        self.executions[execution_id] = {
            "query": query,
            "states": states,
            "reason": reason,
            "rows": rows,
        }
        return {"QueryExecutionId": execution_id}

    def get_query_execution(self, QueryExecutionId: str) -> Dict[str, Any]:
        self.status_checks.append(QueryExecutionId)
        execution = self.executions[QueryExecutionId]
        states = execution["states"]
        state = states.popleft() if len(states) > 1 else states[0]
        status: Dict[str, Any] = {"State": state}
        if state in ("FAILED", "CANCELLED") and execution["reason"]:
            status["StateChangeReason"] = execution["reason"]
        return {"QueryExecution": {"QueryExecutionId": QueryExecutionId, "Status": status}}

    def get_paginator(self, operation_name: str) -> _FakePaginator:
        assert operation_name == "get_query_results"
        return _FakePaginator(self)

    def _execute(self, query: str, database: str):
        tables = self.tables.setdefault(database, set())

        match = _DROP_RE.match(query)
        if match:
            name = match.group(2)
            if name in tables:
                tables.remove(name)
                return "SUCCEEDED", None, []
            if match.group(1):
                return "SUCCEEDED", None, []
            return "FAILED", f"FAILED: SemanticException [Error 10001]: Table not found {name}", []

        match = _CREATE_RE.match(query)
        if match:
            name = match.group(2)
            if name in tables:
                if match.group(1):
                    return "SUCCEEDED", None, []
                return "FAILED", f"FAILED: AlreadyExistsException Table {name} already exists", []
            tables.add(name)
            return "SUCCEEDED", None, []

        if _SHOW_RE.match(query):
            return "SUCCEEDED", None, sorted(tables)

        return "FAILED", f"line 1:1: unsupported statement: {query[:20]}", []


@pytest.fixture
def fake_client() -> FakeAthenaClient:
    return FakeAthenaClient()


@pytest.fixture
def athena_service(fake_client) -> AthenaQueryService:
    return AthenaQueryService(fake_client)


@pytest.fixture
def sleeps() -> List[float]:
    """Records requested poll delays instead of sleeping."""
    return []


@pytest.fixture
def poller(athena_service, sleeps) -> QueryPoller:
    return QueryPoller(athena_service, interval=1.0, sleep=sleeps.append)


@pytest.fixture
def operator(athena_service, poller) -> TableOperator:
    return TableOperator(athena_service, poller)


@pytest.fixture
def ddl_template(tmp_path) -> Path:
    path = tmp_path / "athena_plugintest_2.sql"
    path.write_text(
        "CREATE EXTERNAL TABLE athena_plugintest_2 (\n"
        "  id string,\n"
        "  payload string\n"
        ")\n"
        "PARTITIONED BY (stage string)\n"
        "LOCATION '{S3Location}'\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def service_config(ddl_template) -> Dict[str, Any]:
    """Service configuration with two tables sharing one output location."""
    return {
        "service": "athena-plugin-test",
        "provider": {"name": "aws", "region": "us-east-1"},
        "custom": {
            "athenaTables": {
                "athena_plugintest_1": {
                    "DDL": (
                        "CREATE EXTERNAL TABLE athena_plugintest_1 (id string) "
                        "LOCATION 's3://serverless-athena-plugin-test-test1/'"
                    ),
                    "OutputLocation": OUTPUT_LOCATION,
                    "TableName": "athena_plugintest_1",
                    "DatabaseName": TEST_DATABASE,
                },
                "athena_plugintest_2": {
                    "DDLFile": ddl_template.name,
                    "DDLSubstitutions": {
                        "S3Location": "s3://serverless-athena-plugin-test-test1/stage=plugintest/",
                    },
                    "OutputLocation": OUTPUT_LOCATION,
                    "TableName": "athena_plugintest_2",
                    "DatabaseName": TEST_DATABASE,
                },
            }
        },
    }


@pytest.fixture
def make_plugin(athena_service, sleeps, ddl_template):
    """Factory for plugins wired to the fake Athena client."""

    def _make(config: Dict[str, Any], options: Optional[Dict[str, Any]] = None) -> AthenaTablesPlugin:
        return AthenaTablesPlugin(
            config,
            options,
            service=athena_service,
            base_dir=ddl_template.parent,
            poll_settings=PollSettings(interval=1.0),
            sleep=sleeps.append,
        )

    return _make

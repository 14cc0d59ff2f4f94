"""Thin wrapper around the boto3 Athena client."""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from athena_tables.exceptions import RemoteQueryError

logger = logging.getLogger(__name__)

ENDPOINT_URL_ENV = "ATHENA_ENDPOINT_URL"


class QueryState(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class QueryStatus:
    state: str
    reason: Optional[str] = None


def create_athena_client(region: Optional[str] = None, endpoint_url: Optional[str] = None) -> Any:
    """Build a boto3 Athena client.

    Args:
        region: AWS region (falls back to the boto3 default chain)
        endpoint_url: Endpoint override; defaults to ATHENA_ENDPOINT_URL when set
    """
    endpoint_url = endpoint_url or os.environ.get(ENDPOINT_URL_ENV)
    try:
        client = boto3.client("athena", region_name=region, endpoint_url=endpoint_url)
        logger.debug(f"Created Athena client in region {region or 'default'} with endpoint: {endpoint_url or 'default'}")
        return client
    except Exception as e:
        logger.error(f"Failed to create Athena client: {e}")
        raise


class AthenaQueryService:
    """Submits queries to Athena and reports their execution status.

    Submission is never retried: a rejected StartQueryExecution call surfaces
    immediately as ``RemoteQueryError``.
    """

    def __init__(self, client: Any):
        """
        Args:
            client: boto3 ``athena`` client (or a compatible fake)
        """
        self.client = client

    def submit_query(
        self,
        query: str,
        output_location: str,
        database_name: Optional[str] = None,
    ) -> str:
        """Start a query execution and return its QueryExecutionId.

        Raises:
            RemoteQueryError: If Athena rejects the request
        """
        params: Dict[str, Any] = {
            "QueryString": query,
            "ResultConfiguration": {"OutputLocation": output_location},
        }
        if database_name:
            params["QueryExecutionContext"] = {"Database": database_name}

        try:
            response = self.client.start_query_execution(**params)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to submit Athena query: {e}")
            raise RemoteQueryError(
                f"Athena rejected query: {e}",
                operation="StartQueryExecution",
                original_error=e,
            ) from e

        execution_id = response["QueryExecutionId"]
        logger.debug("Submitted Athena query %s: %s", execution_id, query.splitlines()[0] if query else "")
        return execution_id

    def get_execution_status(self, execution_id: str) -> QueryStatus:
        try:
            response = self.client.get_query_execution(QueryExecutionId=execution_id)
        except (BotoCoreError, ClientError) as e:
            raise RemoteQueryError(
                f"Unable to read status of Athena query {execution_id}: {e}",
                execution_id=execution_id,
                operation="GetQueryExecution",
                original_error=e,
            ) from e

        status = response["QueryExecution"]["Status"]
        return QueryStatus(state=status["State"], reason=status.get("StateChangeReason"))

    def fetch_result_rows(self, execution_id: str) -> List[List[Optional[str]]]:
        """Return every result row of a finished query as lists of strings."""
        rows: List[List[Optional[str]]] = []
        try:
            paginator = self.client.get_paginator("get_query_results")
            for page in paginator.paginate(QueryExecutionId=execution_id):
                for row in page["ResultSet"]["Rows"]:
                    rows.append([datum.get("VarCharValue") for datum in row.get("Data", [])])
        except (BotoCoreError, ClientError) as e:
            raise RemoteQueryError(
                f"Unable to fetch results of Athena query {execution_id}: {e}",
                execution_id=execution_id,
                operation="GetQueryResults",
                original_error=e,
            ) from e
        return rows

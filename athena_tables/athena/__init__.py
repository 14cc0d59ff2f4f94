"""Athena query submission and polling."""

from .poller import PollerState, QueryExecution, QueryPoller
from .service import (
    AthenaQueryService,
    QueryState,
    QueryStatus,
    create_athena_client,
)

__all__ = [
    "AthenaQueryService",
    "PollerState",
    "QueryExecution",
    "QueryPoller",
    "QueryState",
    "QueryStatus",
    "create_athena_client",
]

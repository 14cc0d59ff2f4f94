"""Polling of Athena query executions until they reach a terminal state.

The poll loop is a tenacity ``Retrying`` driven by the *result* of each
status check: QUEUED/RUNNING results are retried after a fixed delay,
anything else ends the loop. Exceptions from the status call are not
retried. By default there is no deadline; pass ``timeout`` to add one.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import tenacity

from athena_tables.athena.service import AthenaQueryService, QueryState, QueryStatus
from athena_tables.config.settings import DEFAULT_POLL_INTERVAL
from athena_tables.exceptions import QueryTimeoutError, RemoteQueryError
from athena_tables.logging_config import log_context

logger = logging.getLogger(__name__)

__all__ = ["PollerState", "QueryExecution", "QueryPoller"]

_PENDING_STATES = frozenset([QueryState.QUEUED.value, QueryState.RUNNING.value])


class PollerState(str, Enum):
    SUBMITTED = "SUBMITTED"
    POLLING = "POLLING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


@dataclass
class QueryExecution:
    """Local view of one in-flight execution."""

    id: str
    state: PollerState = PollerState.SUBMITTED
    remote_state: Optional[str] = None
    reason: Optional[str] = None
    checks: int = 0


def _is_pending(status: QueryStatus) -> bool:
    return status.state in _PENDING_STATES


class QueryPoller:
    def __init__(
        self,
        service: AthenaQueryService,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.service = service
        self.interval = interval
        self.timeout = timeout
        self._sleep = sleep

    def wait(self, execution_id: str) -> QueryExecution:
        """Block until ``execution_id`` is terminal.

        Returns:
            The execution in SUCCEEDED state

        Raises:
            RemoteQueryError: If the execution ends FAILED or CANCELLED
            QueryTimeoutError: If ``timeout`` elapses first
        """
        execution = QueryExecution(id=execution_id)
        execution.state = PollerState.POLLING

        def check() -> QueryStatus:
            status = self.service.get_execution_status(execution_id)
            execution.checks += 1
            execution.remote_state = status.state
            execution.reason = status.reason
            return status

        def before_sleep(retry_state: tenacity.RetryCallState) -> None:
            logger.debug(
                "Athena query %s is %s; checking again in %.1fs",
                execution_id,
                execution.remote_state,
                retry_state.next_action.sleep if retry_state.next_action else 0,
                extra=log_context(execution_id=execution_id, state=execution.remote_state),
            )

        stop = (
            tenacity.stop_after_delay(self.timeout)
            if self.timeout is not None
            else tenacity.stop_never
        )
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_result(_is_pending),
            wait=tenacity.wait_fixed(self.interval),
            stop=stop,
            sleep=self._sleep,
            before_sleep=before_sleep,
        )

        try:
            status = retryer(check)
        except tenacity.RetryError as exc:
            execution.state = PollerState.FAILED
            raise QueryTimeoutError(
                f"Athena query {execution_id} still {execution.remote_state} after {self.timeout}s",
                execution_id=execution_id,
                timeout=self.timeout,
                last_state=execution.remote_state,
            ) from exc
        except Exception:
            execution.state = PollerState.FAILED
            raise

        if status.state == QueryState.SUCCEEDED.value:
            execution.state = PollerState.SUCCEEDED
            logger.debug(
                "Athena query %s succeeded after %d check(s)",
                execution_id,
                execution.checks,
                extra=log_context(execution_id=execution_id, state=status.state),
            )
            return execution

        execution.state = PollerState.FAILED
        logger.warning(
            "Athena query %s finished %s: %s",
            execution_id,
            status.state,
            status.reason or "no reason given",
            extra=log_context(execution_id=execution_id, state=status.state),
        )
        raise RemoteQueryError(
            f"Query status {status.state}",
            state=status.state,
            execution_id=execution_id,
            reason=status.reason,
        )
